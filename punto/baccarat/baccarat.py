"""
Baccarat simulation CLI.

Deal rounds through the table engine and measure the house edge of each bet
type under a given rule set.
"""

import argparse
import logging
import random
import time
from typing import Dict, List, Optional

from punto.baccarat.arbiter import DealArbiter
from punto.baccarat.bets import BetType
from punto.baccarat.engine import RulesEngine
from punto.baccarat.result import RoundResult, Winner
from punto.baccarat.rules import BaccaratRules
from punto.baccarat.statistics import analyze_trend, shoe_fairness_test, win_rate_interval
from punto.common.shoe import Shoe

_BET_CHOICES = {bet_type.name.lower(): bet_type for bet_type in BetType}


def deal_rounds(
    num_games: int, rules: BaccaratRules, seed: Optional[int] = None
) -> List[RoundResult]:
    """
    Deal ``num_games`` rounds from one shoe, reshuffling whenever the cut card is reached.
    """
    shoe = Shoe(rules.num_decks, rules.shuffle_threshold, rng=random.Random(seed))
    arbiter = DealArbiter(shoe, rules)
    results = []
    for round_id in range(1, num_games + 1):
        if shoe.needs_shuffle:
            shoe.reshuffle()
        results.append(arbiter.play(round_id))
    return results


def run_simulation(
    num_games: int = 10000,
    bet_type: BetType = BetType.BANKER,
    bet_amount: float = 10,
    rules: Optional[BaccaratRules] = None,
    seed: Optional[int] = None,
    verbose: bool = False,
    results: Optional[List[RoundResult]] = None,
) -> Dict:
    """
    Run a Baccarat simulation.

    Args:
        num_games: Number of games to simulate
        bet_type: Bet placed every round
        bet_amount: Amount to bet per game
        rules: Table rules (standard commission table by default)
        seed: Seed for the shoe, for reproducible runs
        verbose: Print detailed results
        results: Previously dealt rounds to settle instead of dealing new ones

    Returns:
        Dictionary with simulation results
    """
    rules = rules if rules else BaccaratRules()
    engine = RulesEngine(rules)

    start_time = time.time()
    if results is None:
        results = deal_rounds(num_games, rules, seed)
    num_games = len(results)

    total_wagered = 0.0
    net_earnings = 0.0
    commission_paid = 0.0
    for result in results:
        payout = engine.compute_payout(bet_type, bet_amount, result)
        total_wagered += bet_amount
        net_earnings += payout.profit
        commission_paid += payout.commission

    duration = time.time() - start_time
    house_edge = (-net_earnings / total_wagered) * 100 if total_wagered > 0 else 0
    trend = analyze_trend(results)

    summary = {
        "num_games": num_games,
        "bet_type": bet_type.name.lower(),
        "total_wagered": total_wagered,
        "net_earnings": net_earnings,
        "commission_paid": commission_paid,
        "house_edge": house_edge,
        "player_wins": trend.player_wins,
        "banker_wins": trend.banker_wins,
        "ties": trend.ties,
        "duration": duration,
        "games_per_second": num_games / duration if duration > 0 else 0,
    }

    if verbose:
        banker_ci = win_rate_interval(results, Winner.BANKER)
        print(f"\nBaccarat Simulation Results ({bet_type} bet)")
        print("=" * 60)
        print(f"Games played: {num_games:,}")
        print(f"Total wagered: ${total_wagered:,.2f}")
        print(f"Net earnings: ${net_earnings:,.2f}")
        print(f"Commission paid: ${commission_paid:,.2f}")
        print(f"House edge: {house_edge:.2f}%")
        print("\nOutcome Distribution:")
        print(f"  Player wins: {trend.player_wins:,} ({trend.player_win_rate * 100:.1f}%)")
        print(f"  Banker wins: {trend.banker_wins:,} ({trend.banker_win_rate * 100:.1f}%)")
        print(f"  Ties: {trend.ties:,} ({trend.tie_rate * 100:.1f}%)")
        print(
            f"  Banker win rate 95% CI: {banker_ci.lower * 100:.2f}% - {banker_ci.upper * 100:.2f}%"
        )
        print(f"  Longest Banker streak: {trend.max_banker_streak}")
        print(f"  Longest Player streak: {trend.max_player_streak}")
        print(f"\nDuration: {duration:.2f} seconds")
        print(f"Games per second: {summary['games_per_second']:,.0f}")
        print("=" * 60)

    return summary


def compare_bet_types(
    num_games: int = 10000,
    bet_amount: float = 10,
    rules: Optional[BaccaratRules] = None,
    seed: Optional[int] = None,
) -> Dict[BetType, Dict]:
    """
    Compare every bet type over the same dealt rounds.

    Args:
        num_games: Number of games to simulate
        bet_amount: Amount to bet per game
        rules: Table rules
        seed: Seed for the shoe
    """
    rules = rules if rules else BaccaratRules()
    engine = RulesEngine(rules)
    results = deal_rounds(num_games, rules, seed)

    print("\n" + "=" * 70)
    print("BACCARAT BET TYPE COMPARISON")
    print("=" * 70)
    print(f"Simulated {num_games:,} games")
    print(engine.describe())
    print()

    comparison = {}
    for bet_type in engine.enabled_bet_types():
        comparison[bet_type] = run_simulation(
            num_games, bet_type, bet_amount, rules, results=results
        )

    print(f"{'Bet Type':<14} {'House Edge':<12} {'Net Earnings'}")
    print("-" * 70)
    for bet_type, r in comparison.items():
        print(f"{bet_type.label:<14} {r['house_edge']:>10.2f}%  ${r['net_earnings']:>12,.2f}")
    print("=" * 70)
    return comparison


def check_shoe(num_decks: int = 8, seed: Optional[int] = None, deal: int = 0) -> None:
    """Deal some cards from a fresh shoe and report its integrity and fairness."""
    shoe = Shoe(num_decks, rng=random.Random(seed))
    for _ in range(min(deal, shoe.total_cards)):
        shoe.deal()
    violations = shoe.integrity_check()
    fairness = shoe_fairness_test(shoe)
    print(f"{shoe} after dealing {shoe.cards_dealt} cards")
    print(f"Integrity: {'OK' if not violations else '; '.join(violations)}")
    print(f"Chi-square: {fairness.statistic:.3f} (p = {fairness.p_value:.4f})")


def build_rules(args: argparse.Namespace) -> BaccaratRules:
    return BaccaratRules(
        num_decks=args.num_decks,
        commission_enabled=not args.no_commission,
        enable_super6=args.super6,
    )


def main(argv: Optional[List[str]] = None):
    """Main CLI interface for Baccarat simulation."""
    parser = argparse.ArgumentParser(
        description="Baccarat table simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run 10,000 games with Banker bets
  punto-sim --simulate --num_games 10000 --bet banker

  # Compare all bet types on a no-commission table with Super Six
  punto-sim --compare --no-commission --super6

  # Reproducible run
  punto-sim --simulate --bet tie --seed 42
        """,
    )

    parser.add_argument("--simulate", action="store_true", help="Run simulation mode")
    parser.add_argument("--compare", action="store_true", help="Compare all bet types")
    parser.add_argument(
        "--check-shoe",
        type=int,
        metavar="CARDS",
        help="Deal CARDS cards from a fresh shoe and test its integrity and fairness",
    )
    parser.add_argument(
        "--num_games",
        type=int,
        default=10000,
        help="Number of games to simulate (default: 10000)",
    )
    parser.add_argument(
        "--bet",
        type=str,
        choices=sorted(_BET_CHOICES),
        default="banker",
        help="Bet type (default: banker)",
    )
    parser.add_argument(
        "--bet_amount",
        type=float,
        default=10.0,
        help="Bet amount per game (default: 10)",
    )
    parser.add_argument(
        "--num_decks",
        type=int,
        default=8,
        help="Number of decks in shoe (default: 8)",
    )
    parser.add_argument("--no-commission", action="store_true", help="Pay Banker at even money")
    parser.add_argument("--super6", action="store_true", help="Banker wins on 6 pay 1:2")
    parser.add_argument("--seed", type=int, help="Seed for the shoe")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every round")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    rules = build_rules(args)

    if args.check_shoe is not None:
        check_shoe(args.num_decks, args.seed, args.check_shoe)
    elif args.simulate:
        run_simulation(
            args.num_games,
            _BET_CHOICES[args.bet],
            args.bet_amount,
            rules,
            seed=args.seed,
            verbose=True,
        )
    else:
        # Default: show comparison
        compare_bet_types(args.num_games, args.bet_amount, rules, args.seed)


if __name__ == "__main__":
    main()
