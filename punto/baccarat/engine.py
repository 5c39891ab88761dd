"""
Bet validation, odds and payout arithmetic for a Baccarat table.

``RulesEngine`` never mutates the ledger or the balance it is handed. It
answers questions: is this bet acceptable, does it win, what does it pay,
and did a round follow the third-card table.
"""

from typing import Dict, List, Optional, Tuple

from punto.baccarat.bets import (
    BetAboveMaximumError,
    BetBelowMinimumError,
    BetLedger,
    BetLimit,
    BetRequest,
    BetType,
    BetTypeDisabledError,
    BettingClosedError,
    InsufficientBalanceError,
    InvalidBetTypeError,
    TableLimitError,
    ValidatedBet,
)
from punto.baccarat.hand import BaccaratHand, Side
from punto.baccarat.result import Payout, PayoutSummary, RoundResult, Winner, determine_winner
from punto.baccarat.rules import BaccaratRules, decide_draws
from punto.common.chips import DEFAULT_CHIPS, ChipCatalog, ChipConversion, convert

STANDARD_ODDS: Dict[BetType, float] = {
    BetType.BANKER: 0.95,
    BetType.PLAYER: 1.0,
    BetType.TIE: 8.0,
    BetType.BANKER_PAIR: 11.0,
    BetType.PLAYER_PAIR: 11.0,
    BetType.BIG: 0.54,
    BetType.SMALL: 1.5,
}

NO_COMMISSION_ODDS: Dict[BetType, float] = {
    bet_type: (1.0 if bet_type == BetType.BANKER else odds)
    for bet_type, odds in STANDARD_ODDS.items()
}

SUPER6_BANKER_ODDS = 0.5
MAX_COMMISSION_RATE = 0.1


class RulesEngine:
    def __init__(self, rules: Optional[BaccaratRules] = None):
        self.rules = rules if rules else BaccaratRules()

    def coerce_bet_type(self, value) -> BetType:
        if isinstance(value, BetType):
            return value
        try:
            return BetType(value)
        except ValueError:
            raise InvalidBetTypeError(f"Unknown bet type: {value!r}", value) from None

    def is_enabled(self, bet_type: BetType) -> bool:
        if bet_type.is_pair:
            return self.rules.enable_pair_bets
        if bet_type.is_big_small:
            return self.rules.enable_big_small_bets
        return True

    def enabled_bet_types(self) -> List[BetType]:
        return [bet_type for bet_type in BetType if self.is_enabled(bet_type)]

    def validate_bet(
        self,
        request: BetRequest,
        ledger: BetLedger,
        balance: float,
        limits: Optional[Dict[BetType, BetLimit]] = None,
    ) -> ValidatedBet:
        """
        Check a bet against the table rules.

        Checks run in a fixed order and the first failure is raised: bet
        type, minimum, maximum, balance, feature toggles, then whether the
        ledger is open and the round total stays under the table maximum.

        :param request: The bet to check
        :param ledger: The round's ledger so far
        :param balance: What the player can still stake
        :param limits: Per-type limits overriding the configured ones
        :return: The validated bet
        :raises BetError: The first check that failed
        """
        bet_type = self.coerce_bet_type(request.bet_type)
        amount = request.amount
        limit = (limits or self.rules.bet_limits).get(bet_type)
        if limit is None:
            raise InvalidBetTypeError(f"No limits configured for {bet_type}", bet_type, amount)

        if amount < limit.min:
            raise BetBelowMinimumError(
                f"{bet_type} bet of {amount:g} is below the minimum of {limit.min:g}",
                bet_type,
                amount,
            )
        if amount > limit.max:
            raise BetAboveMaximumError(
                f"{bet_type} bet of {amount:g} is above the maximum of {limit.max:g}",
                bet_type,
                amount,
            )
        if amount > balance:
            raise InsufficientBalanceError(
                f"{bet_type} bet of {amount:g} exceeds the balance of {balance:g}",
                bet_type,
                amount,
            )
        if not self.is_enabled(bet_type):
            raise BetTypeDisabledError(f"{bet_type} bets are disabled at this table", bet_type, amount)

        if ledger.frozen:
            raise BettingClosedError("Betting is closed for this round", bet_type, amount)
        if ledger.total + amount > self.rules.table_max_total:
            raise TableLimitError(
                f"Round total would exceed the table maximum of {self.rules.table_max_total:g}",
                bet_type,
                amount,
            )

        return ValidatedBet(bet_type, amount, ledger.amount(bet_type) + amount)

    def is_super6(self, result: RoundResult) -> bool:
        return (
            self.rules.enable_super6
            and result.winner == Winner.BANKER
            and result.banker_points == 6
        )

    def odds(self, bet_type: BetType, result: Optional[RoundResult] = None) -> float:
        """
        The payout odds for a bet type.

        With a result, Super Six is taken into account for Banker bets.
        """
        if bet_type == BetType.BANKER and result is not None and self.is_super6(result):
            return SUPER6_BANKER_ODDS
        table = STANDARD_ODDS if self.rules.commission_enabled else NO_COMMISSION_ODDS
        return table[bet_type]

    def is_bet_winning(self, bet_type: BetType, result: RoundResult) -> bool:
        if bet_type == BetType.BANKER:
            return result.winner == Winner.BANKER
        if bet_type == BetType.PLAYER:
            return result.winner == Winner.PLAYER
        if bet_type == BetType.TIE:
            return result.winner == Winner.TIE
        if bet_type == BetType.BANKER_PAIR:
            return result.banker_pair
        if bet_type == BetType.PLAYER_PAIR:
            return result.player_pair
        if bet_type == BetType.BIG:
            return result.is_big
        if bet_type == BetType.SMALL:
            return not result.is_big
        return False

    def compute_payout(self, bet_type: BetType, amount: float, result: RoundResult) -> Payout:
        """
        Settle one stake against a result.

        A win returns ``amount * (1 + odds)``. Winning Banker bets at a
        commission table pay ``amount * odds * commission_rate`` of that back.
        """
        bet_type = self.coerce_bet_type(bet_type)
        if not self.is_bet_winning(bet_type, result):
            return Payout(bet_type=bet_type, amount=amount, is_win=False, odds=0.0, profit=-amount)

        odds = self.odds(bet_type, result)
        gross = amount * (1 + odds)
        commission = 0.0
        if bet_type == BetType.BANKER and self.rules.commission_enabled:
            commission = amount * odds * self.rules.commission_rate
        net = gross - commission
        return Payout(
            bet_type=bet_type,
            amount=amount,
            is_win=True,
            odds=odds,
            gross=gross,
            commission=commission,
            net=net,
            profit=net - amount,
        )

    def compute_payouts(
        self, ledger: BetLedger, result: RoundResult, confirmed_only: bool = False
    ) -> PayoutSummary:
        """Settle every entry of a ledger."""
        payouts = []
        for bet_type, entry in ledger.items():
            amount = entry.confirmed if confirmed_only else entry.total
            if amount > 0:
                payouts.append(self.compute_payout(bet_type, amount, result))
        return PayoutSummary(tuple(payouts))

    def check_draw_compliance(self, banker_hand: BaccaratHand, player_hand: BaccaratHand) -> bool:
        """
        Check that two finished hands followed the third-card table.

        The decision is rederived from each hand's first two cards and the
        Player's third card, if any, then compared to the card counts.
        """
        if not 2 <= banker_hand.card_count() <= 3 or not 2 <= player_hand.card_count() <= 3:
            return False

        decision = decide_draws(
            BaccaratHand(Side.BANKER, banker_hand.cards[:2]),
            BaccaratHand(Side.PLAYER, player_hand.cards),
            self.rules.rule_variant,
        )
        if decision.player_draws != (player_hand.card_count() == 3):
            return False
        return decision.banker_draws == (banker_hand.card_count() == 3)

    def validate_result(self, result: RoundResult) -> List[str]:
        """
        Check a result reported from outside the engine.

        :return: A list of problems; empty when the result is consistent
        """
        errors = []
        if not 2 <= len(result.banker_cards) <= 3:
            errors.append(f"Banker has {len(result.banker_cards)} cards")
        if not 2 <= len(result.player_cards) <= 3:
            errors.append(f"Player has {len(result.player_cards)} cards")
        if errors:
            return errors

        banker_hand, player_hand = result.hands()
        if banker_hand.value() != result.banker_points:
            errors.append(
                f"Banker points are {result.banker_points}, cards total {banker_hand.value()}"
            )
        if player_hand.value() != result.player_points:
            errors.append(
                f"Player points are {result.player_points}, cards total {player_hand.value()}"
            )
        expected = determine_winner(banker_hand.value(), player_hand.value())
        if result.winner != expected:
            errors.append(f"Winner is {result.winner}, expected {expected}")
        if result.banker_pair != banker_hand.is_pair():
            errors.append("Banker pair flag does not match the cards")
        if result.player_pair != player_hand.is_pair():
            errors.append("Player pair flag does not match the cards")
        total_cards = banker_hand.card_count() + player_hand.card_count()
        if result.total_cards != total_cards:
            errors.append(f"Total cards is {result.total_cards}, expected {total_cards}")
        if result.is_big != self.rules.big_predicate(total_cards):
            errors.append("Big/Small flag does not match the card count")
        if not self.check_draw_compliance(banker_hand, player_hand):
            errors.append("Third-card draws do not follow the draw table")
        return errors

    def validate_configuration(self) -> Tuple[List[str], List[str]]:
        """
        Check the table rules for mistakes.

        :return: (errors, warnings)
        """
        rules = self.rules
        errors = []
        warnings = []

        if rules.num_decks < 1:
            errors.append("Number of decks must be at least 1")
        if not 0 <= rules.shuffle_threshold <= 1:
            errors.append("Shuffle threshold must be between 0 and 1")
        if rules.commission_enabled and not 0 <= rules.commission_rate <= MAX_COMMISSION_RATE:
            errors.append(
                f"Commission rate {rules.commission_rate:g} is outside 0-{MAX_COMMISSION_RATE:g}"
            )
        for bet_type in BetType:
            limit = rules.bet_limits.get(bet_type)
            if limit is None:
                errors.append(f"No limits configured for {bet_type}")
            elif limit.min >= limit.max:
                errors.append(f"{bet_type} minimum {limit.min:g} is not below maximum {limit.max:g}")
            elif limit.max > rules.table_max_total:
                warnings.append(f"{bet_type} maximum exceeds the table maximum")
        if rules.enable_super6 and rules.commission_enabled:
            warnings.append("Super Six is normally offered on no-commission tables")
        return errors, warnings

    def rule_statistics(self) -> Dict[str, float]:
        enabled = self.enabled_bet_types()
        return {
            "total_bet_types": len(BetType),
            "enabled_bet_types": len(enabled),
            "average_odds": sum(self.odds(t) for t in enabled) / len(enabled),
        }

    def describe(self) -> str:
        rules = self.rules

        def toggle(flag: bool) -> str:
            return "enabled" if flag else "disabled"

        commission = f"{rules.commission_rate:.1%}" if rules.commission_enabled else "none"
        return "\n".join(
            [
                f"Commission: {commission}",
                f"Super Six: {toggle(rules.enable_super6)}",
                f"Pair bets: {toggle(rules.enable_pair_bets)}",
                f"Big/Small bets: {toggle(rules.enable_big_small_bets)}",
                f"Draw rules: {rules.rule_variant.value}",
            ]
        )

    def recommend_chips(self, amount: float, catalog: ChipCatalog = DEFAULT_CHIPS) -> ChipConversion:
        """Chip stacks to represent a stake."""
        return convert(amount, catalog)
