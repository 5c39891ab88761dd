"""
Baccarat rules and drawing logic.

Baccarat has fixed drawing rules - no player decisions after betting.
The rules determine when Player and Banker draw a third card.

The standard third-card table is the only one implemented. Other variants
can be plugged in with ``register_draw_table``.
"""

from dataclasses import dataclass, field, replace
from enum import Enum, unique
from typing import Callable, Dict, Optional

from punto.baccarat.bets import BetLimit, BetType, default_bet_limits
from punto.baccarat.hand import BaccaratHand


def default_big_predicate(total_cards: int) -> bool:
    """A round with five or six cards on the table is Big."""
    return total_cards >= 5


@unique
class DrawRuleVariant(Enum):
    STANDARD = "standard"
    SIMPLIFIED = "simplified"
    NO_THIRD_CARD = "no_third_card"
    ALWAYS_DRAW = "always_draw"


@dataclass
class BaccaratRules:
    """
    Configuration for a Baccarat table.

    Attributes:
        num_decks: Number of decks in the shoe
        shuffle_threshold: Fraction of undealt cards below which the shoe is reshuffled
        commission_enabled: Pay Banker at 0.95 with commission instead of even money
        commission_rate: Commission taken from Banker wins (typically 0.05 = 5%)
        enable_super6: Banker wins with exactly 6 points pay 1:2
        enable_pair_bets: Accept Banker Pair and Player Pair bets
        enable_big_small_bets: Accept Big and Small bets
        rule_variant: Third-card table used by the dealer
        bet_limits: Minimum and maximum stake per bet type
        table_max_total: Maximum combined stake per round
        big_predicate: Decides from the total card count whether a round is Big
    """

    num_decks: int = 8
    shuffle_threshold: float = 0.2
    commission_enabled: bool = True
    commission_rate: float = 0.05
    enable_super6: bool = False
    enable_pair_bets: bool = True
    enable_big_small_bets: bool = True
    rule_variant: DrawRuleVariant = DrawRuleVariant.STANDARD
    bet_limits: Dict[BetType, BetLimit] = field(default_factory=default_bet_limits)
    table_max_total: float = 200000
    big_predicate: Callable[[int], bool] = default_big_predicate

    def limit_for(self, bet_type: BetType) -> BetLimit:
        return self.bet_limits[bet_type]

    @classmethod
    def no_commission(cls, **kwargs) -> "BaccaratRules":
        """Rules for a no-commission table."""
        return cls(commission_enabled=False, **kwargs)


@dataclass(frozen=True)
class DrawDecision:
    """
    Outcome of the third-card table.

    When the Player draws, the Banker's decision depends on the Player's third
    card. Until that card is known ``banker_pending`` is set and
    ``banker_draws`` is False; ``resolve`` settles it.
    """

    player_draws: bool
    banker_draws: bool
    reason: str
    banker_pending: bool = False

    @property
    def any_draws(self) -> bool:
        return self.player_draws or self.banker_draws or self.banker_pending

    def resolve(self, banker_value: int, player_third_card: int) -> "DrawDecision":
        """
        Settle a pending Banker decision once the Player's third card is known.

        Args:
            banker_value: Banker's two-card total
            player_third_card: Baccarat value of the Player's third card
        """
        if not self.banker_pending:
            return self
        draws = banker_draws_third_card(banker_value, True, player_third_card)
        action = "draws" if draws else "stands"
        return replace(
            self,
            banker_draws=draws,
            banker_pending=False,
            reason=f"{self.reason}; banker {action} on {banker_value} against {player_third_card}",
        )


def player_draws_third_card(player_value: int) -> bool:
    """
    Determine if Player draws a third card.

    Player drawing rules:
    - 0-5: Draw
    - 6-7: Stand
    - 8-9: Natural (no draw)

    Args:
        player_value: Player's two-card total

    Returns:
        True if Player should draw, False otherwise
    """
    return player_value <= 5


def banker_draws_third_card(banker_value: int, player_drew: bool, player_third_card: int) -> bool:
    """
    Determine if Banker draws a third card.

    Banker drawing rules are complex and depend on:
    1. Banker's two-card total
    2. Whether Player drew a third card
    3. Value of Player's third card (if drawn)

    Rules:
    - If Player didn't draw: Banker draws on 0-5, stands on 6-7
    - If Player drew:
      - Banker 0-2: Always draw
      - Banker 3: Draw unless Player's 3rd card is 8
      - Banker 4: Draw if Player's 3rd card is 2-7
      - Banker 5: Draw if Player's 3rd card is 4-7
      - Banker 6: Draw if Player's 3rd card is 6-7
      - Banker 7: Stand
      - Banker 8-9: Natural (no draw)

    Args:
        banker_value: Banker's two-card total
        player_drew: Whether Player drew a third card
        player_third_card: Value of Player's third card (0-9, or -1 if no third card)

    Returns:
        True if Banker should draw, False otherwise
    """
    if not player_drew:
        return banker_value <= 5

    if banker_value <= 2:
        return True
    elif banker_value == 3:
        return player_third_card != 8
    elif banker_value == 4:
        return 2 <= player_third_card <= 7
    elif banker_value == 5:
        return 4 <= player_third_card <= 7
    elif banker_value == 6:
        return player_third_card in (6, 7)
    else:
        return False


def standard_draw_table(banker_hand: BaccaratHand, player_hand: BaccaratHand) -> DrawDecision:
    """
    The standard Punto Banco third-card table.

    Only the first two cards of each hand are used to decide. If the Player
    hand already holds a third card, the Banker decision is taken against it;
    otherwise a Player draw leaves the Banker decision pending.
    """
    banker_value = banker_hand.initial_value()
    player_value = player_hand.initial_value()

    if banker_value in (8, 9) or player_value in (8, 9):
        return DrawDecision(player_draws=False, banker_draws=False, reason="natural")

    if not player_draws_third_card(player_value):
        banker_draws = banker_draws_third_card(banker_value, False, -1)
        action = "draws" if banker_draws else "stands"
        return DrawDecision(
            player_draws=False,
            banker_draws=banker_draws,
            reason=f"player stands on {player_value}; banker {action} on {banker_value}",
        )

    decision = DrawDecision(
        player_draws=True,
        banker_draws=False,
        banker_pending=True,
        reason=f"player draws on {player_value}",
    )
    if player_hand.card_count() >= 3:
        decision = decision.resolve(banker_value, player_hand.third_card_value())
    return decision


DrawTable = Callable[[BaccaratHand, BaccaratHand], DrawDecision]

_DRAW_TABLES: Dict[DrawRuleVariant, DrawTable] = {
    DrawRuleVariant.STANDARD: standard_draw_table,
}


def register_draw_table(variant: DrawRuleVariant, table: Optional[DrawTable]) -> None:
    """
    Install (or, with ``None``, remove) the draw table for a rule variant.

    The standard table cannot be removed.
    """
    if table is None:
        if variant == DrawRuleVariant.STANDARD:
            raise ValueError("The standard draw table cannot be removed")
        _DRAW_TABLES.pop(variant, None)
    else:
        _DRAW_TABLES[variant] = table


def decide_draws(
    banker_hand: BaccaratHand,
    player_hand: BaccaratHand,
    variant: DrawRuleVariant = DrawRuleVariant.STANDARD,
) -> DrawDecision:
    """
    Decide which sides draw a third card.

    Args:
        banker_hand: Banker's hand, at least two cards
        player_hand: Player's hand, at least two cards
        variant: The draw table to use

    Returns:
        The draw decision

    Raises:
        ValueError: If a hand has fewer than two cards or the variant has no draw table
    """
    if banker_hand.card_count() < 2 or player_hand.card_count() < 2:
        raise ValueError("Both hands need two cards before draws can be decided")
    try:
        table = _DRAW_TABLES[variant]
    except KeyError:
        raise ValueError(f"No draw table registered for rule variant {variant.value}") from None
    return table(banker_hand, player_hand)
