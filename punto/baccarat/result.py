"""
Results of a finished round and the payouts computed against them.
"""

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Callable, Dict, Tuple

from punto.baccarat.bets import BetType
from punto.baccarat.hand import BaccaratHand, Side
from punto.common.card import Card


@unique
class Winner(Enum):
    """Possible outcomes of a Baccarat round."""

    BANKER = "banker"
    PLAYER = "player"
    TIE = "tie"

    def __str__(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class Payout:
    """
    Settlement of one stake.

    ``gross`` includes the returned stake. ``net`` is ``gross`` less
    commission and ``profit`` is ``net`` less the stake, so a losing bet has
    ``profit == -amount`` and zeros elsewhere.
    """

    bet_type: BetType
    amount: float
    is_win: bool
    odds: float
    gross: float = 0.0
    commission: float = 0.0
    net: float = 0.0
    profit: float = 0.0


@dataclass(frozen=True)
class PayoutSummary:
    payouts: Tuple[Payout, ...] = ()

    @property
    def total_staked(self) -> float:
        return sum(p.amount for p in self.payouts)

    @property
    def total_returned(self) -> float:
        return sum(p.net for p in self.payouts)

    @property
    def total_commission(self) -> float:
        return sum(p.commission for p in self.payouts)

    @property
    def total_profit(self) -> float:
        return sum(p.profit for p in self.payouts)

    @property
    def winning(self) -> Tuple[Payout, ...]:
        return tuple(p for p in self.payouts if p.is_win)

    def by_type(self) -> Dict[BetType, Payout]:
        return {p.bet_type: p for p in self.payouts}

    def __iter__(self):
        return iter(self.payouts)

    def __len__(self) -> int:
        return len(self.payouts)


@dataclass(frozen=True)
class RoundResult:
    """Result of a Baccarat round."""

    round_id: int
    banker_cards: Tuple[Card, ...]
    player_cards: Tuple[Card, ...]
    banker_points: int
    player_points: int
    winner: Winner
    banker_pair: bool
    player_pair: bool
    is_big: bool
    total_cards: int
    banker_natural: bool
    player_natural: bool
    payouts: PayoutSummary = field(default_factory=PayoutSummary)

    @property
    def is_small(self) -> bool:
        return not self.is_big

    @property
    def is_natural(self) -> bool:
        return self.banker_natural or self.player_natural

    def hands(self) -> Tuple[BaccaratHand, BaccaratHand]:
        """Rebuild the (banker, player) hands from the recorded cards."""
        return (
            BaccaratHand(Side.BANKER, list(self.banker_cards)),
            BaccaratHand(Side.PLAYER, list(self.player_cards)),
        )

    def summary(self) -> str:
        banker = " ".join(str(c) for c in self.banker_cards)
        player = " ".join(str(c) for c in self.player_cards)
        return (
            f"Round {self.round_id}: {self.winner} "
            f"(Banker {banker} = {self.banker_points}, Player {player} = {self.player_points})"
        )


def determine_winner(banker_points: int, player_points: int) -> Winner:
    if banker_points > player_points:
        return Winner.BANKER
    if player_points > banker_points:
        return Winner.PLAYER
    return Winner.TIE


def build_result(
    round_id: int,
    banker_hand: BaccaratHand,
    player_hand: BaccaratHand,
    big_predicate: Callable[[int], bool],
) -> RoundResult:
    """Score two finished hands."""
    total_cards = banker_hand.card_count() + player_hand.card_count()
    return RoundResult(
        round_id=round_id,
        banker_cards=tuple(banker_hand.cards),
        player_cards=tuple(player_hand.cards),
        banker_points=banker_hand.value(),
        player_points=player_hand.value(),
        winner=determine_winner(banker_hand.value(), player_hand.value()),
        banker_pair=banker_hand.is_pair(),
        player_pair=player_hand.is_pair(),
        is_big=big_predicate(total_cards),
        total_cards=total_cards,
        banker_natural=banker_hand.is_natural(),
        player_natural=player_hand.is_natural(),
    )
