"""
Bet types, limits and the per-round bet ledger.

The ledger records what a player has staked on each bet type during one
round. Amounts start out pending and become confirmed once the wallet has
accepted them; a failed confirmation rolls the pending amounts back while
anything confirmed earlier stays in place.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Dict, Iterator, List, Optional


@unique
class BetType(Enum):
    """Types of bets in Baccarat."""

    BANKER = 1
    PLAYER = 2
    TIE = 3
    BANKER_PAIR = 4
    PLAYER_PAIR = 5
    BIG = 6
    SMALL = 7

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_main(self) -> bool:
        """Banker, Player and Tie are the main bets; the rest are side bets."""
        return self in (BetType.BANKER, BetType.PLAYER, BetType.TIE)

    @property
    def is_pair(self) -> bool:
        return self in (BetType.BANKER_PAIR, BetType.PLAYER_PAIR)

    @property
    def is_big_small(self) -> bool:
        return self in (BetType.BIG, BetType.SMALL)

    def __str__(self) -> str:
        return self.label


_LABELS = {
    BetType.BANKER: "Banker",
    BetType.PLAYER: "Player",
    BetType.TIE: "Tie",
    BetType.BANKER_PAIR: "Banker Pair",
    BetType.PLAYER_PAIR: "Player Pair",
    BetType.BIG: "Big",
    BetType.SMALL: "Small",
}


@unique
class BetErrorKind(Enum):
    INVALID_TYPE = "invalid_type"
    BELOW_MIN = "below_min"
    ABOVE_MAX = "above_max"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    FEATURE_DISABLED = "feature_disabled"
    BETTING_CLOSED = "betting_closed"
    DEBOUNCED = "debounced"
    TABLE_LIMIT = "table_limit"


class BetError(Exception):
    """Base class for rejected bets. ``reason`` says which check failed."""

    reason: BetErrorKind

    def __init__(self, message: str, bet_type: Optional[object] = None, amount: float = 0):
        super().__init__(message)
        self.bet_type = bet_type
        self.amount = amount


class InvalidBetTypeError(BetError):
    reason = BetErrorKind.INVALID_TYPE


class BetBelowMinimumError(BetError):
    reason = BetErrorKind.BELOW_MIN


class BetAboveMaximumError(BetError):
    reason = BetErrorKind.ABOVE_MAX


class InsufficientBalanceError(BetError):
    """Raised when a stake exceeds the player's available balance."""

    reason = BetErrorKind.INSUFFICIENT_BALANCE


class BetTypeDisabledError(BetError):
    """Raised for pair or big/small bets while the table has them switched off."""

    reason = BetErrorKind.FEATURE_DISABLED


class BettingClosedError(BetError):
    reason = BetErrorKind.BETTING_CLOSED


class BetDebouncedError(BetError):
    """Raised when a bet arrives inside the debounce window of the previous one."""

    reason = BetErrorKind.DEBOUNCED


class TableLimitError(BetError):
    reason = BetErrorKind.TABLE_LIMIT


@dataclass(frozen=True)
class BetLimit:
    min: float
    max: float

    def contains(self, amount: float) -> bool:
        return self.min <= amount <= self.max

    def __str__(self) -> str:
        return f"{self.min:g}-{self.max:g}"


def default_bet_limits() -> Dict[BetType, BetLimit]:
    """The standard table limits."""
    return {
        BetType.BANKER: BetLimit(10, 50000),
        BetType.PLAYER: BetLimit(10, 50000),
        BetType.TIE: BetLimit(10, 10000),
        BetType.BANKER_PAIR: BetLimit(5, 5000),
        BetType.PLAYER_PAIR: BetLimit(5, 5000),
        BetType.BIG: BetLimit(10, 20000),
        BetType.SMALL: BetLimit(10, 20000),
    }


@dataclass(frozen=True)
class BetRequest:
    bet_type: BetType
    amount: float
    placed_at: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class ValidatedBet:
    """A bet that passed every check. ``new_total`` is the ledger entry after applying it."""

    bet_type: BetType
    amount: float
    new_total: float


@dataclass
class LedgerEntry:
    pending: float = 0.0
    confirmed: float = 0.0

    @property
    def total(self) -> float:
        return self.pending + self.confirmed


class BetLedger:
    """
    Stakes placed during one round, per bet type.

    A frozen ledger refuses new stakes and cancellations; the table freezes
    it when dealing starts.
    """

    def __init__(self):
        self._entries: Dict[BetType, LedgerEntry] = {}
        self.frozen = False

    def add(self, bet_type: BetType, amount: float) -> float:
        """
        Add a pending stake.

        :return: The new total for the bet type
        :raises BettingClosedError: If the ledger is frozen
        """
        if self.frozen:
            raise BettingClosedError("Betting is closed for this round", bet_type, amount)
        entry = self._entries.setdefault(bet_type, LedgerEntry())
        entry.pending += amount
        return entry.total

    def apply(self, bet: ValidatedBet) -> float:
        return self.add(bet.bet_type, bet.amount)

    def cancel(self, bet_type: Optional[BetType] = None) -> float:
        """
        Remove pending stakes for one bet type, or for all when ``bet_type`` is None.

        Confirmed stakes are not touched.

        :return: The amount removed
        """
        if self.frozen:
            raise BettingClosedError("Betting is closed for this round", bet_type)
        types = [bet_type] if bet_type is not None else list(self._entries)
        removed = 0.0
        for t in types:
            entry = self._entries.get(t)
            if entry is None:
                continue
            removed += entry.pending
            entry.pending = 0.0
            if entry.confirmed == 0:
                del self._entries[t]
        return removed

    def pending(self) -> Dict[BetType, float]:
        """Pending stake per bet type, omitting types with nothing pending."""
        return {t: e.pending for t, e in self._entries.items() if e.pending > 0}

    def confirm(self, amounts: Optional[Dict[BetType, float]] = None) -> float:
        """
        Move pending stakes to confirmed.

        :param amounts: How much to confirm per bet type; everything pending
                        when omitted. Stakes added after ``amounts`` was taken
                        stay pending.
        :return: The amount moved
        """
        if amounts is None:
            amounts = self.pending()
        moved = 0.0
        for bet_type, amount in amounts.items():
            entry = self._entries.get(bet_type)
            if entry is None:
                continue
            amount = min(amount, entry.pending)
            entry.pending -= amount
            entry.confirmed += amount
            moved += amount
        return moved

    def rollback(self, amounts: Optional[Dict[BetType, float]] = None) -> float:
        """
        Drop pending stakes, or only the given amounts of them.

        Unlike ``cancel`` this works on a frozen ledger.

        :return: The amount dropped
        """
        if amounts is None:
            amounts = self.pending()
        dropped = 0.0
        for bet_type, amount in amounts.items():
            entry = self._entries.get(bet_type)
            if entry is None:
                continue
            amount = min(amount, entry.pending)
            entry.pending -= amount
            dropped += amount
            if entry.total == 0:
                del self._entries[bet_type]
        return dropped

    def freeze(self) -> None:
        self.frozen = True

    def clear(self) -> None:
        self._entries.clear()
        self.frozen = False

    def amount(self, bet_type: BetType) -> float:
        entry = self._entries.get(bet_type)
        return entry.total if entry else 0.0

    def entry(self, bet_type: BetType) -> LedgerEntry:
        return self._entries.get(bet_type, LedgerEntry())

    @property
    def total(self) -> float:
        return sum(entry.total for entry in self._entries.values())

    @property
    def pending_total(self) -> float:
        return sum(entry.pending for entry in self._entries.values())

    @property
    def confirmed_total(self) -> float:
        return sum(entry.confirmed for entry in self._entries.values())

    @property
    def has_pending(self) -> bool:
        return self.pending_total > 0

    def bet_types(self) -> List[BetType]:
        return list(self._entries)

    def items(self) -> Iterator:
        """(bet type, entry) pairs in the order the bet types were first staked."""
        return iter(self._entries.items())

    def is_empty(self) -> bool:
        return not self._entries

    def snapshot(self) -> Dict[BetType, float]:
        return {bet_type: entry.total for bet_type, entry in self._entries.items()}

    def __contains__(self, bet_type: BetType) -> bool:
        return bet_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"BetLedger({self.snapshot()}, frozen={self.frozen})"
