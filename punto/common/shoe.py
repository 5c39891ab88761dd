"""
The card shoe used at a baccarat table.

The shoe holds ``num_decks`` standard decks as one ordered sequence and a
cursor separating dealt cards from undealt ones. Dealt cards are kept in a
used pile until the next reshuffle, so the shoe always accounts for every
card it was built with.

Shuffling is a Fisher-Yates pass over the undealt cards driven by an
injectable ``random.Random``, which makes every shuffle reproducible from a
seed.
"""

import logging
import random
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional

from punto.common.card import Card, Rank, Suit

logger = logging.getLogger("punto.shoe")

CARDS_PER_DECK = 52
HISTORY_LIMIT = 1000


class ShoeExhausted(Exception):
    """Raised when a card is requested from a shoe with no undealt cards left."""

    pass


class IntegrityViolation(AssertionError):
    """Raised when the shoe no longer accounts for exactly the cards it was built with."""

    def __init__(self, violations: List[str]):
        super().__init__("; ".join(violations))
        self.violations = violations


@dataclass(frozen=True)
class DealRecord:
    """A single entry of the deal history."""

    card: Card
    revealed: bool
    dealt_at: float
    remaining: int


@dataclass
class DeckAnalysis:
    """
    Composition of the undealt part of the shoe.

    Attributes:
        suits: Undealt card count per suit
        aces: Undealt aces
        tens: Undealt tens
        faces: Undealt jacks, queens and kings
        baccarat_values: Undealt card count per baccarat value, index 0-9
        average_baccarat_value: Mean baccarat value of the undealt cards
    """

    suits: Dict[Suit, int] = field(default_factory=dict)
    aces: int = 0
    tens: int = 0
    faces: int = 0
    baccarat_values: List[int] = field(default_factory=lambda: [0] * 10)
    average_baccarat_value: float = 0.0


class Shoe:
    def __init__(
        self,
        num_decks: int = 8,
        shuffle_threshold: float = 0.2,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize a Shoe instance.

        :param num_decks: Number of decks in the shoe (default is 8)
        :param shuffle_threshold: Fraction of undealt cards below which the
                                  shoe asks for a reshuffle (default is 20%)
        :param rng: Random source used for shuffling. Pass a seeded
                    ``random.Random`` for reproducible shoes.
        """
        if num_decks < 1:
            raise ValueError("Number of decks must be at least 1")
        if not 0 <= shuffle_threshold <= 1:
            raise ValueError("Shuffle threshold must be between 0 and 1")

        self.num_decks = num_decks
        self.shuffle_threshold = shuffle_threshold
        self.rng = rng if rng is not None else random.Random()

        self._cards: List[Card] = []
        self._revealed: List[bool] = []
        self._used: List[Card] = []
        self._cursor = 0
        self._history: Deque[DealRecord] = deque(maxlen=HISTORY_LIMIT)

        self.shuffle_count = 0
        self.cards_dealt = 0

        self.initialize()

    def initialize(self, num_decks: Optional[int] = None) -> None:
        """
        Rebuild the shoe from fresh decks and shuffle it.

        :param num_decks: Optionally change the number of decks
        """
        if num_decks is not None:
            if num_decks < 1:
                raise ValueError("Number of decks must be at least 1")
            self.num_decks = num_decks

        self._cards = [
            Card(suit, rank)
            for _ in range(self.num_decks)
            for suit in Suit
            for rank in Rank
        ]
        self._revealed = [False] * len(self._cards)
        self._used = []
        self._cursor = 0
        self._history.clear()
        self.shuffle_count = 0
        self.cards_dealt = 0

        self.shuffle()
        logger.info("Shoe initialized with %d decks (%d cards)", self.num_decks, len(self._cards))

    def shuffle(self) -> None:
        """
        Shuffle the undealt cards in place.

        Cards already dealt keep their positions, so the order of the deal
        history is untouched.
        """
        cards = self._cards
        start = self._cursor
        for i in range(len(cards) - 1, start, -1):
            j = self.rng.randint(start, i)
            cards[i], cards[j] = cards[j], cards[i]
        self.shuffle_count += 1
        logger.debug("Shuffled %d undealt cards", len(cards) - start)

    def deal(self, revealed: bool = True) -> Card:
        """
        Deal the next card.

        The shoe never reshuffles on its own; check ``needs_shuffle`` before a
        round and call ``reshuffle()`` when it is set.

        :param revealed: Whether the card is dealt face up
        :return: The dealt card
        :raises ShoeExhausted: If every card has been dealt
        """
        if self._cursor >= len(self._cards):
            raise ShoeExhausted(
                f"No cards left in the shoe ({len(self._used)} used, reshuffle required)"
            )

        card = self._cards[self._cursor]
        self._revealed[self._cursor] = revealed
        self._cursor += 1
        self._used.append(card)
        self.cards_dealt += 1

        self._history.append(
            DealRecord(
                card=card,
                revealed=revealed,
                dealt_at=time.time(),
                remaining=self.cards_remaining,
            )
        )
        return card

    def reshuffle(self) -> None:
        """
        Return every used card to the shoe and shuffle everything.

        Safe to call at any time, including when no reshuffle is due.
        """
        undealt = self._cards[self._cursor:]
        self._cards = undealt + self._used
        self._used = []
        self._revealed = [False] * len(self._cards)
        self._cursor = 0
        self.shuffle()
        logger.info("Shoe reshuffled (%d cards)", len(self._cards))

    def cut(self, fraction: float = 0.5) -> int:
        """
        Cut the undealt cards: the first ``round(len * fraction)`` cards move
        to the back.

        :param fraction: Cut position as a fraction of the undealt cards,
                         clamped to [0, 1]
        :return: The cut index
        """
        fraction = min(1.0, max(0.0, fraction))
        undealt = self._cards[self._cursor:]
        cut_index = round(len(undealt) * fraction)
        self._cards[self._cursor:] = undealt[cut_index:] + undealt[:cut_index]
        logger.debug("Shoe cut at %d of %d undealt cards", cut_index, len(undealt))
        return cut_index

    @property
    def total_cards(self) -> int:
        return self.num_decks * CARDS_PER_DECK

    @property
    def cards_remaining(self) -> int:
        """Return the number of undealt cards."""
        return len(self._cards) - self._cursor

    def remaining(self) -> int:
        return self.cards_remaining

    @property
    def used_cards(self) -> List[Card]:
        """Cards dealt since the last reshuffle, in deal order."""
        return list(self._used)

    @property
    def remaining_percentage(self) -> float:
        return self.cards_remaining / self.total_cards

    @property
    def needs_shuffle(self) -> bool:
        """True when the undealt fraction has dropped below the shuffle threshold."""
        return self.remaining_percentage < self.shuffle_threshold

    def remaining_by_baccarat_value(self, value: int) -> int:
        """Count undealt cards with the given baccarat value (0-9)."""
        return sum(1 for card in self._cards[self._cursor:] if card.baccarat_value == value)

    def remaining_count(self, suit: Suit, rank: Rank) -> int:
        """Count undealt copies of one card."""
        return sum(
            1 for card in self._cards[self._cursor:] if card.suit == suit and card.rank == rank
        )

    def is_revealed(self, index: int) -> bool:
        """Whether the ``index``-th card dealt since the last reshuffle is face up."""
        if not 0 <= index < self._cursor:
            raise IndexError(f"No dealt card at position {index}")
        return self._revealed[index]

    def deal_history(self, count: int = 50) -> List[DealRecord]:
        """Return up to ``count`` of the most recent deal records, oldest first."""
        if count <= 0:
            return []
        return list(self._history)[-count:]

    def analyze(self) -> DeckAnalysis:
        """Describe the composition of the undealt cards."""
        undealt = self._cards[self._cursor:]
        analysis = DeckAnalysis(suits={suit: 0 for suit in Suit})
        for card in undealt:
            analysis.suits[card.suit] += 1
            analysis.baccarat_values[card.baccarat_value] += 1
            if card.rank == Rank.ACE:
                analysis.aces += 1
            elif card.rank == Rank.TEN:
                analysis.tens += 1
            elif card.rank in (Rank.JACK, Rank.QUEEN, Rank.KING):
                analysis.faces += 1
        if undealt:
            analysis.average_baccarat_value = (
                sum(card.baccarat_value for card in undealt) / len(undealt)
            )
        return analysis

    def integrity_check(self) -> List[str]:
        """
        Recompute the full-shoe card count.

        :return: A list of violations; empty when every card is accounted for
        """
        violations = []
        undealt = self._cards[self._cursor:]
        total = len(undealt) + len(self._used)
        if total != self.total_cards:
            violations.append(f"Total card count is {total}, expected {self.total_cards}")

        dealt = Counter(self._cards[: self._cursor])
        if dealt != Counter(self._used):
            violations.append("Dealt cards do not match the used pile")

        counts = Counter(undealt)
        counts.update(self._used)
        for suit in Suit:
            for rank in Rank:
                count = counts.pop(Card(suit, rank), 0)
                if count != self.num_decks:
                    violations.append(
                        f"{Card(suit, rank)} appears {count} times, expected {self.num_decks}"
                    )
        for card, count in counts.items():
            violations.append(f"Unexpected card {card} appears {count} times")
        return violations

    def assert_integrity(self) -> None:
        """
        :raises IntegrityViolation: If ``integrity_check`` finds any problem
        """
        violations = self.integrity_check()
        if violations:
            raise IntegrityViolation(violations)

    def __str__(self) -> str:
        return f"Shoe with {self.cards_remaining} cards remaining"

    def __repr__(self) -> str:
        return (
            f"Shoe(num_decks={self.num_decks}, shuffle_threshold={self.shuffle_threshold}, "
            f"remaining={self.cards_remaining})"
        )
