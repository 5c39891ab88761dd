"""
Baccarat hand implementation.

Baccarat hand values:
- Cards 2-9 are worth face value
- 10, J, Q, K are worth 0
- Aces are worth 1
- Only the rightmost digit of the sum counts (17 = 7, 23 = 3)
"""

from enum import Enum, unique
from typing import List, Optional

from punto.common.card import Card

MAX_CARDS = 3


@unique
class Side(Enum):
    """The two hands dealt each round."""

    BANKER = "banker"
    PLAYER = "player"

    def __str__(self) -> str:
        return self.name.capitalize()


class BaccaratHand:
    """Represents one side's hand in a round of Baccarat."""

    def __init__(self, side: Side = Side.PLAYER, cards: Optional[List[Card]] = None):
        """
        Initialize a Baccarat hand.

        Args:
            side: Which side the hand belongs to
            cards: Optional cards to start with
        """
        self.side = side
        self.cards: List[Card] = []
        for card in cards or []:
            self.add_card(card)

    def add_card(self, card: Card) -> None:
        """
        Add a card to the hand.

        Args:
            card: Card to add

        Raises:
            ValueError: If the hand already holds three cards
        """
        if len(self.cards) >= MAX_CARDS:
            raise ValueError(f"{self.side} hand cannot hold more than {MAX_CARDS} cards")
        self.cards.append(card)

    def clear(self) -> None:
        self.cards.clear()

    def value(self) -> int:
        """
        Calculate the value of the hand.

        In Baccarat, only the rightmost digit counts.
        For example: 15 = 5, 20 = 0, 17 = 7

        Returns:
            Hand value (0-9)
        """
        return sum(card.baccarat_value for card in self.cards) % 10

    @property
    def points(self) -> int:
        return self.value()

    def initial_value(self) -> int:
        """Value of the first two cards only."""
        return sum(card.baccarat_value for card in self.cards[:2]) % 10

    def is_natural(self) -> bool:
        """
        Check if this is a natural hand (8 or 9 on first two cards).

        Returns:
            True if natural, False otherwise
        """
        return len(self.cards) == 2 and self.value() in (8, 9)

    def is_pair(self) -> bool:
        """True when the first two cards share a rank."""
        return len(self.cards) >= 2 and self.cards[0].rank == self.cards[1].rank

    def card_count(self) -> int:
        return len(self.cards)

    def third_card_value(self) -> int:
        """
        Get the value of the third card (used for Banker drawing rules).

        Returns:
            Value of third card, or -1 if no third card
        """
        if len(self.cards) >= 3:
            return self.cards[2].baccarat_value
        return -1

    def copy(self) -> "BaccaratHand":
        return BaccaratHand(self.side, list(self.cards))

    def __len__(self) -> int:
        return len(self.cards)

    def __str__(self) -> str:
        """String representation of the hand."""
        cards_str = ", ".join(str(card) for card in self.cards)
        return f"{self.side}: [{cards_str}] = {self.value()}"

    def __repr__(self) -> str:
        return f"BaccaratHand(side={self.side!r}, cards={self.cards}, value={self.value()})"
