"""
This module defines the `Suit`, `Rank`, and `Card` classes used by the table.

- `Suit`: An enum for the four suits, numbered the way the table protocol
numbers them: Spades (1), Hearts (2), Clubs (3) and Diamonds (4).

- `Rank`: An enum for the thirteen ranks, Ace (1) through King (13). Each
rank knows its baccarat value: Ace counts 1, Two through Nine count face
value, and Ten, Jack, Queen and King count 0.

- `Card`: An immutable playing card made of a suit and a rank.

This module is part of the `punto` package, a rules engine for baccarat tables.
"""

from dataclasses import dataclass
from enum import Enum, unique


@unique
class Suit(Enum):
    """
    Enum for suits in a card deck.
    """

    SPADES = 1
    HEARTS = 2
    CLUBS = 3
    DIAMONDS = 4

    @property
    def symbol(self) -> str:
        """The suit symbol used in display names."""
        return _SUIT_SYMBOLS[self]

    @property
    def letter(self) -> str:
        return self.name[0]

    def __str__(self) -> str:
        return self.symbol


_SUIT_SYMBOLS = {
    Suit.SPADES: "♠",
    Suit.HEARTS: "♥",
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
}


@unique
class Rank(Enum):
    """
    Enum for ranks in a card deck.
    """

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    @property
    def baccarat_value(self) -> int:
        """The value of the rank when scoring a baccarat hand."""
        if self.value == 1:
            return 1
        if self.value >= 10:
            return 0
        return self.value

    @property
    def rank_str(self):
        """A string representation of the rank."""
        if self == Rank.ACE:
            return "A"
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return self.name[0]
        return str(self.value)

    def __str__(self) -> str:
        return self.rank_str


_RANKS_BY_STR = {rank.rank_str: rank for rank in Rank}
_SUITS_BY_LETTER = {suit.letter: suit for suit in Suit}
_SUITS_BY_LETTER.update({suit.symbol: suit for suit in Suit})


@dataclass(frozen=True)
class Card:
    """
    Class representing a playing card. Cards are immutable once created.

    >>> card = Card(Suit.SPADES, Rank.NINE)
    >>> print(card)
    ♠9
    >>> card.baccarat_value
    9
    >>> Card.parse("KH").baccarat_value
    0
    """

    suit: Suit
    rank: Rank

    def __post_init__(self):
        if not isinstance(self.suit, Suit):
            raise TypeError(f"Invalid suit: {self.suit}")
        if not isinstance(self.rank, Rank):
            raise TypeError(f"Invalid rank: {self.rank}")

    @classmethod
    def of(cls, suit: int, rank: int) -> "Card":
        """
        Build a card from its numeric suit (1-4) and rank (1-13).

        :raises ValueError: If either number is out of range.
        """
        return cls(Suit(suit), Rank(rank))

    @classmethod
    def parse(cls, text: str) -> "Card":
        """
        Build a card from a short code such as ``"AS"``, ``"10H"`` or ``"♦K"``.

        The suit may be given as a letter (S, H, C, D) at the end or as a
        symbol at either end.
        """
        code = text.strip().upper()
        if not code:
            raise ValueError("Empty card code")
        if code[0] in _SUITS_BY_LETTER and code[0] not in _RANKS_BY_STR and len(code) > 1:
            suit_code, rank_code = code[0], code[1:]
        else:
            rank_code, suit_code = code[:-1], code[-1]
        try:
            return cls(_SUITS_BY_LETTER[suit_code], _RANKS_BY_STR[rank_code])
        except KeyError:
            raise ValueError(f"Invalid card code: {text!r}") from None

    @property
    def baccarat_value(self) -> int:
        return self.rank.baccarat_value

    @property
    def display_name(self) -> str:
        return f"{self.suit.symbol}{self.rank.rank_str}"

    def __repr__(self) -> str:
        """
        Provide a machine-readable representation of the card.

        :return: A string representation of the card.
        """
        return f"Card(Suit.{self.suit.name}, Rank.{self.rank.name})"

    def __str__(self) -> str:
        """
        Provide a human-readable representation of the card.

        :return: A string representation of the card.
        """
        return self.display_name
