"""
Pytest configuration for tests at the root level.

This module contains fixtures shared across the test suite: seeded shoes,
a way to stack the next cards of a shoe, and a controllable clock.
"""

import random

import pytest

from punto.common.card import Card
from punto.common.shoe import Shoe


class FakeClock:
    """A monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


def stack_shoe(shoe: Shoe, cards) -> Shoe:
    """
    Arrange for ``cards`` to be the next cards dealt from ``shoe``.

    Cards are swapped into place from further down the shoe, so the shoe
    still holds exactly the cards it was built with.
    """
    start = shoe._cursor
    for offset, card in enumerate(cards):
        if isinstance(card, str):
            card = Card.parse(card)
        position = start + offset
        found = shoe._cards.index(card, position)
        shoe._cards[position], shoe._cards[found] = shoe._cards[found], shoe._cards[position]
    return shoe


@pytest.fixture
def seeded_shoe():
    """An eight-deck shoe shuffled from a fixed seed."""
    return Shoe(num_decks=8, rng=random.Random(1234))


@pytest.fixture
def stacked():
    """Return the ``stack_shoe`` helper."""
    return stack_shoe


@pytest.fixture
def clock():
    return FakeClock()
