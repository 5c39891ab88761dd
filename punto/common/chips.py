"""
Chip denominations and conversion of amounts into chip stacks.

Everything here is a pure function of its inputs: the conversion is a greedy
pass over the catalog from the largest denomination down.

>>> catalog = ChipCatalog.from_values([1, 5, 10, 50, 100])
>>> conversion = convert(173, catalog)
>>> [(stack.denomination.value, stack.count) for stack in conversion]
[(100, 1), (50, 1), (10, 2), (5, 0), (1, 3)]
>>> conversion.remainder
0
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence

RECOMMENDED_CHIP_COUNT = 5

# Decimal places kept when converting fractional amounts
_PRECISION = 9

_RECOMMENDATION_TIERS = (
    (100, (1, 5, 10, 20, 50)),
    (1000, (10, 50, 100, 200, 500)),
    (10000, (50, 100, 500, 1000, 2000)),
    (100000, (500, 1000, 5000, 10000, 20000)),
)
_TOP_TIER = (1000, 5000, 10000, 50000, 100000)


def format_chip_value(value: float) -> str:
    """Short label for a chip value, e.g. ``1K`` for 1000."""
    if value >= 1000 and value % 1000 == 0:
        return f"{int(value // 1000)}K"
    if value == int(value):
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class ChipDenomination:
    value: int
    label: str = ""
    enabled: bool = True
    min_level: int = 1

    def __post_init__(self):
        if self.value <= 0:
            raise ValueError(f"Chip value must be positive, got {self.value}")
        if not self.label:
            object.__setattr__(self, "label", format_chip_value(self.value))

    def __str__(self) -> str:
        return self.label


class ChipCatalog:
    """
    The set of chip denominations offered at a table.

    Denominations are kept strictly descending by value; duplicate values are
    rejected.
    """

    def __init__(self, denominations: Iterable[ChipDenomination]):
        ordered = sorted(denominations, key=lambda d: d.value, reverse=True)
        values = [d.value for d in ordered]
        if len(values) != len(set(values)):
            raise ValueError("Chip catalog contains duplicate denominations")
        self._denominations = tuple(ordered)

    @classmethod
    def from_values(cls, values: Iterable[int]) -> "ChipCatalog":
        return cls(ChipDenomination(value) for value in values)

    @property
    def denominations(self) -> Sequence[ChipDenomination]:
        return self._denominations

    def enabled(self) -> List[ChipDenomination]:
        return [d for d in self._denominations if d.enabled]

    def available(self, level: int = 1) -> List[ChipDenomination]:
        """Enabled denominations a player of the given level may use."""
        return [d for d in self._denominations if d.enabled and d.min_level <= level]

    def get(self, value: int) -> Optional[ChipDenomination]:
        for denomination in self._denominations:
            if denomination.value == value:
                return denomination
        return None

    def __iter__(self) -> Iterator[ChipDenomination]:
        return iter(self._denominations)

    def __len__(self) -> int:
        return len(self._denominations)

    def __repr__(self) -> str:
        return f"ChipCatalog({[d.value for d in self._denominations]})"


@dataclass(frozen=True)
class ChipStack:
    denomination: ChipDenomination
    count: int

    @property
    def total(self) -> int:
        return self.denomination.value * self.count


@dataclass(frozen=True)
class ChipConversion:
    """
    Result of converting an amount into chips.

    ``remainder`` is non-zero when the smallest enabled denomination does not
    divide what is left after the greedy pass.
    """

    amount: float
    stacks: List[ChipStack] = field(default_factory=list)
    remainder: float = 0

    @property
    def total(self) -> float:
        return sum(stack.total for stack in self.stacks)

    @property
    def chip_count(self) -> int:
        return sum(stack.count for stack in self.stacks)

    @property
    def is_exact(self) -> bool:
        return self.remainder == 0

    def non_empty(self) -> List[ChipStack]:
        return [stack for stack in self.stacks if stack.count > 0]

    def __iter__(self) -> Iterator[ChipStack]:
        return iter(self.stacks)

    def __len__(self) -> int:
        return len(self.stacks)


DEFAULT_CHIPS = ChipCatalog(
    [
        ChipDenomination(1, "1", True, 1),
        ChipDenomination(5, "5", True, 1),
        ChipDenomination(10, "10", True, 1),
        ChipDenomination(50, "50", True, 1),
        ChipDenomination(100, "100", True, 1),
        ChipDenomination(500, "500", True, 2),
        ChipDenomination(1000, "1K", True, 3),
        ChipDenomination(5000, "5K", True, 4),
        ChipDenomination(10000, "10K", True, 5),
        ChipDenomination(50000, "50K", True, 6),
        ChipDenomination(100000, "100K", True, 7),
    ]
)


def convert(amount: float, catalog: ChipCatalog = DEFAULT_CHIPS) -> ChipConversion:
    """
    Decompose an amount into chip stacks, largest denomination first.

    Every enabled denomination gets a stack, including those with a zero
    count. Non-positive amounts give an empty conversion.

    :param amount: The amount to convert
    :param catalog: The chips to use
    :return: The stacks and any remainder that could not be converted
    """
    if amount <= 0:
        return ChipConversion(amount=amount)

    stacks = []
    remaining = amount
    for denomination in catalog.enabled():
        count = math.floor(round(remaining / denomination.value, _PRECISION))
        remaining = round(remaining - count * denomination.value, _PRECISION)
        stacks.append(ChipStack(denomination, count))
    return ChipConversion(amount=amount, stacks=stacks, remainder=remaining)


def largest_usable(amount: float, catalog: ChipCatalog = DEFAULT_CHIPS) -> Optional[ChipDenomination]:
    """Return the largest enabled denomination not exceeding ``amount``."""
    for denomination in catalog.enabled():
        if denomination.value <= amount:
            return denomination
    return None


def recommend_chips(
    balance: float, catalog: ChipCatalog = DEFAULT_CHIPS, level: int = 1
) -> List[ChipDenomination]:
    """
    Suggest up to five chip denominations for a player's balance.

    The suggestion comes from a tier matching the size of the balance,
    restricted to chips the player can use and afford, then topped up with
    the smallest affordable chips.

    :param balance: The player's balance
    :param catalog: The chips offered at the table
    :param level: The player's level, compared against each chip's ``min_level``
    :return: Denominations in ascending order of value
    """
    available = [d for d in catalog.available(level) if d.value <= balance]
    if not available:
        return []

    tier = _TOP_TIER
    for limit, values in _RECOMMENDATION_TIERS:
        if balance < limit:
            tier = values
            break

    by_value = {d.value: d for d in available}
    chosen = [by_value[value] for value in tier if value in by_value]

    for denomination in sorted(available, key=lambda d: d.value):
        if len(chosen) >= RECOMMENDED_CHIP_COUNT:
            break
        if denomination not in chosen:
            chosen.append(denomination)

    return sorted(chosen, key=lambda d: d.value)[:RECOMMENDED_CHIP_COUNT]
