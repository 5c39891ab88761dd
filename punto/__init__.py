"""
punto: the rules engine for a live-dealer baccarat table.

The package owns the card shoe, deal arbitration, bet validation, payout
arithmetic, chip conversion and the per-table phase cycle. Rendering,
transport and persistence are left to the caller.
"""

from punto.baccarat import (
    BaccaratRules,
    BetType,
    DealArbiter,
    RoundResult,
    RulesEngine,
    Winner,
)
from punto.common.card import Card, Rank, Suit
from punto.common.chips import ChipCatalog, ChipDenomination, convert
from punto.common.shoe import Shoe, ShoeExhausted
from punto.events import EventEmitter, TableEventType
from punto.table import Phase, TableConfig, TableSession

__version__ = "0.1.0"

__all__ = [
    "BaccaratRules",
    "BetType",
    "Card",
    "ChipCatalog",
    "ChipDenomination",
    "DealArbiter",
    "EventEmitter",
    "Phase",
    "Rank",
    "RoundResult",
    "RulesEngine",
    "Shoe",
    "ShoeExhausted",
    "Suit",
    "TableConfig",
    "TableEventType",
    "TableSession",
    "Winner",
    "convert",
]
