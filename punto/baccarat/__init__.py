"""
Baccarat game implementation.

This module provides the rules of Punto Banco: hand evaluation, the
third-card table, bet validation, odds and payouts, and trend statistics.
"""

from punto.baccarat.arbiter import ArbiterState, ArbiterStateError, DealArbiter
from punto.baccarat.bets import BetError, BetLedger, BetLimit, BetRequest, BetType
from punto.baccarat.engine import RulesEngine
from punto.baccarat.hand import BaccaratHand, Side
from punto.baccarat.result import Payout, PayoutSummary, RoundResult, Winner
from punto.baccarat.rules import BaccaratRules, DrawDecision, DrawRuleVariant, decide_draws

__all__ = [
    "ArbiterState",
    "ArbiterStateError",
    "BaccaratHand",
    "BaccaratRules",
    "BetError",
    "BetLedger",
    "BetLimit",
    "BetRequest",
    "BetType",
    "DealArbiter",
    "DrawDecision",
    "DrawRuleVariant",
    "Payout",
    "PayoutSummary",
    "RoundResult",
    "RulesEngine",
    "Side",
    "Winner",
    "decide_draws",
]
