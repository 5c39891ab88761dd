"""
Event system for the table engine.

Front ends subscribe to an ``EventEmitter`` to learn about dealt cards,
results, payouts and rejected bets.
"""

from punto.events.emitter import (
    EventEmitter,
    EventPriority,
    TableEventType,
)

__all__ = ["EventEmitter", "EventPriority", "TableEventType"]
