"""
Event system for a baccarat table.

The engine itself never renders anything. Everything a front end needs to
show (dealt cards, draw decisions, results, payouts, rejected bets) leaves
the engine as an event on an ``EventEmitter``. Each table session owns its
own emitter, so tables never share listeners.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, Optional, Union
import threading
import logging
from enum import Enum

logger = logging.getLogger("punto.events")


class EventPriority(Enum):
    """Priority levels for event handlers."""

    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3


class TableEventType(Enum):
    """
    Event types emitted by the table engine.

    Payloads are plain dictionaries; the keys for each type are listed
    next to the code that emits it.
    """

    # Dealing
    CARD_DEALT = "card_dealt"
    DRAW_DECIDED = "draw_decided"
    ROUND_COMPLETED = "round_completed"
    ROUND_ABORTED = "round_aborted"
    SHOE_SHUFFLED = "shoe_shuffled"

    # Table flow
    PHASE_CHANGED = "phase_changed"

    # Betting
    BET_PLACED = "bet_placed"
    BET_REJECTED = "bet_rejected"
    BET_CANCELLED = "bet_cancelled"
    BETS_CONFIRMED = "bets_confirmed"
    CONFIRM_FAILED = "confirm_failed"

    # Money
    PAYOUT_COMPUTED = "payout_computed"


class EventEmitter:
    """
    Event emitter with priority-based handlers.

    Features:
    - Supports event subscription with priorities
    - Allows once-only subscriptions
    - Supports subscribing to all events with event type filtering in handler
    - Thread-safe listener registration
    """

    def __init__(self):
        """Initialize the event emitter."""
        self._listeners = defaultdict(list)
        self._global_listeners = []
        self._listener_lock = threading.RLock()

    @staticmethod
    def _key(event_type: Union[str, Enum]) -> str:
        if isinstance(event_type, Enum):
            return event_type.name
        return event_type

    @staticmethod
    def _insert(handlers: list, handler: dict) -> None:
        # Higher priorities first, registration order within a priority
        for i, existing in enumerate(handlers):
            if existing["priority"] < handler["priority"]:
                handlers.insert(i, handler)
                return
        handlers.append(handler)

    def on(
        self,
        event_type: Union[str, Enum],
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to subscribe to (string or enum)
            callback: Function to call when event occurs, signature: fn(event_data)
            priority: Priority level for this handler

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        key = self._key(event_type)
        handler = {"callback": callback, "priority": priority.value}

        with self._listener_lock:
            self._insert(self._listeners[key], handler)

        def unsubscribe():
            with self._listener_lock:
                handlers = self._listeners[key]
                if handler in handlers:
                    handlers.remove(handler)

        return unsubscribe

    def once(
        self,
        event_type: Union[str, Enum],
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to an event type for a single occurrence.

        Args:
            event_type: The event type to subscribe to (string or enum)
            callback: Function to call when event occurs
            priority: Priority level for this handler

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        unsubscribe_ref = []

        def one_time_handler(event_data):
            try:
                callback(event_data)
            finally:
                # Unsubscribe even if the callback raised
                if unsubscribe_ref:
                    unsubscribe_ref[0]()

        unsubscribe_ref.append(self.on(event_type, one_time_handler, priority))
        return unsubscribe_ref[0]

    def on_any(
        self, callback: Callable, priority: EventPriority = EventPriority.NORMAL
    ) -> Callable:
        """
        Subscribe to all events.

        Args:
            callback: Function to call for any event, signature: fn((event_type, event_data))
            priority: Priority level for this handler

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        handler = {"callback": callback, "priority": priority.value}

        with self._listener_lock:
            self._insert(self._global_listeners, handler)

        def unsubscribe():
            with self._listener_lock:
                if handler in self._global_listeners:
                    self._global_listeners.remove(handler)

        return unsubscribe

    def listener_count(self, event_type: Optional[Union[str, Enum]] = None) -> int:
        with self._listener_lock:
            if event_type is None:
                return sum(len(h) for h in self._listeners.values()) + len(
                    self._global_listeners
                )
            return len(self._listeners.get(self._key(event_type), []))

    def emit(self, event_type: Union[str, Enum], data: Dict[str, Any]) -> None:
        """
        Emit an event to all registered listeners.

        A handler that raises is logged and skipped; the remaining handlers
        still run.

        Args:
            event_type: The type of event to emit
            data: The data to include with the event
        """
        key = self._key(event_type)
        handlers_to_call = []

        with self._listener_lock:
            for handler in self._listeners.get(key, []):
                handlers_to_call.append((handler["callback"], data))
            for handler in self._global_listeners:
                handlers_to_call.append((handler["callback"], (key, data)))

        # Call handlers outside of the lock to avoid deadlocks
        for callback, args in handlers_to_call:
            try:
                callback(args)
            except Exception as e:
                logger.error(f"Error in event handler for {key}: {e}", exc_info=True)

    async def emit_async(
        self, event_type: Union[str, Enum], data: Dict[str, Any]
    ) -> None:
        """
        Emit an event from a coroutine.

        Handlers are still called sequentially.
        """
        self.emit(event_type, data)

    def remove_all_listeners(
        self, event_type: Optional[Union[str, Enum]] = None
    ) -> None:
        """
        Remove all listeners for a specific event type or all events.

        Args:
            event_type: Optional event type. If None, removes all listeners for all events.
        """
        with self._listener_lock:
            if event_type is None:
                self._listeners.clear()
                self._global_listeners.clear()
            else:
                self._listeners[self._key(event_type)].clear()
