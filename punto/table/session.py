"""
One baccarat table: the phase cycle, the round's bets and the player's balance.

A ``TableSession`` is driven from outside. A front end or driver task calls
``advance_phase`` on every tick, ``deal_round`` once the table is dealing,
and forwards the player's bet, cancel and confirm requests. Everything the
session decides leaves through its event emitter.

Sessions are meant for single-threaded cooperative use, one per table. Two
sessions never share state.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Callable, Deque, Dict, List, Optional

from punto.baccarat.arbiter import DealArbiter
from punto.baccarat.bets import (
    BetDebouncedError,
    BetError,
    BetLedger,
    BetRequest,
    BetType,
    BettingClosedError,
    ValidatedBet,
)
from punto.baccarat.engine import RulesEngine
from punto.baccarat.result import RoundResult
from punto.baccarat.rules import BaccaratRules
from punto.common.chips import (
    DEFAULT_CHIPS,
    ChipCatalog,
    ChipConversion,
    ChipDenomination,
    recommend_chips,
)
from punto.common.shoe import Shoe, ShoeExhausted
from punto.events.emitter import EventEmitter, TableEventType
from punto.table.phases import PHASE_RULES, Phase, PhaseDurations
from punto.table.wallet import (
    AlreadyConfirmingError,
    BackendRejectedError,
    ConfirmationReceipt,
    ConfirmError,
    ConfirmTimeoutError,
    InMemoryWallet,
    NothingToConfirmError,
    WalletService,
)

logger = logging.getLogger("punto.session")


class TableStateError(Exception):
    """Raised when an operation needs the table in a phase it is not in."""

    pass


@dataclass
class TableConfig:
    """
    Settings for one table.

    Attributes:
        table_id: Identifier passed to the wallet and included in events
        rules: Rules of the game
        durations: Phase durations in seconds
        debounce: Minimum seconds between accepted bets on the same bet type
        confirm_timeout: Seconds to wait for the wallet; None waits indefinitely
        allow_early_close: Let betting end early when nothing has been staked
        require_confirmation: Settle only confirmed stakes; unconfirmed ones are void
        chip_catalog: Chips offered at the table
        history_limit: Number of past results kept
    """

    table_id: str = "table-1"
    rules: BaccaratRules = field(default_factory=BaccaratRules)
    durations: PhaseDurations = field(default_factory=PhaseDurations)
    debounce: float = 0.3
    confirm_timeout: Optional[float] = 1.0
    allow_early_close: bool = True
    require_confirmation: bool = False
    chip_catalog: ChipCatalog = DEFAULT_CHIPS
    history_limit: int = 100


class TableSession:
    """
    The phase state machine of one table and the round it is playing.

    Events emitted (payload keys):
    - PHASE_CHANGED: table_id, round_id, previous, phase
    - BET_PLACED: table_id, round_id, bet_type, amount, total
    - BET_REJECTED: table_id, round_id, bet_type, amount, reason, message
    - BET_CANCELLED: table_id, round_id, bet_type, amount
    - BETS_CONFIRMED: table_id, round_id, receipt
    - CONFIRM_FAILED: table_id, round_id, reason, rolled_back
    - SHOE_SHUFFLED: table_id, round_id, cards
    - ROUND_COMPLETED: table_id, round_id, result
    - PAYOUT_COMPUTED: table_id, round_id, payout, balance
    - ROUND_ABORTED: table_id, round_id, reason
    - CARD_DEALT and DRAW_DECIDED come from the DealArbiter
    """

    def __init__(
        self,
        config: Optional[TableConfig] = None,
        balance: float = 0.0,
        wallet: Optional[WalletService] = None,
        shoe: Optional[Shoe] = None,
        emitter: Optional[EventEmitter] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            config: Table settings
            balance: The player's starting balance
            wallet: Service confirming stakes; an in-memory wallet holding
                    ``balance`` is used when omitted
            shoe: The shoe to deal from; built from the rules when omitted
            emitter: Event emitter for this table; a new one when omitted
            clock: Source of monotonic time in seconds
        """
        self.config = config if config else TableConfig()
        self.rules = self.config.rules
        self.engine = RulesEngine(self.rules)
        self.emitter = emitter if emitter is not None else EventEmitter()
        self.clock = clock
        self.balance = balance
        self.wallet = wallet if wallet is not None else InMemoryWallet(balance)
        self.shoe = shoe if shoe else Shoe(self.rules.num_decks, self.rules.shuffle_threshold)
        self.arbiter = DealArbiter(self.shoe, self.rules, self.emitter)

        self.ledger = BetLedger()
        self.phase = Phase.WAITING
        self.round_id = 0
        self.last_result: Optional[RoundResult] = None
        self._history: Deque[RoundResult] = deque(maxlen=self.config.history_limit)
        self._phase_started = self.clock()
        self._last_bet_at: Dict[BetType, float] = {}
        self._is_confirming = False
        self._transitioning = False

    @property
    def table_id(self) -> str:
        return self.config.table_id

    @property
    def is_confirming(self) -> bool:
        """True while a confirmation is waiting for the wallet."""
        return self._is_confirming

    @property
    def history(self) -> List[RoundResult]:
        """Past results, oldest first."""
        return list(self._history)

    @property
    def available_balance(self) -> float:
        """Balance less stakes placed but not yet confirmed."""
        return self.balance - self.ledger.pending_total

    @property
    def can_bet(self) -> bool:
        return self.phase == Phase.BETTING and not self._transitioning and not self.ledger.frozen

    def elapsed(self) -> float:
        """Seconds spent in the current phase."""
        return self.clock() - self._phase_started

    def countdown(self) -> float:
        """Seconds left in the current phase, never negative."""
        duration = self.config.durations.for_phase(self.phase)
        if duration is None:
            duration = self.config.durations.dealing
        return max(0.0, duration - self.elapsed())

    def _event(self, **data) -> Dict:
        data.update(table_id=self.table_id, round_id=self.round_id)
        return data

    def _transition(self, target: Phase) -> None:
        previous = self.phase
        self._transitioning = True
        try:
            self.phase = target
            self._phase_started = self.clock()
            if target == Phase.BETTING:
                self.round_id += 1
                self.ledger.clear()
                self._last_bet_at.clear()
            elif target == Phase.DEALING:
                self.ledger.freeze()
            elif target == Phase.WAITING:
                self.ledger.clear()
            logger.info("Table %s round %d: %s -> %s", self.table_id, self.round_id, previous, target)
            self.emitter.emit(
                TableEventType.PHASE_CHANGED, self._event(previous=previous, phase=target)
            )
        finally:
            self._transitioning = False

    def advance_phase(self, early_close: bool = False) -> bool:
        """
        Move to the next phase if its guard allows it.

        At most one transition happens per call. Leaving Dealing is only
        possible through ``deal_round``.

        Args:
            early_close: Ask for betting to end before its timer runs out;
                         honoured only when nothing has been staked

        Returns:
            True if the phase changed
        """
        if self._transitioning:
            logger.debug("Ignoring phase advance during a transition")
            return False

        rule = PHASE_RULES[self.phase]
        if not rule.allows(
            self.elapsed(),
            self.config.durations.for_phase(self.phase),
            early_close_requested=early_close,
            ledger_empty=self.ledger.is_empty(),
            early_close_allowed=self.config.allow_early_close,
        ):
            return False
        self._transition(rule.target)
        return True

    def _reject(self, error: BetError) -> None:
        logger.debug("Bet rejected: %s", error)
        self.emitter.emit(
            TableEventType.BET_REJECTED,
            self._event(
                bet_type=error.bet_type,
                amount=error.amount,
                reason=error.reason,
                message=str(error),
            ),
        )

    def place_bet(self, bet_type: BetType, amount: float) -> ValidatedBet:
        """
        Stake ``amount`` on ``bet_type``.

        Bets on the same type closer together than the debounce window are
        rejected, not queued.

        Returns:
            The validated bet, already added to the ledger

        Raises:
            BetError: The reason the bet was rejected
        """
        now = self.clock()
        try:
            bet_type = self.engine.coerce_bet_type(bet_type)
            if not self.can_bet:
                raise BettingClosedError(
                    f"Bets are not accepted during {self.phase}", bet_type, amount
                )
            last = self._last_bet_at.get(bet_type)
            if last is not None and now - last < self.config.debounce:
                raise BetDebouncedError(
                    f"{bet_type} bet placed {now - last:.3f}s after the previous one",
                    bet_type,
                    amount,
                )
            request = BetRequest(bet_type, amount, now)
            validated = self.engine.validate_bet(request, self.ledger, self.available_balance)
        except BetError as e:
            self._reject(e)
            raise

        self.ledger.apply(validated)
        self._last_bet_at[bet_type] = now
        self.emitter.emit(
            TableEventType.BET_PLACED,
            self._event(bet_type=bet_type, amount=amount, total=validated.new_total),
        )
        return validated

    def cancel_bet(self, bet_type: Optional[BetType] = None) -> float:
        """
        Withdraw unconfirmed stakes on one bet type, or on all of them.

        Returns:
            The amount withdrawn

        Raises:
            AlreadyConfirmingError: While a confirmation is in flight
            BettingClosedError: Once betting has closed
        """
        if self._is_confirming:
            raise AlreadyConfirmingError("Cannot cancel bets while they are being confirmed")
        if bet_type is not None:
            bet_type = self.engine.coerce_bet_type(bet_type)
        removed = self.ledger.cancel(bet_type)
        if removed:
            self.emitter.emit(
                TableEventType.BET_CANCELLED, self._event(bet_type=bet_type, amount=removed)
            )
        return removed

    def _rollback(self, amounts: Dict[BetType, float], error: ConfirmError) -> None:
        rolled_back = self.ledger.rollback(amounts)
        logger.warning(
            "Confirmation failed for table %s round %d (%s), rolled back %g",
            self.table_id,
            self.round_id,
            error.reason.value,
            rolled_back,
        )
        self.emitter.emit(
            TableEventType.CONFIRM_FAILED,
            self._event(reason=error.reason, rolled_back=rolled_back),
        )

    async def confirm_bets(self) -> ConfirmationReceipt:
        """
        Send the pending stakes to the wallet.

        Only one confirmation may be in flight. On rejection or timeout the
        stakes that were sent are removed from the ledger.

        Returns:
            The wallet's receipt

        Raises:
            AlreadyConfirmingError: If a confirmation is already in flight
            NothingToConfirmError: If nothing is pending
            BackendRejectedError: If the wallet refused the stakes
            ConfirmTimeoutError: If the wallet did not answer in time
        """
        if self._is_confirming:
            raise AlreadyConfirmingError("A confirmation is already in progress")
        if self.phase != Phase.BETTING:
            raise TableStateError(f"Bets cannot be confirmed during {self.phase}")
        amounts = self.ledger.pending()
        if not amounts:
            raise NothingToConfirmError("There are no pending bets to confirm")

        self._is_confirming = True
        try:
            call = self.wallet.confirm_bets(self.table_id, self.round_id, dict(amounts))
            try:
                if self.config.confirm_timeout is not None:
                    receipt = await asyncio.wait_for(call, self.config.confirm_timeout)
                else:
                    receipt = await call
            except asyncio.TimeoutError as e:
                error = ConfirmTimeoutError(
                    f"Wallet did not confirm within {self.config.confirm_timeout}s"
                )
                self._rollback(amounts, error)
                raise error from e
            except ConfirmError as e:
                self._rollback(amounts, e)
                raise
            except Exception as e:
                error = BackendRejectedError(f"Wallet call failed: {e}")
                self._rollback(amounts, error)
                raise error from e
        finally:
            self._is_confirming = False

        self.ledger.confirm(amounts)
        self.balance -= receipt.amount
        if receipt.balance is not None and abs(receipt.balance - self.balance) > 1e-9:
            logger.warning(
                "Wallet reports balance %g for table %s, the table holds %g",
                receipt.balance,
                self.table_id,
                self.balance,
            )
        logger.info("Table %s round %d confirmed %g", self.table_id, self.round_id, receipt.amount)
        self.emitter.emit(TableEventType.BETS_CONFIRMED, self._event(receipt=receipt))
        return receipt

    def _settle(self, result: RoundResult) -> RoundResult:
        confirmed_only = self.config.require_confirmation
        summary = self.engine.compute_payouts(self.ledger, result, confirmed_only=confirmed_only)
        change = 0.0
        for payout in summary:
            entry = self.ledger.entry(payout.bet_type)
            # Confirmed stakes were debited by the wallet, pending ones never were
            unpaid = 0.0 if confirmed_only else entry.pending
            change += payout.net - unpaid
        if len(summary):
            self.balance += change
            self.wallet.settle(self.table_id, self.round_id, change)
        return replace(result, payouts=summary)

    def deal_round(self) -> RoundResult:
        """
        Deal, score and settle the round, then enter Result.

        The shoe is reshuffled first when it has reached its threshold.

        Raises:
            TableStateError: If the table is not dealing
            ShoeExhausted: If the shoe ran out mid-round; the round is
                           aborted and the session must be ``reset``
        """
        if self.phase != Phase.DEALING or self._transitioning:
            raise TableStateError(f"Cannot deal during {self.phase}")

        if self.shoe.needs_shuffle:
            self.shoe.reshuffle()
            self.emitter.emit(TableEventType.SHOE_SHUFFLED, self._event(cards=self.shoe.cards_remaining))

        try:
            result = self.arbiter.play(self.round_id)
        except ShoeExhausted as e:
            logger.error("Round %d aborted on table %s: %s", self.round_id, self.table_id, e)
            self.emitter.emit(TableEventType.ROUND_ABORTED, self._event(reason=str(e)))
            raise

        result = self._settle(result)
        self.last_result = result
        self._history.append(result)
        self._transition(Phase.RESULT)

        self.emitter.emit(TableEventType.ROUND_COMPLETED, self._event(result=result))
        for payout in result.payouts:
            self.emitter.emit(
                TableEventType.PAYOUT_COMPUTED, self._event(payout=payout, balance=self.balance)
            )
        return result

    def reset(self) -> None:
        """
        Abandon the current round and start over from Waiting with a fresh shoe.

        Confirmed stakes of a round abandoned during Betting or Dealing are
        refunded to the balance and the wallet.
        """
        if self._is_confirming:
            raise AlreadyConfirmingError("Cannot reset while a confirmation is in flight")
        if self.phase in (Phase.BETTING, Phase.DEALING):
            refund = self.ledger.confirmed_total
            if refund:
                logger.warning("Refunding %g confirmed on abandoned round %d", refund, self.round_id)
                self.balance += refund
                self.wallet.settle(self.table_id, self.round_id, refund)
        self.ledger.clear()
        self._last_bet_at.clear()
        self.shoe.initialize()
        self.arbiter.reset()
        self.emitter.emit(TableEventType.SHOE_SHUFFLED, self._event(cards=self.shoe.cards_remaining))
        self._transition(Phase.WAITING)

    def recommend_chips(self, level: int = 1) -> List[ChipDenomination]:
        """Chip denominations suited to the player's available balance."""
        return recommend_chips(self.available_balance, self.config.chip_catalog, level)

    def chips_for(self, bet_type: BetType) -> ChipConversion:
        """The current stake on ``bet_type`` as chip stacks."""
        return self.engine.recommend_chips(self.ledger.amount(bet_type), self.config.chip_catalog)

    def state(self) -> Dict:
        """A snapshot for front ends."""
        return {
            "table_id": self.table_id,
            "round_id": self.round_id,
            "phase": self.phase,
            "countdown": self.countdown(),
            "balance": self.balance,
            "available_balance": self.available_balance,
            "bets": self.ledger.snapshot(),
            "is_confirming": self._is_confirming,
            "cards_remaining": self.shoe.cards_remaining,
        }

    def __repr__(self) -> str:
        return (
            f"TableSession(table_id={self.table_id!r}, phase={self.phase}, "
            f"round={self.round_id}, balance={self.balance:g})"
        )
