"""
The wallet seam: the one asynchronous call a table makes.

A table confirms its pending stakes with an external wallet service before
dealing and reports each settled round back. The engine only needs to know
whether the confirmation succeeded, was rejected, or took too long;
everything else about the wallet lives outside this package.
"""

import asyncio
import itertools
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Dict, Optional

from punto.baccarat.bets import BetType

logger = logging.getLogger("punto.wallet")


@unique
class ConfirmErrorKind(Enum):
    ALREADY_CONFIRMING = "already_confirming"
    BACKEND_REJECTED = "backend_rejected"
    TIMEOUT = "timeout"
    NOTHING_TO_CONFIRM = "nothing_to_confirm"


class ConfirmError(Exception):
    """Base class for failed confirmations. ``reason`` says what went wrong."""

    reason: ConfirmErrorKind


class AlreadyConfirmingError(ConfirmError):
    """Raised when a confirmation is requested while another is in flight."""

    reason = ConfirmErrorKind.ALREADY_CONFIRMING


class BackendRejectedError(ConfirmError):
    """Raised when the wallet refuses the stakes."""

    reason = ConfirmErrorKind.BACKEND_REJECTED


class ConfirmTimeoutError(ConfirmError):
    reason = ConfirmErrorKind.TIMEOUT


class NothingToConfirmError(ConfirmError):
    reason = ConfirmErrorKind.NOTHING_TO_CONFIRM


@dataclass(frozen=True)
class ConfirmationReceipt:
    """
    What the wallet returns for accepted stakes.

    Attributes:
        reference: The wallet's identifier for the transaction
        round_id: Round the stakes belong to
        amount: Total amount debited
        balance: Balance after the debit, if the wallet reports one
        bets: The confirmed stake per bet type
        confirmed_at: Wall-clock time of the confirmation
    """

    reference: str
    round_id: int
    amount: float
    balance: Optional[float] = None
    bets: Dict[BetType, float] = field(default_factory=dict)
    confirmed_at: float = field(default_factory=time.time)


class WalletService(ABC):
    """
    Interface for the service that debits confirmed stakes.

    Implementations raise ``BackendRejectedError`` when the stakes are
    refused. Timeouts may be raised as ``ConfirmTimeoutError`` or
    ``asyncio.TimeoutError``; the table treats both the same way.
    """

    @abstractmethod
    async def confirm_bets(
        self, table_id: str, round_id: int, bets: Dict[BetType, float]
    ) -> ConfirmationReceipt:
        """
        Debit the given stakes.

        Args:
            table_id: The table placing the stakes
            round_id: The round the stakes are for
            bets: Amount per bet type

        Returns:
            The receipt for the debit
        """
        pass

    # The following methods have default implementations but can be overridden

    def settle(self, table_id: str, round_id: int, amount: float) -> None:
        """
        Apply the net result of a round to the player's funds.

        Called once a round is settled with the winnings less any lost
        unconfirmed stakes, and on reset with the refund of confirmed stakes.
        ``amount`` may be negative. Wallets whose backend settles rounds on
        its own can leave this as it is.

        Args:
            table_id: The table that played the round
            round_id: The settled round
            amount: Change to the player's funds
        """
        pass


class InMemoryWallet(WalletService):
    """
    A wallet holding one balance in memory.

    Useful for simulations and tests. ``latency`` delays every confirmation
    and ``reject_next`` makes the next call fail.
    """

    def __init__(self, balance: float = 0.0, latency: float = 0.0):
        self.balance = balance
        self.latency = latency
        self.reject_next = False
        self.calls = 0
        self._references = itertools.count(1)

    async def confirm_bets(
        self, table_id: str, round_id: int, bets: Dict[BetType, float]
    ) -> ConfirmationReceipt:
        self.calls += 1
        if self.latency > 0:
            await asyncio.sleep(self.latency)

        amount = sum(bets.values())
        if self.reject_next:
            self.reject_next = False
            raise BackendRejectedError("Wallet rejected the stakes")
        if amount > self.balance:
            raise BackendRejectedError(
                f"Insufficient funds: {amount:g} requested, {self.balance:g} available"
            )

        self.balance -= amount
        receipt = ConfirmationReceipt(
            reference=f"{table_id}-{round_id}-{next(self._references)}",
            round_id=round_id,
            amount=amount,
            balance=self.balance,
            bets=dict(bets),
        )
        logger.debug("Confirmed %g for table %s round %d", amount, table_id, round_id)
        return receipt

    def settle(self, table_id: str, round_id: int, amount: float) -> None:
        self.credit(amount)
        logger.debug("Settled %g for table %s round %d", amount, table_id, round_id)

    def credit(self, amount: float) -> float:
        self.balance += amount
        return self.balance
