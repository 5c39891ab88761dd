"""The per-table phase cycle and the wallet seam."""

from punto.table.phases import Phase, PhaseDurations
from punto.table.session import TableConfig, TableSession, TableStateError
from punto.table.wallet import (
    ConfirmationReceipt,
    ConfirmError,
    InMemoryWallet,
    WalletService,
)

__all__ = [
    "ConfirmationReceipt",
    "ConfirmError",
    "InMemoryWallet",
    "Phase",
    "PhaseDurations",
    "TableConfig",
    "TableSession",
    "TableStateError",
    "WalletService",
]
