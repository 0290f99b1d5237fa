"""Read-only selectors for the ledger kernel."""

from ledger_kernel.selectors.base import BaseSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import (
    AccountBalance,
    GeneralLedgerLine,
    LedgerSelector,
    ProfitAndLoss,
    TrialBalanceRow,
)

__all__ = [
    "AccountBalance",
    "BaseSelector",
    "GeneralLedgerLine",
    "JournalSelector",
    "LedgerSelector",
    "ProfitAndLoss",
    "TrialBalanceRow",
]
