"""Chart of accounts and manual journal entries."""

from ledger_modules.gl.service import GeneralLedgerService

__all__ = ["GeneralLedgerService"]
