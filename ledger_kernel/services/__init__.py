"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.account_resolver import CoaAccountResolver
from ledger_kernel.services.auditor_service import AuditorService
from ledger_kernel.services.coa_service import ChartOfAccountsService
from ledger_kernel.services.journal_engine import JournalEngine, validate_entry_lines
from ledger_kernel.services.sequence_service import SequenceCounter, SequenceService

__all__ = [
    "AuditorService",
    "ChartOfAccountsService",
    "CoaAccountResolver",
    "JournalEngine",
    "SequenceCounter",
    "SequenceService",
    "validate_entry_lines",
]
