"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountType, NormalBalance
from ledger_kernel.models.audit_event import AuditAction, AuditEvent
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine

__all__ = [
    "Account",
    "AccountType",
    "NormalBalance",
    "AuditAction",
    "AuditEvent",
    "JournalEntry",
    "JournalEntryStatus",
    "JournalLine",
]
