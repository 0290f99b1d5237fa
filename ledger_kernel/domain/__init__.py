"""Domain types for the ledger kernel: pure values, no I/O."""

from ledger_kernel.domain.account_resolver import (
    AccountResolver,
    AccountRole,
    ResolvedAccount,
    StaticAccountResolver,
    resolve_role,
)
from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import (
    AccountInfo,
    AccountSpec,
    EntryHeader,
    JournalEntryInfo,
    JournalLineInfo,
    LineSpec,
)
from ledger_kernel.domain.tenant import Actor, TenantContext
from ledger_kernel.domain.values import CENT, ZERO, round_money, to_decimal

__all__ = [
    "AccountResolver",
    "AccountRole",
    "ResolvedAccount",
    "StaticAccountResolver",
    "resolve_role",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "AccountInfo",
    "AccountSpec",
    "EntryHeader",
    "JournalEntryInfo",
    "JournalLineInfo",
    "LineSpec",
    "Actor",
    "TenantContext",
    "CENT",
    "ZERO",
    "round_money",
    "to_decimal",
]
