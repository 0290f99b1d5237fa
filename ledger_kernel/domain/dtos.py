"""
Data Transfer Objects -- the kernel's domain types.

These frozen dataclasses are defined independently of any table shape.
ORM models map to them through ``to_dto()``; services accept them as
input and selectors return them as output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from ledger_kernel.domain.values import ZERO, to_decimal
from ledger_kernel.models.account import AccountType, NormalBalance, normal_balance_for
from ledger_kernel.models.journal import JournalEntryStatus


@dataclass(frozen=True)
class AccountInfo:
    """Read-only view of a chart-of-accounts entry."""

    id: UUID
    code: str
    name: str
    account_type: AccountType
    is_system: bool = False
    is_active: bool = True

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.account_type)


@dataclass(frozen=True)
class AccountSpec:
    """Definition of an account to create (seed data or user-added)."""

    code: str
    name: str
    account_type: AccountType
    is_system: bool = False


@dataclass(frozen=True)
class EntryHeader:
    """
    Header of a proposed journal entry.

    ``source_type``/``source_id`` identify the business document that
    produced the entry, when there is one.
    """

    entry_date: date
    description: str
    reference: str | None = None
    source_type: str | None = None
    source_id: str | None = None


@dataclass(frozen=True)
class LineSpec:
    """
    Specification for a journal line.

    Contract:
        References the account by code (resolved against the tenant's COA by
        JournalEngine).  Exactly one of debit/credit should be non-zero;
        JournalEngine rejects anything else with InvalidLineError.
    """

    account_code: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", to_decimal(self.debit))
        object.__setattr__(self, "credit", to_decimal(self.credit))

    @classmethod
    def dr(cls, account_code: str, amount, description: str | None = None) -> LineSpec:
        return cls(account_code=account_code, debit=to_decimal(amount), description=description)

    @classmethod
    def cr(cls, account_code: str, amount, description: str | None = None) -> LineSpec:
        return cls(account_code=account_code, credit=to_decimal(amount), description=description)


@dataclass(frozen=True)
class JournalLineInfo:
    id: UUID
    account_id: UUID
    description: str | None
    debit: Decimal
    credit: Decimal
    line_seq: int


@dataclass(frozen=True)
class JournalEntryInfo:
    """Read-only view of a persisted journal entry with its lines."""

    id: UUID
    tenant_id: UUID
    entry_number: str
    entry_date: date
    reference: str | None
    description: str | None
    status: JournalEntryStatus
    lines: tuple[JournalLineInfo, ...] = field(default_factory=tuple)
    reversal_of_id: UUID | None = None
    source_type: str | None = None
    source_id: str | None = None
    created_by_id: UUID | None = None
    posted_at: datetime | None = None
    voided_at: datetime | None = None

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)
