"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for journal entries and journal lines -- the
    single source of financial truth in this system.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/ or domain/ at module level.

Invariants enforced:
    - entry_number is unique per tenant (uq_journal_tenant_number).
    - idempotency_key is unique per tenant when present
      (uq_journal_tenant_idempotency).
    - Balance within tolerance is checked by JournalEngine before the rows
      are written; is_balanced is a read-side convenience.
    - Once POSTED, the entry and its lines are immutable; only the
      POSTED -> VOIDED flip is allowed (db/immutability.py).

Failure modes:
    - IntegrityError on duplicate entry_number or idempotency_key.
    - ImmutabilityViolationError on UPDATE/DELETE of a posted entry or line.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString


class JournalEntryStatus(str, Enum):
    """Lifecycle status of a journal entry.

    Contract: DRAFT -> POSTED -> VOIDED, one way only.
    """

    DRAFT = "draft"
    POSTED = "posted"
    VOIDED = "voided"


class JournalEntry(TrackedBase):
    """
    Journal entry header -- the atomic unit of double-entry accounting.

    Contract:
        A JournalEntry exclusively owns its JournalLines.  Lines are
        cascade-deleted only while the entry is a DRAFT.  A voided entry
        is never edited; its compensating reversal points back to it
        through reversal_of_id.

    Non-goals:
        - This model does NOT enforce balance at the ORM level; enforcement
          lives in JournalEngine.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("tenant_id", "entry_number", name="uq_journal_tenant_number"),
        UniqueConstraint(
            "tenant_id", "idempotency_key", name="uq_journal_tenant_idempotency"
        ),
        Index("idx_journal_entry_date", "entry_date"),
        Index("idx_journal_status", "status"),
        Index("idx_journal_source", "source_type", "source_id"),
    )

    # Human-readable number, e.g. "JE-000042"
    entry_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # Accounting date
    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    reference: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    status: Mapped[JournalEntryStatus] = mapped_column(
        String(10),
        default=JournalEntryStatus.DRAFT,
        nullable=False,
        active_history=True,
    )

    # Set on a reversal entry; points to the voided original
    reversal_of_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=True,
    )

    # Dedupe key, e.g. "sales_invoice:<invoice id>"
    idempotency_key: Mapped[str | None] = mapped_column(
        String(300),
        nullable=True,
    )

    # Originating business document
    source_type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    source_id: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    voided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    voided_by_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalLine.line_seq",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} status={self.status}>"

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED

    @property
    def is_draft(self) -> bool:
        return self.status == JournalEntryStatus.DRAFT

    @property
    def is_voided(self) -> bool:
        return self.status == JournalEntryStatus.VOIDED

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))

    @property
    def is_balanced(self) -> bool:
        return self.total_debits == self.total_credits

    def to_dto(self):
        """Convert ORM model (with lines) to frozen dataclass."""
        from ledger_kernel.domain.dtos import JournalEntryInfo

        return JournalEntryInfo(
            id=self.id,
            tenant_id=self.tenant_id,
            entry_number=self.entry_number,
            entry_date=self.entry_date,
            reference=self.reference,
            description=self.description,
            status=JournalEntryStatus(self.status),
            lines=tuple(line.to_dto() for line in self.lines),
            reversal_of_id=self.reversal_of_id,
            source_type=self.source_type,
            source_id=self.source_id,
            created_by_id=self.created_by_id,
            posted_at=self.posted_at,
            voided_at=self.voided_at,
        )


class JournalLine(TrackedBase):
    """
    Individual debit or credit line within a journal entry.

    Contract:
        Each line belongs to exactly one JournalEntry and references exactly
        one Account without owning it.  Exactly one of debit/credit is
        non-zero; neither is negative.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_line_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_line_credit_non_negative"),
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    debit: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    credit: Mapped[Decimal] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    # Position within the entry (deterministic ordering)
    line_seq: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    entry: Mapped["JournalEntry"] = relationship(
        back_populates="lines",
    )

    def __repr__(self) -> str:
        return f"<JournalLine Dr {self.debit} Cr {self.credit}>"

    @property
    def is_debit(self) -> bool:
        return self.debit > 0

    def to_dto(self):
        from ledger_kernel.domain.dtos import JournalLineInfo

        return JournalLineInfo(
            id=self.id,
            account_id=self.account_id,
            description=self.description,
            debit=self.debit,
            credit=self.credit,
            line_seq=self.line_seq,
        )
