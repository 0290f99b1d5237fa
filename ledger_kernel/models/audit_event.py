"""
Module: ledger_kernel.models.audit_event
Responsibility: Append-only, hash-chained audit trail of ledger and invoice
    actions, one chain per tenant.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, BigInteger, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base, UUIDString


class AuditAction(str, Enum):
    """Actions recorded in the audit chain."""

    ACCOUNT_CREATED = "account_created"
    ACCOUNT_CODE_CHANGED = "account_code_changed"
    ACCOUNT_DELETED = "account_deleted"

    JOURNAL_CREATED = "journal_created"
    JOURNAL_POSTED = "journal_posted"
    JOURNAL_VOIDED = "journal_voided"
    JOURNAL_DRAFT_DELETED = "journal_draft_deleted"

    INVOICE_CREATED = "invoice_created"
    INVOICE_UPDATED = "invoice_updated"
    INVOICE_APPROVED = "invoice_approved"
    INVOICE_REVERTED = "invoice_reverted"
    INVOICE_POSTED = "invoice_posted"


class AuditEvent(Base):
    """
    Audit event with hash chain for tamper evidence.

    Contract:
        AuditEvent rows are append-only, never updated or deleted.  Each
        row's hash includes the previous row's hash within the same tenant.

    Guarantees:
        - seq is unique and monotonically increasing per tenant.
        - hash = H(entity_type | entity_id | action | payload_hash | prev_hash).
        - prev_hash is None only for the tenant's first event.
    """

    __tablename__ = "audit_events"

    __table_args__ = (
        UniqueConstraint("tenant_id", "seq", name="uq_audit_tenant_seq"),
        Index("idx_audit_entity", "entity_type", "entity_id"),
        Index("idx_audit_action", "action"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    # e.g. "JournalEntry", "TaxInvoice", "Account"
    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    entity_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    action: Mapped[AuditAction] = mapped_column(
        String(50),
        nullable=False,
    )

    actor_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    payload: Mapped[dict | None] = mapped_column(
        JSON,
        nullable=True,
    )

    payload_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    prev_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditEvent {self.action} on {self.entity_type}:{self.entity_id}>"

    @property
    def is_genesis(self) -> bool:
        return self.prev_hash is None
