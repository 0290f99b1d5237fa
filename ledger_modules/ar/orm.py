"""
Sales Tax Invoice ORM Models (``ledger_modules.ar.orm``).

Responsibility
--------------
SQLAlchemy persistence for tax invoices and their lines.  Maps the frozen
dataclasses in ``models.py`` to tables.  Seller and buyer are stored as
JSON snapshots so later master-data edits never touch an issued invoice.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``ledger_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``ledger_kernel``.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    JSON,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase


class TaxInvoiceModel(TrackedBase):
    """
    ORM model for sales tax invoices.

    Guarantees:
        - invoice_number is unique per tenant.
        - posting_ref is a nullable FK to the journal entry created when
          the invoice was posted.
        - status stored as string enum value.
    """

    __tablename__ = "tax_invoices"

    __table_args__ = (
        UniqueConstraint("tenant_id", "invoice_number", name="uq_tax_invoice_tenant_number"),
        Index("idx_tax_invoice_status", "tenant_id", "status"),
        Index("idx_tax_invoice_issue_date", "tenant_id", "issue_date"),
    )

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    invoice_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="draft", active_history=True
    )
    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="SAR")
    seller: Mapped[dict] = mapped_column(JSON, nullable=False)
    buyer: Mapped[dict] = mapped_column(JSON, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    vat_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    posting_ref: Mapped[UUID | None] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=True
    )
    qr_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    posted_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    posted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    items: Mapped[list["InvoiceItemModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InvoiceItemModel.line_seq",
    )

    def to_dto(self):
        """Convert ORM model (with items) to frozen dataclass."""
        from ledger_modules.ar.models import (
            InvoiceStatus,
            InvoiceType,
            Party,
            TaxInvoice,
        )

        return TaxInvoice(
            id=self.id,
            invoice_number=self.invoice_number,
            invoice_type=InvoiceType(self.invoice_type),
            status=InvoiceStatus(self.status),
            issue_date=self.issue_date,
            seller=Party.from_dict(self.seller),
            buyer=Party.from_dict(self.buyer),
            items=tuple(item.to_dto() for item in self.items),
            subtotal=self.subtotal,
            vat_amount=self.vat_amount,
            total_amount=self.total_amount,
            currency=self.currency,
            posting_ref=self.posting_ref,
            qr_code=self.qr_code,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
            posted_by_id=self.posted_by_id,
            posted_at=self.posted_at,
        )

    def __repr__(self) -> str:
        return f"<TaxInvoiceModel {self.invoice_number} [{self.status}]>"


class InvoiceItemModel(TrackedBase):
    """
    ORM model for invoice lines.

    Net, VAT and total are stored as computed when the line was written,
    so a posted invoice keeps its figures even if rounding rules change.
    """

    __tablename__ = "invoice_items"

    __table_args__ = (
        Index("idx_invoice_item_invoice", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("tax_invoices.id", ondelete="CASCADE"), nullable=False
    )
    line_seq: Mapped[int] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False)
    vat_rate: Mapped[Decimal] = mapped_column(nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(nullable=False)
    vat_amount: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    invoice: Mapped["TaxInvoiceModel"] = relationship(back_populates="items")

    def to_dto(self):
        from ledger_modules.ar.models import InvoiceLineItem

        return InvoiceLineItem(
            description=self.description,
            quantity=self.quantity,
            unit_price=self.unit_price,
            vat_rate=self.vat_rate,
        )

    @classmethod
    def from_dto(cls, dto, *, tenant_id: UUID, line_seq: int, created_by_id: UUID):
        """Create ORM model from an InvoiceLineItem."""
        return cls(
            tenant_id=tenant_id,
            line_seq=line_seq,
            description=dto.description,
            quantity=dto.quantity,
            unit_price=dto.unit_price,
            vat_rate=dto.vat_rate,
            net_amount=dto.net_amount,
            vat_amount=dto.vat_amount,
            total_amount=dto.total_amount,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<InvoiceItemModel {self.line_seq}: {self.description}>"
