"""
Sales Tax Invoice Domain Models (``ledger_modules.ar.models``).

Responsibility
--------------
Frozen dataclass value objects for ZATCA tax invoices: the party snapshots,
invoice lines and the invoice itself.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Returned by
``InvoiceService``; mapped to and from ``orm.py`` models.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal``; line VAT is rounded per line to
  0.01 (ROUND_HALF_UP).
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.values import ZERO, round_money, to_decimal

DEFAULT_VAT_RATE = Decimal("0.15")


class InvoiceType(str, Enum):
    """ZATCA invoice types (B2B standard, B2C simplified)."""
    STANDARD = "standard"
    SIMPLIFIED = "simplified"


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states."""
    DRAFT = "draft"
    APPROVED = "approved"
    POSTED = "posted"
    SENT_TO_AUTHORITY = "sent_to_authority"
    PAID = "paid"


# Statuses in which the invoice may still be edited or moved back
EDITABLE_STATUSES = frozenset({InvoiceStatus.DRAFT})
PRE_POSTING_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.APPROVED})


@dataclass(frozen=True)
class Party:
    """Seller or buyer snapshot taken when the invoice is drafted."""
    name: str | None = None
    vat_number: str | None = None
    cr_number: str | None = None
    address: str | None = None
    country: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "vat_number": self.vat_number,
            "cr_number": self.cr_number,
            "address": self.address,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "Party":
        data = data or {}
        return cls(
            name=data.get("name"),
            vat_number=data.get("vat_number"),
            cr_number=data.get("cr_number"),
            address=data.get("address"),
            country=data.get("country"),
        )


@dataclass(frozen=True)
class InvoiceLineItem:
    """
    One invoice line.  Net, VAT and total are derived.

    ``vat_rate=None`` means "the tenant's default rate".  ``InvoiceService``
    fills it from ``tax.default_vat_rate`` before storing the line; a line
    used on its own falls back to ``DEFAULT_VAT_RATE``.
    """
    description: str
    quantity: Decimal
    unit_price: Decimal
    vat_rate: Decimal | None = None

    def __post_init__(self):
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price))
        if self.vat_rate is not None:
            object.__setattr__(self, "vat_rate", to_decimal(self.vat_rate))
            if self.vat_rate < 0:
                raise ValueError("VAT rate must not be negative")
        if self.quantity < 0 or self.unit_price < 0:
            raise ValueError("Invoice line quantity and unit price must not be negative")

    def with_default_rate(self, rate: Decimal) -> "InvoiceLineItem":
        """This line, with ``rate`` applied if it carries no rate of its own."""
        if self.vat_rate is not None:
            return self
        return replace(self, vat_rate=rate)

    @property
    def net_amount(self) -> Decimal:
        return round_money(self.quantity * self.unit_price)

    @property
    def vat_amount(self) -> Decimal:
        rate = DEFAULT_VAT_RATE if self.vat_rate is None else self.vat_rate
        return round_money(self.net_amount * rate)

    @property
    def total_amount(self) -> Decimal:
        return self.net_amount + self.vat_amount


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal = ZERO
    vat_amount: Decimal = ZERO
    total_amount: Decimal = ZERO


@dataclass(frozen=True)
class TaxInvoice:
    """A sales tax invoice as stored."""
    id: UUID
    invoice_number: str
    invoice_type: InvoiceType
    status: InvoiceStatus
    issue_date: date | None
    seller: Party
    buyer: Party
    items: tuple[InvoiceLineItem, ...] = field(default_factory=tuple)
    subtotal: Decimal = ZERO
    vat_amount: Decimal = ZERO
    total_amount: Decimal = ZERO
    currency: str = "SAR"
    posting_ref: UUID | None = None
    qr_code: str | None = None
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None
    posted_by_id: UUID | None = None
    posted_at: datetime | None = None

    @property
    def is_posted(self) -> bool:
        return self.status not in PRE_POSTING_STATUSES
