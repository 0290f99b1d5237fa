"""
Tax Compliance Domain Models.

Responsibility:
    Frozen dataclass DTOs for the VAT return summary and the Zakat
    estimate / data pack.  Pure data; no I/O.

Invariants:
    - All models are ``frozen=True``.
    - All monetary fields use ``Decimal``.
    - ``VatReport.net_payable`` is never clamped; negative means refund.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from ledger_kernel.domain.values import ZERO


@dataclass(frozen=True)
class VatReport:
    """VAT position for one period."""
    period_start: date
    period_end: date
    standard_count: int
    simplified_count: int
    total_sales: Decimal
    output_vat: Decimal
    input_vat: Decimal
    estimated_purchases: Decimal = ZERO

    @property
    def net_payable(self) -> Decimal:
        return self.output_vat - self.input_vat

    @property
    def is_refund(self) -> bool:
        return self.net_payable < 0


@dataclass(frozen=True)
class ZakatEstimate:
    """base = |equity| + net_income - fixed_assets; amount = max(0, base) x rate."""
    year: int
    equity: Decimal
    net_income: Decimal
    fixed_assets: Decimal
    base: Decimal
    rate: Decimal
    amount: Decimal


@dataclass(frozen=True)
class ZakatFinancials:
    revenue: Decimal
    expenses: Decimal
    net_profit: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    equity: Decimal


@dataclass(frozen=True)
class ChecklistItem:
    item: str
    status: str


@dataclass(frozen=True)
class ZakatDataPack:
    """Figures and supporting checklist handed to the Zakat adviser."""
    year: int
    generated_at: datetime
    financials: ZakatFinancials
    estimate: ZakatEstimate
    checklist: tuple[ChecklistItem, ...] = field(default_factory=tuple)
