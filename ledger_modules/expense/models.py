"""
Expense Domain Models.

A disbursement is money paid out for an expense.  The surrounding
application owns its persistence; the ledger only sees this snapshot.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.domain.values import ZERO, to_decimal


@dataclass(frozen=True)
class Disbursement:
    """An expense payment.  ``amount`` excludes VAT."""
    id: UUID
    disbursement_date: date
    category: str
    payee: str
    amount: Decimal
    payment_method: str
    vat_amount: Decimal | None = None
    reference: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "amount", to_decimal(self.amount))
        if self.vat_amount is not None:
            object.__setattr__(self, "vat_amount", to_decimal(self.vat_amount))
        if self.amount <= 0:
            raise ValueError("Disbursement amount must be positive")

    @property
    def gross_amount(self) -> Decimal:
        return self.amount + (self.vat_amount or ZERO)
