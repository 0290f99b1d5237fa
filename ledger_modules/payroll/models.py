"""Payroll domain models."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.domain.values import to_decimal


@dataclass(frozen=True)
class PayrollRun:
    """A paid payroll period.  ``period`` is ``YYYY-MM``."""
    id: UUID
    period: str
    total_net: Decimal
    payment_method: str
    paid_on: date

    def __post_init__(self):
        object.__setattr__(self, "total_net", to_decimal(self.total_net))
        if self.total_net <= 0:
            raise ValueError("Payroll total must be positive")
