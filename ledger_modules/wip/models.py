"""Production (work-in-process) domain models."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.domain.values import round_money, to_decimal


@dataclass(frozen=True)
class WorkOrder:
    """A completed production run; finished goods valued at unit cost."""
    id: UUID
    number: str
    product: str
    quantity: Decimal
    unit_cost: Decimal
    completed_on: date

    def __post_init__(self):
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        object.__setattr__(self, "unit_cost", to_decimal(self.unit_cost))

    @property
    def total_cost(self) -> Decimal:
        return round_money(self.quantity * self.unit_cost)
