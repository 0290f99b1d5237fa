"""
LedgerConfig schema.

Frozen dataclasses the loader fills from YAML.  Nothing here reads files;
see ``ledger_config.loader``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from ledger_kernel.domain.dtos import AccountSpec


@dataclass(frozen=True)
class LedgerSettings:
    balance_tolerance: Decimal = Decimal("0.01")
    entry_number_prefix: str = "JE"
    currency: str = "SAR"


@dataclass(frozen=True)
class ExpenseSettings:
    """Payment-method routing and category -> expense account code."""

    bank_methods: tuple[str, ...] = ("Bank Transfer", "Card")
    category_accounts: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TaxSettings:
    default_vat_rate: Decimal = Decimal("0.15")
    vat_report_statuses: tuple[str, ...] = ("posted", "sent_to_authority", "paid")
    zakat_rate: Decimal = Decimal("0.025")
    fixed_asset_codes: tuple[str, ...] = ("1500",)
    # Allowed gap between stated VAT and subtotal x rate
    vat_check_tolerance: Decimal = Decimal("0.1")


@dataclass(frozen=True)
class InvoiceSettings:
    number_prefix: str = "INV"
    # action name ("approve", "revert", "post") -> roles allowed to perform it
    transition_roles: dict[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class LedgerConfig:
    """The whole runtime configuration."""

    ledger: LedgerSettings
    chart_of_accounts: tuple[AccountSpec, ...]
    account_roles: dict[str, str]
    expense: ExpenseSettings
    tax: TaxSettings
    invoice: InvoiceSettings
    source: str | None = None

    def account_for_role(self, role: str) -> str:
        return self.account_roles[role]
