"""
Configuration loader (``ledger_config.loader``).

Parses a YAML document into ``LedgerConfig``.  Every structural problem
raises ``ValueError`` with a message naming the offending key; malformed
YAML raises ``yaml.YAMLError`` and a missing file ``FileNotFoundError``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    ExpenseSettings,
    InvoiceSettings,
    LedgerConfig,
    LedgerSettings,
    TaxSettings,
)
from ledger_kernel.domain.account_resolver import AccountRole
from ledger_kernel.domain.dtos import AccountSpec
from ledger_kernel.models.account import AccountType

REQUIRED_SECTIONS = ("ledger", "chart_of_accounts", "account_roles")
TRANSITION_ACTIONS = ("approve", "revert", "post")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def parse_decimal(value: Any, key: str) -> Decimal:
    # Floats from YAML go through str() so 0.15 stays 0.15
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected a number, got {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"{key}: expected a number, got {value!r}") from exc


def parse_ledger(data: dict[str, Any]) -> LedgerSettings:
    tolerance = parse_decimal(data.get("balance_tolerance", "0.01"), "ledger.balance_tolerance")
    if tolerance < 0:
        raise ValueError("ledger.balance_tolerance must not be negative")
    return LedgerSettings(
        balance_tolerance=tolerance,
        entry_number_prefix=str(data.get("entry_number_prefix", "JE")),
        currency=str(data.get("currency", "SAR")),
    )


def parse_chart(items: list[dict[str, Any]]) -> tuple[AccountSpec, ...]:
    if not isinstance(items, list) or not items:
        raise ValueError("chart_of_accounts must be a non-empty list")

    specs = []
    seen = set()
    for index, item in enumerate(items):
        try:
            code = str(item["code"])
            name = item["name"]
            raw_type = item["type"]
        except (KeyError, TypeError) as exc:
            raise ValueError(
                f"chart_of_accounts[{index}]: code, name and type are required"
            ) from exc
        try:
            account_type = AccountType(raw_type)
        except ValueError as exc:
            raise ValueError(
                f"chart_of_accounts[{index}]: unknown account type {raw_type!r}"
            ) from exc
        if code in seen:
            raise ValueError(f"chart_of_accounts: duplicate code {code}")
        seen.add(code)
        specs.append(
            AccountSpec(
                code=code,
                name=name,
                account_type=account_type,
                is_system=bool(item.get("system", True)),
            )
        )
    return tuple(specs)


def parse_roles(data: dict[str, Any], chart: tuple[AccountSpec, ...]) -> dict[str, str]:
    if not isinstance(data, dict):
        raise ValueError("account_roles must be a mapping")
    known_roles = {role.value for role in AccountRole}
    chart_codes = {spec.code for spec in chart}

    roles = {}
    for role, code in data.items():
        if role not in known_roles:
            raise ValueError(f"account_roles: unknown role {role!r}")
        code = str(code)
        if code not in chart_codes:
            raise ValueError(f"account_roles.{role}: code {code} is not in chart_of_accounts")
        roles[role] = code
    return roles


def parse_expense(data: dict[str, Any]) -> ExpenseSettings:
    return ExpenseSettings(
        bank_methods=tuple(data.get("bank_methods", ("Bank Transfer", "Card"))),
        category_accounts={
            str(category): str(code)
            for category, code in (data.get("categories") or {}).items()
        },
    )


def parse_tax(data: dict[str, Any]) -> TaxSettings:
    defaults = TaxSettings()
    return TaxSettings(
        default_vat_rate=parse_decimal(
            data.get("default_vat_rate", defaults.default_vat_rate), "tax.default_vat_rate"
        ),
        vat_report_statuses=tuple(
            data.get("vat_report_statuses", defaults.vat_report_statuses)
        ),
        zakat_rate=parse_decimal(data.get("zakat_rate", defaults.zakat_rate), "tax.zakat_rate"),
        fixed_asset_codes=tuple(
            str(code) for code in data.get("fixed_asset_codes", defaults.fixed_asset_codes)
        ),
        vat_check_tolerance=parse_decimal(
            data.get("vat_check_tolerance", defaults.vat_check_tolerance),
            "tax.vat_check_tolerance",
        ),
    )


def parse_invoice(data: dict[str, Any]) -> InvoiceSettings:
    raw_roles = data.get("transition_roles") or {}
    transition_roles = {}
    for action, roles in raw_roles.items():
        if action not in TRANSITION_ACTIONS:
            raise ValueError(f"invoice.transition_roles: unknown action {action!r}")
        if isinstance(roles, str) or not isinstance(roles, list):
            raise ValueError(f"invoice.transition_roles.{action} must be a list of roles")
        transition_roles[action] = tuple(roles)
    return InvoiceSettings(
        number_prefix=str(data.get("number_prefix", "INV")),
        transition_roles=transition_roles,
    )


def parse_config(data: dict[str, Any], source: str | None = None) -> LedgerConfig:
    """
    Build a LedgerConfig from an already-loaded YAML mapping.

    Raises:
        ValueError: a required section is missing or a value is invalid.
    """
    missing = [section for section in REQUIRED_SECTIONS if section not in data]
    if missing:
        raise ValueError(f"Missing configuration sections: {', '.join(missing)}")

    chart = parse_chart(data["chart_of_accounts"])
    return LedgerConfig(
        ledger=parse_ledger(data.get("ledger") or {}),
        chart_of_accounts=chart,
        account_roles=parse_roles(data["account_roles"], chart),
        expense=parse_expense(data.get("expense") or {}),
        tax=parse_tax(data.get("tax") or {}),
        invoice=parse_invoice(data.get("invoice") or {}),
        source=source,
    )


def load_config(path: Path) -> LedgerConfig:
    return parse_config(load_yaml_file(path), source=str(path))
