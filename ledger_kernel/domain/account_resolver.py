"""
AccountResolver -- typed capability for role -> COA account lookup.

Posting adapters never hard-code account codes.  They name the ROLE an
account plays (``accounts_receivable``, ``vat_output`` ...) and ask an
injected resolver for the concrete account.  A role or code with no
account in the tenant's chart raises ``MissingAccountError`` -- this is
fatal for that posting and is never retried silently.

Two implementations:
    - ``StaticAccountResolver`` (here): pure, in-memory; for tests and for
      callers that already hold the chart.
    - ``CoaAccountResolver`` (services/account_resolver.py): reads the
      tenant's accounts table.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Protocol
from uuid import UUID

from ledger_kernel.exceptions import MissingAccountError
from ledger_kernel.models.account import AccountType


class AccountRole(str, Enum):
    """Account roles the posting adapters depend on."""

    CASH = "cash"
    BANK = "bank"
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    INVENTORY = "inventory"
    FIXED_ASSETS = "fixed_assets"
    VAT_OUTPUT = "vat_output"
    VAT_INPUT = "vat_input"
    SALES_REVENUE = "sales_revenue"
    PRODUCTION_OFFSET = "production_offset"
    SALARIES_EXPENSE = "salaries_expense"
    GENERAL_EXPENSE = "general_expense"


@dataclass(frozen=True)
class ResolvedAccount:
    account_id: UUID
    code: str
    name: str
    account_type: AccountType


class AccountResolver(Protocol):
    """Resolve roles and codes to accounts of one tenant."""

    def code_for(self, role: AccountRole | str) -> str:
        """Account code bound to ``role``.  Raises MissingAccountError if unbound."""
        ...

    def resolve_code(self, tenant_id: UUID, code: str, role: str | None = None) -> ResolvedAccount:
        """Account with ``code`` in the tenant's chart.  Raises MissingAccountError."""
        ...


def _role_value(role: AccountRole | str) -> str:
    return role.value if isinstance(role, AccountRole) else role


class StaticAccountResolver:
    """
    In-memory resolver over a fixed role binding and account list.

    Accounts are shared by every tenant; use it where the chart is known
    up front.
    """

    def __init__(
        self,
        role_bindings: Mapping[str, str],
        accounts: Mapping[str, ResolvedAccount],
    ):
        self._bindings = {_role_value(k): v for k, v in role_bindings.items()}
        self._accounts = dict(accounts)

    def code_for(self, role: AccountRole | str) -> str:
        role_name = _role_value(role)
        code = self._bindings.get(role_name)
        if code is None:
            raise MissingAccountError(account_code=f"<unbound:{role_name}>", role=role_name)
        return code

    def resolve_code(self, tenant_id: UUID, code: str, role: str | None = None) -> ResolvedAccount:
        account = self._accounts.get(code)
        if account is None:
            raise MissingAccountError(account_code=code, role=role)
        return account


def resolve_role(
    resolver: AccountResolver,
    tenant_id: UUID,
    role: AccountRole | str,
) -> ResolvedAccount:
    """Role -> code -> account, raising MissingAccountError at either step."""
    role_name = _role_value(role)
    return resolver.resolve_code(tenant_id, resolver.code_for(role_name), role=role_name)
