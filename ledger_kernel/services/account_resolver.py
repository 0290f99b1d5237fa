"""
CoaAccountResolver -- AccountResolver backed by the tenant's accounts table.
"""

from collections.abc import Mapping
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.account_resolver import AccountRole, ResolvedAccount
from ledger_kernel.exceptions import MissingAccountError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, AccountType

logger = get_logger("services.account_resolver")


class CoaAccountResolver:
    """
    Resolve roles through a role -> code binding, then codes through the
    tenant's chart of accounts.

    Contract:
        Inactive accounts count as missing.  Every miss raises
        MissingAccountError(code) and is logged.
    """

    def __init__(self, session: Session, role_bindings: Mapping[str, str]):
        self._session = session
        self._bindings = {
            (k.value if isinstance(k, AccountRole) else k): v for k, v in role_bindings.items()
        }

    def code_for(self, role: AccountRole | str) -> str:
        role_name = role.value if isinstance(role, AccountRole) else role
        code = self._bindings.get(role_name)
        if code is None:
            logger.error("account_role_unbound", extra={"role": role_name})
            raise MissingAccountError(account_code=f"<unbound:{role_name}>", role=role_name)
        return code

    def resolve_code(self, tenant_id: UUID, code: str, role: str | None = None) -> ResolvedAccount:
        account = self._session.execute(
            select(Account).where(
                Account.tenant_id == tenant_id,
                Account.code == code,
                Account.is_active.is_(True),
            )
        ).scalar_one_or_none()

        if account is None:
            logger.error(
                "posting_blocked_missing_account",
                extra={"account_code": code, "role": role},
            )
            raise MissingAccountError(account_code=code, role=role)

        return ResolvedAccount(
            account_id=account.id,
            code=account.code,
            name=account.name,
            account_type=AccountType(account.account_type),
        )
