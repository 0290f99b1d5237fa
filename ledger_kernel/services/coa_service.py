"""
ChartOfAccountsService -- maintenance of a tenant's chart of accounts.

Responsibility:
    Seeds the default (system) chart, adds accounts, renames codes and
    deletes accounts.  All writes are flushed inside the caller's
    transaction and recorded in the audit chain.

Invariants enforced:
    - (tenant, code) is unique.
    - A code cannot change once any journal line references the account
      (checked here and by db/immutability.py).
    - System accounts cannot be deleted; referenced accounts cannot be
      deleted.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import AccountInfo, AccountSpec
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.exceptions import (
    AccountReferencedError,
    DuplicateAccountCodeError,
    NotFoundError,
    SystemAccountError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.audit_event import AuditAction
from ledger_kernel.models.journal import JournalLine
from ledger_kernel.services.auditor_service import AuditorService
from ledger_kernel.services.base import BaseService

logger = get_logger("services.coa")


class ChartOfAccountsService(BaseService[Account]):
    """Creates and maintains Account rows for one session."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._auditor = AuditorService(session, self.clock)

    def _get(self, tenant_id: UUID, code: str) -> Account | None:
        return self.session.execute(
            select(Account).where(Account.tenant_id == tenant_id, Account.code == code)
        ).scalar_one_or_none()

    def _require(self, tenant_id: UUID, code: str) -> Account:
        account = self._get(tenant_id, code)
        if account is None:
            raise NotFoundError("Account", code)
        return account

    def _is_referenced(self, account_id: UUID) -> bool:
        return bool(
            self.session.execute(
                select(exists().where(JournalLine.account_id == account_id))
            ).scalar()
        )

    def get_by_code(self, context: TenantContext, code: str) -> AccountInfo:
        return self._require(context.tenant_id, code).to_dto()

    def list_accounts(self, context: TenantContext) -> list[AccountInfo]:
        rows = self.session.execute(
            select(Account).where(Account.tenant_id == context.tenant_id).order_by(Account.code)
        ).scalars()
        return [account.to_dto() for account in rows]

    def add_account(self, context: TenantContext, spec: AccountSpec) -> AccountInfo:
        """
        Create an account.

        Raises:
            DuplicateAccountCodeError: code already used by the tenant.
        """
        with context.log_scope():
            if self._get(context.tenant_id, spec.code) is not None:
                raise DuplicateAccountCodeError(spec.code)

            account = Account(
                tenant_id=context.tenant_id,
                code=spec.code,
                name=spec.name,
                account_type=AccountType(spec.account_type).value,
                is_system=spec.is_system,
                created_by_id=context.actor_id,
            )
            self.session.add(account)
            self.session.flush()
            self._auditor.record(
                tenant_id=context.tenant_id,
                entity_type="Account",
                entity_id=account.id,
                action=AuditAction.ACCOUNT_CREATED,
                actor_id=context.actor_id,
                payload={"code": spec.code, "type": account.account_type},
            )
            logger.info(
                "account_created",
                extra={"account_code": spec.code, "account_type": account.account_type},
            )
            return account.to_dto()

    def seed_default_chart(
        self,
        context: TenantContext,
        specs: Iterable[AccountSpec],
    ) -> list[AccountInfo]:
        """
        Create every account in ``specs`` that the tenant does not have yet.

        Idempotent: existing codes are left untouched.  Seeded accounts are
        system accounts.
        """
        created = []
        for spec in specs:
            if self._get(context.tenant_id, spec.code) is not None:
                continue
            created.append(
                self.add_account(
                    context,
                    AccountSpec(
                        code=spec.code,
                        name=spec.name,
                        account_type=spec.account_type,
                        is_system=True,
                    ),
                )
            )
        with context.log_scope():
            logger.info("chart_seeded", extra={"created_count": len(created)})
        return created

    def change_code(self, context: TenantContext, code: str, new_code: str) -> AccountInfo:
        """
        Rename an account code.

        Raises:
            NotFoundError: no account with ``code``.
            AccountReferencedError: account already used by journal lines.
            DuplicateAccountCodeError: ``new_code`` taken.
        """
        with context.log_scope():
            account = self._require(context.tenant_id, code)
            if self._is_referenced(account.id):
                raise AccountReferencedError(account_code=code, operation="change code of")
            if self._get(context.tenant_id, new_code) is not None:
                raise DuplicateAccountCodeError(new_code)

            account.code = new_code
            account.updated_by_id = context.actor_id
            self.session.flush()
            self._auditor.record(
                tenant_id=context.tenant_id,
                entity_type="Account",
                entity_id=account.id,
                action=AuditAction.ACCOUNT_CODE_CHANGED,
                actor_id=context.actor_id,
                payload={"old_code": code, "new_code": new_code},
            )
            logger.info("account_code_changed", extra={"old_code": code, "new_code": new_code})
            return account.to_dto()

    def delete_account(self, context: TenantContext, code: str) -> None:
        """
        Delete a non-system account that no journal line references.

        Raises:
            NotFoundError, SystemAccountError, AccountReferencedError.
        """
        with context.log_scope():
            account = self._require(context.tenant_id, code)
            if account.is_system:
                raise SystemAccountError(code)
            if self._is_referenced(account.id):
                raise AccountReferencedError(account_code=code, operation="delete")

            account_id = account.id
            self.session.delete(account)
            self.session.flush()
            self._auditor.record(
                tenant_id=context.tenant_id,
                entity_type="Account",
                entity_id=account_id,
                action=AuditAction.ACCOUNT_DELETED,
                actor_id=context.actor_id,
                payload={"code": code},
            )
            logger.info("account_deleted", extra={"account_code": code})
