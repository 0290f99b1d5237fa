"""
General Ledger Module Service - chart of accounts and manual journals.

Wraps the kernel's ChartOfAccountsService and JournalEngine, which only
flush, with the commit/rollback boundary.  Also the place that turns
configuration (default chart, role bindings, tolerance) into kernel
objects.

Usage:
    gl = GeneralLedgerService(session)
    gl.seed_default_chart(context)
    entry_id = gl.record_entry(context, header, [LineSpec.dr(...), LineSpec.cr(...)])
    gl.void_entry(context, entry_id, reason="duplicate")
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from typing import TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_config import LedgerConfig, get_active_config
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import AccountInfo, AccountSpec, EntryHeader, LineSpec
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.audit_event import AuditEvent
from ledger_kernel.models.journal import JournalEntryStatus
from ledger_kernel.services.account_resolver import CoaAccountResolver
from ledger_kernel.services.auditor_service import AuditorService
from ledger_kernel.services.coa_service import ChartOfAccountsService
from ledger_modules._posting_helpers import build_journal_engine

logger = get_logger("modules.gl.service")

T = TypeVar("T")


class GeneralLedgerService:
    """Transaction-owning facade over the chart of accounts and journal."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        self._session = session
        self._config = config or get_active_config()
        self._coa = ChartOfAccountsService(session, clock)
        self._engine = build_journal_engine(session, self._config, clock)
        self._auditor = AuditorService(session, clock)

    def _in_transaction(self, operation: Callable[..., T], *args, **kwargs) -> T:
        try:
            result = operation(*args, **kwargs)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        return result

    def account_resolver(self) -> CoaAccountResolver:
        """Resolver bound to the configured account roles."""
        return CoaAccountResolver(self._session, self._config.account_roles)

    # =========================================================================
    # Chart of accounts
    # =========================================================================

    def seed_default_chart(self, context: TenantContext) -> list[AccountInfo]:
        """Create the configured default chart; accounts already present are kept."""
        return self._in_transaction(
            self._coa.seed_default_chart, context, self._config.chart_of_accounts
        )

    def add_account(self, context: TenantContext, spec: AccountSpec) -> AccountInfo:
        return self._in_transaction(self._coa.add_account, context, spec)

    def change_code(self, context: TenantContext, code: str, new_code: str) -> AccountInfo:
        return self._in_transaction(self._coa.change_code, context, code, new_code)

    def delete_account(self, context: TenantContext, code: str) -> None:
        self._in_transaction(self._coa.delete_account, context, code)

    def list_accounts(self, context: TenantContext) -> list[AccountInfo]:
        return self._coa.list_accounts(context)

    # =========================================================================
    # Journal
    # =========================================================================

    def record_entry(
        self,
        context: TenantContext,
        header: EntryHeader,
        lines: Sequence[LineSpec],
        status: JournalEntryStatus = JournalEntryStatus.POSTED,
        idempotency_key: str | None = None,
    ) -> UUID:
        return self._in_transaction(
            self._engine.create_entry,
            context,
            header,
            lines,
            status=status,
            idempotency_key=idempotency_key,
        )

    def post_draft(self, context: TenantContext, entry_id: UUID) -> None:
        self._in_transaction(self._engine.post_entry, context, entry_id)

    def delete_draft(self, context: TenantContext, entry_id: UUID) -> None:
        self._in_transaction(self._engine.delete_draft, context, entry_id)

    def void_entry(
        self,
        context: TenantContext,
        entry_id: UUID,
        reason: str | None = None,
        reversal_date: date | None = None,
    ) -> UUID:
        return self._in_transaction(
            self._engine.void_entry,
            context,
            entry_id,
            reason=reason,
            reversal_date=reversal_date,
        )

    # =========================================================================
    # Audit trail
    # =========================================================================

    def audit_log(self, context: TenantContext, entity_id: UUID | None = None) -> list[AuditEvent]:
        """Audit events for the tenant, oldest first; read-only."""
        return self._auditor.events_for(context.tenant_id, entity_id)
