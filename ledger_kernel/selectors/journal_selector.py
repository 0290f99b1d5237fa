"""Read-only journal entry queries returning JournalEntryInfo DTOs."""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.dtos import JournalEntryInfo
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.exceptions import NotFoundError
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus
from ledger_kernel.selectors.base import BaseSelector


class JournalSelector(BaseSelector[JournalEntry]):
    """Lookups and listings of a tenant's journal entries."""

    def _scoped(self, context: TenantContext):
        return select(JournalEntry).where(JournalEntry.tenant_id == context.tenant_id)

    def get_entry(self, context: TenantContext, entry_id: UUID) -> JournalEntryInfo:
        entry = self.session.execute(
            self._scoped(context).where(JournalEntry.id == entry_id)
        ).scalar_one_or_none()
        if entry is None:
            raise NotFoundError("JournalEntry", str(entry_id))
        return entry.to_dto()

    def get_entry_by_number(self, context: TenantContext, entry_number: str) -> JournalEntryInfo:
        entry = self.session.execute(
            self._scoped(context).where(JournalEntry.entry_number == entry_number)
        ).scalar_one_or_none()
        if entry is None:
            raise NotFoundError("JournalEntry", entry_number)
        return entry.to_dto()

    def list_entries(
        self,
        context: TenantContext,
        status: JournalEntryStatus | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[JournalEntryInfo]:
        """Entries ordered by date then entry number; all filters optional."""
        query = self._scoped(context)
        if status is not None:
            query = query.where(JournalEntry.status == JournalEntryStatus(status).value)
        if start is not None:
            query = query.where(JournalEntry.entry_date >= start)
        if end is not None:
            query = query.where(JournalEntry.entry_date <= end)
        query = query.order_by(JournalEntry.entry_date, JournalEntry.entry_number)
        return [entry.to_dto() for entry in self.session.execute(query).scalars()]

    def entries_for_source(
        self,
        context: TenantContext,
        source_type: str,
        source_id: str,
    ) -> list[JournalEntryInfo]:
        query = (
            self._scoped(context)
            .where(
                JournalEntry.source_type == source_type,
                JournalEntry.source_id == str(source_id),
            )
            .order_by(JournalEntry.entry_number)
        )
        return [entry.to_dto() for entry in self.session.execute(query).scalars()]
