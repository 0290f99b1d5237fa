"""
ORM-level immutability tests.

Posted and voided journal entries, their lines and audit events cannot be
modified or deleted.  Referenced accounts keep their code; system accounts
cannot be deleted.  These checks run in ORM listeners, so they hold even
for code that bypasses the services.
"""

from decimal import Decimal

import pytest
from sqlalchemy import select

from ledger_kernel.domain.dtos import AccountSpec, LineSpec
from ledger_kernel.exceptions import (
    AccountReferencedError,
    ImmutabilityViolationError,
    SystemAccountError,
)
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.audit_event import AuditEvent
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus


@pytest.fixture
def posted_entry_id(gl, seeded_chart, tenant_context, header):
    return gl.record_entry(
        tenant_context,
        header(),
        [LineSpec.dr("1001", "75.00"), LineSpec.cr("4000", "75.00")],
    )


class TestJournalEntryImmutability:

    def test_posted_header_cannot_change(self, session, posted_entry_id):
        entry = session.get(JournalEntry, posted_entry_id)
        entry.description = "rewritten"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        session.rollback()
        assert exc_info.value.entity_type == "JournalEntry"

    def test_posted_line_amount_cannot_change(self, session, posted_entry_id):
        entry = session.get(JournalEntry, posted_entry_id)
        entry.lines[0].debit = Decimal("1.00")
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        session.rollback()
        assert exc_info.value.entity_type == "JournalLine"

    def test_posted_entry_cannot_be_deleted(self, session, posted_entry_id):
        entry = session.get(JournalEntry, posted_entry_id)
        session.delete(entry)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_posted_entry_cannot_return_to_draft(self, session, posted_entry_id):
        entry = session.get(JournalEntry, posted_entry_id)
        entry.status = JournalEntryStatus.DRAFT
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_voided_entry_is_frozen(self, gl, session, tenant_context, posted_entry_id):
        gl.void_entry(tenant_context, posted_entry_id)
        entry = session.get(JournalEntry, posted_entry_id)
        entry.reference = "late edit"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_draft_lines_remain_editable(self, gl, session, seeded_chart, tenant_context, header):
        draft_id = gl.record_entry(
            tenant_context,
            header(),
            [LineSpec.dr("1001", "10.00"), LineSpec.cr("4000", "10.00")],
            status=JournalEntryStatus.DRAFT,
        )
        entry = session.get(JournalEntry, draft_id)
        entry.description = "corrected"
        entry.lines[0].description = "corrected line"
        session.flush()
        assert entry.description == "corrected"


class TestAuditEventImmutability:

    def test_audit_event_cannot_be_updated(self, session, posted_entry_id):
        event = session.execute(select(AuditEvent).limit(1)).scalar_one()
        event.payload = {"tampered": True}
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_audit_event_cannot_be_deleted(self, session, posted_entry_id):
        event = session.execute(select(AuditEvent).limit(1)).scalar_one()
        session.delete(event)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()


class TestAccountImmutability:

    def _account(self, session, tenant_context, code) -> Account:
        return session.execute(
            select(Account).where(Account.tenant_id == tenant_context.tenant_id, Account.code == code)
        ).scalar_one()

    def test_referenced_code_cannot_change(self, session, tenant_context, posted_entry_id):
        account = self._account(session, tenant_context, "1001")
        account.code = "1009"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_referenced_account_name_can_change(self, session, tenant_context, posted_entry_id):
        account = self._account(session, tenant_context, "1001")
        account.name = "Main Till"
        session.flush()

    def test_system_account_cannot_be_deleted(self, session, tenant_context, seeded_chart):
        session.delete(self._account(session, tenant_context, "5400"))
        with pytest.raises(SystemAccountError):
            session.flush()
        session.rollback()

    def test_referenced_user_account_cannot_be_deleted(
        self, gl, session, seeded_chart, tenant_context, header
    ):
        gl.add_account(tenant_context, AccountSpec("1003", "Petty Cash", AccountType.ASSET))
        gl.record_entry(
            tenant_context,
            header(),
            [LineSpec.dr("1003", "5.00"), LineSpec.cr("4000", "5.00")],
        )
        session.delete(self._account(session, tenant_context, "1003"))
        with pytest.raises(AccountReferencedError):
            session.flush()
        session.rollback()
