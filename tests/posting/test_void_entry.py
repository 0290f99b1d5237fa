"""
Void (reversal) tests.

A void never edits the original's lines.  It writes a compensating
POSTED entry with debit and credit swapped and marks the original VOIDED;
together they net to zero.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import LineSpec
from ledger_kernel.exceptions import EntryNotPostedError, NotFoundError
from ledger_kernel.models.journal import JournalEntryStatus


@pytest.fixture
def posted_sale(gl, seeded_chart, tenant_context, header):
    return gl.record_entry(
        tenant_context,
        header(entry_date=date(2024, 3, 5), description="Cash sale"),
        [LineSpec.dr("1001", "300.00"), LineSpec.cr("4000", "300.00")],
    )


class TestVoidEntry:

    def test_reversal_swaps_each_line(self, gl, tenant_context, posted_sale, journal_selector):
        reversal_id = gl.void_entry(tenant_context, posted_sale, reason="keyed twice")

        original = journal_selector.get_entry(tenant_context, posted_sale)
        reversal = journal_selector.get_entry(tenant_context, reversal_id)

        assert original.status == JournalEntryStatus.VOIDED
        assert original.voided_at is not None
        assert reversal.status == JournalEntryStatus.POSTED
        assert reversal.reversal_of_id == posted_sale
        assert reversal.reference == original.entry_number
        assert "keyed twice" in reversal.description
        for before, after in zip(original.lines, reversal.lines):
            assert after.account_id == before.account_id
            assert after.debit == before.credit
            assert after.credit == before.debit

    def test_original_lines_untouched(self, gl, tenant_context, posted_sale, journal_selector):
        before = journal_selector.get_entry(tenant_context, posted_sale).lines
        gl.void_entry(tenant_context, posted_sale)
        after = journal_selector.get_entry(tenant_context, posted_sale).lines
        assert [(l.debit, l.credit) for l in after] == [(l.debit, l.credit) for l in before]

    def test_reversal_defaults_to_original_date(
        self, gl, tenant_context, posted_sale, journal_selector
    ):
        reversal_id = gl.void_entry(tenant_context, posted_sale)
        assert journal_selector.get_entry(tenant_context, reversal_id).entry_date == date(2024, 3, 5)

    def test_explicit_reversal_date(self, gl, tenant_context, posted_sale, journal_selector):
        reversal_id = gl.void_entry(tenant_context, posted_sale, reversal_date=date(2024, 4, 1))
        assert journal_selector.get_entry(tenant_context, reversal_id).entry_date == date(2024, 4, 1)

    def test_original_and_reversal_net_to_zero(
        self, gl, tenant_context, posted_sale, ledger_selector
    ):
        gl.void_entry(tenant_context, posted_sale)

        rows = {row.code: row for row in ledger_selector.trial_balance(tenant_context)}
        assert rows["1001"].balance == Decimal("0")
        assert rows["4000"].balance == Decimal("0")
        assert rows["1001"].total_debit == Decimal("300.00")
        assert rows["1001"].total_credit == Decimal("300.00")

    def test_second_void_reports_not_found(self, gl, tenant_context, posted_sale):
        gl.void_entry(tenant_context, posted_sale)
        with pytest.raises(NotFoundError) as exc_info:
            gl.void_entry(tenant_context, posted_sale)
        assert exc_info.value.reason == "already voided"

    def test_void_of_draft_refused(self, gl, seeded_chart, tenant_context, header):
        draft_id = gl.record_entry(
            tenant_context,
            header(),
            [LineSpec.dr("1001", "5.00"), LineSpec.cr("4000", "5.00")],
            status=JournalEntryStatus.DRAFT,
        )
        with pytest.raises(EntryNotPostedError):
            gl.void_entry(tenant_context, draft_id)

    def test_void_unknown_entry(self, gl, seeded_chart, tenant_context):
        with pytest.raises(NotFoundError):
            gl.void_entry(tenant_context, uuid4())

    def test_void_from_another_tenant_not_found(self, gl, make_context, posted_sale):
        with pytest.raises(NotFoundError):
            gl.void_entry(make_context(tenant_id=uuid4()), posted_sale)

    def test_reversal_is_linked_to_source(self, gl, tenant_context, posted_sale, journal_selector):
        reversal_id = gl.void_entry(tenant_context, posted_sale)
        linked = journal_selector.entries_for_source(tenant_context, "journal_void", str(posted_sale))
        assert [entry.id for entry in linked] == [reversal_id]
