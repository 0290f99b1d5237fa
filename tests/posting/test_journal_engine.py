"""
JournalEngine tests.

Verifies:
- Balanced entries post; unbalanced, empty and malformed entries are
  rejected before anything is written
- The 0.01 balance tolerance
- Unknown account codes raise NotFoundError
- Draft lifecycle: post and delete
- Idempotency keys return the first entry
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from ledger_kernel.domain.dtos import LineSpec
from ledger_kernel.exceptions import (
    AlreadyPostedError,
    EmptyEntryError,
    InvalidLineError,
    NotFoundError,
    UnbalancedEntryError,
)
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus
from ledger_kernel.services.journal_engine import validate_entry_lines


def _entry_count(session) -> int:
    return session.execute(select(func.count()).select_from(JournalEntry)).scalar()


class TestValidateEntryLines:
    """Pure structural checks."""

    def test_balanced_lines_return_totals(self):
        debits, credits = validate_entry_lines(
            [LineSpec.dr("1001", "100.00"), LineSpec.cr("4000", "100.00")]
        )
        assert debits == Decimal("100.00")
        assert credits == Decimal("100.00")

    def test_empty_rejected(self):
        with pytest.raises(EmptyEntryError):
            validate_entry_lines([])

    def test_line_with_both_sides_rejected(self):
        with pytest.raises(InvalidLineError) as exc_info:
            validate_entry_lines(
                [LineSpec(account_code="1001", debit=Decimal("5"), credit=Decimal("5"))]
            )
        assert exc_info.value.line_index == 0

    def test_line_with_neither_side_rejected(self):
        with pytest.raises(InvalidLineError):
            validate_entry_lines([LineSpec(account_code="1001")])

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidLineError) as exc_info:
            validate_entry_lines(
                [LineSpec.dr("1001", "10.00"), LineSpec.cr("4000", "-10.00")]
            )
        assert exc_info.value.line_index == 1

    def test_difference_within_tolerance_accepted(self):
        validate_entry_lines([LineSpec.dr("1001", "100.00"), LineSpec.cr("4000", "99.99")])

    def test_difference_beyond_tolerance_rejected(self):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            validate_entry_lines([LineSpec.dr("1001", "100.00"), LineSpec.cr("4000", "99.98")])
        assert exc_info.value.debit_total == Decimal("100.00")
        assert exc_info.value.credit_total == Decimal("99.98")

    def test_float_amounts_refused(self):
        with pytest.raises(TypeError):
            LineSpec.dr("1001", 10.5)


class TestCreateEntry:

    def test_balanced_entry_is_posted(
        self, gl, seeded_chart, tenant_context, header, journal_selector
    ):
        entry_id = gl.record_entry(
            tenant_context,
            header(description="Owner investment"),
            [LineSpec.dr("1002", "5000.00"), LineSpec.cr("3000", "5000.00")],
        )

        entry = journal_selector.get_entry(tenant_context, entry_id)
        assert entry.status == JournalEntryStatus.POSTED
        assert entry.entry_number == "JE-000001"
        assert len(entry.lines) == 2
        assert entry.total_debits == entry.total_credits == Decimal("5000.00")
        assert entry.posted_at is not None

    def test_entry_numbers_are_sequential(self, gl, seeded_chart, tenant_context, header, journal_selector):
        lines = [LineSpec.dr("1001", "10.00"), LineSpec.cr("4000", "10.00")]
        first = gl.record_entry(tenant_context, header(), lines)
        second = gl.record_entry(tenant_context, header(), lines)

        numbers = [
            journal_selector.get_entry(tenant_context, entry_id).entry_number
            for entry_id in (first, second)
        ]
        assert numbers == ["JE-000001", "JE-000002"]

    def test_multi_line_entry(self, gl, seeded_chart, tenant_context, header, journal_selector):
        entry_id = gl.record_entry(
            tenant_context,
            header(),
            [
                LineSpec.dr("5200", "1000.00"),
                LineSpec.dr("2101", "150.00"),
                LineSpec.cr("1002", "1150.00"),
            ],
        )
        entry = journal_selector.get_entry(tenant_context, entry_id)
        assert [line.line_seq for line in entry.lines] == [0, 1, 2]

    def test_unbalanced_entry_writes_nothing(self, gl, seeded_chart, tenant_context, header, session):
        before = _entry_count(session)
        with pytest.raises(UnbalancedEntryError):
            gl.record_entry(
                tenant_context,
                header(),
                [LineSpec.dr("1001", "100.00"), LineSpec.cr("4000", "90.00")],
            )
        assert _entry_count(session) == before

    def test_empty_entry_rejected(self, gl, seeded_chart, tenant_context, header):
        with pytest.raises(EmptyEntryError):
            gl.record_entry(tenant_context, header(), [])

    def test_unknown_account_raises_not_found(self, gl, seeded_chart, tenant_context, header, session):
        before = _entry_count(session)
        with pytest.raises(NotFoundError) as exc_info:
            gl.record_entry(
                tenant_context,
                header(),
                [LineSpec.dr("9999", "10.00"), LineSpec.cr("4000", "10.00")],
            )
        assert exc_info.value.entity_type == "Account"
        assert exc_info.value.entity_id == "9999"
        assert _entry_count(session) == before

    def test_accounts_of_another_tenant_are_invisible(
        self, gl, seeded_chart, make_context, header
    ):
        stranger = make_context(tenant_id=uuid4())
        with pytest.raises(NotFoundError):
            gl.record_entry(
                stranger,
                header(),
                [LineSpec.dr("1001", "10.00"), LineSpec.cr("4000", "10.00")],
            )

    def test_cannot_create_voided_entry(self, gl, seeded_chart, tenant_context, header):
        with pytest.raises(ValueError):
            gl.record_entry(
                tenant_context,
                header(),
                [LineSpec.dr("1001", "10.00"), LineSpec.cr("4000", "10.00")],
                status=JournalEntryStatus.VOIDED,
            )


class TestIdempotency:

    def test_same_key_returns_first_entry(self, gl, seeded_chart, tenant_context, header, session):
        lines = [LineSpec.dr("1001", "25.00"), LineSpec.cr("4000", "25.00")]
        first = gl.record_entry(tenant_context, header(), lines, idempotency_key="pos:42")
        count = _entry_count(session)

        second = gl.record_entry(tenant_context, header(), lines, idempotency_key="pos:42")

        assert second == first
        assert _entry_count(session) == count

    def test_keys_are_scoped_per_tenant(self, gl, tenant_context, make_context, header):
        other = make_context(tenant_id=uuid4())
        gl.seed_default_chart(tenant_context)
        gl.seed_default_chart(other)
        lines = [LineSpec.dr("1001", "25.00"), LineSpec.cr("4000", "25.00")]

        first = gl.record_entry(tenant_context, header(), lines, idempotency_key="shared")
        second = gl.record_entry(other, header(), lines, idempotency_key="shared")

        assert first != second


class TestDrafts:

    def test_draft_then_post(self, gl, seeded_chart, tenant_context, header, journal_selector):
        entry_id = gl.record_entry(
            tenant_context,
            header(),
            [LineSpec.dr("1001", "40.00"), LineSpec.cr("4000", "40.00")],
            status=JournalEntryStatus.DRAFT,
        )
        assert journal_selector.get_entry(tenant_context, entry_id).status == JournalEntryStatus.DRAFT

        gl.post_draft(tenant_context, entry_id)

        entry = journal_selector.get_entry(tenant_context, entry_id)
        assert entry.status == JournalEntryStatus.POSTED
        assert entry.posted_at is not None

    def test_posting_a_posted_entry_fails(self, gl, seeded_chart, tenant_context, header):
        entry_id = gl.record_entry(
            tenant_context,
            header(),
            [LineSpec.dr("1001", "40.00"), LineSpec.cr("4000", "40.00")],
        )
        with pytest.raises(AlreadyPostedError):
            gl.post_draft(tenant_context, entry_id)

    def test_delete_draft(self, gl, seeded_chart, tenant_context, header, journal_selector):
        entry_id = gl.record_entry(
            tenant_context,
            header(),
            [LineSpec.dr("1001", "40.00"), LineSpec.cr("4000", "40.00")],
            status=JournalEntryStatus.DRAFT,
        )
        gl.delete_draft(tenant_context, entry_id)

        with pytest.raises(NotFoundError):
            journal_selector.get_entry(tenant_context, entry_id)

    def test_delete_posted_entry_refused(self, gl, seeded_chart, tenant_context, header):
        entry_id = gl.record_entry(
            tenant_context,
            header(),
            [LineSpec.dr("1001", "40.00"), LineSpec.cr("4000", "40.00")],
        )
        with pytest.raises(AlreadyPostedError):
            gl.delete_draft(tenant_context, entry_id)

    def test_drafts_do_not_reach_the_trial_balance(
        self, gl, seeded_chart, tenant_context, header, ledger_selector
    ):
        gl.record_entry(
            tenant_context,
            header(),
            [LineSpec.dr("1001", "40.00"), LineSpec.cr("4000", "40.00")],
            status=JournalEntryStatus.DRAFT,
        )
        rows = {row.code: row for row in ledger_selector.trial_balance(tenant_context)}
        assert rows["1001"].total_debit == Decimal("0")
        assert rows["4000"].total_credit == Decimal("0")

    def test_post_unknown_entry(self, gl, seeded_chart, tenant_context):
        with pytest.raises(NotFoundError):
            gl.post_draft(tenant_context, uuid4())


class TestListing:

    def test_list_by_status_and_date(self, gl, seeded_chart, tenant_context, header, journal_selector):
        lines = [LineSpec.dr("1001", "10.00"), LineSpec.cr("4000", "10.00")]
        gl.record_entry(tenant_context, header(entry_date=date(2024, 1, 10)), lines)
        gl.record_entry(tenant_context, header(entry_date=date(2024, 2, 10)), lines)
        gl.record_entry(
            tenant_context,
            header(entry_date=date(2024, 2, 11)),
            lines,
            status=JournalEntryStatus.DRAFT,
        )

        february = journal_selector.list_entries(
            tenant_context, start=date(2024, 2, 1), end=date(2024, 2, 29)
        )
        posted = journal_selector.list_entries(tenant_context, status=JournalEntryStatus.POSTED)

        assert len(february) == 2
        assert len(posted) == 2

    def test_get_by_number(self, gl, seeded_chart, tenant_context, header, journal_selector):
        entry_id = gl.record_entry(
            tenant_context, header(), [LineSpec.dr("1001", "1.00"), LineSpec.cr("4000", "1.00")]
        )
        entry = journal_selector.get_entry_by_number(tenant_context, "JE-000001")
        assert entry.id == entry_id
