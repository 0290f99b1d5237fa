"""
Audit chain tests.

Every account, journal and invoice action appends one hash-chained event
per tenant.  verify_chain recomputes the links.
"""

from uuid import uuid4

from sqlalchemy import select, update

from ledger_kernel.domain.dtos import LineSpec
from ledger_kernel.models.audit_event import AuditAction, AuditEvent
from ledger_kernel.services.auditor_service import AuditorService


def _events(session, tenant_id):
    return session.execute(
        select(AuditEvent).where(AuditEvent.tenant_id == tenant_id).order_by(AuditEvent.seq)
    ).scalars().all()


class TestAuditChain:

    def test_seeding_records_one_event_per_account(self, session, seeded_chart, tenant_context):
        events = _events(session, tenant_context.tenant_id)
        assert len(events) == len(seeded_chart)
        assert {event.action for event in events} == {AuditAction.ACCOUNT_CREATED.value}

    def test_chain_links_previous_hash(self, session, seeded_chart, tenant_context):
        events = _events(session, tenant_context.tenant_id)
        assert events[0].is_genesis
        for previous, current in zip(events, events[1:]):
            assert current.prev_hash == previous.hash
            assert current.seq == previous.seq + 1

    def test_journal_actions_are_audited(self, gl, session, seeded_chart, tenant_context, header):
        entry_id = gl.record_entry(
            tenant_context, header(), [LineSpec.dr("1001", "9.00"), LineSpec.cr("4000", "9.00")]
        )
        gl.void_entry(tenant_context, entry_id, reason="test")

        actions = [event.action for event in _events(session, tenant_context.tenant_id)]
        assert actions[-2:] == [
            AuditAction.JOURNAL_CREATED.value,
            AuditAction.JOURNAL_VOIDED.value,
        ]

    def test_chain_verifies(self, gl, session, seeded_chart, tenant_context, header, deterministic_clock):
        gl.record_entry(
            tenant_context, header(), [LineSpec.dr("1001", "9.00"), LineSpec.cr("4000", "9.00")]
        )
        assert AuditorService(session, deterministic_clock).verify_chain(tenant_context.tenant_id)

    def test_tampering_is_detected(self, session, seeded_chart, tenant_context, deterministic_clock):
        # Bulk UPDATE bypasses the ORM listeners, like a direct SQL edit would
        session.execute(
            update(AuditEvent)
            .where(AuditEvent.tenant_id == tenant_context.tenant_id, AuditEvent.seq == 2)
            .values(payload_hash="0" * 64)
            .execution_options(synchronize_session=False)
        )
        session.expire_all()

        assert not AuditorService(session, deterministic_clock).verify_chain(
            tenant_context.tenant_id
        )

    def test_chains_are_per_tenant(self, gl, session, seeded_chart, make_context):
        other = make_context(tenant_id=uuid4())
        gl.seed_default_chart(other)

        other_events = _events(session, other.tenant_id)
        assert other_events[0].is_genesis
        assert other_events[0].seq == 1


class TestAuditLog:

    def test_events_in_chain_order(self, session, seeded_chart, tenant_context, deterministic_clock):
        auditor = AuditorService(session, deterministic_clock)
        events = auditor.events_for(tenant_context.tenant_id)

        assert [event.seq for event in events] == list(range(1, len(seeded_chart) + 1))
        assert events == _events(session, tenant_context.tenant_id)

    def test_filtered_to_one_entity(self, gl, seeded_chart, tenant_context, header):
        entry_id = gl.record_entry(
            tenant_context, header(), [LineSpec.dr("1001", "9.00"), LineSpec.cr("4000", "9.00")]
        )
        gl.void_entry(tenant_context, entry_id, reason="test")

        events = gl.audit_log(tenant_context, entity_id=entry_id)
        assert [event.action for event in events] == [
            AuditAction.JOURNAL_CREATED.value,
            AuditAction.JOURNAL_VOIDED.value,
        ]
        assert {event.entity_id for event in events} == {entry_id}
        assert events[0].seq < events[1].seq

    def test_other_tenants_not_visible(self, gl, seeded_chart, tenant_context, make_context):
        other = make_context(tenant_id=uuid4())
        assert gl.audit_log(other) == []
        assert len(gl.audit_log(tenant_context)) == len(seeded_chart)

    def test_unknown_entity_has_no_events(self, gl, seeded_chart, tenant_context):
        assert gl.audit_log(tenant_context, entity_id=uuid4()) == []
