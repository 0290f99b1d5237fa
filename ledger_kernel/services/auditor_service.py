"""
AuditorService -- append-only, hash-chained audit trail.

Responsibility:
    Records ledger and invoice actions as AuditEvent rows.  Every event's
    hash covers the previous event's hash within the same tenant, so any
    later edit is detectable by ``verify_chain``.  ``events_for`` reads the
    trail back, whole or for one entity.

Invariants enforced:
    - Audit sequence per tenant comes from SequenceService (locked counter).
    - Events are append-only (ORM listeners in db/immutability.py).

Non-goals:
    - Does NOT call ``session.commit()`` -- caller controls boundaries.
"""

import json
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.audit_event import AuditAction, AuditEvent
from ledger_kernel.services.sequence_service import SequenceService
from ledger_kernel.utils.hashing import canonicalize_json, hash_audit_event, hash_payload

logger = get_logger("services.auditor")


class AuditorService:
    """Creates audit events with hash-chain linkage."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence_service = SequenceService(session)

    def _get_last_hash(self, tenant_id: UUID) -> str | None:
        last_event = self._session.execute(
            select(AuditEvent)
            .where(AuditEvent.tenant_id == tenant_id)
            .order_by(AuditEvent.seq.desc())
            .limit(1)
        ).scalar_one_or_none()
        return last_event.hash if last_event else None

    def record(
        self,
        tenant_id: UUID,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        actor_id: UUID,
        payload: dict[str, Any] | None = None,
    ) -> AuditEvent:
        """
        Append one audit event for ``tenant_id``.

        Postconditions:
            - ``event.hash == H(entity_type, entity_id, action, payload_hash,
              prev_hash)`` with prev_hash the tenant's latest event hash.
        """
        seq = self._sequence_service.next_value(tenant_id, SequenceService.AUDIT_EVENT)
        prev_hash = self._get_last_hash(tenant_id)

        payload_data = payload or {}
        computed_payload_hash = hash_payload(payload_data)
        event_hash = hash_audit_event(
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action.value,
            payload_hash=computed_payload_hash,
            prev_hash=prev_hash,
        )

        audit_event = AuditEvent(
            tenant_id=tenant_id,
            seq=seq,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action.value,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            payload=_jsonable(payload_data),
            payload_hash=computed_payload_hash,
            prev_hash=prev_hash,
            hash=event_hash,
        )
        self._session.add(audit_event)
        self._session.flush()

        logger.info(
            "audit_event_created",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "action": action.value,
                "seq": seq,
            },
        )
        return audit_event

    def events_for(self, tenant_id: UUID, entity_id: UUID | None = None) -> list[AuditEvent]:
        """
        The tenant's audit trail in chain order, optionally narrowed to one
        entity (an account, journal entry or invoice id).
        """
        query = select(AuditEvent).where(AuditEvent.tenant_id == tenant_id)
        if entity_id is not None:
            query = query.where(AuditEvent.entity_id == entity_id)
        return list(self._session.execute(query.order_by(AuditEvent.seq)).scalars())

    def verify_chain(self, tenant_id: UUID) -> bool:
        """Recompute every hash of the tenant's chain; True iff all links hold."""
        events = self.events_for(tenant_id)

        prev_hash = None
        for event in events:
            expected = hash_audit_event(
                entity_type=event.entity_type,
                entity_id=str(event.entity_id),
                action=AuditAction(event.action).value,
                payload_hash=event.payload_hash,
                prev_hash=prev_hash,
            )
            if event.prev_hash != prev_hash or event.hash != expected:
                logger.error(
                    "audit_chain_broken",
                    extra={"seq": event.seq, "entity_id": str(event.entity_id)},
                )
                return False
            prev_hash = event.hash
        return True


def _jsonable(payload: dict[str, Any]) -> dict[str, Any]:
    """Stringify Decimal/UUID/date values so the JSON column accepts them."""
    return json.loads(canonicalize_json(payload))
