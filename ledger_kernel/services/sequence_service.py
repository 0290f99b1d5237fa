"""
SequenceService -- monotonic, tenant-scoped sequence allocation.

Responsibility:
    Supplies human-readable document numbers (journal entries, invoices)
    and audit sequence values.  Each (tenant, name) pair has one counter
    row that is locked with ``SELECT ... FOR UPDATE`` while it is
    incremented, so concurrent postings never receive the same number.

Invariants enforced:
    - Sequences are strictly monotonic per (tenant, name).  The
      aggregate-max-plus-one pattern is never used; the locked counter row
      is the sole source of truth.
    - The increment is transactional: it becomes visible only when the
      caller's transaction commits, and a rollback returns the value.

Failure modes:
    - IntegrityError on a concurrent first-use race is absorbed with a
      savepoint rollback and a re-read of the winning row.
"""

from uuid import UUID

from sqlalchemy import BigInteger, String, UniqueConstraint, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from ledger_kernel.db.base import Base, UUIDString
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row is a named sequence for one tenant with its current value.
    """

    __tablename__ = "sequence_counters"

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_sequence_tenant_name"),
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    # e.g. "journal_entry", "tax_invoice", "audit_event"
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    JOURNAL_ENTRY = "journal_entry"
    TAX_INVOICE = "tax_invoice"
    AUDIT_EVENT = "audit_event"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, tenant_id: UUID, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(
                SequenceCounter.tenant_id == tenant_id,
                SequenceCounter.name == sequence_name,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, tenant_id: UUID, sequence_name: str) -> int:
        """
        Get the next value for a named sequence of a tenant.

        Postconditions:
            - Returns an integer > 0, strictly greater than any value
              previously returned for (tenant_id, sequence_name).
            - The counter row stays locked until the transaction completes.
        """
        counter = self._locked_counter(tenant_id, sequence_name)

        if counter is None:
            # First use; another transaction may be creating it right now
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(
                    tenant_id=tenant_id, name=sequence_name, current_value=1
                )
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(tenant_id, sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()

        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def next_number(self, tenant_id: UUID, sequence_name: str, prefix: str, width: int = 6) -> str:
        """Formatted document number, e.g. ``JE-000042``."""
        return f"{prefix}-{self.next_value(tenant_id, sequence_name):0{width}d}"

    def current_value(self, tenant_id: UUID, sequence_name: str) -> int | None:
        counter = self._session.execute(
            select(SequenceCounter).where(
                SequenceCounter.tenant_id == tenant_id,
                SequenceCounter.name == sequence_name,
            )
        ).scalar_one_or_none()
        return counter.current_value if counter else None
