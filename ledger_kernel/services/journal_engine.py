"""
JournalEngine -- validated, atomic persistence of journal entries.

Responsibility:
    Accepts a proposed entry (header + lines against the tenant's chart of
    accounts), validates it, and writes header and lines as one atomic
    unit.  Also posts drafts, deletes drafts, and voids posted entries by
    writing a compensating reversal.

Architecture position:
    Kernel > Services -- the single write path for journal data.  Posting
    adapters in ledger_modules call ``create_entry``; nothing else inserts
    JournalEntry rows.

Invariants enforced:
    - A created entry has at least one line.
    - Every line has a non-zero debit XOR a non-zero credit, neither negative.
    - Every line references an account of the tenant's chart.
    - |sum(debit) - sum(credit)| <= balance_tolerance (0.01 by default).
    - Header and lines are written inside one SAVEPOINT: either every row is
      flushed or none is.  A crash between line inserts cannot leave a
      header without its full line set.
    - Voiding never edits or deletes the original's lines; it adds a
      reversal entry with debit/credit swapped and flips the original to
      VOIDED (the only change db/immutability.py allows on a posted entry).

Failure modes:
    - EmptyEntryError, InvalidLineError, UnbalancedEntryError: proposal
      rejected before anything is written.
    - NotFoundError: unknown account code; unknown or already-voided entry.
    - EntryNotPostedError: void of a draft.
    - AlreadyPostedError: post of an entry that is not a draft.
    - VoidedSourceError: idempotency key of an entry that was voided.
    - Store errors (OperationalError, timeouts) propagate unchanged.

Non-goals:
    - Does NOT call ``session.commit()``; the caller owns the transaction.
    - Does NOT retry; a failed attempt leaves no partial state and the
      caller may simply re-submit.
"""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import EntryHeader, LineSpec
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.domain.values import CENT, ZERO
from ledger_kernel.exceptions import (
    AlreadyPostedError,
    EmptyEntryError,
    EntryNotPostedError,
    InvalidLineError,
    NotFoundError,
    UnbalancedEntryError,
    VoidedSourceError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.audit_event import AuditAction
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine
from ledger_kernel.services.auditor_service import AuditorService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal_engine")

DEFAULT_BALANCE_TOLERANCE = CENT
VOID_SOURCE_TYPE = "journal_void"


def validate_entry_lines(
    lines: Sequence[LineSpec],
    tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
) -> tuple[Decimal, Decimal]:
    """
    Check the structural rules of a proposed entry.

    Pure function: no I/O.  Account existence is checked separately by
    JournalEngine because it needs the tenant's chart.

    Returns:
        (debit_total, credit_total)

    Raises:
        EmptyEntryError: no lines.
        InvalidLineError: a line with a negative amount, with both sides set,
            or with neither side set.
        UnbalancedEntryError: totals differ by more than ``tolerance``.
    """
    if not lines:
        raise EmptyEntryError()

    debit_total = ZERO
    credit_total = ZERO
    for index, line in enumerate(lines):
        if line.debit < ZERO or line.credit < ZERO:
            raise InvalidLineError(index, "amounts must not be negative")
        if line.debit > ZERO and line.credit > ZERO:
            raise InvalidLineError(index, "line has both a debit and a credit")
        if line.debit == ZERO and line.credit == ZERO:
            raise InvalidLineError(index, "line has neither a debit nor a credit")
        debit_total += line.debit
        credit_total += line.credit

    if abs(debit_total - credit_total) > tolerance:
        raise UnbalancedEntryError(debit_total=debit_total, credit_total=credit_total)

    return debit_total, credit_total


class JournalEngine(BaseService[JournalEntry]):
    """
    Validates and persists journal entries.

    Contract:
        ``create_entry`` either returns the id of a fully-written entry or
        raises without leaving any row behind.  ``void_entry`` returns the
        id of the new reversal entry.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        balance_tolerance: Decimal = DEFAULT_BALANCE_TOLERANCE,
        entry_number_prefix: str = "JE",
    ):
        super().__init__(session, clock)
        self._tolerance = balance_tolerance
        self._prefix = entry_number_prefix
        self._sequences = SequenceService(session)
        self._auditor = AuditorService(session, self.clock)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _find_by_idempotency_key(self, tenant_id: UUID, key: str) -> JournalEntry | None:
        return self.session.execute(
            select(JournalEntry).where(
                JournalEntry.tenant_id == tenant_id,
                JournalEntry.idempotency_key == key,
            )
        ).scalar_one_or_none()

    @staticmethod
    def _reject_voided(existing: JournalEntry, key: str) -> None:
        if existing.is_voided:
            logger.warning(
                "journal_entry_source_voided",
                extra={"entry_id": str(existing.id), "idempotency_key": key},
            )
            raise VoidedSourceError(key, str(existing.id))

    def _accounts_by_code(self, tenant_id: UUID, codes: set[str]) -> dict[str, Account]:
        rows = self.session.execute(
            select(Account).where(Account.tenant_id == tenant_id, Account.code.in_(codes))
        ).scalars()
        return {account.code: account for account in rows}

    def _locked_entry(self, context: TenantContext, entry_id: UUID) -> JournalEntry | None:
        return self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.id == entry_id, JournalEntry.tenant_id == context.tenant_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    # ------------------------------------------------------------------
    # create_entry
    # ------------------------------------------------------------------

    def create_entry(
        self,
        context: TenantContext,
        header: EntryHeader,
        lines: Sequence[LineSpec],
        status: JournalEntryStatus = JournalEntryStatus.POSTED,
        idempotency_key: str | None = None,
    ) -> UUID:
        """
        Validate and persist a journal entry.

        Preconditions:
            - ``status`` is POSTED (default) or DRAFT.
        Postconditions:
            - On success the header and every line are flushed inside the
              caller's transaction and the entry id is returned.
            - If ``idempotency_key`` is already used by an entry of the
              tenant, that entry's id is returned and nothing is written.
              If that entry has been voided, VoidedSourceError is raised.
            - On failure nothing is written.
        """
        status = JournalEntryStatus(status)
        if status == JournalEntryStatus.VOIDED:
            raise ValueError("Entries cannot be created as voided")

        with context.log_scope():
            if idempotency_key is not None:
                existing = self._find_by_idempotency_key(context.tenant_id, idempotency_key)
                if existing is not None:
                    self._reject_voided(existing, idempotency_key)
                    logger.info(
                        "journal_entry_idempotent_hit",
                        extra={
                            "entry_id": str(existing.id),
                            "idempotency_key": idempotency_key,
                        },
                    )
                    return existing.id

            try:
                debit_total, credit_total = validate_entry_lines(lines, self._tolerance)
            except (EmptyEntryError, InvalidLineError, UnbalancedEntryError):
                logger.warning(
                    "journal_entry_rejected",
                    extra={"source_type": header.source_type, "line_count": len(lines)},
                    exc_info=True,
                )
                raise

            codes = {line.account_code for line in lines}
            accounts = self._accounts_by_code(context.tenant_id, codes)
            missing = sorted(codes - accounts.keys())
            if missing:
                logger.warning("journal_entry_unknown_account", extra={"account_codes": missing})
                raise NotFoundError("Account", missing[0])

            try:
                with self.session.begin_nested():
                    entry = self._write_entry(
                        context, header, lines, accounts, status, idempotency_key
                    )
            except IntegrityError:
                # Lost a race on the same idempotency key
                if idempotency_key is not None:
                    existing = self._find_by_idempotency_key(context.tenant_id, idempotency_key)
                    if existing is not None:
                        self._reject_voided(existing, idempotency_key)
                        return existing.id
                raise

            logger.info(
                "journal_entry_created",
                extra={
                    "entry_id": str(entry.id),
                    "entry_number": entry.entry_number,
                    "status": status.value,
                    "debit_total": debit_total,
                    "credit_total": credit_total,
                    "line_count": len(lines),
                    "source_type": header.source_type,
                },
            )
            return entry.id

    def _write_entry(
        self,
        context: TenantContext,
        header: EntryHeader,
        lines: Sequence[LineSpec],
        accounts: dict[str, Account],
        status: JournalEntryStatus,
        idempotency_key: str | None,
    ) -> JournalEntry:
        now = self.clock.now()
        entry = JournalEntry(
            tenant_id=context.tenant_id,
            entry_number=self._sequences.next_number(
                context.tenant_id, SequenceService.JOURNAL_ENTRY, self._prefix
            ),
            entry_date=header.entry_date,
            reference=header.reference,
            description=header.description,
            status=status,
            idempotency_key=idempotency_key,
            source_type=header.source_type,
            source_id=header.source_id,
            posted_at=now if status == JournalEntryStatus.POSTED else None,
            created_by_id=context.actor_id,
        )
        for seq, spec in enumerate(lines):
            entry.lines.append(
                JournalLine(
                    tenant_id=context.tenant_id,
                    account_id=accounts[spec.account_code].id,
                    description=spec.description,
                    debit=spec.debit,
                    credit=spec.credit,
                    line_seq=seq,
                    created_by_id=context.actor_id,
                )
            )
        self.session.add(entry)
        self.session.flush()

        self._auditor.record(
            tenant_id=context.tenant_id,
            entity_type="JournalEntry",
            entity_id=entry.id,
            action=AuditAction.JOURNAL_CREATED,
            actor_id=context.actor_id,
            payload={
                "entry_number": entry.entry_number,
                "status": status.value,
                "lines": [
                    {"account": spec.account_code, "debit": spec.debit, "credit": spec.credit}
                    for spec in lines
                ],
            },
        )
        return entry

    # ------------------------------------------------------------------
    # Draft handling
    # ------------------------------------------------------------------

    def post_entry(self, context: TenantContext, entry_id: UUID) -> UUID:
        """
        Move a DRAFT entry to POSTED after re-checking its balance.

        Raises:
            NotFoundError: no such entry for the tenant.
            AlreadyPostedError: entry is not a draft.
        """
        with context.log_scope(entry_id=str(entry_id)):
            entry = self._locked_entry(context, entry_id)
            if entry is None:
                raise NotFoundError("JournalEntry", str(entry_id))
            if entry.status != JournalEntryStatus.DRAFT:
                raise AlreadyPostedError(str(entry_id), JournalEntryStatus(entry.status).value)

            codes = self._codes_for(entry)
            validate_entry_lines(
                [
                    LineSpec(account_code=codes[line.account_id], debit=line.debit, credit=line.credit)
                    for line in entry.lines
                ],
                self._tolerance,
            )

            with self.session.begin_nested():
                entry.status = JournalEntryStatus.POSTED
                entry.posted_at = self.clock.now()
                entry.updated_by_id = context.actor_id
                self.session.flush()
                self._auditor.record(
                    tenant_id=context.tenant_id,
                    entity_type="JournalEntry",
                    entity_id=entry.id,
                    action=AuditAction.JOURNAL_POSTED,
                    actor_id=context.actor_id,
                    payload={"entry_number": entry.entry_number},
                )

            logger.info(
                "journal_entry_posted",
                extra={"entry_number": entry.entry_number},
            )
            return entry.id

    def delete_draft(self, context: TenantContext, entry_id: UUID) -> None:
        """Delete a DRAFT entry together with its lines."""
        with context.log_scope(entry_id=str(entry_id)):
            entry = self._locked_entry(context, entry_id)
            if entry is None:
                raise NotFoundError("JournalEntry", str(entry_id))
            if entry.status != JournalEntryStatus.DRAFT:
                raise AlreadyPostedError(str(entry_id), JournalEntryStatus(entry.status).value)

            with self.session.begin_nested():
                entry_number = entry.entry_number
                self.session.delete(entry)
                self.session.flush()
                self._auditor.record(
                    tenant_id=context.tenant_id,
                    entity_type="JournalEntry",
                    entity_id=entry_id,
                    action=AuditAction.JOURNAL_DRAFT_DELETED,
                    actor_id=context.actor_id,
                    payload={"entry_number": entry_number},
                )

            logger.info("journal_draft_deleted", extra={"entry_number": entry_number})

    def _codes_for(self, entry: JournalEntry) -> dict[UUID, str]:
        ids = {line.account_id for line in entry.lines}
        rows = self.session.execute(select(Account.id, Account.code).where(Account.id.in_(ids)))
        return {row.id: row.code for row in rows}

    # ------------------------------------------------------------------
    # void_entry
    # ------------------------------------------------------------------

    def void_entry(
        self,
        context: TenantContext,
        entry_id: UUID,
        reason: str | None = None,
        reversal_date: date | None = None,
    ) -> UUID:
        """
        Void a POSTED entry by writing its compensating reversal.

        The reversal is dated like the original unless ``reversal_date`` is
        given, so an original and its reversal net to zero in any date range.

        Postconditions:
            - A new POSTED entry exists whose lines mirror the original's
              with debit and credit swapped, ``reversal_of_id`` = original.
            - The original is VOIDED; its lines are untouched.

        Raises:
            NotFoundError: entry missing, or already voided.
            EntryNotPostedError: entry is a draft.
        """
        with context.log_scope(entry_id=str(entry_id)):
            original = self._locked_entry(context, entry_id)
            if original is None:
                raise NotFoundError("JournalEntry", str(entry_id))
            if original.status == JournalEntryStatus.VOIDED:
                raise NotFoundError("JournalEntry", str(entry_id), reason="already voided")
            if original.status != JournalEntryStatus.POSTED:
                raise EntryNotPostedError(str(entry_id), JournalEntryStatus(original.status).value)

            now = self.clock.now()
            description = f"Void of {original.entry_number}"
            if reason:
                description = f"{description}: {reason}"

            with self.session.begin_nested():
                reversal = JournalEntry(
                    tenant_id=context.tenant_id,
                    entry_number=self._sequences.next_number(
                        context.tenant_id, SequenceService.JOURNAL_ENTRY, self._prefix
                    ),
                    entry_date=reversal_date or original.entry_date,
                    reference=original.entry_number,
                    description=description,
                    status=JournalEntryStatus.POSTED,
                    reversal_of_id=original.id,
                    idempotency_key=f"void:{original.id}",
                    source_type=VOID_SOURCE_TYPE,
                    source_id=str(original.id),
                    posted_at=now,
                    created_by_id=context.actor_id,
                )
                for line in original.lines:
                    reversal.lines.append(
                        JournalLine(
                            tenant_id=context.tenant_id,
                            account_id=line.account_id,
                            description=line.description,
                            debit=line.credit,
                            credit=line.debit,
                            line_seq=line.line_seq,
                            created_by_id=context.actor_id,
                        )
                    )
                self.session.add(reversal)

                original.status = JournalEntryStatus.VOIDED
                original.voided_at = now
                original.voided_by_id = context.actor_id
                original.updated_by_id = context.actor_id
                self.session.flush()

                self._auditor.record(
                    tenant_id=context.tenant_id,
                    entity_type="JournalEntry",
                    entity_id=original.id,
                    action=AuditAction.JOURNAL_VOIDED,
                    actor_id=context.actor_id,
                    payload={
                        "entry_number": original.entry_number,
                        "reversal_entry_number": reversal.entry_number,
                        "reason": reason,
                    },
                )

            logger.info(
                "journal_entry_voided",
                extra={
                    "entry_number": original.entry_number,
                    "reversal_id": str(reversal.id),
                    "reversal_entry_number": reversal.entry_number,
                    "reason": reason,
                },
            )
            return reversal.id
