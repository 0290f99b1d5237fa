"""
ORM-level immutability enforcement for posted ledger data.

Posted journal entries cannot be modified, only voided by a compensating
reversal entry that leaves a visible trail.  SQLAlchemy fires mapper events
before UPDATE/DELETE statements reach the database; the listeners below
check the invariants there and raise ImmutabilityViolationError so the flush
(and the caller's transaction) is aborted before anything is written.

    session.flush()
         |
         v
    [before_flush]  --> account deletion guard --> SystemAccountError /
         |                                         AccountReferencedError
         v
    [before_update] --> _check_*_immutability --> ImmutabilityViolationError
    [before_delete] --> _check_*_delete ---------^
         |
         v
    SQL sent to database (only if checks pass)

Protected entities:

    Entity        | When immutable               | Allowed changes
    --------------|------------------------------|-------------------------------
    JournalEntry  | status POSTED or VOIDED      | POSTED -> VOIDED flip with
                  |                              | voided_at / voided_by_id
    JournalLine   | parent entry not DRAFT       | none
    Account       | code, once referenced        | name, is_active
                  | delete: system or referenced |
    AuditEvent    | always                       | none

updated_at / updated_by_id are audit metadata and may always change.

Usage:
    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

    unregister_immutability_listeners()  # TESTS ONLY
"""

from sqlalchemy import event, exists, inspect, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from ledger_kernel.db.base import AUDIT_METADATA_FIELDS
from ledger_kernel.exceptions import (
    AccountReferencedError,
    ImmutabilityViolationError,
    SystemAccountError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Fields a void may touch on a posted entry
VOID_MUTABLE_FIELDS = frozenset({"status", "voided_at", "voided_by_id"}) | AUDIT_METADATA_FIELDS


def _blocked(entity_type: str, entity_id, operation: str, reason: str, **extra):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            **extra,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def changed_fields(target) -> list[str]:
    return [
        attr.key
        for attr in inspect(target).attrs
        if attr.key not in AUDIT_METADATA_FIELDS and attr.history.has_changes()
    ]


def previous_value(target, key):
    """Value of ``key`` as loaded from the database, before pending changes."""
    hist = get_history(target, key)
    if hist.deleted:
        return hist.deleted[0]
    if hist.unchanged:
        return hist.unchanged[0]
    return None


def _account_is_referenced(connection, account_id) -> bool:
    from ledger_kernel.models.journal import JournalLine

    return bool(
        connection.execute(
            select(exists().where(JournalLine.account_id == account_id))
        ).scalar()
    )


def _check_account_deletion_before_flush(session, flush_context, instances):
    """
    Refuse deletion of system accounts and of accounts referenced by lines.

    Runs in SessionEvents.before_flush: mapper-level before_delete fires
    after the flush plan is final, which is too late to stop the deletion
    cleanly.
    """
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.journal import JournalLine

    for obj in list(session.deleted):
        if not isinstance(obj, Account):
            continue

        if obj.is_system:
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "Account",
                    "entity_id": str(obj.id),
                    "operation": "DELETE",
                    "reason": "system_account",
                },
            )
            raise SystemAccountError(account_code=obj.code)

        with session.no_autoflush:
            referenced = session.execute(
                select(exists().where(JournalLine.account_id == obj.id))
            ).scalar()

        if referenced:
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "Account",
                    "entity_id": str(obj.id),
                    "operation": "DELETE",
                    "reason": "account_has_journal_lines",
                },
            )
            raise AccountReferencedError(account_code=obj.code, operation="delete")


def _check_account_code_immutability(mapper, connection, target):
    """The account code is frozen once any journal line references the account."""
    hist = get_history(target, "code")
    if not hist.deleted:
        return
    if _account_is_referenced(connection, target.id):
        raise _blocked(
            "Account",
            target.id,
            "UPDATE",
            f"Cannot change code of account {hist.deleted[0]}: referenced by journal lines",
            field="code",
        )


def _check_journal_entry_immutability(mapper, connection, target):
    """
    Prevent updates to posted or voided JournalEntry records.

    DRAFT -> POSTED is the posting itself and is allowed.  On a POSTED
    entry the only allowed change is the void (status -> VOIDED plus
    voided_at/voided_by_id).  A VOIDED entry is frozen.
    """
    from ledger_kernel.models.journal import JournalEntryStatus

    previous = previous_value(target, "status")
    if previous is None or previous == JournalEntryStatus.DRAFT:
        return

    changed = changed_fields(target)
    if not changed:
        return

    if (
        previous == JournalEntryStatus.POSTED
        and target.status == JournalEntryStatus.VOIDED
        and set(changed) <= VOID_MUTABLE_FIELDS
    ):
        return

    raise _blocked(
        "JournalEntry",
        target.id,
        "UPDATE",
        f"Cannot modify field '{changed[0]}' on {previous} journal entry",
        field=changed[0],
    )


def _check_journal_entry_delete(mapper, connection, target):
    """Only DRAFT entries may be deleted."""
    from ledger_kernel.models.journal import JournalEntryStatus

    previous = previous_value(target, "status")
    if previous is not None and previous != JournalEntryStatus.DRAFT:
        raise _blocked(
            "JournalEntry",
            target.id,
            "DELETE",
            f"{previous} journal entries cannot be deleted",
        )


def _parent_status(connection, journal_entry_id):
    from ledger_kernel.models.journal import JournalEntry

    return connection.execute(
        select(JournalEntry.status).where(JournalEntry.id == journal_entry_id)
    ).scalar()


def _check_journal_line_immutability(mapper, connection, target):
    """Lines are frozen once the parent entry leaves DRAFT."""
    from ledger_kernel.models.journal import JournalEntryStatus

    status = _parent_status(connection, target.journal_entry_id)
    if status is not None and status != JournalEntryStatus.DRAFT:
        raise _blocked(
            "JournalLine",
            target.id,
            "UPDATE",
            "Journal lines cannot be modified after the parent entry is posted",
        )


def _check_journal_line_delete(mapper, connection, target):
    from ledger_kernel.models.journal import JournalEntryStatus

    status = _parent_status(connection, target.journal_entry_id)
    if status is not None and status != JournalEntryStatus.DRAFT:
        raise _blocked(
            "JournalLine",
            target.id,
            "DELETE",
            "Journal lines cannot be deleted after the parent entry is posted",
        )


def _check_audit_event_immutability(mapper, connection, target):
    raise _blocked("AuditEvent", target.id, "UPDATE", "Audit events are append-only")


def _check_audit_event_delete(mapper, connection, target):
    raise _blocked("AuditEvent", target.id, "DELETE", "Audit events are append-only")


def _listeners():
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.audit_event import AuditEvent
    from ledger_kernel.models.journal import JournalEntry, JournalLine

    return (
        (Session, "before_flush", _check_account_deletion_before_flush),
        (Account, "before_update", _check_account_code_immutability),
        (JournalEntry, "before_update", _check_journal_entry_immutability),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalLine, "before_update", _check_journal_line_immutability),
        (JournalLine, "before_delete", _check_journal_line_delete),
        (AuditEvent, "before_update", _check_audit_event_immutability),
        (AuditEvent, "before_delete", _check_audit_event_delete),
    )


def register_immutability_listeners():
    """
    Register all kernel immutability listeners.

    Call once at application start-up after the models are imported.
    Safe to call more than once.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove the kernel immutability listeners.

    WARNING: Only use this in tests that need to break the rules on purpose.
    """
    for target, event_name, listener_fn in _listeners():
        _safe_remove_listener(target, event_name, listener_fn)
