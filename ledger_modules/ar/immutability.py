"""
ORM-level immutability for posted tax invoices.

Once an invoice is posted its figures, parties, lines and posting
reference are frozen.  The surrounding application may still move the
status forward (posted -> sent_to_authority -> paid).  Draft and approved
invoices are unrestricted here; the service decides what may change.
"""

from sqlalchemy import event, select

from ledger_kernel.db.base import AUDIT_METADATA_FIELDS
from ledger_kernel.db.immutability import changed_fields, previous_value
from ledger_kernel.exceptions import InvoiceImmutableError
from ledger_kernel.logging_config import get_logger
from ledger_modules.ar.models import PRE_POSTING_STATUSES, InvoiceStatus
from ledger_modules.ar.orm import InvoiceItemModel, TaxInvoiceModel

logger = get_logger("modules.ar.immutability")

_PRE_POSTING = {status.value for status in PRE_POSTING_STATUSES}

# Status moves the application may make after posting
FORWARD_STATUS_MOVES = frozenset({
    (InvoiceStatus.POSTED.value, InvoiceStatus.SENT_TO_AUTHORITY.value),
    (InvoiceStatus.POSTED.value, InvoiceStatus.PAID.value),
    (InvoiceStatus.SENT_TO_AUTHORITY.value, InvoiceStatus.PAID.value),
})


def _blocked(invoice_id, status, operation: str) -> InvoiceImmutableError:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "TaxInvoice",
            "entity_id": str(invoice_id),
            "operation": operation,
            "status": status,
        },
    )
    return InvoiceImmutableError(invoice_id=str(invoice_id), status=status)


def _check_invoice_update(mapper, connection, target):
    previous = previous_value(target, "status")
    if previous is None or previous in _PRE_POSTING:
        return

    changed = set(changed_fields(target)) - AUDIT_METADATA_FIELDS
    if not changed:
        return
    if changed == {"status"} and (previous, target.status) in FORWARD_STATUS_MOVES:
        return
    raise _blocked(target.id, previous, "UPDATE")


def _check_invoice_delete(mapper, connection, target):
    previous = previous_value(target, "status")
    if previous is not None and previous != InvoiceStatus.DRAFT.value:
        raise _blocked(target.id, previous, "DELETE")


def _parent_status(connection, invoice_id):
    return connection.execute(
        select(TaxInvoiceModel.status).where(TaxInvoiceModel.id == invoice_id)
    ).scalar()


def _item_guard(operation: str):
    def _check(mapper, connection, target):
        status = _parent_status(connection, target.invoice_id)
        if status is not None and status not in _PRE_POSTING:
            raise _blocked(target.invoice_id, status, operation)

    _check.__name__ = f"_check_invoice_item_{operation.lower()}"
    return _check


_check_item_insert = _item_guard("INSERT")
_check_item_update = _item_guard("UPDATE")
_check_item_delete = _item_guard("DELETE")

_LISTENERS = (
    (TaxInvoiceModel, "before_update", _check_invoice_update),
    (TaxInvoiceModel, "before_delete", _check_invoice_delete),
    (InvoiceItemModel, "before_insert", _check_item_insert),
    (InvoiceItemModel, "before_update", _check_item_update),
    (InvoiceItemModel, "before_delete", _check_item_delete),
)


def register_invoice_immutability_listeners():
    """Safe to call more than once."""
    for target, event_name, listener_fn in _LISTENERS:
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_invoice_immutability_listeners():
    """TESTS ONLY."""
    for target, event_name, listener_fn in _LISTENERS:
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
