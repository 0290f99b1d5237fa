"""Sales tax invoices: drafting, approval workflow and posting."""

from ledger_modules.ar.helpers import calculate_invoice_totals
from ledger_modules.ar.models import (
    InvoiceLineItem,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceType,
    Party,
    TaxInvoice,
)
from ledger_modules.ar.policy import RoleTransitionPolicy, TransitionPolicy
from ledger_modules.ar.posting import SalesInvoicePoster
from ledger_modules.ar.service import InvoiceService
from ledger_modules.ar.workflows import INVOICE_WORKFLOW

__all__ = [
    "INVOICE_WORKFLOW",
    "calculate_invoice_totals",
    "InvoiceLineItem",
    "InvoiceService",
    "InvoiceStatus",
    "InvoiceTotals",
    "InvoiceType",
    "Party",
    "RoleTransitionPolicy",
    "SalesInvoicePoster",
    "TaxInvoice",
    "TransitionPolicy",
]
