"""Invoice arithmetic -- pure functions, no I/O."""

from collections.abc import Iterable

from ledger_kernel.domain.values import ZERO
from ledger_modules.ar.models import InvoiceLineItem, InvoiceTotals


def calculate_invoice_totals(items: Iterable[InvoiceLineItem]) -> InvoiceTotals:
    """Sum the per-line net and VAT amounts (each already rounded to 0.01)."""
    subtotal = ZERO
    vat_amount = ZERO
    for item in items:
        subtotal += item.net_amount
        vat_amount += item.vat_amount
    return InvoiceTotals(
        subtotal=subtotal,
        vat_amount=vat_amount,
        total_amount=subtotal + vat_amount,
    )
