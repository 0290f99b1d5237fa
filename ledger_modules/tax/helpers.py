"""
Tax helper functions -- pure calculations, no I/O.

ZATCA phase-1 compliance checks for a single invoice.  Totals and the QR
payload live in ``ar.helpers`` and ``tax.zatca``; they are re-exported
here so callers have one import point.
"""

from __future__ import annotations

from decimal import Decimal

from ledger_modules.ar.helpers import calculate_invoice_totals
from ledger_modules.ar.models import DEFAULT_VAT_RATE, InvoiceType, TaxInvoice
from ledger_modules.tax.zatca import decode_tlv_qr, generate_tlv_qr

VAT_MISMATCH_TOLERANCE = Decimal("0.1")

__all__ = [
    "VAT_MISMATCH_TOLERANCE",
    "calculate_invoice_totals",
    "check_invoice_compliance",
    "decode_tlv_qr",
    "generate_tlv_qr",
]


def check_invoice_compliance(
    invoice: TaxInvoice,
    vat_rate: Decimal = DEFAULT_VAT_RATE,
    tolerance: Decimal = VAT_MISMATCH_TOLERANCE,
) -> list[str]:
    """
    Phase-1 checks.  Returns human-readable issues; empty means compliant.
    """
    issues = []
    if not invoice.seller.vat_number:
        issues.append("Seller VAT number missing")
    if invoice.issue_date is None:
        issues.append("Issue date missing")
    if invoice.invoice_type == InvoiceType.STANDARD:
        if not invoice.buyer.vat_number:
            issues.append("Buyer VAT number required for standard invoice")
        if not invoice.buyer.name:
            issues.append("Buyer name required")

    expected_vat = invoice.subtotal * vat_rate
    if abs(expected_vat - invoice.vat_amount) > tolerance:
        issues.append(f"VAT calculation mismatch (expected {vat_rate * 100:.0f}%)")

    if invoice.invoice_type == InvoiceType.SIMPLIFIED and not invoice.qr_code:
        issues.append("QR code missing for simplified invoice")
    return issues
