"""VAT and Zakat compliance reporting, ZATCA invoice checks and QR codes."""

from ledger_modules.tax.helpers import (
    calculate_invoice_totals,
    check_invoice_compliance,
    decode_tlv_qr,
    generate_tlv_qr,
)
from ledger_modules.tax.models import VatReport, ZakatDataPack, ZakatEstimate, ZakatFinancials
from ledger_modules.tax.service import ComplianceService

__all__ = [
    "ComplianceService",
    "VatReport",
    "ZakatDataPack",
    "ZakatEstimate",
    "ZakatFinancials",
    "calculate_invoice_totals",
    "check_invoice_compliance",
    "decode_tlv_qr",
    "generate_tlv_qr",
]
