"""
ZATCA phase-1 QR payload.

The QR code on a Saudi tax invoice is the base64 of five TLV records:
one tag byte, one length byte, then the UTF-8 value.
"""

from __future__ import annotations

import base64
from datetime import date, datetime
from decimal import Decimal

from ledger_kernel.domain.values import round_money

TAG_SELLER_NAME = 1
TAG_VAT_NUMBER = 2
TAG_TIMESTAMP = 3
TAG_INVOICE_TOTAL = 4
TAG_VAT_TOTAL = 5


def _tlv(tag: int, value: str) -> bytes:
    encoded = value.encode("utf-8")
    if len(encoded) > 255:
        raise ValueError(f"TLV value for tag {tag} exceeds 255 bytes")
    return bytes([tag, len(encoded)]) + encoded


def generate_tlv_qr(
    seller_name: str,
    vat_number: str,
    timestamp: datetime | date | str,
    total: Decimal,
    vat: Decimal,
) -> str:
    """
    Base64 of the TLV payload.

    Tags 1..5 are seller name, VAT number, ISO-8601 timestamp, invoice
    total and VAT total.  Amounts are formatted with two decimals.
    """
    if isinstance(timestamp, (datetime, date)):
        timestamp = timestamp.isoformat()
    payload = b"".join(
        (
            _tlv(TAG_SELLER_NAME, seller_name or ""),
            _tlv(TAG_VAT_NUMBER, vat_number or ""),
            _tlv(TAG_TIMESTAMP, timestamp),
            _tlv(TAG_INVOICE_TOTAL, f"{round_money(total):.2f}"),
            _tlv(TAG_VAT_TOTAL, f"{round_money(vat):.2f}"),
        )
    )
    return base64.b64encode(payload).decode("ascii")


def decode_tlv_qr(qr_code: str) -> dict[int, str]:
    """Tag -> value for a payload produced by ``generate_tlv_qr``."""
    raw = base64.b64decode(qr_code)
    fields = {}
    offset = 0
    while offset < len(raw):
        tag, length = raw[offset], raw[offset + 1]
        fields[tag] = raw[offset + 2 : offset + 2 + length].decode("utf-8")
        offset += 2 + length
    return fields
