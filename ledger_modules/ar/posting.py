"""Sales invoice -> journal entry adapter."""

from ledger_kernel.domain.account_resolver import AccountRole
from ledger_kernel.domain.dtos import EntryHeader, LineSpec
from ledger_modules._posting_helpers import DocumentPoster
from ledger_modules.ar.models import TaxInvoice


class SalesInvoicePoster(DocumentPoster[TaxInvoice]):
    """
    Dr Accounts Receivable   total_amount
        Cr Sales Revenue     subtotal
        Cr VAT Output        vat_amount   (omitted when zero)
    """

    source_type = "tax_invoice"
    required_roles = (
        AccountRole.ACCOUNTS_RECEIVABLE,
        AccountRole.SALES_REVENUE,
        AccountRole.VAT_OUTPUT,
    )

    def roles_for(self, document):
        if not document.vat_amount:
            return self.required_roles[:2]
        return self.required_roles

    def source_id(self, document):
        return document.id

    def header(self, document):
        return EntryHeader(
            entry_date=document.issue_date,
            description=f"Sales invoice {document.invoice_number}",
            reference=document.invoice_number,
            source_type=self.source_type,
            source_id=str(document.id),
        )

    def build_lines(self, document, accounts):
        ar_code = accounts[AccountRole.ACCOUNTS_RECEIVABLE.value].code
        revenue_code = accounts[AccountRole.SALES_REVENUE.value].code

        lines = [
            LineSpec.dr(ar_code, document.total_amount, f"Invoice {document.invoice_number}"),
            LineSpec.cr(revenue_code, document.subtotal, "Sales revenue"),
        ]
        if document.vat_amount:
            vat_code = accounts[AccountRole.VAT_OUTPUT.value].code
            lines.append(LineSpec.cr(vat_code, document.vat_amount, "Output VAT"))
        return lines
