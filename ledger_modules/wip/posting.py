"""Production completion -> journal entry adapter."""

from ledger_kernel.domain.account_resolver import AccountRole
from ledger_kernel.domain.dtos import EntryHeader, LineSpec
from ledger_modules._posting_helpers import DocumentPoster
from ledger_modules.wip.models import WorkOrder


class ProductionCompletionPoster(DocumentPoster[WorkOrder]):
    """
    Dr Inventory                 quantity x unit_cost
        Cr COGS / WIP offset     quantity x unit_cost
    """

    source_type = "work_order"
    required_roles = (AccountRole.INVENTORY, AccountRole.PRODUCTION_OFFSET)

    def source_id(self, document):
        return document.id

    def header(self, document):
        return EntryHeader(
            entry_date=document.completed_on,
            description=f"Production completed: {document.product} x {document.quantity}",
            reference=document.number,
            source_type=self.source_type,
            source_id=str(document.id),
        )

    def build_lines(self, document, accounts):
        cost = document.total_cost
        return [
            LineSpec.dr(accounts[AccountRole.INVENTORY.value].code, cost, document.product),
            LineSpec.cr(accounts[AccountRole.PRODUCTION_OFFSET.value].code, cost, document.number),
        ]
