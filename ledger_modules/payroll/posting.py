"""Payroll paid -> journal entry adapter."""

from collections.abc import Iterable

from ledger_kernel.domain.account_resolver import AccountResolver, AccountRole
from ledger_kernel.domain.dtos import EntryHeader, LineSpec
from ledger_kernel.services.journal_engine import JournalEngine
from ledger_modules._posting_helpers import DocumentPoster
from ledger_modules.payroll.models import PayrollRun


class PayrollPoster(DocumentPoster[PayrollRun]):
    """
    Dr Salaries Expense      total_net
        Cr Bank or Cash      total_net
    """

    source_type = "payroll_run"
    required_roles = (AccountRole.SALARIES_EXPENSE, AccountRole.BANK, AccountRole.CASH)

    def __init__(self, engine: JournalEngine, resolver: AccountResolver, bank_methods: Iterable[str]):
        super().__init__(engine, resolver)
        self._bank_methods = frozenset(bank_methods)

    def _payment_role(self, document: PayrollRun) -> AccountRole:
        if document.payment_method in self._bank_methods:
            return AccountRole.BANK
        return AccountRole.CASH

    def roles_for(self, document):
        return (AccountRole.SALARIES_EXPENSE, self._payment_role(document))

    def source_id(self, document):
        return document.id

    def header(self, document):
        return EntryHeader(
            entry_date=document.paid_on,
            description=f"Payroll {document.period}",
            reference=f"PAYROLL-{document.period}",
            source_type=self.source_type,
            source_id=str(document.id),
        )

    def build_lines(self, document, accounts):
        return [
            LineSpec.dr(accounts[AccountRole.SALARIES_EXPENSE.value].code, document.total_net),
            LineSpec.cr(
                accounts[self._payment_role(document).value].code,
                document.total_net,
                document.payment_method,
            ),
        ]
