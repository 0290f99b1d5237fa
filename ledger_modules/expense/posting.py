"""Disbursement -> journal entry adapter."""

from ledger_config.schema import ExpenseSettings
from ledger_kernel.domain.account_resolver import AccountResolver, AccountRole
from ledger_kernel.domain.dtos import EntryHeader, LineSpec
from ledger_kernel.services.journal_engine import JournalEngine
from ledger_modules._posting_helpers import DocumentPoster
from ledger_modules.expense.models import Disbursement


class ExpensePoster(DocumentPoster[Disbursement]):
    """
    Dr Expense (by category)   amount
    Dr VAT Input               vat_amount   (when given)
        Cr Bank or Cash        amount + vat_amount

    Bank is credited for the configured bank payment methods, Cash
    otherwise.  Categories without a mapped account go to General Expense.
    """

    source_type = "disbursement"
    required_roles = (
        AccountRole.GENERAL_EXPENSE,
        AccountRole.VAT_INPUT,
        AccountRole.BANK,
        AccountRole.CASH,
    )

    def __init__(self, engine: JournalEngine, resolver: AccountResolver, settings: ExpenseSettings):
        super().__init__(engine, resolver)
        self._settings = settings

    def _payment_role(self, document: Disbursement) -> AccountRole:
        if document.payment_method in self._settings.bank_methods:
            return AccountRole.BANK
        return AccountRole.CASH

    def _category_code(self, document: Disbursement) -> str | None:
        return self._settings.category_accounts.get(document.category)

    def roles_for(self, document):
        roles = [self._payment_role(document)]
        if self._category_code(document) is None:
            roles.append(AccountRole.GENERAL_EXPENSE)
        if document.vat_amount:
            roles.append(AccountRole.VAT_INPUT)
        return roles

    def extra_codes(self, document):
        code = self._category_code(document)
        return (code,) if code is not None else ()

    def source_id(self, document):
        return document.id

    def header(self, document):
        return EntryHeader(
            entry_date=document.disbursement_date,
            description=f"{document.category} - {document.payee}",
            reference=document.reference,
            source_type=self.source_type,
            source_id=str(document.id),
        )

    def build_lines(self, document, accounts):
        expense_code = self._category_code(document)
        if expense_code is None:
            expense_code = accounts[AccountRole.GENERAL_EXPENSE.value].code
        payment_code = accounts[self._payment_role(document).value].code

        lines = [LineSpec.dr(expense_code, document.amount, document.category)]
        if document.vat_amount:
            lines.append(
                LineSpec.dr(accounts[AccountRole.VAT_INPUT.value].code, document.vat_amount, "Input VAT")
            )
        lines.append(LineSpec.cr(payment_code, document.gross_amount, document.payment_method))
        return lines
