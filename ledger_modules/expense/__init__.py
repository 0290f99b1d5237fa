"""Expense disbursements."""

from ledger_modules.expense.models import Disbursement
from ledger_modules.expense.posting import ExpensePoster
from ledger_modules.expense.service import ExpenseService

__all__ = ["Disbursement", "ExpensePoster", "ExpenseService"]
