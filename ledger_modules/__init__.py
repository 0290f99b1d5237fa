"""
Ledger Modules.

Thin orchestration layers over the ledger kernel.  Each module holds its
domain models, the posting adapter that turns a document into one
balanced entry, and a service that owns the transaction boundary.

Modules:
- GL: chart of accounts seeding, manual journals, voids
- AR: ZATCA sales tax invoices and their Draft -> Approved -> Posted workflow
- Expense: disbursements
- WIP: production completions
- Payroll: paid payroll runs
- Tax: VAT return, Zakat estimate and data pack, invoice compliance checks
"""

from ledger_modules import ar, expense, gl, payroll, tax, wip

__all__ = [
    "ar",
    "expense",
    "gl",
    "payroll",
    "tax",
    "wip",
]
