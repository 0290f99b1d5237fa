"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Read-only ledger aggregation: trial balance, profit and
    loss, general ledger and single-account balances.  Balances are never
    stored; every figure is derived from journal lines at query time.

Invariants enforced:
    - Only lines of entries in POSTED or VOIDED status count.  A void's
      reversal is itself POSTED, so an original and its reversal net to
      zero.  Drafts never count.
    - Sum of all total_debit equals sum of all total_credit over any
      date range, because every counted entry is balanced.

Failure modes:
    - NotFoundError for an unknown account code in account-scoped queries.
    - Zero rows / zero balances when nothing has been posted.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select

from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.domain.values import ZERO
from ledger_kernel.exceptions import NotFoundError
from ledger_kernel.models.account import Account, AccountType, NormalBalance, normal_balance_for
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine
from ledger_kernel.selectors.base import BaseSelector

LEDGER_STATUSES = (JournalEntryStatus.POSTED.value, JournalEntryStatus.VOIDED.value)


def _signed(account_type: AccountType | str, debit: Decimal, credit: Decimal) -> Decimal:
    if normal_balance_for(account_type) == NormalBalance.DEBIT:
        return debit - credit
    return credit - debit


@dataclass(frozen=True)
class TrialBalanceRow:
    """One account's debit and credit totals over a period."""

    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    total_debit: Decimal
    total_credit: Decimal

    @property
    def balance(self) -> Decimal:
        """Balance in the account's normal-balance sign convention."""
        return _signed(self.account_type, self.total_debit, self.total_credit)

    @property
    def net_debit(self) -> Decimal:
        return self.total_debit - self.total_credit


@dataclass(frozen=True)
class ProfitAndLoss:
    revenue: Decimal
    expense: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class GeneralLedgerLine:
    """A journal line with the account's running balance after it."""

    entry_id: UUID
    entry_number: str
    entry_date: date
    description: str | None
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class AccountBalance:
    account_id: UUID
    code: str
    account_type: AccountType
    total_debit: Decimal
    total_credit: Decimal

    @property
    def balance(self) -> Decimal:
        return _signed(self.account_type, self.total_debit, self.total_credit)


class LedgerSelector(BaseSelector[JournalLine]):
    """
    Aggregation queries over a tenant's journal lines.

    Contract:
        ``start``/``end`` bounds are inclusive and filter on entry_date.
        All amounts are Decimal.
    """

    def _line_filters(
        self,
        tenant_id: UUID,
        start: date | None,
        end: date | None,
        statuses: tuple[str, ...] = LEDGER_STATUSES,
    ) -> list:
        filters = [
            JournalEntry.tenant_id == tenant_id,
            JournalEntry.status.in_(statuses),
        ]
        if start is not None:
            filters.append(JournalEntry.entry_date >= start)
        if end is not None:
            filters.append(JournalEntry.entry_date <= end)
        return filters

    def _account(self, tenant_id: UUID, code: str) -> Account:
        account = self.session.execute(
            select(Account).where(Account.tenant_id == tenant_id, Account.code == code)
        ).scalar_one_or_none()
        if account is None:
            raise NotFoundError("Account", code)
        return account

    def trial_balance(
        self,
        context: TenantContext,
        start: date | None = None,
        end: date | None = None,
    ) -> list[TrialBalanceRow]:
        """
        One row per account of the tenant (zero rows included), ordered by
        code.
        """
        totals = (
            select(
                JournalLine.account_id.label("account_id"),
                func.sum(JournalLine.debit).label("total_debit"),
                func.sum(JournalLine.credit).label("total_credit"),
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(*self._line_filters(context.tenant_id, start, end))
            .group_by(JournalLine.account_id)
            .subquery()
        )

        query = (
            select(
                Account.id,
                Account.code,
                Account.name,
                Account.account_type,
                totals.c.total_debit,
                totals.c.total_credit,
            )
            .outerjoin(totals, totals.c.account_id == Account.id)
            .where(Account.tenant_id == context.tenant_id)
            .order_by(Account.code)
        )

        return [
            TrialBalanceRow(
                account_id=row.id,
                code=row.code,
                name=row.name,
                account_type=AccountType(row.account_type),
                total_debit=row.total_debit or ZERO,
                total_credit=row.total_credit or ZERO,
            )
            for row in self.session.execute(query).all()
        ]

    def profit_and_loss(
        self,
        context: TenantContext,
        start: date | None = None,
        end: date | None = None,
    ) -> ProfitAndLoss:
        revenue = ZERO
        expense = ZERO
        for row in self.trial_balance(context, start, end):
            if row.account_type == AccountType.REVENUE:
                revenue += row.balance
            elif row.account_type == AccountType.EXPENSE:
                expense += row.balance
        return ProfitAndLoss(revenue=revenue, expense=expense, net_income=revenue - expense)

    def account_balance(
        self,
        context: TenantContext,
        account_code: str,
        as_of: date | None = None,
    ) -> AccountBalance:
        account = self._account(context.tenant_id, account_code)
        row = self.session.execute(
            select(
                func.sum(JournalLine.debit).label("total_debit"),
                func.sum(JournalLine.credit).label("total_credit"),
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalLine.account_id == account.id,
                *self._line_filters(context.tenant_id, None, as_of),
            )
        ).one()
        return AccountBalance(
            account_id=account.id,
            code=account.code,
            account_type=AccountType(account.account_type),
            total_debit=row.total_debit or ZERO,
            total_credit=row.total_credit or ZERO,
        )

    def general_ledger(
        self,
        context: TenantContext,
        account_code: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[GeneralLedgerLine]:
        """
        Lines posted to one account, ordered by entry date then entry
        number, each carrying the running balance.  The running balance
        starts from the account's balance before ``start``.
        """
        account = self._account(context.tenant_id, account_code)
        account_type = AccountType(account.account_type)

        running = ZERO
        if start is not None:
            opening = self.session.execute(
                select(
                    func.sum(JournalLine.debit).label("total_debit"),
                    func.sum(JournalLine.credit).label("total_credit"),
                )
                .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
                .where(
                    JournalLine.account_id == account.id,
                    JournalEntry.entry_date < start,
                    *self._line_filters(context.tenant_id, None, None),
                )
            ).one()
            running = _signed(
                account_type, opening.total_debit or ZERO, opening.total_credit or ZERO
            )

        rows = self.session.execute(
            select(
                JournalEntry.id,
                JournalEntry.entry_number,
                JournalEntry.entry_date,
                JournalLine.description,
                JournalEntry.description.label("entry_description"),
                JournalLine.debit,
                JournalLine.credit,
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(
                JournalLine.account_id == account.id,
                *self._line_filters(context.tenant_id, start, end),
            )
            .order_by(JournalEntry.entry_date, JournalEntry.entry_number, JournalLine.line_seq)
        ).all()

        result = []
        for row in rows:
            running += _signed(account_type, row.debit, row.credit)
            result.append(
                GeneralLedgerLine(
                    entry_id=row.id,
                    entry_number=row.entry_number,
                    entry_date=row.entry_date,
                    description=row.description or row.entry_description,
                    debit=row.debit,
                    credit=row.credit,
                    balance=running,
                )
            )
        return result

    def debit_lines_total(
        self,
        context: TenantContext,
        account_code: str,
        start: date | None = None,
        end: date | None = None,
    ) -> Decimal:
        """
        Sum of debit lines on one account in POSTED entries.

        A voided original is excluded and its reversal only credits the
        account, so a voided purchase contributes nothing.
        """
        total = self.session.execute(
            select(
                func.sum(
                    case((JournalLine.debit > 0, JournalLine.debit), else_=ZERO)
                )
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .join(Account, JournalLine.account_id == Account.id)
            .where(
                Account.tenant_id == context.tenant_id,
                Account.code == account_code,
                *self._line_filters(
                    context.tenant_id, start, end, (JournalEntryStatus.POSTED.value,)
                ),
            )
        ).scalar()
        return total or ZERO
