"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the Chart of Accounts (COA) -- the target
    of every journal line.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - code is unique per tenant (uq_account_tenant_code).
    - code is immutable once referenced by any journal line
      (db/immutability.py).
    - System (seeded) accounts cannot be deleted (db/immutability.py and
      ChartOfAccountsService).

Failure modes:
    - IntegrityError on duplicate (tenant_id, code).
    - ImmutabilityViolationError on code change of a referenced account.
    - SystemAccountError / AccountReferencedError on forbidden deletion.
"""

from enum import Enum

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


DEBIT_NORMAL_TYPES = frozenset({AccountType.ASSET, AccountType.EXPENSE})


def normal_balance_for(account_type: AccountType | str) -> NormalBalance:
    """Asset and Expense accounts are debit-normal; everything else credit-normal."""
    if AccountType(account_type) in DEBIT_NORMAL_TYPES:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


class Account(TrackedBase):
    """
    Chart of Accounts entry.

    Contract:
        (tenant_id, code) is unique.  Once any JournalLine references the
        account, its code MUST NOT change.

    Guarantees:
        - account_type is one of ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE.
        - normal_balance is derived from account_type, never stored.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("tenant_id", "code", name="uq_account_tenant_code"),
        Index("idx_account_type", "account_type"),
    )

    # Human-readable account code, e.g. "1100"
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        active_history=True,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        nullable=False,
    )

    # Seeded accounts; never deletable
    is_system: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.account_type)

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.DEBIT

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from ledger_kernel.domain.dtos import AccountInfo

        return AccountInfo(
            id=self.id,
            code=self.code,
            name=self.name,
            account_type=AccountType(self.account_type),
            is_system=self.is_system,
            is_active=self.is_active,
        )
