"""
Expense Module Service - posts disbursements to the ledger.

This service owns the transaction boundary (commit on success, rollback
on failure).
"""

from uuid import UUID

from sqlalchemy.orm import Session

from ledger_config import LedgerConfig, get_active_config
from ledger_kernel.domain.account_resolver import AccountResolver
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.logging_config import get_logger
from ledger_modules._posting_helpers import build_journal_engine, post_document
from ledger_modules.expense.models import Disbursement
from ledger_modules.expense.posting import ExpensePoster

logger = get_logger("modules.expense.service")


class ExpenseService:
    def __init__(
        self,
        session: Session,
        account_resolver: AccountResolver,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        self._session = session
        config = config or get_active_config()
        self._poster = ExpensePoster(
            build_journal_engine(session, config, clock),
            account_resolver,
            config.expense,
        )

    def record_disbursement(self, context: TenantContext, disbursement: Disbursement) -> UUID:
        """
        Post one disbursement; a repeat call returns the first entry id.

        Raises VoidedSourceError if that first entry has been voided.
        """
        logger.info(
            "expense_record_disbursement_started",
            extra={
                "disbursement_id": str(disbursement.id),
                "category": disbursement.category,
                "amount": str(disbursement.amount),
            },
        )
        return post_document(self._session, self._poster, context, disbursement)
