"""
Payroll Module Service - posts paid payroll runs to the ledger.

Owns the transaction boundary.  Bank routing follows the expense
module's ``bank_methods``.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from ledger_config import LedgerConfig, get_active_config
from ledger_kernel.domain.account_resolver import AccountResolver
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.logging_config import get_logger
from ledger_modules._posting_helpers import build_journal_engine, post_document
from ledger_modules.payroll.models import PayrollRun
from ledger_modules.payroll.posting import PayrollPoster

logger = get_logger("modules.payroll.service")


class PayrollService:
    def __init__(
        self,
        session: Session,
        account_resolver: AccountResolver,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        self._session = session
        config = config or get_active_config()
        self._poster = PayrollPoster(
            build_journal_engine(session, config, clock),
            account_resolver,
            config.expense.bank_methods,
        )

    def record_payroll_paid(self, context: TenantContext, payroll_run: PayrollRun) -> UUID:
        logger.info(
            "payroll_record_paid_started",
            extra={"period": payroll_run.period, "total_net": str(payroll_run.total_net)},
        )
        return post_document(self._session, self._poster, context, payroll_run)
