"""
WIP Module Service - posts production completions to the ledger.

Owns the transaction boundary.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from ledger_config import LedgerConfig, get_active_config
from ledger_kernel.domain.account_resolver import AccountResolver
from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.logging_config import get_logger
from ledger_modules._posting_helpers import build_journal_engine, post_document
from ledger_modules.wip.models import WorkOrder
from ledger_modules.wip.posting import ProductionCompletionPoster

logger = get_logger("modules.wip.service")


class WipService:
    def __init__(
        self,
        session: Session,
        account_resolver: AccountResolver,
        clock: Clock | None = None,
        config: LedgerConfig | None = None,
    ):
        self._session = session
        config = config or get_active_config()
        self._poster = ProductionCompletionPoster(
            build_journal_engine(session, config, clock),
            account_resolver,
        )

    def record_completion(self, context: TenantContext, work_order: WorkOrder) -> UUID:
        logger.info(
            "wip_record_completion_started",
            extra={
                "work_order": work_order.number,
                "total_cost": str(work_order.total_cost),
            },
        )
        return post_document(self._session, self._poster, context, work_order)
