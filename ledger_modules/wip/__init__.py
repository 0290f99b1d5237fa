"""Production completions (finished goods into inventory)."""

from ledger_modules.wip.models import WorkOrder
from ledger_modules.wip.posting import ProductionCompletionPoster
from ledger_modules.wip.service import WipService

__all__ = ["ProductionCompletionPoster", "WipService", "WorkOrder"]
