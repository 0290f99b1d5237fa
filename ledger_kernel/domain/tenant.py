"""
TenantContext -- explicit tenant and actor for every core operation.

Every service and selector call receives a TenantContext instead of reading
a "current tenant" from ambient session state.  Rows are always filtered
and stamped with ``context.tenant_id``.
"""

from dataclasses import dataclass, field
from uuid import UUID, uuid4

from ledger_kernel.logging_config import LogContext


@dataclass(frozen=True)
class Actor:
    """The user (or system process) performing an operation."""

    actor_id: UUID
    roles: frozenset[str] = frozenset()

    def has_any_role(self, roles) -> bool:
        return bool(self.roles & frozenset(roles))


@dataclass(frozen=True)
class TenantContext:
    """Tenant, actor and correlation id threaded into every call."""

    tenant_id: UUID
    actor: Actor
    correlation_id: str = field(default_factory=lambda: str(uuid4()))

    @property
    def actor_id(self) -> UUID:
        return self.actor.actor_id

    def log_scope(self, **extra: str | None):
        """Bind tenant/actor/correlation ids (plus ``extra``) into LogContext."""
        return LogContext.bind(
            correlation_id=self.correlation_id,
            tenant_id=str(self.tenant_id),
            actor_id=str(self.actor.actor_id),
            **extra,
        )
