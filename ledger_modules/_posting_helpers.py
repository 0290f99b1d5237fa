"""
Shared base for document posting adapters.

Each adapter maps one business document to exactly one balanced journal
entry.  Every account is resolved through the injected AccountResolver
before anything is written, so a missing account raises
MissingAccountError with no partial state.  Entries carry the dedupe key
``{source_type}:{source_id}``; posting the same document twice returns
the first entry's id.

Architecture: Modules layer.  Imports only from ledger_kernel.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import ClassVar, Generic, TypeVar
from uuid import UUID

from ledger_kernel.domain.account_resolver import (
    AccountResolver,
    AccountRole,
    ResolvedAccount,
    resolve_role,
)
from ledger_kernel.domain.dtos import EntryHeader, LineSpec
from ledger_kernel.domain.tenant import TenantContext
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.journal_engine import JournalEngine

logger = get_logger("modules.posting")

DocumentT = TypeVar("DocumentT")


def dedupe_key(source_type: str, source_id) -> str:
    return f"{source_type}:{source_id}"


class DocumentPoster(ABC, Generic[DocumentT]):
    """
    Template for a single-entry document adapter.

    Subclasses declare ``source_type`` and ``required_roles`` and implement
    ``source_id``, ``header`` and ``build_lines``.  ``roles_for`` narrows the
    roles to those one document actually uses.
    """

    source_type: ClassVar[str]
    required_roles: ClassVar[tuple[AccountRole, ...]] = ()

    def __init__(self, engine: JournalEngine, resolver: AccountResolver):
        self._engine = engine
        self._resolver = resolver

    def roles_for(self, document: DocumentT) -> Iterable[AccountRole]:
        return self.required_roles

    def extra_codes(self, document: DocumentT) -> Iterable[str]:
        """Account codes a document names directly rather than by role."""
        return ()

    @abstractmethod
    def source_id(self, document: DocumentT) -> str:
        ...

    @abstractmethod
    def header(self, document: DocumentT) -> EntryHeader:
        ...

    @abstractmethod
    def build_lines(
        self,
        document: DocumentT,
        accounts: dict[str, ResolvedAccount],
    ) -> Sequence[LineSpec]:
        """Lines of the entry.  ``accounts`` is keyed by role value and by code."""

    def resolve_accounts(
        self,
        context: TenantContext,
        document: DocumentT,
    ) -> dict[str, ResolvedAccount]:
        accounts = {}
        for role in self.roles_for(document):
            accounts[role.value] = resolve_role(self._resolver, context.tenant_id, role)
        for code in self.extra_codes(document):
            accounts[code] = self._resolver.resolve_code(context.tenant_id, code)
        return accounts

    def post(self, context: TenantContext, document: DocumentT) -> UUID:
        """
        Post ``document`` as one balanced entry and return its id.

        Raises:
            MissingAccountError: an account could not be resolved; nothing
                was written.
        """
        source_id = str(self.source_id(document))
        with context.log_scope():
            accounts = self.resolve_accounts(context, document)
            lines = self.build_lines(document, accounts)
            entry_id = self._engine.create_entry(
                context,
                self.header(document),
                lines,
                idempotency_key=dedupe_key(self.source_type, source_id),
            )
            logger.info(
                "document_posted",
                extra={
                    "source_type": self.source_type,
                    "source_id": source_id,
                    "entry_id": str(entry_id),
                    "line_count": len(lines),
                },
            )
            return entry_id


def build_journal_engine(session, config, clock=None) -> JournalEngine:
    """JournalEngine configured from ``config.ledger``."""
    return JournalEngine(
        session,
        clock,
        balance_tolerance=config.ledger.balance_tolerance,
        entry_number_prefix=config.ledger.entry_number_prefix,
    )


def post_document(session, poster: DocumentPoster, context: TenantContext, document) -> UUID:
    """Post ``document`` and commit; roll back and re-raise on any failure."""
    try:
        entry_id = poster.post(context, document)
        session.commit()
    except Exception:
        session.rollback()
        raise
    return entry_id
