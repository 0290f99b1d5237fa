"""
BaseService -- abstract base for all kernel services.

Every kernel service receives a SQLAlchemy ``Session`` from the caller and
persists with ``session.flush()`` -- never ``session.commit()``.  The caller
(a module service, ``session_scope()`` or a test) owns commit/rollback, so
several kernel calls can share one atomic transaction.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ledger_kernel.db.base import Base
from ledger_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()`` on the outer transaction.

    Non-goals:
        - Query-only (read) methods belong in ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()
