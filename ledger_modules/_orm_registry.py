"""
Module ORM Registry (``ledger_modules._orm_registry``).

Ensures every ORM model (kernel and modules) is imported so that
``Base.metadata`` holds the full schema before ``create_tables()`` runs,
and registers the module-level immutability listeners next to the
kernel's.

Architecture position
---------------------
**Modules layer** -- utility.  MUST NOT be imported by ``ledger_kernel``
at module level; the kernel's ``create_tables()`` imports it lazily.
"""


def import_all_orm_models() -> None:
    """
    Import kernel models and every ``ledger_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    import ledger_kernel.models  # noqa: F401
    import ledger_kernel.services.sequence_service  # noqa: F401  # sequence_counters
    import ledger_modules.ar.orm  # noqa: F401


def register_all_immutability_listeners() -> None:
    """Kernel ledger listeners plus the tax invoice listeners."""
    from ledger_kernel.db.immutability import register_immutability_listeners
    from ledger_modules.ar.immutability import register_invoice_immutability_listeners

    import_all_orm_models()
    register_immutability_listeners()
    register_invoice_immutability_listeners()


def create_all_tables(install_listeners: bool = True) -> None:
    """Production-safe entry point: register every model, then create tables."""
    from ledger_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
    if install_listeners:
        register_all_immutability_listeners()
