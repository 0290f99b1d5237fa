"""
ledger_config -- single public entrypoint for ledger configuration.

``get_active_config()`` is the only way runtime code obtains settings.
The bundled ``defaults.yaml`` is used unless a path is passed or the
``LEDGER_CONFIG_PATH`` environment variable names another file.

Failure modes:
    - ``FileNotFoundError`` -- the configured path does not exist.
    - ``ValueError`` -- schema or structural validation failures.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ledger_config.loader import load_config, parse_config
from ledger_config.schema import (
    ExpenseSettings,
    InvoiceSettings,
    LedgerConfig,
    LedgerSettings,
    TaxSettings,
)

_logger = logging.getLogger("ledger_kernel.config")

CONFIG_PATH_ENV = "LEDGER_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> LedgerConfig:
    """
    Load and validate the active configuration.

    Resolution order: ``config_path`` argument, then ``LEDGER_CONFIG_PATH``,
    then the bundled defaults.
    """
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    config = load_config(path)

    _logger.info(
        "ledger_config_loaded",
        extra={
            "config_path": str(path),
            "account_count": len(config.chart_of_accounts),
            "role_count": len(config.account_roles),
        },
    )
    return config


__all__ = [
    "CONFIG_PATH_ENV",
    "DEFAULT_CONFIG_PATH",
    "ExpenseSettings",
    "InvoiceSettings",
    "LedgerConfig",
    "LedgerSettings",
    "TaxSettings",
    "get_active_config",
    "load_config",
    "parse_config",
]
