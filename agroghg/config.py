# -*- coding: utf-8 -*-
"""
AgroGHG Configuration

Centralized configuration for the agricultural emissions engine covering:
- Backing store connection for the catalog importer
- Alternate emission factor catalog file
- Mineral CO2 (liming / urea) unit handling
- Logging level for the CLI

All settings can be overridden via environment variables with the
``AGROGHG_`` prefix (e.g. ``AGROGHG_DATABASE_URL``).

GWP constants (IPCC AR4) and the default burning efficiency are not
configurable.

Example:
    >>> from agroghg.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.database_url, cfg.normalize_mineral_co2_units)
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

_ENV_PREFIX = "AGROGHG_"

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AgroGHGConfig:
    """Complete configuration for the AgroGHG engine.

    Attributes:
        database_url: SQLAlchemy URL of the emission factor store.
        catalog_path: Optional path to an alternate catalog YAML file.
            Empty string means the packaged GHG Protocol Brasil catalog.
        normalize_mineral_co2_units: Divide liming and urea CO2 by 1000 like
            every other branch. Off by default to keep the published results.
        log_level: Logging level used by the CLI.
    """

    database_url: str = "sqlite:///agroghg.db"
    catalog_path: str = ""
    normalize_mineral_co2_units: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> AgroGHGConfig:
        """Build an AgroGHGConfig from environment variables.

        Every field can be overridden via ``AGROGHG_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).

        Returns:
            Populated AgroGHGConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.strip().lower() in ("true", "1", "yes")

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val

        log_level = _str("LOG_LEVEL", cls.log_level).upper()
        if log_level not in _VALID_LOG_LEVELS:
            logger.warning(
                "Invalid log level for %sLOG_LEVEL=%s, using default %s",
                prefix, log_level, cls.log_level,
            )
            log_level = cls.log_level

        config = cls(
            database_url=_str("DATABASE_URL", cls.database_url),
            catalog_path=_str("CATALOG_PATH", cls.catalog_path),
            normalize_mineral_co2_units=_bool(
                "NORMALIZE_MINERAL_CO2_UNITS",
                cls.normalize_mineral_co2_units,
            ),
            log_level=log_level,
        )

        logger.info(
            "AgroGHGConfig loaded: database_url=%s, catalog_path=%s, "
            "normalize_mineral_co2_units=%s, log_level=%s",
            config.database_url,
            config.catalog_path or "<packaged>",
            config.normalize_mineral_co2_units,
            config.log_level,
        )
        return config


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[AgroGHGConfig] = None
_config_lock = threading.Lock()


def get_config() -> AgroGHGConfig:
    """Return the singleton AgroGHGConfig, creating from env if needed."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AgroGHGConfig.from_env()
    return _config_instance


def set_config(config: AgroGHGConfig) -> None:
    """Replace the singleton AgroGHGConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("AgroGHGConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "AgroGHGConfig",
    "get_config",
    "set_config",
    "reset_config",
]
