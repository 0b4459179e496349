"""
Logging configuration.

Handlers and formatters come from the packaged `src/irlnearby/config/logging.yaml`;
the effective level comes from settings (`IRLNEARBY_LOG_LEVEL` wins over YAML).
"""

from __future__ import annotations

import logging.config

from irlnearby.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> None:
    """Apply the packaged dictConfig, forcing one level on root and every handler."""
    config = get_logging_config()
    effective = (level or get_settings().app.log_level).upper()

    config.setdefault("root", {})["level"] = effective
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict):
            handler["level"] = effective
    config.setdefault("loggers", {}).setdefault("irlnearby", {})["level"] = effective

    logging.config.dictConfig(config)
