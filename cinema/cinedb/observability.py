"""
Logging setup for CineDB.

Library modules only create named loggers; hosts call setup_logging() once
to choose level and output format.
"""

from __future__ import annotations

import logging

import json_log_formatter

from .config import Settings, get_settings


def setup_logging(settings: Settings | None = None) -> None:
    """Configure logging based on configuration.

    Args:
        settings: Optional settings (process-wide settings if not provided)
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    settings.log_config()
