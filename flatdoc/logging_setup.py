"""
Logging setup for applications embedding flatdoc.

The library itself only creates module loggers; call setup_logging()
once at process start to install a handler.
"""

from __future__ import annotations

import logging

import json_log_formatter

from .config import StoreSettings


def setup_logging(settings: StoreSettings | None = None) -> None:
    """Configure logging based on configuration.

    Args:
        settings: Store settings (loaded from env if not provided)
    """
    settings = settings or StoreSettings()
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
