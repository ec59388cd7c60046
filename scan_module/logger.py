"""
Centralized logger configuration for the TTL audit.

Provides:
- InterceptHandler: bridges stdlib logging (aiohttp, asyncio) to loguru
- configure_logging(app_name, verbose): sets up sinks and returns a bound app logger
- get_child_logger(name): per-module logger bound with `module=name`

Results are printed on stdout by the reporting layer, so the console sink
writes to stderr.
"""
from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Any

from loguru import logger


class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        # forward to loguru, preserve exception info if present
        logger.opt(exception=record.exc_info).log(level, record.getMessage())


def configure_logging(app_name: str = "ttl_audit", verbose: bool = False) -> Any:
    """
    Configure loguru sinks and stdlib logging interception.
    Returns a logger bound with `app=app_name`.
    """
    logger.remove()
    # records forwarded from stdlib carry no bound module
    logger.configure(extra={"app": app_name, "module": "-"})
    log_level = "DEBUG" if verbose else os.getenv("TTL_AUDIT_LOG_LEVEL", "INFO").upper()
    unknown_level = None
    try:
        logger.level(log_level)
    except ValueError:
        unknown_level, log_level = log_level, "INFO"
    logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> <level>{level: <8}</level> {message}",
    )
    if unknown_level:
        logger.warning("Unknown TTL_AUDIT_LOG_LEVEL {!r}, using INFO", unknown_level)

    # Optional file sink for scheduled runs
    log_file = os.getenv("TTL_AUDIT_LOG_FILE")
    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                log_file,
                level=log_level,
                backtrace=True,
                diagnose=False,
                rotation=os.getenv("TTL_AUDIT_LOG_ROTATION", "10 MB"),
                retention=os.getenv("TTL_AUDIT_LOG_RETENTION", "7 days"),
                format="{time} | {level} | {extra[module]} | {message}",
            )
            logger.info("File logging enabled: {}", log_file)
        except OSError as e:
            # continue with stderr only
            logger.warning("Could not open log file {}: {}", log_file, e)

    # Bridge stdlib logging through loguru
    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(getattr(logging, log_level, logging.INFO))

    return logger.bind(app=app_name, module=app_name)


def get_child_logger(name: str, app_name: str = "ttl_audit") -> Any:
    """Convenience: return a logger bound with module/name."""
    return logger.bind(app=app_name, module=name)


__all__ = [
    "InterceptHandler",
    "configure_logging",
    "get_child_logger",
]
