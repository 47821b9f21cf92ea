"""
Monitoring infrastructure for the revenue ledger.

This package provides:
- Structured logging with JSON or console output
- Request logging middleware for the HTTP API

Usage:
    from monitoring import get_logger

    logger = get_logger("my_module")
    logger.info("Something happened", extra={"project_id": 1})
"""

from monitoring.logging import LoggingContext, configure_logging, get_logger
from monitoring.middleware import setup_request_logging

__all__ = [
    "LoggingContext",
    "configure_logging",
    "get_logger",
    "setup_request_logging",
]
