"""Logging Audit module.

This module provides logging configuration and redaction.
"""

from .formatters import RedactingFormatter
from .logger import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "RedactingFormatter",
]
