"""Logging configuration and logger factory for the SAML IdP Utility.

Console output follows the requested level; the rotating log file always
records DEBUG so that NameID and attribute resolution decisions can be
traced after the fact. With redaction enabled, e-mail addresses and PEM
blocks never reach either handler.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .formatters import RedactingFormatter

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "saml-idp-util.log"
LOG_FILE_ENV_VAR = "SAML_IDP_LOG_FILE"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5
VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Handlers installed by configure_logging, replaced on reconfiguration
_installed_handlers: list[logging.Handler] = []


def _numeric_level(level: str) -> int:
    numeric_level = getattr(logging, level.upper(), None)
    if level.upper() not in VALID_LEVELS or not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. Must be one of: {', '.join(VALID_LEVELS)}"
        )
    return numeric_level


def _resolve_log_file(log_file: Optional[Path]) -> Path:
    """Pick the log file: argument, then SAML_IDP_LOG_FILE, then the default.

    Raises:
        RuntimeError: If the log directory cannot be created
    """
    if log_file is None:
        env_log_file = os.environ.get(LOG_FILE_ENV_VAR)
        log_file = Path(env_log_file) if env_log_file else DEFAULT_LOG_FILE

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(
            f"Failed to create log directory: {log_file.parent}. "
            f"Ensure write permissions are available. Error: {e}"
        ) from e
    return log_file


def _remove_installed_handlers(root_logger: logging.Logger) -> None:
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_pii: bool = False,
) -> None:
    """Configure console and rotating file logging.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               The file handler always records DEBUG.
        log_file: Log file path. If None, SAML_IDP_LOG_FILE or
                  logs/saml-idp-util.log is used.
        redact_pii: Whether to redact e-mail addresses and PEM blocks

    Raises:
        ValueError: If the log level is invalid
        RuntimeError: If the log directory cannot be created

    Example:
        >>> configure_logging(level="DEBUG", redact_pii=True)
        >>> configure_logging(level="INFO", log_file=Path("custom/idp.log"))
    """
    console_level = _numeric_level(level)
    log_file = _resolve_log_file(log_file)

    root_logger = logging.getLogger()
    _remove_installed_handlers(root_logger)
    root_logger.setLevel(logging.DEBUG)

    formatter = RedactingFormatter(fmt=DEFAULT_LOG_FORMAT, redact_pii=redact_pii)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    _installed_handlers.append(console_handler)

    try:
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        root_logger.warning(
            f"Failed to create file handler for {log_file}: {e}. "
            f"Logging to console only."
        )
        return

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
    _installed_handlers.append(file_handler)


def get_logger(module_name: str) -> logging.Logger:
    """Get a logger for the specified module.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Assertion issued")
    """
    return logging.getLogger(module_name)
