"""Configuration loading and the active configuration.

Configuration comes from, highest precedence first:

1. ``SAML_IDP_*`` environment variables (a ``.env`` file is honoured)
2. the JSON configuration file (``config/config.json`` by default)
3. built-in defaults

Assertion builders read the *active* configuration (``get_config``) for any
option their request context leaves unset.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from dotenv import load_dotenv
from pydantic import ValidationError

from saml_idp_util.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from saml_idp_util.config.schema import Config, LoggingConfig
from saml_idp_util.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SAML_IDP_"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def _parse_seconds(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{value!r} is not a whole number of seconds") from None


# Environment variable suffix -> (section, key, parser)
ENV_OVERRIDES: Dict[str, Tuple[str, str, Callable[[str], Any]]] = {
    "SESSION_EXPIRY": ("assertion", "session_expiry", _parse_seconds),
    "CERT_PATH": ("certificates", "cert_path", str),
    "KEY_PATH": ("certificates", "key_path", str),
    "LOG_LEVEL": ("logging", "level", str),
    "LOG_FILE": ("logging", "log_file", str),
    "REDACT_PII": ("logging", "redact_pii", _parse_bool),
}

# Keys that must never hold secrets in a configuration file
SENSITIVE_CERTIFICATE_KEYS = ("key_password", "private_key_password")

_active_config: Optional[Config] = None


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load and validate the configuration.

    Args:
        config_path: JSON configuration file; ./config/config.json if None.
            A missing file means built-in defaults.

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If the file is malformed or a value is invalid

    Example:
        >>> config = load_config(Path("config/idp.json"))
        >>> config.assertion.session_expiry
        28800
    """
    load_dotenv()

    config_path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_PATH)
    config_dict = _read_config_file(config_path)
    _warn_on_secrets(config_dict, config_path)
    _apply_env_overrides(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and the "
            f"{ENV_PREFIX}* environment variables."
        )


def _read_config_file(config_path: Path) -> dict[str, Any]:
    """Read the JSON configuration file, or a copy of the defaults if absent.

    Raises:
        ConfigurationError: If the file is not valid JSON or cannot be read
    """
    if not config_path.exists():
        logger.info(f"Config file not found: {config_path}. Using defaults.")
        return json.loads(json.dumps(DEFAULT_CONFIG))

    try:
        config_dict = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in config file: {config_path}\n"
            f"Error: {e}\n"
            f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
        )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read config file: {config_path}\n"
            f"Error: {e}\n"
            f"Fix: Check file permissions and path"
        )

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a JSON object, "
            f"got {type(config_dict).__name__}"
        )
    logger.info(f"Loaded configuration from {config_path}")
    return config_dict


def _apply_env_overrides(config_dict: dict[str, Any]) -> None:
    """Apply SAML_IDP_* environment variables onto the configuration dict.

    Raises:
        ConfigurationError: If a variable cannot be parsed
    """
    for suffix, (section, key, parse) in ENV_OVERRIDES.items():
        env_var = f"{ENV_PREFIX}{suffix}"
        raw_value = os.getenv(env_var)
        if not raw_value:
            continue
        try:
            value = parse(raw_value)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid {env_var}: {e}\n"
                f"Fix: Correct or unset the environment variable"
            )
        config_dict.setdefault(section, {})[key] = value
        logger.debug(f"Override: {section}.{key} from {env_var}")


def _warn_on_secrets(config_dict: dict[str, Any], config_path: Path) -> None:
    certificates = config_dict.get("certificates") or {}
    if any(key in certificates for key in SENSITIVE_CERTIFICATE_KEYS):
        logger.warning(
            f"WARNING: Private key password found in configuration file {config_path}! "
            f"Store it in the environment variable named by "
            f"certificates.key_password_env_var ({ENV_PREFIX}KEY_PASSWORD by default)."
        )


def get_config() -> Config:
    """Return the active configuration, loading it on first use."""
    global _active_config
    if _active_config is None:
        _active_config = load_config()
    return _active_config


def set_config(config: Config) -> None:
    """Replace the active configuration read by assertion builders."""
    global _active_config
    _active_config = config
    logger.debug("Active configuration replaced")


def reset_config() -> None:
    """Forget the active configuration; the next get_config() reloads it."""
    global _active_config
    _active_config = None


def get_certificate_paths(config: Config) -> tuple[Optional[Path], Optional[Path]]:
    """Return the configured (cert_path, key_path) of the IdP signing key."""
    return config.certificates.cert_path, config.certificates.key_path


def get_logging_config(config: Config) -> LoggingConfig:
    return config.logging
