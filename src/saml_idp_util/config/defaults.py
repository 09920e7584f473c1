"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# NameID candidates when neither the request nor the config file names any
DEFAULT_NAME_ID_FORMATS: dict[str, dict[str, Any]] = {
    "1.1": {"email_address": "email"},
}

# Default configuration dictionary
# This is used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "assertion": {
        # Omit SessionNotOnOrAfter unless configured
        "session_expiry": 0,
    },
    "name_id": {
        "formats": DEFAULT_NAME_ID_FORMATS,
    },
    # No attributes asserted unless configured
    "attributes": {},
    "certificates": {
        # No default certificate paths - must be provided by user
        "cert_path": None,
        "key_path": None,
        # Default environment variable for private key passphrase
        "key_password_env_var": "SAML_IDP_KEY_PASSWORD",
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/saml-idp-util.log",
        # Do not redact PII by default (user must opt-in for privacy)
        "redact_pii": False,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"
