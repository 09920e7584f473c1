"""Config module.

This module provides configuration management functionality.
"""

from saml_idp_util.config.manager import (
    get_certificate_paths,
    get_config,
    get_logging_config,
    load_config,
    reset_config,
    set_config,
)
from saml_idp_util.config.schema import (
    AssertionConfig,
    AttributeConfig,
    CertificatesConfig,
    Config,
    LoggingConfig,
    NameIdConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    # Active configuration
    "get_config",
    "set_config",
    "reset_config",
    # Helper functions
    "get_certificate_paths",
    "get_logging_config",
    # Configuration models
    "Config",
    "AssertionConfig",
    "NameIdConfig",
    "AttributeConfig",
    "CertificatesConfig",
    "LoggingConfig",
]
