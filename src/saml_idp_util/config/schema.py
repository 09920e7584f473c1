"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from saml_idp_util.config.defaults import DEFAULT_NAME_ID_FORMATS


class AssertionConfig(BaseModel):
    """Defaults applied to every issued assertion.

    Attributes:
        session_expiry: SessionNotOnOrAfter offset in seconds (0 omits it)
    """

    session_expiry: int = Field(
        default=0,
        ge=0,
        description="Session expiry in seconds, 0 to omit SessionNotOnOrAfter",
    )


class NameIdConfig(BaseModel):
    """Default NameID format candidates.

    Attributes:
        formats: Mapping of SAML version ("1.1" or "2.0") to an ordered
            mapping of format name to accessor name (None uses the format name)
    """

    formats: Dict[str, Dict[str, Optional[str]]] = Field(
        default_factory=lambda: {
            version: dict(entries)
            for version, entries in DEFAULT_NAME_ID_FORMATS.items()
        }
    )

    @field_validator("formats")
    @classmethod
    def validate_versions(
        cls, v: Dict[str, Dict[str, Optional[str]]]
    ) -> Dict[str, Dict[str, Optional[str]]]:
        """Validate NameID format groups are keyed by SAML version.

        Raises:
            ValueError: If a key is not "1.1" or "2.0"
        """
        invalid = [version for version in v if version not in ("1.1", "2.0")]
        if invalid:
            raise ValueError(
                f"Invalid NameID format version(s): {', '.join(invalid)}. "
                f"Must be one of: 1.1, 2.0"
            )
        return v


class AttributeConfig(BaseModel):
    """Default asserted attribute, keyed by friendly name in Config.attributes.

    Attributes:
        name: XML Name (defaults to the friendly name)
        name_format: NameFormat URI (defaults to the URI reference type)
        getter: Principal accessor name (defaults to the friendly name)
    """

    name: Optional[str] = None
    name_format: Optional[str] = None
    getter: Optional[str] = None


class CertificatesConfig(BaseModel):
    """Configuration for IdP signing certificate and key paths.

    Attributes:
        cert_path: Path to PEM certificate file
        key_path: Path to PEM private key file
        key_password_env_var: Environment variable holding the key passphrase
    """

    cert_path: Optional[Path] = None
    key_path: Optional[Path] = None
    key_password_env_var: Optional[str] = Field(
        default="SAML_IDP_KEY_PASSWORD",
        description="Environment variable for private key passphrase",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact e-mail addresses and key material in logs
    """

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/saml-idp-util.log"),
        description="Path to log file"
    )
    redact_pii: bool = Field(
        default=False,
        description="Redact PII from logs"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level.

        Args:
            v: Log level string

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is invalid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper


class Config(BaseModel):
    """Main configuration model.

    Attributes:
        assertion: Assertion defaults
        name_id: Default NameID format candidates
        attributes: Default asserted attributes keyed by friendly name (null
            for all defaults)
        certificates: Certificate configuration
        logging: Logging configuration
    """

    assertion: AssertionConfig = Field(default_factory=AssertionConfig)
    name_id: NameIdConfig = Field(default_factory=NameIdConfig)
    attributes: Dict[str, Optional[AttributeConfig]] = Field(default_factory=dict)
    certificates: CertificatesConfig = Field(default_factory=CertificatesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
