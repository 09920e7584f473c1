"""Data models for SAML assertion issuance.

This module defines dataclasses for the per-issuance request context, the
attribute and NameID descriptions, the derived validity windows, and the key
material handed to the signing and encryption collaborators.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional, Union

# Timestamp format for every SAML instant (UTC, second precision)
SAML_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

DEFAULT_EXPIRY_SECONDS = 60 * 60
NOT_BEFORE_SKEW_SECONDS = 5
SUBJECT_CONFIRMATION_SECONDS = 3 * 60


def format_saml_instant(instant: datetime) -> str:
    """Format a UTC datetime as a SAML ISO 8601 instant with Z suffix.

    Example:
        >>> format_saml_instant(datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc))
        '2025-01-01T12:00:00Z'
    """
    return instant.strftime(SAML_TIME_FORMAT)


@dataclass(frozen=True)
class AttributeSpec:
    """Description of one asserted attribute, keyed by its friendly name.

    Attributes:
        name: Explicit XML Name (defaults to the friendly name)
        name_format: NameFormat override (defaults to the URI reference type)
        getter: Callable taking the principal, or an accessor name. When unset
            the friendly name itself is used as accessor.
    """

    name: Optional[str] = None
    name_format: Optional[str] = None
    getter: Optional[Union[Callable[[Any], Any], str]] = None

    @classmethod
    def coerce(cls, value: Any) -> "AttributeSpec":
        """Build an AttributeSpec from None, a mapping, or an AttributeSpec."""
        if value is None:
            return cls()
        if isinstance(value, AttributeSpec):
            return value
        if isinstance(value, Mapping):
            return cls(
                name=value.get("name"),
                name_format=value.get("name_format"),
                getter=value.get("getter"),
            )
        raise TypeError(
            f"Attribute spec must be None, a mapping or AttributeSpec, got: {value!r}"
        )


@dataclass(frozen=True)
class NameIdFormatChoice:
    """The NameID format selected for a builder instance.

    Attributes:
        format: Full NameID format URI
        getter: Tagged getter (Invocable or AccessorName) producing the value
    """

    format: str
    getter: Any


@dataclass(frozen=True)
class EncryptionOptions:
    """Options for wrapping an assertion in an EncryptedAssertion.

    Attributes:
        cert: Service Provider certificate (PEM or bare base64 body)
        block_encryption: Content cipher name (e.g. aes256-cbc, aes128-gcm)
        key_transport: Key transport name (rsa-oaep-mgf1p or rsa-1_5)
    """

    cert: str
    block_encryption: str = "aes256-cbc"
    key_transport: str = "rsa-oaep-mgf1p"

    @classmethod
    def coerce(cls, value: Any) -> Optional["EncryptionOptions"]:
        if value is None or isinstance(value, EncryptionOptions):
            return value
        if isinstance(value, Mapping):
            return cls(**value)
        raise TypeError(
            f"Encryption options must be a mapping or EncryptionOptions, got: {value!r}"
        )


@dataclass(frozen=True)
class KeyMaterial:
    """IdP signing key material.

    Attributes:
        public_cert: Signing certificate (PEM or bare base64 body)
        private_key: PEM encoded private key
        passphrase: Private key passphrase (empty for unencrypted keys)
    """

    public_cert: str
    private_key: str
    passphrase: str


@dataclass(frozen=True)
class TimeWindow:
    """Every timestamp of one assertion, derived from a single instant.

    Attributes:
        issue_instant: Assertion IssueInstant and AuthnInstant
        not_before: Conditions NotBefore (now - 5s)
        subject_not_on_or_after: SubjectConfirmationData NotOnOrAfter (now + 180s)
        condition_not_on_or_after: Conditions NotOnOrAfter (now + expiry)
        session_not_on_or_after: AuthnStatement SessionNotOnOrAfter, None when
            session expiry is 0
    """

    issue_instant: str
    not_before: str
    subject_not_on_or_after: str
    condition_not_on_or_after: str
    session_not_on_or_after: Optional[str]

    @classmethod
    def from_instant(
        cls, now: datetime, expiry: int, session_expiry: int
    ) -> "TimeWindow":
        session_not_on_or_after = None
        if session_expiry != 0:
            session_not_on_or_after = format_saml_instant(
                now + timedelta(seconds=session_expiry)
            )
        return cls(
            issue_instant=format_saml_instant(now),
            not_before=format_saml_instant(
                now - timedelta(seconds=NOT_BEFORE_SKEW_SECONDS)
            ),
            subject_not_on_or_after=format_saml_instant(
                now + timedelta(seconds=SUBJECT_CONFIRMATION_SECONDS)
            ),
            condition_not_on_or_after=format_saml_instant(
                now + timedelta(seconds=expiry)
            ),
            session_not_on_or_after=session_not_on_or_after,
        )


@dataclass(frozen=True)
class AssertionRequestContext:
    """Immutable input for issuing one assertion.

    Required fields default to None so that a missing value surfaces as a
    ConstructionError naming it, rather than a TypeError.

    Attributes:
        reference_id: Unique reference; ID and SessionIndex are "_" + reference_id
        issuer_uri: IdP entity identifier
        principal: Authenticated principal (object or mapping)
        audience_uri: SP entity identifier
        saml_acs_url: Assertion Consumer Service URL (Recipient)
        algorithm: Signing algorithm spec (e.g. "sha256")
        authn_context_classref: AuthnContextClassRef value
        public_cert: IdP signing certificate
        private_key: IdP signing key (PEM)
        private_key_password: Passphrase for private_key ("" if unencrypted)
        saml_request_id: AuthnRequest ID for InResponseTo (optional)
        expiry: Conditions validity in seconds (must be > 0)
        session_expiry: Session validity in seconds, None for the configured
            default, 0 to omit SessionNotOnOrAfter
        name_id_formats: Explicit NameID format candidates
        asserted_attributes: Explicit attribute specs keyed by friendly name
        encryption: EncryptionOptions (or mapping) enabling encrypt()
    """

    reference_id: Optional[str] = None
    issuer_uri: Optional[str] = None
    principal: Any = None
    audience_uri: Optional[str] = None
    saml_acs_url: Optional[str] = None
    algorithm: Optional[str] = None
    authn_context_classref: Optional[str] = None
    public_cert: Optional[str] = None
    private_key: Optional[str] = None
    private_key_password: Optional[str] = None
    saml_request_id: Optional[str] = None
    expiry: int = DEFAULT_EXPIRY_SECONDS
    session_expiry: Optional[int] = None
    name_id_formats: Any = None
    asserted_attributes: Optional[Mapping[str, Any]] = None
    encryption: Optional[Union[EncryptionOptions, Mapping[str, Any]]] = None

    @property
    def key_material(self) -> KeyMaterial:
        return KeyMaterial(
            public_cert=self.public_cert,
            private_key=self.private_key,
            passphrase=self.private_key_password,
        )
