"""SAML 2.0 assertion builder.

This module builds the ``<saml:Assertion>`` an Identity Provider hands to a
Service Provider after authenticating a principal. The assertion is built as
an lxml tree in schema order; ``signed()`` marks the slot after Issuer for
the signer and ``encrypt()`` wraps the finished text in an
EncryptedAssertion.

Every timestamp comes from one instant captured on first use, and the NameID
format and attribute source are resolved once, so repeated calls on one
builder describe the same assertion.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from lxml import etree

from ..config.manager import get_config
from ..config.schema import Config
from ..models.saml import (
    AssertionRequestContext,
    AttributeSpec,
    EncryptionOptions,
    NameIdFormatChoice,
    TimeWindow,
)
from ..utils.exceptions import (
    ConfigurationError,
    ConstructionError,
    IdentifierResolutionError,
)
from .algorithms import resolve_algorithms
from .encryptor import AssertionEncryptor
from .getters import (
    invoke_getter,
    provided_attributes,
    resolve_attribute_values,
    value_to_text,
)
from .name_id_formatter import NameIdFormatter
from .namespaces import (
    ATTRNAME_FORMAT_URI,
    BEARER_METHOD,
    SAML_NS,
    saml_tag,
)
from .signer import SAMLSigner, signature_placeholder

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "reference_id",
    "issuer_uri",
    "principal",
    "audience_uri",
    "saml_acs_url",
    "algorithm",
    "authn_context_classref",
    "public_cert",
    "private_key",
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _missing_fields(context: AssertionRequestContext) -> List[str]:
    missing = [
        field
        for field in REQUIRED_FIELDS
        if getattr(context, field) is None or getattr(context, field) == ""
    ]
    # An empty passphrase is valid for an unencrypted key
    if context.private_key_password is None:
        missing.append("private_key_password")
    return missing


def _is_seconds(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce_specs(specs: Any) -> Dict[str, AttributeSpec]:
    """Coerce a mapping of friendly name to spec into AttributeSpecs.

    Raises:
        TypeError: If specs is not a mapping or an entry is malformed
    """
    if specs is None:
        return {}
    if not isinstance(specs, Mapping):
        raise TypeError(
            f"Attribute specs must be a mapping, got: {type(specs).__name__}"
        )
    return {
        str(friendly_name): AttributeSpec.coerce(spec)
        for friendly_name, spec in specs.items()
    }


def _build_assertion_element(
    assertion_id: str, issue_instant: str, issuer: str
) -> etree._Element:
    """Build the Assertion root element with its Issuer."""
    assertion = etree.Element(
        saml_tag("Assertion"),
        nsmap={"saml": SAML_NS},
        attrib={
            "ID": assertion_id,
            "IssueInstant": issue_instant,
            "Version": "2.0",
        },
    )
    etree.SubElement(assertion, saml_tag("Issuer")).text = issuer
    return assertion


def _add_subject_element(
    assertion: etree._Element,
    name_id: str,
    name_id_format: str,
    window: TimeWindow,
    recipient: str,
    in_response_to: Optional[str],
) -> None:
    """Add Subject with NameID and bearer SubjectConfirmation."""
    subject = etree.SubElement(assertion, saml_tag("Subject"))
    name_id_elem = etree.SubElement(
        subject, saml_tag("NameID"), attrib={"Format": name_id_format}
    )
    name_id_elem.text = name_id

    confirmation = etree.SubElement(
        subject, saml_tag("SubjectConfirmation"), attrib={"Method": BEARER_METHOD}
    )
    confirmation_data = etree.SubElement(
        confirmation, saml_tag("SubjectConfirmationData")
    )
    if in_response_to is not None:
        confirmation_data.set("InResponseTo", in_response_to)
    confirmation_data.set("NotOnOrAfter", window.subject_not_on_or_after)
    confirmation_data.set("Recipient", recipient)


def _add_conditions_element(
    assertion: etree._Element, window: TimeWindow, audience: str
) -> None:
    conditions = etree.SubElement(
        assertion,
        saml_tag("Conditions"),
        attrib={
            "NotBefore": window.not_before,
            "NotOnOrAfter": window.condition_not_on_or_after,
        },
    )
    restriction = etree.SubElement(conditions, saml_tag("AudienceRestriction"))
    etree.SubElement(restriction, saml_tag("Audience")).text = audience


def _add_authn_statement(
    assertion: etree._Element,
    window: TimeWindow,
    session_index: str,
    authn_context_classref: str,
) -> None:
    """Add AuthnStatement; SessionNotOnOrAfter only when a session expiry is set."""
    statement = etree.SubElement(
        assertion,
        saml_tag("AuthnStatement"),
        attrib={"AuthnInstant": window.issue_instant, "SessionIndex": session_index},
    )
    if window.session_not_on_or_after is not None:
        statement.set("SessionNotOnOrAfter", window.session_not_on_or_after)

    context = etree.SubElement(statement, saml_tag("AuthnContext"))
    etree.SubElement(context, saml_tag("AuthnContextClassRef")).text = (
        authn_context_classref
    )


def _add_attribute_statement(
    assertion: etree._Element,
    specs: Dict[str, AttributeSpec],
    principal: Any,
) -> None:
    """Add AttributeStatement with one Attribute per spec.

    Attributes whose accessor is missing are still emitted, without values.
    """
    statement = etree.SubElement(assertion, saml_tag("AttributeStatement"))
    for friendly_name, spec in specs.items():
        attribute = etree.SubElement(
            statement,
            saml_tag("Attribute"),
            attrib={
                "Name": spec.name or friendly_name,
                "NameFormat": spec.name_format or ATTRNAME_FORMAT_URI,
                "FriendlyName": friendly_name,
            },
        )
        values = resolve_attribute_values(friendly_name, spec.getter, principal)
        for value in values:
            etree.SubElement(attribute, saml_tag("AttributeValue")).text = value
        logger.debug(f"Added attribute {friendly_name} ({len(values)} values)")


class AssertionBuilder:
    """Build, sign and encrypt one SAML 2.0 assertion.

    A builder serves a single issuance. ``raw()`` and ``signed()`` may be
    called any number of times and always describe the same assertion.

    Attributes:
        context: The request context the assertion is built from
        session_expiry: Effective session expiry in seconds
        encryption_options: Options enabling encrypt(), or None

    Raises:
        ConstructionError: If a required context field is missing or a
            validity period is out of range

    Example:
        >>> builder = AssertionBuilder(context)
        >>> xml = builder.raw()
        >>> signed_xml = builder.signed()
        >>> envelope = builder.encrypt(sign=True)
    """

    def __init__(
        self,
        context: AssertionRequestContext,
        config: Optional[Config] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Validate the context and apply configured defaults.

        Args:
            context: Per-issuance request context
            config: Configuration for defaults (the active configuration if None)
            clock: Callable returning the current time (aware UTC datetime)
        """
        missing = _missing_fields(context)
        if missing:
            raise ConstructionError(
                f"Missing required assertion field(s): {', '.join(missing)}. "
                f"Provide all required values in the request context."
            )

        if not _is_seconds(context.expiry) or context.expiry <= 0:
            raise ConstructionError(
                f"expiry must be a positive number of seconds, got: {context.expiry!r}"
            )

        self.context = context
        self._config = config
        self._clock = clock or _utc_now
        self._now: Optional[datetime] = None
        self._name_id_format: Optional[NameIdFormatChoice] = None
        self._attribute_specs: Optional[Dict[str, AttributeSpec]] = None

        session_expiry = context.session_expiry
        if session_expiry is None:
            session_expiry = self.config.assertion.session_expiry
        if not _is_seconds(session_expiry) or session_expiry < 0:
            raise ConstructionError(
                f"session_expiry must be 0 or a positive number of seconds, "
                f"got: {session_expiry!r}"
            )
        self.session_expiry = session_expiry

        try:
            self.encryption_options = EncryptionOptions.coerce(context.encryption)
        except TypeError as e:
            raise ConstructionError(f"Invalid encryption options: {e}") from e

        try:
            self._request_attribute_specs = _coerce_specs(context.asserted_attributes)
        except TypeError as e:
            raise ConstructionError(f"Invalid asserted attributes: {e}") from e

        logger.debug(
            f"AssertionBuilder initialized: reference={self.reference_string}, "
            f"expiry={context.expiry}s, session_expiry={self.session_expiry}s"
        )

    @property
    def config(self) -> Config:
        if self._config is None:
            self._config = get_config()
        return self._config

    @property
    def reference_string(self) -> str:
        return f"_{self.context.reference_id}"

    @property
    def now(self) -> datetime:
        """The issuance instant, captured once on first use."""
        if self._now is None:
            now = self._clock()
            if now.tzinfo is None:
                now = now.replace(tzinfo=timezone.utc)
            self._now = now.astimezone(timezone.utc)
        return self._now

    @property
    def time_window(self) -> TimeWindow:
        return TimeWindow.from_instant(
            self.now, self.context.expiry, self.session_expiry
        )

    @property
    def name_id_format(self) -> NameIdFormatChoice:
        """The NameID format and getter, chosen once per builder."""
        if self._name_id_format is None:
            candidates = self.context.name_id_formats or self.config.name_id.formats
            self._name_id_format = NameIdFormatter(candidates).chosen
        return self._name_id_format

    @property
    def name_id(self) -> str:
        """Resolve the NameID value from the principal.

        Raises:
            IdentifierResolutionError: If the principal has no value for it
        """
        value = invoke_getter(
            self.name_id_format.getter, self.context.principal, required=True
        )
        if value is None or value == "":
            raise IdentifierResolutionError(
                f"NameID getter returned no value for format "
                f"{self.name_id_format.format}. A subject needs an identifier."
            )
        return value_to_text(value)

    @property
    def asserted_attributes(self) -> Dict[str, AttributeSpec]:
        """Attribute specs from the first non-empty source, resolved once.

        Sources in order: the request context, the principal's own
        asserted_attributes, the configured default attributes.
        """
        if self._attribute_specs is None:
            source, specs = "none", {}
            if self._request_attribute_specs:
                source, specs = "request", self._request_attribute_specs
            else:
                provided = provided_attributes(self.context.principal)
                if provided:
                    source, specs = "principal", _coerce_specs(provided)
                elif self.config.attributes:
                    source = "config"
                    specs = {
                        friendly_name: AttributeSpec(
                            name=attr.name,
                            name_format=attr.name_format,
                            getter=attr.getter,
                        )
                        if attr is not None
                        else AttributeSpec()
                        for friendly_name, attr in self.config.attributes.items()
                    }

            self._attribute_specs = specs
            logger.debug(
                f"Attribute source: {source} ({len(self._attribute_specs)} attributes)"
            )
        return self._attribute_specs

    def _build(self, sign: bool = False) -> etree._Element:
        """Build the assertion tree, with a signature slot when signing."""
        window = self.time_window
        context = self.context

        assertion = _build_assertion_element(
            self.reference_string, window.issue_instant, context.issuer_uri
        )
        if sign:
            assertion.append(signature_placeholder())

        _add_subject_element(
            assertion,
            self.name_id,
            self.name_id_format.format,
            window,
            context.saml_acs_url,
            context.saml_request_id,
        )
        _add_conditions_element(assertion, window, context.audience_uri)
        _add_authn_statement(
            assertion, window, self.reference_string, context.authn_context_classref
        )
        if self.asserted_attributes:
            _add_attribute_statement(
                assertion, self.asserted_attributes, context.principal
            )

        logger.info(
            f"Built SAML assertion: ID={self.reference_string}, "
            f"audience={context.audience_uri}"
        )
        return assertion

    def raw(self) -> str:
        """Return the unsigned assertion XML."""
        return etree.tostring(self._build(), encoding="unicode")

    fresh = raw

    def signed(self) -> str:
        """Return the assertion XML with an enveloped signature after Issuer."""
        algorithms = resolve_algorithms(self.context.algorithm)
        signed_element = SAMLSigner().sign(
            self._build(sign=True), self.context.key_material, algorithms
        )
        return etree.tostring(signed_element, encoding="unicode")

    def encrypt(self, sign: bool = False) -> str:
        """Encrypt the signed or unsigned assertion for the Service Provider.

        Args:
            sign: Sign the assertion before encrypting it

        Returns:
            Serialized <saml:EncryptedAssertion>

        Raises:
            ConfigurationError: If no encryption options were configured
        """
        if self.encryption_options is None:
            raise ConfigurationError(
                "Must set encryption options to encrypt. "
                "Provide 'encryption' in the request context."
            )
        xml_text = self.signed() if sign else self.raw()
        return AssertionEncryptor(self.encryption_options).encrypt(xml_text)
