"""Assertion Builder Example.

This example demonstrates using the AssertionBuilder class to issue SAML 2.0
assertions for a Service Provider after a principal has authenticated.

Key features demonstrated:
- Raw assertion with the configured NameID format
- Explicit NameID formats and asserted attributes
- Principals that supply their own attributes
- Signed assertions (enveloped XML-DSig after Issuer)
- Signed and encrypted assertions for the SP certificate
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from lxml import etree

# Add src to path for running as standalone script
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from saml_idp_util.config import Config, set_config
from saml_idp_util.models.saml import AssertionRequestContext, EncryptionOptions
from saml_idp_util.saml import AssertionBuilder
from saml_idp_util.saml.namespaces import PASSWORD_PROTECTED_TRANSPORT


class User:
    """A user record as an application would hand it to the IdP."""

    def __init__(self, email, user_id, first_name, roles):
        self.email = email
        self.user_id = user_id
        self.first_name = first_name
        self.roles = roles


class Clinician(User):
    """A user that decides its own asserted attributes."""

    def asserted_attributes(self):
        return {
            "FirstName": None,
            "Role": {"name": "urn:oid:1.3.6.1.4.1.5923.1.1.1.1", "getter": "roles"},
        }


def _self_signed(common_name):
    """Generate a key pair and self-signed certificate (PEM text)."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("ascii")
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii"), key_pem


IDP_CERT, IDP_KEY = _self_signed("Example IdP")
SP_CERT, _ = _self_signed("Example SP")


def _context(principal, **overrides):
    values = dict(
        reference_id="example-1",
        issuer_uri="https://idp.hospital-a.example.com",
        principal=principal,
        audience_uri="https://ehr.example.com",
        saml_acs_url="https://ehr.example.com/saml/acs",
        algorithm="sha256",
        authn_context_classref=PASSWORD_PROTECTED_TRANSPORT,
        public_cert=IDP_CERT,
        private_key=IDP_KEY,
        private_key_password="",
    )
    values.update(overrides)
    return AssertionRequestContext(**values)


def _print_xml(xml_text, limit=900):
    pretty = etree.tostring(
        etree.fromstring(xml_text.encode("utf-8")), pretty_print=True, encoding="unicode"
    )
    print("-" * 70)
    print(pretty[:limit] + ("..." if len(pretty) > limit else ""))
    print("-" * 70)


def example_raw_assertion():
    """Example 1: Raw assertion with the configured NameID format."""
    print("\n" + "=" * 70)
    print("Example 1: Raw Assertion")
    print("=" * 70)

    user = User("dr.smith@hospital-a.example.com", "u-1001", "Alex", ["physician"])
    builder = AssertionBuilder(_context(user, saml_request_id="_authn-42"))

    print(f"\n✓ Assertion ID: {builder.reference_string}")
    print(f"  • NameID format: {builder.name_id_format.format}")
    print(f"  • NameID: {builder.name_id}")
    _print_xml(builder.raw())


def example_explicit_formats_and_attributes():
    """Example 2: Explicit NameID format and attributes with a session expiry."""
    print("\n" + "=" * 70)
    print("Example 2: Explicit NameID Format and Attributes")
    print("=" * 70)

    user = User("nurse.jones@hospital-a.example.com", "u-2002", "Sam", ["nurse", "triage"])
    builder = AssertionBuilder(
        _context(
            user,
            name_id_formats={"2.0": {"persistent": "user_id"}},
            asserted_attributes={
                "Email": None,
                "Roles": {"getter": lambda u: [r.upper() for r in u.roles]},
            },
            session_expiry=8 * 60 * 60,
        )
    )
    _print_xml(builder.raw())


def example_principal_attributes():
    """Example 3: Principal supplies its own attributes."""
    print("\n" + "=" * 70)
    print("Example 3: Principal-Provided Attributes")
    print("=" * 70)

    clinician = Clinician("dr.lee@hospital-a.example.com", "u-3003", "Jordan", ["faculty"])
    builder = AssertionBuilder(_context(clinician))

    print(f"\n✓ Attributes: {', '.join(builder.asserted_attributes)}")
    _print_xml(builder.raw())


def example_signed_and_encrypted():
    """Example 4: Signed, then signed and encrypted for the SP."""
    print("\n" + "=" * 70)
    print("Example 4: Signed and Encrypted Assertions")
    print("=" * 70)

    user = User("dr.smith@hospital-a.example.com", "u-1001", "Alex", ["physician"])
    builder = AssertionBuilder(
        _context(user, encryption=EncryptionOptions(cert=SP_CERT, block_encryption="aes256-gcm"))
    )

    signed_xml = builder.signed()
    print("\n✓ Signed assertion (Signature follows Issuer):")
    _print_xml(signed_xml, limit=700)

    envelope = builder.encrypt(sign=True)
    print("\n✓ EncryptedAssertion for the SP:")
    _print_xml(envelope, limit=700)


def main():
    """Run all examples."""
    # Examples do not depend on ./config/config.json
    set_config(Config())

    print("\n" + "=" * 70)
    print("SAML Assertion Builder Examples")
    print("=" * 70)

    example_raw_assertion()
    example_explicit_formats_and_attributes()
    example_principal_attributes()
    example_signed_and_encrypted()

    print("\n" + "=" * 70)
    print("✓ All examples completed successfully!")
    print("=" * 70 + "\n")


if __name__ == "__main__":
    main()
