"""
Shared pytest configuration and fixtures.

This module provides fixtures and configuration used across all test suites
(unit and integration tests): generated IdP/SP key material, principals,
request contexts and a decryption helper for EncryptedAssertion envelopes.
"""

import base64
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, padding, serialization
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.x509.oid import NameOID
from lxml import etree

from saml_idp_util.config import Config, reset_config, set_config
from saml_idp_util.models.saml import AssertionRequestContext

XENC = "http://www.w3.org/2001/04/xmlenc#"

FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def _generate_key_and_cert(common_name: str):
    """Generate an RSA key and a self-signed certificate for it."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "US"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "TestOrg"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])
    now = datetime.now(timezone.utc)
    cert = x509.CertificateBuilder().subject_name(
        name
    ).issuer_name(
        name
    ).public_key(
        private_key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now - timedelta(days=1)
    ).not_valid_after(
        now + timedelta(days=365)
    ).add_extension(
        x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
        critical=False,
    ).add_extension(
        x509.AuthorityKeyIdentifier.from_issuer_public_key(private_key.public_key()),
        critical=False,
    ).sign(private_key, hashes.SHA256())
    return private_key, cert


class Principal:
    """Principal exposing an email accessor and a few profile fields."""

    def __init__(self, email="user@example.com", first_name="Jane", groups=None):
        self.email = email
        self.first_name = first_name
        self.groups = groups if groups is not None else ["staff", "admins"]

    def persistent(self) -> str:
        return "persistent-1234"


class AttributeProvidingPrincipal(Principal):
    """Principal that declares its own asserted attributes."""

    def asserted_attributes(self):
        return {"FirstName": {"getter": "first_name"}}


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def default_config() -> Generator[Config, None, None]:
    """Install a default configuration, independent of ./config/config.json."""
    config = Config()
    set_config(config)
    yield config
    reset_config()


@pytest.fixture(scope="session")
def idp_keys():
    """IdP signing key and certificate."""
    return _generate_key_and_cert("Test IdP")


@pytest.fixture(scope="session")
def sp_keys():
    """SP encryption key and certificate."""
    return _generate_key_and_cert("Test SP")


@pytest.fixture(scope="session")
def idp_cert_pem(idp_keys) -> str:
    _, cert = idp_keys
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


@pytest.fixture(scope="session")
def idp_key_pem(idp_keys) -> str:
    private_key, _ = idp_keys
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def idp_encrypted_key_pem(idp_keys) -> str:
    """IdP private key protected by the passphrase 'secret'."""
    private_key, _ = idp_keys
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.BestAvailableEncryption(b"secret"),
    ).decode("ascii")


@pytest.fixture(scope="session")
def sp_cert_pem(sp_keys) -> str:
    _, cert = sp_keys
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


@pytest.fixture
def principal() -> Principal:
    return Principal()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def make_context(principal, idp_cert_pem, idp_key_pem) -> Callable[..., AssertionRequestContext]:
    """Factory for request contexts with valid defaults and overrides."""

    def _make(**overrides) -> AssertionRequestContext:
        values = dict(
            reference_id="abc123",
            issuer_uri="https://idp.example.com",
            principal=principal,
            audience_uri="https://sp.example.com",
            saml_acs_url="https://sp.example.com/saml/acs",
            algorithm="sha256",
            authn_context_classref=(
                "urn:oasis:names:tc:SAML:2.0:ac:classes:PasswordProtectedTransport"
            ),
            public_cert=idp_cert_pem,
            private_key=idp_key_pem,
            private_key_password="",
        )
        values.update(overrides)
        return AssertionRequestContext(**values)

    return _make


@pytest.fixture
def decrypt_envelope(sp_keys) -> Callable[[str], str]:
    """Return a function decrypting an EncryptedAssertion with the SP key."""
    sp_private_key, _ = sp_keys

    def _decrypt(envelope_xml: str) -> str:
        root = etree.fromstring(envelope_xml.encode("utf-8"))
        ns = {"xenc": XENC}
        encrypted_data = root.find("xenc:EncryptedData", ns)
        block_uri = encrypted_data.find("xenc:EncryptionMethod", ns).get("Algorithm")
        encrypted_key = encrypted_data.find(".//xenc:EncryptedKey", ns)
        transport_uri = encrypted_key.find("xenc:EncryptionMethod", ns).get("Algorithm")

        key_cipher = base64.b64decode(
            encrypted_key.find("xenc:CipherData/xenc:CipherValue", ns).text
        )
        if transport_uri.endswith("rsa-1_5"):
            content_key = sp_private_key.decrypt(key_cipher, asym_padding.PKCS1v15())
        else:
            content_key = sp_private_key.decrypt(
                key_cipher,
                asym_padding.OAEP(
                    mgf=asym_padding.MGF1(algorithm=hashes.SHA1()),
                    algorithm=hashes.SHA1(),
                    label=None,
                ),
            )

        payload = base64.b64decode(
            encrypted_data.find("xenc:CipherData/xenc:CipherValue", ns).text
        )
        if block_uri.endswith("gcm"):
            plaintext = AESGCM(content_key).decrypt(payload[:12], payload[12:], None)
        else:
            decryptor = Cipher(
                algorithms.AES(content_key), modes.CBC(payload[:16])
            ).decryptor()
            padded = decryptor.update(payload[16:]) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")

    return _decrypt
