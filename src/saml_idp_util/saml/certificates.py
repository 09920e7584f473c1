"""Certificate and private key helpers.

Certificates may be supplied as full PEM text or as the bare base64 body that
IdP configurations often carry; both are normalized to PEM before use.
"""

import logging
import textwrap
from pathlib import Path
from typing import Any, Optional

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from ..utils.exceptions import CertificateLoadError

logger = logging.getLogger(__name__)

PEM_CERT_HEADER = "-----BEGIN CERTIFICATE-----"
PEM_CERT_FOOTER = "-----END CERTIFICATE-----"


def normalize_pem_certificate(cert_text: str) -> str:
    """Return PEM certificate text, wrapping a bare base64 body if needed.

    Example:
        >>> normalize_pem_certificate("MIIB...").startswith(PEM_CERT_HEADER)
        True
    """
    text = cert_text.strip()
    if PEM_CERT_HEADER in text:
        return text + "\n"
    body = "".join(text.split())
    return f"{PEM_CERT_HEADER}\n" + "\n".join(textwrap.wrap(body, 64)) + f"\n{PEM_CERT_FOOTER}\n"


def certificate_body(cert_text: str) -> str:
    """Return the base64 body of a certificate without PEM armour or whitespace."""
    pem = normalize_pem_certificate(cert_text)
    body = pem.replace(PEM_CERT_HEADER, "").replace(PEM_CERT_FOOTER, "")
    return "".join(body.split())


def load_certificate(cert_text: str) -> x509.Certificate:
    """Parse certificate text (PEM or bare base64) into an X.509 certificate."""
    return x509.load_pem_x509_certificate(
        normalize_pem_certificate(cert_text).encode("ascii")
    )


def load_private_key(key_text: str, passphrase: Optional[str]) -> Any:
    """Load a PEM private key, using the passphrase only when non-empty.

    cryptography errors (wrong passphrase, malformed key) propagate unchanged.
    """
    password = passphrase.encode("utf-8") if passphrase else None
    data = key_text.encode("ascii") if isinstance(key_text, str) else key_text
    return serialization.load_pem_private_key(data, password=password)


def read_pem_file(path: Path) -> str:
    """Read a PEM file as text.

    Raises:
        CertificateLoadError: If the file cannot be read or holds no PEM data
    """
    try:
        content = path.read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError) as e:
        raise CertificateLoadError(
            f"Failed to read PEM file: {path}. Error: {e}. "
            f"Check the file path and permissions."
        ) from e

    if "-----BEGIN" not in content:
        raise CertificateLoadError(
            f"File does not contain PEM data: {path}. "
            f"Provide a PEM encoded certificate or private key."
        )

    logger.debug(f"Loaded PEM file: {path.name}")
    return content
