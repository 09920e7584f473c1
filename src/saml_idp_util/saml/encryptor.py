"""XML Encryption of finished assertions.

Wraps a serialized assertion in ``<saml:EncryptedAssertion>``: the assertion
is encrypted with a fresh AES key (CBC or GCM) and that key is encrypted for
the Service Provider's certificate with RSA key transport, following the
W3C XML Encryption syntax.
"""

import base64
import logging
import os
import uuid
from typing import Any, Dict, Tuple

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from lxml import etree

from ..models.saml import EncryptionOptions
from ..utils.exceptions import UnsupportedAlgorithmError
from .certificates import certificate_body, load_certificate
from .namespaces import (
    DS_NS,
    SAML_NS,
    XENC11_NS,
    XENC_ELEMENT_TYPE,
    XENC_NS,
    ds_tag,
    saml_tag,
    xenc_tag,
)

logger = logging.getLogger(__name__)

# name -> (algorithm URI, key size in bytes, mode)
BLOCK_ENCRYPTIONS: Dict[str, Tuple[str, int, str]] = {
    "aes128-cbc": (XENC_NS + "aes128-cbc", 16, "cbc"),
    "aes192-cbc": (XENC_NS + "aes192-cbc", 24, "cbc"),
    "aes256-cbc": (XENC_NS + "aes256-cbc", 32, "cbc"),
    "aes128-gcm": (XENC11_NS + "aes128-gcm", 16, "gcm"),
    "aes256-gcm": (XENC11_NS + "aes256-gcm", 32, "gcm"),
}

KEY_TRANSPORTS: Dict[str, str] = {
    "rsa-oaep-mgf1p": XENC_NS + "rsa-oaep-mgf1p",
    "rsa-1_5": XENC_NS + "rsa-1_5",
}

GCM_NONCE_SIZE = 12
CBC_IV_SIZE = 16


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class AssertionEncryptor:
    """Encrypt serialized assertions for one Service Provider certificate.

    Attributes:
        options: Encryption options (certificate, block cipher, key transport)

    Raises:
        UnsupportedAlgorithmError: If block encryption or key transport is unknown

    Example:
        >>> encryptor = AssertionEncryptor(EncryptionOptions(cert=sp_cert_pem))
        >>> envelope = encryptor.encrypt(assertion_xml)
        >>> assert envelope.startswith("<saml:EncryptedAssertion")
    """

    def __init__(self, options: EncryptionOptions) -> None:
        if options.block_encryption not in BLOCK_ENCRYPTIONS:
            raise UnsupportedAlgorithmError(
                f"Unsupported block encryption: {options.block_encryption!r}. "
                f"Supported: {', '.join(BLOCK_ENCRYPTIONS)}"
            )
        if options.key_transport not in KEY_TRANSPORTS:
            raise UnsupportedAlgorithmError(
                f"Unsupported key transport: {options.key_transport!r}. "
                f"Supported: {', '.join(KEY_TRANSPORTS)}"
            )
        self.options = options

    def _encrypt_content(self, key: bytes, plaintext: bytes) -> bytes:
        _, _, mode = BLOCK_ENCRYPTIONS[self.options.block_encryption]
        if mode == "gcm":
            nonce = os.urandom(GCM_NONCE_SIZE)
            return nonce + AESGCM(key).encrypt(nonce, plaintext, None)

        iv = os.urandom(CBC_IV_SIZE)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        return iv + encryptor.update(padded) + encryptor.finalize()

    def _encrypt_key(self, key: bytes) -> bytes:
        public_key: Any = load_certificate(self.options.cert).public_key()
        if self.options.key_transport == "rsa-1_5":
            return public_key.encrypt(key, asym_padding.PKCS1v15())
        return public_key.encrypt(
            key,
            asym_padding.OAEP(
                mgf=asym_padding.MGF1(algorithm=hashes.SHA1()),
                algorithm=hashes.SHA1(),
                label=None,
            ),
        )

    def encrypt(self, xml_text: str) -> str:
        """Encrypt an assertion and return the EncryptedAssertion XML text.

        Args:
            xml_text: Serialized assertion (signed or unsigned)

        Returns:
            Serialized <saml:EncryptedAssertion> element
        """
        block_uri, key_size, _ = BLOCK_ENCRYPTIONS[self.options.block_encryption]
        data_id = f"_{uuid.uuid4().hex}"
        key_id = f"_{uuid.uuid4().hex}"

        content_key = os.urandom(key_size)
        cipher_value = self._encrypt_content(content_key, xml_text.encode("utf-8"))
        key_cipher_value = self._encrypt_key(content_key)

        envelope = etree.Element(saml_tag("EncryptedAssertion"), nsmap={"saml": SAML_NS})
        encrypted_data = etree.SubElement(
            envelope,
            xenc_tag("EncryptedData"),
            nsmap={"xenc": XENC_NS},
            attrib={"Id": data_id, "Type": XENC_ELEMENT_TYPE},
        )
        etree.SubElement(
            encrypted_data, xenc_tag("EncryptionMethod"), attrib={"Algorithm": block_uri}
        )

        key_info = etree.SubElement(encrypted_data, ds_tag("KeyInfo"), nsmap={"ds": DS_NS})
        encrypted_key = etree.SubElement(
            key_info, xenc_tag("EncryptedKey"), attrib={"Id": key_id}
        )
        etree.SubElement(
            encrypted_key,
            xenc_tag("EncryptionMethod"),
            attrib={"Algorithm": KEY_TRANSPORTS[self.options.key_transport]},
        )
        recipient_info = etree.SubElement(encrypted_key, ds_tag("KeyInfo"))
        x509_data = etree.SubElement(recipient_info, ds_tag("X509Data"))
        etree.SubElement(x509_data, ds_tag("X509Certificate")).text = certificate_body(
            self.options.cert
        )
        key_cipher_data = etree.SubElement(encrypted_key, xenc_tag("CipherData"))
        etree.SubElement(key_cipher_data, xenc_tag("CipherValue")).text = _b64(
            key_cipher_value
        )
        reference_list = etree.SubElement(encrypted_key, xenc_tag("ReferenceList"))
        etree.SubElement(
            reference_list, xenc_tag("DataReference"), attrib={"URI": f"#{data_id}"}
        )

        cipher_data = etree.SubElement(encrypted_data, xenc_tag("CipherData"))
        etree.SubElement(cipher_data, xenc_tag("CipherValue")).text = _b64(cipher_value)

        logger.info(
            f"Encrypted assertion: block={self.options.block_encryption}, "
            f"key_transport={self.options.key_transport}"
        )
        return etree.tostring(envelope, encoding="unicode")
