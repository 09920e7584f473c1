"""XML signing module using signxml library.

This module signs SAML assertions with an enveloped XML Signature (XMLDSig)
and exclusive C14N canonicalization. The assertion tree carries a
``<ds:Signature Id="placeholder"/>`` element right after Issuer; signxml
replaces it with the computed signature, so the signature lands where the
SAML schema requires it without reordering any other content.
"""

import logging

from lxml import etree
from signxml import SignatureConstructionMethod, XMLSigner

from ..models.saml import KeyMaterial
from .algorithms import SigningAlgorithms
from .certificates import load_private_key, normalize_pem_certificate
from .namespaces import DS_NS, EXC_C14N, ds_tag

logger = logging.getLogger(__name__)

PLACEHOLDER_ID = "placeholder"


def signature_placeholder() -> etree._Element:
    """Create the element marking where the signature is inserted."""
    return etree.Element(
        ds_tag("Signature"), nsmap={"ds": DS_NS}, attrib={"Id": PLACEHOLDER_ID}
    )


class SAMLSigner:
    """Sign SAML assertions with XML digital signatures.

    Signing failures raised by signxml or cryptography (bad key, wrong
    passphrase, malformed certificate) are not caught here.

    Example:
        >>> signer = SAMLSigner()
        >>> signed = signer.sign(assertion, key_material, resolve_algorithms("sha256"))
        >>> assert signed.find(".//{http://www.w3.org/2000/09/xmldsig#}SignatureValue") is not None
    """

    def sign(
        self,
        assertion: etree._Element,
        key_material: KeyMaterial,
        algorithms: SigningAlgorithms,
    ) -> etree._Element:
        """Sign an assertion tree that contains a signature placeholder.

        Args:
            assertion: Assertion root element with an ID attribute
            key_material: IdP certificate, private key and passphrase
            algorithms: Digest and signature algorithms

        Returns:
            Signed assertion root element
        """
        assertion_id = assertion.get("ID")
        logger.info(f"Signing SAML assertion: {assertion_id}")

        signer = XMLSigner(
            method=SignatureConstructionMethod.enveloped,
            signature_algorithm=algorithms.signature,
            digest_algorithm=algorithms.digest,
            c14n_algorithm=EXC_C14N,
        )

        private_key = load_private_key(key_material.private_key, key_material.passphrase)
        signed_element = signer.sign(
            assertion,
            key=private_key,
            cert=normalize_pem_certificate(key_material.public_cert),
            reference_uri=f"#{assertion_id}",
        )

        logger.info(
            f"SAML assertion signed successfully: {assertion_id} "
            f"({algorithms.signature.name})"
        )
        return signed_element
