"""Signing algorithm resolution.

Maps an algorithm spec (``"sha256"``, ``"rsa-sha512"`` or an XML-DSig
signature method URI) to the signxml digest and signature algorithms.
"""

import logging
from typing import NamedTuple

from signxml import DigestAlgorithm, SignatureMethod

from ..utils.exceptions import UnsupportedAlgorithmError

logger = logging.getLogger(__name__)


class SigningAlgorithms(NamedTuple):
    """Digest and signature algorithm pair used for one signature."""

    digest: DigestAlgorithm
    signature: SignatureMethod


_ALGORITHMS = {
    "sha256": SigningAlgorithms(DigestAlgorithm.SHA256, SignatureMethod.RSA_SHA256),
    "sha384": SigningAlgorithms(DigestAlgorithm.SHA384, SignatureMethod.RSA_SHA384),
    "sha512": SigningAlgorithms(DigestAlgorithm.SHA512, SignatureMethod.RSA_SHA512),
}


def _normalize(algorithm_spec: str) -> str:
    spec = str(algorithm_spec).strip().lower()
    # http://www.w3.org/2001/04/xmldsig-more#rsa-sha256
    if "#" in spec:
        spec = spec.rsplit("#", 1)[-1]
    if spec.startswith("rsa-"):
        spec = spec[len("rsa-"):]
    return spec


def resolve_algorithms(algorithm_spec: str) -> SigningAlgorithms:
    """Resolve an algorithm spec to its digest and signature algorithms.

    Args:
        algorithm_spec: Spec such as "sha256", "RSA-SHA512" or a signature URI

    Returns:
        SigningAlgorithms pair

    Raises:
        UnsupportedAlgorithmError: If the spec is unknown or SHA-1 based

    Example:
        >>> resolve_algorithms("sha256").signature
        <SignatureMethod.RSA_SHA256: 'http://www.w3.org/2001/04/xmldsig-more#rsa-sha256'>
    """
    spec = _normalize(algorithm_spec)
    if spec not in _ALGORITHMS:
        raise UnsupportedAlgorithmError(
            f"Unsupported signature algorithm: {algorithm_spec!r}. "
            f"Supported algorithms: {', '.join(sorted(_ALGORITHMS))}"
        )

    logger.debug(f"Resolved algorithm spec {algorithm_spec!r} to {spec}")
    return _ALGORITHMS[spec]
