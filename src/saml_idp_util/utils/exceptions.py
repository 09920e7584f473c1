"""Custom exception classes for the SAML IdP Utility.

All exceptions inherit from SAMLIdPError to allow catching all custom exceptions.
Failures raised by signxml, cryptography or lxml are not wrapped here: they
reach the caller unchanged.
"""


class SAMLIdPError(Exception):
    """Base exception for all SAML IdP Utility custom exceptions."""

    pass


class ConstructionError(SAMLIdPError):
    """Raised when an assertion builder cannot be constructed.
    
    Examples:
        - Missing issuer URI or audience URI
        - Missing key material
        - Non-positive expiry
    """

    pass


class ConfigurationError(SAMLIdPError):
    """Raised when configuration loading or validation fails.
    
    Examples:
        - encrypt() called without encryption options
        - Invalid configuration file format
        - Configuration value out of range
    """

    pass


class IdentifierResolutionError(SAMLIdPError):
    """Raised when the subject NameID cannot be resolved from the principal.
    
    Examples:
        - Principal has no accessor for the chosen NameID getter
        - Accessor returned no value
    """

    pass


class CryptoError(SAMLIdPError):
    """Raised for local signing or encryption configuration problems.
    
    Examples:
        - Unsupported signature algorithm
        - Unsupported block encryption or key transport
        - Certificate file cannot be read
    """

    pass


class UnsupportedAlgorithmError(CryptoError):
    """Raised when an algorithm identifier is unknown or not allowed."""

    pass


class CertificateLoadError(CryptoError):
    """Raised when certificate or key loading fails.
    
    Examples:
        - Certificate file not found
        - File does not contain PEM data
    """

    pass
