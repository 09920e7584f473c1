"""XML namespace and URI constants used when emitting SAML documents."""

# SAML 2.0 namespace
SAML_NS = "urn:oasis:names:tc:SAML:2.0:assertion"

# XML Signature namespace
DS_NS = "http://www.w3.org/2000/09/xmldsig#"

# XML Encryption namespaces
XENC_NS = "http://www.w3.org/2001/04/xmlenc#"
XENC11_NS = "http://www.w3.org/2009/xmlenc11#"

BEARER_METHOD = "urn:oasis:names:tc:SAML:2.0:cm:bearer"
ATTRNAME_FORMAT_URI = "urn:oasis:names:tc:SAML:2.0:attrname-format:uri"
NAMEID_FORMAT_PREFIX = "urn:oasis:names:tc:SAML:{version}:nameid-format:"

PASSWORD_PROTECTED_TRANSPORT = (
    "urn:oasis:names:tc:SAML:2.0:ac:classes:PasswordProtectedTransport"
)

EXC_C14N = "http://www.w3.org/2001/10/xml-exc-c14n#"
XENC_ELEMENT_TYPE = XENC_NS + "Element"


def saml_tag(local_name: str) -> str:
    """Return the Clark-notation tag for a SAML assertion element."""
    return f"{{{SAML_NS}}}{local_name}"


def ds_tag(local_name: str) -> str:
    """Return the Clark-notation tag for an XML Signature element."""
    return f"{{{DS_NS}}}{local_name}"


def xenc_tag(local_name: str) -> str:
    """Return the Clark-notation tag for an XML Encryption element."""
    return f"{{{XENC_NS}}}{local_name}"
