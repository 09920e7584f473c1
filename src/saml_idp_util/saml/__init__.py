"""SAML 2.0 assertion issuance module.

This module provides functionality for:
- Building SAML 2.0 assertions for a Service Provider (AssertionBuilder)
- Choosing NameID formats and resolving principal attributes
- Signing assertions with X.509 certificates (using SignXML)
- Encrypting assertions for the Service Provider (XML Encryption)
"""

from saml_idp_util.saml.algorithms import SigningAlgorithms, resolve_algorithms
from saml_idp_util.saml.assertion_builder import AssertionBuilder
from saml_idp_util.saml.encryptor import AssertionEncryptor
from saml_idp_util.saml.getters import (
    AccessorName,
    AttributeProvider,
    Invocable,
)
from saml_idp_util.saml.name_id_formatter import NameIdFormatter
from saml_idp_util.saml.signer import SAMLSigner

__all__ = [
    "AssertionBuilder",
    "NameIdFormatter",
    "AttributeProvider",
    "Invocable",
    "AccessorName",
    "SigningAlgorithms",
    "resolve_algorithms",
    "SAMLSigner",
    "AssertionEncryptor",
]
