"""SAML IdP Utility - SAML 2.0 assertion issuance for Identity Providers."""

__version__ = "0.1.0"
