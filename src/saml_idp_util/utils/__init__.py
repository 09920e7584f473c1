"""Utility helpers shared across the SAML IdP Utility."""
