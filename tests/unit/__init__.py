"""Unit tests for individual saml_idp_util modules."""
