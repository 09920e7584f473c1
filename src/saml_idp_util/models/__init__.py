"""Models module.

This module provides data models and dataclasses for the application.
"""

from saml_idp_util.models.saml import (
    AssertionRequestContext,
    AttributeSpec,
    EncryptionOptions,
    KeyMaterial,
    NameIdFormatChoice,
    TimeWindow,
)

__all__ = [
    "AssertionRequestContext",
    "AttributeSpec",
    "EncryptionOptions",
    "KeyMaterial",
    "NameIdFormatChoice",
    "TimeWindow",
]
