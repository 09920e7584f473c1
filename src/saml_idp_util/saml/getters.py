"""Principal value getters shared by NameID and attribute resolution.

A getter is either an ``Invocable`` (a function called with the principal) or
an ``AccessorName`` (a name looked up on the principal). Both NameID and
attribute values go through ``invoke_getter``; only the handling of a missing
accessor differs.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, runtime_checkable

from ..utils.exceptions import IdentifierResolutionError

logger = logging.getLogger(__name__)

_MISSING = object()

_CAMEL_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_LOWER_UPPER = re.compile(r"([a-z\d])([A-Z])")


@runtime_checkable
class AttributeProvider(Protocol):
    """Principal capability: supplies its own attribute specs."""

    asserted_attributes: Any


@dataclass(frozen=True)
class Invocable:
    """Getter backed by a callable taking the principal."""

    function: Callable[[Any], Any]


@dataclass(frozen=True)
class AccessorName:
    """Getter backed by a named accessor on the principal."""

    name: str


def to_accessor_name(name: Any) -> str:
    """Normalize a getter or friendly name into a snake_case accessor.

    Example:
        >>> to_accessor_name("EmailAddress")
        'email_address'
        >>> to_accessor_name("first-name")
        'first_name'
    """
    text = str(name)
    text = _CAMEL_BOUNDARY.sub(r"\1_\2", text)
    text = _LOWER_UPPER.sub(r"\1_\2", text)
    return re.sub(r"[-\s]+", "_", text).lower()


def as_getter(value: Any) -> Optional[Any]:
    """Tag a raw getter value: callable, name, or None (no getter)."""
    if value is None or isinstance(value, (Invocable, AccessorName)):
        return value
    if callable(value):
        return Invocable(value)
    if value == "":
        return None
    return AccessorName(to_accessor_name(value))


def _lookup(principal: Any, accessor: str) -> Any:
    """Read an accessor from the principal, or return _MISSING."""
    if isinstance(principal, Mapping):
        return principal.get(accessor, _MISSING)
    if accessor.startswith("_") or not hasattr(principal, accessor):
        return _MISSING
    value = getattr(principal, accessor)
    return value() if callable(value) else value


def invoke_getter(getter: Any, principal: Any, required: bool = False) -> Any:
    """Invoke a tagged getter on the principal.

    Args:
        getter: Invocable or AccessorName
        principal: Principal object or mapping
        required: When True a missing accessor raises instead of yielding None

    Returns:
        The getter's result (None for a missing optional accessor)

    Raises:
        IdentifierResolutionError: If required and the accessor is missing
    """
    if isinstance(getter, Invocable):
        return getter.function(principal)

    value = _lookup(principal, getter.name)
    if value is _MISSING:
        if required:
            raise IdentifierResolutionError(
                f"Principal {type(principal).__name__} has no accessor "
                f"{getter.name!r}. Provide the accessor or a callable getter."
            )
        logger.debug(f"Principal has no accessor {getter.name!r}, no values")
        return None
    return value


def coerce_values(result: Any) -> List[Any]:
    """Coerce a getter result to a list of values.

    None becomes an empty list, strings and mappings a single value, and any
    other iterable its items.
    """
    if result is None:
        return []
    if isinstance(result, (str, bytes, Mapping)):
        return [result]
    if isinstance(result, Iterable):
        return list(result)
    return [result]


def value_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def resolve_attribute_values(
    friendly_name: str, getter: Any, principal: Any
) -> List[str]:
    """Resolve the text values of one attribute.

    A callable getter is called with the principal; a getter name, or the
    friendly name when there is no getter, is looked up as an accessor.
    Missing accessors and blank getter names yield no values.
    """
    if isinstance(getter, str) and not getter.strip():
        logger.debug(f"Blank getter for attribute {friendly_name!r}, no values")
        return []
    tagged = as_getter(getter)
    if tagged is None:
        tagged = AccessorName(to_accessor_name(friendly_name))
    values = coerce_values(invoke_getter(tagged, principal))
    return [value_to_text(value) for value in values]


def provided_attributes(principal: Any) -> Optional[Any]:
    """Return the principal's own attribute specs, if it provides any."""
    if isinstance(principal, Mapping) or not isinstance(principal, AttributeProvider):
        return None
    provided = principal.asserted_attributes
    return provided() if callable(provided) else provided
