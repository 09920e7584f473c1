"""NameID format selection.

Turns an ordered list of NameID format candidates into format URIs and
picks one deterministically. Candidates may be grouped by SAML version
(``{"1.1": {...}, "2.0": {...}}``), in which case a 1.1 format wins over a
2.0 format, or given as a flat sequence/mapping of SAML 2.0 formats.
"""

import logging
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple

from ..models.saml import NameIdFormatChoice
from .getters import as_getter, to_accessor_name
from .namespaces import NAMEID_FORMAT_PREFIX

logger = logging.getLogger(__name__)

VERSIONS = ("1.1", "2.0")
DEFAULT_FORMAT = "persistent"


def _lower_camel(snake_name: str) -> str:
    head, *rest = snake_name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _entries(candidates: Any) -> List[Tuple[str, Any]]:
    """Flatten one group of candidates into (name, getter) pairs."""
    if not candidates:
        return []
    if isinstance(candidates, Mapping):
        return list(candidates.items())
    if isinstance(candidates, str):
        return [(candidates, None)]

    entries = []
    for entry in candidates:
        if isinstance(entry, Mapping):
            entries.extend(entry.items())
        elif isinstance(entry, (tuple, list)):
            name, getter = entry
            entries.append((name, getter))
        else:
            entries.append((entry, None))
    return entries


class NameIdFormatter:
    """Select a NameID format and getter from ordered candidates.

    Example:
        >>> formatter = NameIdFormatter({"1.1": {"email_address": "email"}})
        >>> formatter.chosen.format
        'urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress'
        >>> NameIdFormatter(None).chosen.format
        'urn:oasis:names:tc:SAML:2.0:nameid-format:persistent'
    """

    def __init__(self, candidates: Any) -> None:
        self.candidates = candidates if candidates is not None else []

    @property
    def split(self) -> bool:
        """True when candidates are grouped by SAML version."""
        return isinstance(self.candidates, Mapping) and any(
            version in self.candidates for version in VERSIONS
        )

    def _grouped(self) -> List[Tuple[str, List[Tuple[str, Any]]]]:
        if self.split:
            return [
                (version, _entries(self.candidates.get(version)))
                for version in VERSIONS
            ]
        return [("2.0", _entries(self.candidates))]

    @property
    def all(self) -> List[str]:
        """Every candidate format URI, in preference order."""
        return [
            self.build(version, name, getter).format
            for version, entries in self._grouped()
            for name, getter in entries
        ]

    @property
    def chosen(self) -> NameIdFormatChoice:
        """The first candidate in preference order, or persistent 2.0."""
        for version, entries in self._grouped():
            if entries:
                name, getter = entries[0]
                choice = self.build(version, name, getter)
                break
        else:
            choice = self.build("2.0", DEFAULT_FORMAT, None)

        logger.debug(f"Chose NameID format {choice.format}")
        return choice

    @staticmethod
    def build(version: str, name: Any, getter: Optional[Any]) -> NameIdFormatChoice:
        """Build the format URI and tagged getter for one candidate.

        Names starting with ``urn:`` are used verbatim. Without a getter the
        snake_case form of the name is used as accessor.
        """
        name = str(name)
        if name.startswith("urn:"):
            format_uri = name
            accessor = name.rsplit(":", 1)[-1]
        else:
            accessor = to_accessor_name(name)
            format_uri = NAMEID_FORMAT_PREFIX.format(version=version) + _lower_camel(
                accessor
            )

        tagged = as_getter(getter)
        if tagged is None:
            tagged = as_getter(accessor)
        return NameIdFormatChoice(format=format_uri, getter=tagged)
