"""Custom log formatters for the SAML IdP Utility."""

import logging
import re
from typing import List, Tuple

# (pattern, replacement) pairs applied in order
REDACTION_PATTERNS: List[Tuple[re.Pattern[str], str]] = [
    # Certificates and (encrypted) private keys
    (
        re.compile(r"-----BEGIN ([A-Z0-9 ]+)-----.*?-----END \1-----", re.DOTALL),
        "[PEM-REDACTED]",
    ),
    # E-mail addresses, the usual NameID value
    (re.compile(r"\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+\b"), "[EMAIL-REDACTED]"),
]


class RedactingFormatter(logging.Formatter):
    """Formatter that redacts principal identifiers and key material.

    NameIDs are frequently e-mail addresses, and PEM text can surface in
    exception messages from key loading; both are replaced when enabled.

    Example:
        >>> formatter = RedactingFormatter(
        ...     fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        ...     redact_pii=True
        ... )
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

    @staticmethod
    def redact(message: str) -> str:
        for pattern, replacement in REDACTION_PATTERNS:
            message = pattern.sub(replacement, message)
        return message

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        return self.redact(formatted) if self.redact_pii else formatted
