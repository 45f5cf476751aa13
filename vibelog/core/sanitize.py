"""Summary sanitization.  The summary is stored on the ledger publicly and
permanently, so secrets are redacted and the length is capped first."""

from __future__ import annotations

import re
from dataclasses import dataclass

MAX_SUMMARY_LENGTH = 200
REDACTED = "[REDACTED]"

SENSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"sk_[a-zA-Z0-9_]{20,}"),  # secret API keys
    re.compile(r"pk_[a-zA-Z0-9_]{20,}"),
    re.compile(r"[\w.-]+@[\w.-]+\.\w+"),  # email addresses
    re.compile(r"0x[a-fA-F0-9]{64}"),  # private keys / raw hashes
    re.compile(r"ghp_[a-zA-Z0-9]{36}"),  # GitHub tokens
    re.compile(r"AIza[a-zA-Z0-9_-]{35}"),  # Google API keys
)


@dataclass(frozen=True)
class SanitizedSummary:
    text: str
    had_sensitive_data: bool
    truncated: bool


def sanitize_summary(text: str, max_length: int = MAX_SUMMARY_LENGTH) -> SanitizedSummary:
    """Redact known secret shapes, trim, and cap at *max_length* characters."""
    sanitized = text
    had_sensitive_data = False
    for pattern in SENSITIVE_PATTERNS:
        sanitized, n = pattern.subn(REDACTED, sanitized)
        had_sensitive_data = had_sensitive_data or n > 0
    sanitized = sanitized.strip()
    truncated = len(sanitized) > max_length
    return SanitizedSummary(
        text=sanitized[:max_length],
        had_sensitive_data=had_sensitive_data,
        truncated=truncated,
    )
