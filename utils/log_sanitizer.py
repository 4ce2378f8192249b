"""Log sanitizer - keeps reminder text out of log files.

Reminder titles and bodies are free text typed by the user (medication
names, phone numbers of a clinic, ...). Only a redacted, shortened form is
ever written to the logs.
"""

import re
from typing import Optional

# Patterns to detect and redact sensitive data
SENSITIVE_PATTERNS = [
    # Email addresses
    (r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b', '[EMAIL]'),

    # Phone numbers, international or local
    (r'(?:\+\d{1,3}[\s.-]?)?\(?\d{2,4}\)?[\s.-]?\d{3,4}[\s.-]?\d{3,4}\b', '[PHONE]'),

    # URLs with query strings often carry tokens
    (r'https?://\S+\?\S+', '[URL]'),

    # Dosages ("20mg", "2.5 ml") - medication reminders
    (r'\b\d+(?:\.\d+)?\s?(?:mg|mcg|ml|iu)\b', '[DOSE]'),
]

_COMPILED_PATTERNS = [(re.compile(p, re.IGNORECASE), r) for p, r in SENSITIVE_PATTERNS]


def sanitize_log(text: Optional[str]) -> Optional[str]:
    """Replace sensitive fragments of reminder text with placeholders."""
    if not text:
        return text

    result = text
    for pattern, replacement in _COMPILED_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def sanitize_for_log(value: Optional[str], max_length: int = 60) -> str:
    """Sanitize and truncate a reminder title/body for a log line.

    Args:
        value: Reminder text (may be None)
        max_length: Maximum length of the returned string

    Returns:
        Redacted text, truncated with a length marker when too long
    """
    if value is None:
        return "<None>"

    sanitized = sanitize_log(str(value))
    if len(sanitized) > max_length:
        return sanitized[:max_length] + f"... [{len(value)} chars]"
    return sanitized
