"""
callscope/security/sanitizer.py
================================
Input Sanitizer - CallScope Security Layer

Responsibility:
    - Strip script blocks, markup tags, ``javascript:`` schemes and inline
      event-handler patterns from free text
    - Trim surrounding whitespace

Regex stripping is a defense-in-depth layer, NOT a complete HTML sanitizer.
Obfuscated or nested payloads can survive it; whatever renders the text must
still escape it.

Patterns are applied in a fixed order. Script blocks MUST be removed before
generic tags, otherwise the script body would survive as plain text.
"""

import re

# ---------------------------------------------------------------------------
# Patterns (applied in order)
# ---------------------------------------------------------------------------

_SCRIPT_BLOCK_PATTERN: re.Pattern[str] = re.compile(
    r"<script[^>]*>.*?</script>",
    re.IGNORECASE | re.DOTALL,
)

_TAG_PATTERN: re.Pattern[str] = re.compile(r"<[^>]*>")

_JAVASCRIPT_SCHEME_PATTERN: re.Pattern[str] = re.compile(
    r"javascript:",
    re.IGNORECASE,
)

_EVENT_HANDLER_PATTERN: re.Pattern[str] = re.compile(
    r"on\w+\s*=",
    re.IGNORECASE,
)

_PATTERNS: tuple[re.Pattern[str], ...] = (
    _SCRIPT_BLOCK_PATTERN,
    _TAG_PATTERN,
    _JAVASCRIPT_SCHEME_PATTERN,
    _EVENT_HANDLER_PATTERN,
)


def sanitize_input(text: str) -> str:
    """
    Remove markup and script vectors from user-supplied text.

    Args:
        text: Raw user input.

    Returns:
        The stripped, trimmed text.

    Raises:
        TypeError: If ``text`` is not a string.
    """
    if not isinstance(text, str):
        raise TypeError(f"Input must be a string, got {type(text).__name__}")

    result = text
    for pattern in _PATTERNS:
        result = pattern.sub("", result)

    return result.strip()
