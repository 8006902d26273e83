"""
=============================================================================
URL-ENCODED PARAMETERS
=============================================================================

Query strings and application/x-www-form-urlencoded bodies share one
format and one decoder:

    title=Old+bike&price=12.50&note=50%25+off
      │                              │
      ▼                              ▼
    {"title": "Old bike", "price": "12.50", "note": "50% off"}

DECODING RULES
──────────────

    %XX   → the byte with hex value XX (both digits required)
    +     → space
    other → passed through unchanged

A '%' that is not followed by two hex digits ("100%", "%zz") stays a
literal '%'. Decoding works on bytes, so multi-byte UTF-8 sequences such
as "%C3%A9" come back as "é"; invalid UTF-8 is replaced, never raised.

PAIR RULES
──────────

    a=1&b=2   → {"a": "1", "b": "2"}
    flag      → {"flag": ""}           (no '=' means empty value)
    a=1&a=2   → {"a": "2"}             (last one wins)
    &&        → {}                     (empty tokens are skipped)

=============================================================================
"""

from typing import Dict
from urllib.parse import parse_qsl, unquote_plus


def percent_decode(value: str) -> str:
    """
    Decode a percent-encoded string.

    Args:
        value: Raw key or value taken from a query string or form body.

    Returns:
        The decoded text.

    Examples:
        >>> percent_decode("hello+world%21")
        'hello world!'
        >>> percent_decode("100%")
        '100%'
    """
    return unquote_plus(value, encoding="utf-8", errors="replace")


def parse_params(data: str) -> Dict[str, str]:
    """
    Parse "key=value&key=value" into a dict of decoded strings.

    Keys and values are decoded exactly as percent_decode() does. dict()
    keeps the last value of a repeated key.
    """
    return dict(parse_qsl(data, keep_blank_values=True, encoding="utf-8", errors="replace"))
