"""
Compact JSON writer for API response bodies.

    {"ads":[{"id":1,"price":150.00,"mine":false}]}

Differences from json.dumps:
- no whitespace between tokens
- Decimal values (money) are written with exactly two decimal digits
- string escaping is limited to \\", \\\\, \\n, \\r, \\t and \\u00XX for the
  remaining control characters; everything else, non-ASCII included,
  is written verbatim
"""

import math
from decimal import Decimal
from typing import Any


_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def escape_string(value: str) -> str:
    """Escape a string for use between JSON double quotes."""
    parts = []
    for ch in value:
        escaped = _ESCAPES.get(ch)
        if escaped is not None:
            parts.append(escaped)
        elif ord(ch) < 0x20:
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(ch)
    return "".join(parts)


def dumps(value: Any) -> str:
    """
    Serialize dicts, lists, tuples, strings, numbers, bools and None.

    Raises:
        TypeError: For any other type, and for non-finite numbers.
    """
    # bool before int: True is an int
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return f'"{escape_string(value)}"'
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise TypeError(f"Cannot serialize non-finite amount: {value}")
        return f"{value:.2f}"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeError(f"Cannot serialize non-finite number: {value}")
        return repr(value)
    if isinstance(value, dict):
        items = (f'"{escape_string(str(k))}":{dumps(v)}' for k, v in value.items())
        return "{" + ",".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(dumps(v) for v in value) + "]"
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
