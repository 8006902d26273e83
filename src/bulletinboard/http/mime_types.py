"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Maps file extensions to MIME types for the Content-Type header of static
files.

    ┌────────────────────────────────────────────────────────────────────┐
    │  .html  → text/html; charset=utf-8                                 │
    │  .css   → text/css; charset=utf-8                                  │
    │  .js    → text/javascript; charset=utf-8                           │
    │  .json  → application/json; charset=utf-8                          │
    │  .png   → image/png                                                │
    │  .svg   → image/svg+xml; charset=utf-8                             │
    │  ???    → text/plain; charset=utf-8    (unknown extension)         │
    └────────────────────────────────────────────────────────────────────┘

Text types get a charset parameter; binary types do not.

=============================================================================
"""

from pathlib import Path
from typing import Optional


MIME_TYPES = {
    # Documents and scripts
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".csv": "text/csv",
    ".md": "text/markdown",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",

    ".pdf": "application/pdf",
    ".wasm": "application/wasm",
}

# The front-end ships only text and image assets; anything unrecognised
# is served as plain text.
DEFAULT_MIME_TYPE = "text/plain"

_TEXT_APPLICATION_TYPES = frozenset([
    "application/json",
    "application/xml",
    "application/javascript",
    "image/svg+xml",
])


def get_mime_type(path: str | Path, default: Optional[str] = None) -> str:
    """
    Get the MIME type for a file based on its extension.

    Examples:
        >>> get_mime_type("style.CSS")
        'text/css'
        >>> get_mime_type("notes.xyz")
        'text/plain'
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix.lower()
    return MIME_TYPES.get(extension, default or DEFAULT_MIME_TYPE)


def is_text_type(mime_type: str) -> bool:
    """
    Check if a MIME type represents text content.

    Examples:
        >>> is_text_type("application/json")
        True
        >>> is_text_type("image/png")
        False
    """
    return mime_type.startswith("text/") or mime_type in _TEXT_APPLICATION_TYPES


def get_content_type(path: str | Path, charset: str = "utf-8") -> str:
    """
    Get the full Content-Type header value for a file.

    Examples:
        >>> get_content_type("index.html")
        'text/html; charset=utf-8'
        >>> get_content_type("logo.png")
        'image/png'
    """
    mime_type = get_mime_type(path)

    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"

    return mime_type
