"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves the front-end files for every path that is not under /api/.

    GET /               → <root>/index.html
    GET /js/app.js      → <root>/js/app.js     text/javascript; charset=utf-8
    GET /../secret.txt  → 404 (resolves outside <root>)
    GET /img/           → 404 (directories are never served)

Every file goes out with "Cache-Control: no-cache", so browsers revalidate
the front-end on each load. Anything that cannot be served, for whatever
reason, is the plain-text 404 "Not Found".

=============================================================================
SECURITY
=============================================================================

    (root / "../../etc/passwd").resolve()  →  /etc/passwd
    /etc/passwd.relative_to(root)          →  ValueError → refused

resolve() also follows symlinks, so a link pointing out of the root is
refused the same way.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, file_response, text_not_found
from ..http.mime_types import get_content_type


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Handler for serving static files.

        static = StaticFileHandler("./public")
        router.default = static.handle
    """

    def __init__(self, root_dir: str, index_file: str = "index.html"):
        """
        Args:
            root_dir: Directory to serve. Nothing outside it is reachable.
            index_file: File served for "/".

        Raises:
            ValueError: If root_dir is not a directory.
        """
        self.root_dir = Path(root_dir).resolve()
        self.index_file = index_file

        if not self.root_dir.is_dir():
            raise ValueError(f"Static root directory does not exist: {root_dir}")

    def resolve(self, url_path: str) -> Optional[Path]:
        """
        Map a request path to a file inside the root.

        Returns:
            The file's path, or None if there is no servable file there.
        """
        relative = url_path.lstrip("/") or self.index_file

        try:
            full_path = (self.root_dir / relative).resolve()
            is_file = full_path.is_file()
        except (OSError, ValueError) as e:
            # embedded NUL bytes, over-long names
            logger.debug(f"Unresolvable static path {url_path!r}: {e}")
            return None

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {url_path}")
            return None

        if not is_file:
            return None

        return full_path

    def serve(self, url_path: str) -> Optional[HTTPResponse]:
        """
        Build the response for url_path, or None if it cannot be served.
        """
        path = self.resolve(url_path)
        if path is None:
            return None

        try:
            content = path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading static file {path}: {e}")
            return None

        return file_response(
            content,
            get_content_type(path),
            {"Cache-Control": "no-cache"},
        )

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Router entry point: the file, or a plain-text 404.
        """
        response = self.serve(request.path)
        if response is None:
            return text_not_found()
        return response
