"""Public files.

Files under the project's ``public/`` directory are served as-is, ahead
of middleware and routing:

- ``/public/<file>`` and ``/assets/<file>`` map to ``public/<file>``
- any other URL whose last segment has an extension maps to
  ``public/<path>`` (``/logo.png`` -> ``public/logo.png``)

A URL that names no file falls through to the rest of the pipeline, so
``/feed.xml`` can still be a page when no ``public/feed.xml`` exists.
"""

import mimetypes
from pathlib import Path, PurePosixPath

from warren.http.request import Request
from warren.http.response import Response

PUBLIC_PREFIXES = ("/public/", "/assets/")


def public_relative(path: str) -> str | None:
    """The ``public/``-relative file *path* names, or None if it names none."""
    for prefix in PUBLIC_PREFIXES:
        if path.startswith(prefix):
            return path[len(prefix) :]
    if PurePosixPath(path).suffix:
        return path.lstrip("/")
    return None


class PublicFiles:
    """Serves files from one directory for GET and HEAD requests.

    Resolves symlinks and verifies the final path is inside the
    directory; a path that escapes it is answered with 403.
    """

    __slots__ = ("_directory",)

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).resolve()

    @property
    def directory(self) -> Path:
        return self._directory

    def serve(self, request: Request) -> Response | None:
        """The response for *request*, or None to fall through."""
        if request.method not in ("GET", "HEAD"):
            return None
        relative = public_relative(request.path)
        if not relative or not self._directory.is_dir():
            return None

        file_path = (self._directory / relative).resolve()
        if not file_path.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403)
        if not file_path.is_file():
            return None
        return self._serve_file(file_path)

    def _serve_file(self, file_path: Path) -> Response:
        content_type, _ = mimetypes.guess_type(str(file_path))
        if content_type is None:
            content_type = "application/octet-stream"
        return Response(body=file_path.read_bytes(), content_type=content_type)
