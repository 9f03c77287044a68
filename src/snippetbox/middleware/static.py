"""Static file serving.

``StaticFiles`` is a route handler, mounted on a catch-all pattern::

    app.add_route("/static/{filepath:path}", StaticFiles("./static"), methods=["GET"])

Directories are never listed; anything that isn't a regular file inside
the configured directory is a 404.
"""

import mimetypes
from pathlib import Path

from snippetbox.errors import NotFound
from snippetbox.http.request import Request
from snippetbox.http.response import Response


class StaticFiles:
    """Serve files from *directory*.

    Security: resolves symlinks and verifies the final path is inside the
    configured directory to prevent path traversal.
    """

    __slots__ = ("_cache_control", "_directory", "_param")

    def __init__(
        self,
        directory: str | Path,
        *,
        param: str = "filepath",
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._param = param
        self._cache_control = cache_control

    def __call__(self, request: Request) -> Response:
        relative = request.path_params.get(self._param, "")
        if not relative:
            raise NotFound()

        file_path = (self._directory / relative).resolve()
        if not file_path.is_relative_to(self._directory) or not file_path.is_file():
            raise NotFound()

        content_type, _ = mimetypes.guess_type(str(file_path))
        if content_type is None:
            content_type = "application/octet-stream"
        elif content_type.startswith("text/") or content_type in {"application/javascript"}:
            content_type = f"{content_type}; charset=utf-8"

        return Response(
            body=file_path.read_bytes(),
            content_type=content_type,
        ).with_header("Cache-Control", self._cache_control)
