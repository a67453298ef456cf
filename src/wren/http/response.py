"""HTTP responses with a chainable .with_*() transformation API.

``Response`` carries a buffered body. ``FileResponse`` carries an
already-open file that the sender streams to the client.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, TypeAlias

import anyio


@dataclass(frozen=True, slots=True)
class Response:
    """A buffered HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/plain; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    # -- Accessors --

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of header *name* (case-insensitive), or *default*."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return default

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


@dataclass(frozen=True, slots=True)
class FileResponse:
    """A static file streamed to the client in chunks.

    The file is opened by the resolver before the response starts, so
    open failures can still fall back or become an error response. The
    sender owns the handle from then on and always closes it.

    Conditional (``If-None-Match`` / ``If-Modified-Since``) and single
    ``Range`` requests are negotiated by the sender from ``size`` and
    ``mtime``.
    """

    path: anyio.Path
    file: anyio.AsyncFile[Any]
    size: int
    mtime: float
    content_type: str = "application/octet-stream"
    status: int = 200
    headers: tuple[tuple[str, str], ...] = ()
    chunk_size: int = 64 * 1024

    def with_header(self, name: str, value: str) -> FileResponse:
        """Return a new FileResponse with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    @property
    def etag(self) -> str:
        """Weak validator derived from modification time and size."""
        return f'W/"{int(self.mtime * 1000):x}-{self.size:x}"'


# Any response a handler or default may produce
AnyResponse: TypeAlias = Response | FileResponse
