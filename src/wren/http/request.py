"""Immutable HTTP request.

Frozen metadata with async body access. The dispatcher derives a new
request carrying the route params (and, for POST/PUT, the parsed JSON
body) before handing it to a route handler.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncIterator
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import quote

from wren._internal.asgi import Receive, Scope
from wren.errors import BodyParseError
from wren.http.headers import Headers

# Characters kept unescaped when rebuilding a raw path from a decoded one
_PATH_SAFE = "/:@!$&'()*+,;=-._~"


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is percent-decoded; ``raw_path`` is exactly what the client
    sent (minus the query string) and is what the router matches on.

    ``route_params`` holds decoded route variables. ``body`` holds the
    parsed JSON payload of POST and PUT requests, ``None`` otherwise.
    """

    method: str
    path: str
    raw_path: str
    query_string: str
    headers: Headers
    client: tuple[str, int] | None

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    route_params: dict[str, str] = field(default_factory=dict)
    body: Any = None

    # Private: mutable cache for the raw body
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Request path plus query string, as sent by the client."""
        if self.query_string:
            return f"{self.raw_path}?{self.query_string}"
        return self.raw_path

    # -- Derived requests --

    def with_route_params(self, route_params: dict[str, str]) -> Request:
        """Return a new Request carrying *route_params*."""
        return replace(self, route_params=route_params)

    def with_body(self, body: Any) -> Request:
        """Return a new Request carrying a parsed body."""
        return replace(self, body=body)

    # -- Async body access --

    async def read(self) -> bytes:
        """Read the full request body.

        Chunks are concatenated in arrival order. The result is cached,
        so the ASGI receive channel is consumed only once.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncIterator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.read()
        return raw.decode("utf-8")

    async def json(self) -> Any:
        """Parse the body as JSON.

        An empty body parses to ``None``. Anything else that is not valid
        UTF-8 JSON raises ``BodyParseError``.
        """
        raw = await self.read()
        if not raw.strip():
            return None
        try:
            return json_module.loads(raw)
        except (UnicodeDecodeError, json_module.JSONDecodeError) as exc:
            raise BodyParseError(f"Malformed JSON body: {exc}") from exc

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        path: str = scope["path"]
        raw = scope.get("raw_path")
        if raw:
            raw = raw.split(b"?", 1)[0]
            # Unencoded non-ASCII bytes (UTF-8 from most clients) are escaped
            if raw.isascii():
                raw_path = raw.decode("ascii")
            else:
                raw_path = quote(raw, safe=_PATH_SAFE + "%")
        else:
            raw_path = quote(path, safe=_PATH_SAFE)

        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=path,
            raw_path=raw_path,
            query_string=scope.get("query_string", b"").decode("latin-1"),
            headers=Headers(tuple(scope.get("headers", ()))),
            client=tuple(client) if client else None,
            _receive=receive,
        )
