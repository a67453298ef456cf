"""Status-bound response builders handed to route handlers.

Every handler receives a ``Responder`` next to the request::

    def update_user(request, responder):
        if request.body is None:
            return responder.bad_request().content("Missing body.", "text/plain")
        return responder.ok().data({"id": request.route_params["userId"]})

    async def page(request, responder):
        return await responder.ok().file("site/page.html")

``Responder`` is a factory keyed by status. Each ``ResponseSender`` it
returns is bound to one status and (for 404/400/500) the default
configured for it.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Callable, Mapping
from typing import Any

from wren._internal.invoke import invoke
from wren._internal.types import DefaultHandler
from wren.errors import NoDefaultConfigured
from wren.http.request import Request
from wren.http.response import AnyResponse, Response

NOT_FOUND = 404
BAD_REQUEST = 400
INTERNAL_SERVER_ERROR = 500


class ResponseSender:
    """Builds responses for one status code.

    ``content`` and ``data`` return a buffered ``Response``. ``file`` and
    ``do_default`` may touch the filesystem and must be awaited.
    """

    __slots__ = ("_default", "_responder", "_status")

    def __init__(
        self,
        responder: Responder,
        status: int,
        default: DefaultHandler | None = None,
    ) -> None:
        self._responder = responder
        self._status = status
        self._default = default

    @property
    def status(self) -> int:
        return self._status

    def content(self, body: str | bytes, mime_type: str = "text/plain; charset=utf-8") -> Response:
        """Send *body* as-is with the given MIME type."""
        return Response(body=body, status=self._status, content_type=mime_type)

    def data(self, value: Any) -> Response:
        """Send *value* serialized as JSON."""
        return Response(
            body=json_module.dumps(value),
            status=self._status,
            content_type="application/json",
        )

    async def file(
        self,
        path: str,
        fallback: Callable[[], Any] | None = None,
    ) -> AnyResponse:
        """Serve the file at *path* with this status.

        Directories serve their ``index.html``. When the file does not
        exist, *fallback* is called if given, else the not-found default.
        """
        from wren.server.static import serve_file

        return await serve_file(
            path,
            request=self._responder.request,
            responder=self._responder,
            status=self._status,
            live_reload=self._responder.live_reload,
            fallback=fallback,
        )

    async def do_default(self) -> AnyResponse:
        """Run the default configured for this status.

        Raises ``NoDefaultConfigured`` if there is none.
        """
        if self._default is None:
            raise NoDefaultConfigured(self._status)
        return await invoke(self._default, self._responder)


class Responder:
    """Per-request factory of ``ResponseSender`` objects."""

    __slots__ = ("_defaults", "live_reload", "request")

    def __init__(
        self,
        request: Request,
        defaults: Mapping[int, DefaultHandler],
        *,
        live_reload: bool = False,
    ) -> None:
        self.request = request
        self.live_reload = live_reload
        self._defaults = defaults

    def ok(self) -> ResponseSender:
        """200, no default."""
        return ResponseSender(self, 200)

    def not_found(self) -> ResponseSender:
        """404 with the configured not-found default."""
        return ResponseSender(self, NOT_FOUND, self._defaults.get(NOT_FOUND))

    def bad_request(self) -> ResponseSender:
        """400 with the configured bad-request default."""
        return ResponseSender(self, BAD_REQUEST, self._defaults.get(BAD_REQUEST))

    def internal_server_error(self) -> ResponseSender:
        """500 with the configured internal-server-error default."""
        return ResponseSender(
            self, INTERNAL_SERVER_ERROR, self._defaults.get(INTERNAL_SERVER_ERROR)
        )

    def from_status(self, status: int) -> ResponseSender:
        """Arbitrary status, no default."""
        return ResponseSender(self, status)

    def redirect(self, url: str) -> Response:
        """301 to *url*."""
        return Response(body="", status=301).with_header("Location", url)

    def for_error(self, status: int) -> ResponseSender:
        """Sender for an error status, with its default when one exists."""
        return ResponseSender(self, status, self._defaults.get(status))
