"""Server — the user-facing ASGI application.

Holds the configuration, collects REST routes, static mappings, and
status defaults during setup, then freezes into an immutable runtime
on the first ASGI call.

Lifecycle:
    1. Setup: ``Server(config)``, ``@server.route()``, ``add_paths()``,
       ``not_found_default()`` ... (mutable)
    2. Freeze: first ASGI call compiles the route trie (locked, once)
    3. Startup: ASGI lifespan starts the directory watches
    4. Runtime: ``__call__`` dispatches HTTP and WebSocket scopes
    5. Shutdown: ASGI lifespan releases the watches and connections
"""

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.types import DefaultHandler, Handler
from wren.config import ServerConfig, StaticPaths, normalize_static_paths
from wren.errors import ConfigurationError, WatchError
from wren.http.request import Request
from wren.http.response import AnyResponse
from wren.realtime.broadcaster import ChangeBroadcaster
from wren.routing.route import Route
from wren.routing.router import Router, normalize_path
from wren.server.handler import handle_request
from wren.server.responder import (
    BAD_REQUEST,
    INTERNAL_SERVER_ERROR,
    NOT_FOUND,
    Responder,
)
from wren.server.static import resolve_static

logger = logging.getLogger("wren.server")

# Route variable the static handler reads the relative file path from
STATIC_PARAM = "filePath"

# Built-in plain-text default bodies
_BUILTIN_BODIES: dict[int, str] = {
    NOT_FOUND: "Not found.",
    BAD_REQUEST: "Bad request.",
    INTERNAL_SERVER_ERROR: "Internal server error.",
}


def _text_default(status: int) -> DefaultHandler:
    body = _BUILTIN_BODIES[status]

    def default(responder: Responder) -> AnyResponse:
        return responder.from_status(status).content(body)

    return default


def _file_default(status: int, path: str) -> DefaultHandler:
    """Serve *path* with *status*; the built-in text if it has since vanished."""
    body = _BUILTIN_BODIES[status]

    async def default(responder: Responder) -> AnyResponse:
        sender = responder.from_status(status)
        return await sender.file(path, fallback=lambda: sender.content(body))

    return default


def _static_handler(directories: tuple[str, ...]) -> Handler:
    async def serve_static(request: Request, responder: Responder) -> AnyResponse:
        return await resolve_static(
            directories,
            request.route_params.get(STATIC_PARAM, ""),
            request=request,
            responder=responder,
            live_reload=responder.live_reload,
        )

    serve_static.__qualname__ = f"serve_static[{', '.join(directories)}]"
    return serve_static


class Server:
    """The wren development server.

    Usage::

        from wren import Server, ServerConfig

        server = Server(ServerConfig(paths={"": ["public", "build"]}))

        @server.route("POST", "/api/v1.0/users/:userId")
        def update_user(request, responder):
            return responder.ok().data({"id": request.route_params["userId"]})

        server.run()
    """

    __slots__ = (
        "_broadcaster",
        "_defaults",
        "_freeze_lock",
        "_frozen",
        "_router",
        "_static_paths",
        "config",
    )

    def __init__(self, config: ServerConfig | None = None) -> None:
        self.config: ServerConfig = config or ServerConfig()
        self._router = Router()
        self._static_paths: dict[str, tuple[str, ...]] = {}
        self._defaults: dict[int, DefaultHandler] = {
            status: _text_default(status) for status in _BUILTIN_BODIES
        }
        self._broadcaster = ChangeBroadcaster(
            debounce=self.config.reload_debounce,
            ignore_paths=self.config.ignore_paths,
        )
        self._frozen = False
        self._freeze_lock = threading.Lock()

        for url_path, directories in self.config.paths.items():
            self.add_paths(url_path, directories)
        if self.config.not_found is not None:
            self.not_found_default(self.config.not_found)
        if self.config.bad_request is not None:
            self.bad_request_default(self.config.bad_request)
        if self.config.internal_server_error is not None:
            self.internal_server_error_default(self.config.internal_server_error)

    # -- Routes --

    def route(self, method: str, path: str) -> Callable[[Handler], Handler]:
        """Register a REST handler via decorator::

            @server.route("GET", "/users/:userId")
            async def get_user(request, responder): ...
        """

        def decorator(func: Handler) -> Handler:
            self.add_route(method, path, func)
            return func

        return decorator

    def add_route(self, method: str, path: str, handler: Handler) -> Route:
        """Register *handler* for *method* and *path*.

        Raises ``RouteConflict`` / ``ConfigurationError`` immediately.
        """
        self._check_not_frozen()
        return self._router.add(method, path, handler)

    def add_paths(self, url_path: str, directories: StaticPaths) -> Route:
        """Serve files under *url_path* from *directories*, in fallback order.

        A single directory is accepted as well as a sequence.
        """
        self._check_not_frozen()
        normalized = normalize_static_paths({url_path: directories})[url_path]
        prefix = normalize_path(url_path)
        route_path = f"/{prefix}/::{STATIC_PARAM}" if prefix else f"/::{STATIC_PARAM}"

        route = self._router.add("GET", route_path, _static_handler(normalized))
        self._static_paths[prefix] = normalized
        return route

    @property
    def routes(self) -> list[Route]:
        return self._router.routes

    @property
    def static_paths(self) -> dict[str, tuple[str, ...]]:
        """URL prefix -> candidate directories, as registered."""
        return dict(self._static_paths)

    # -- Status defaults --

    def not_found_default(self, value: str | os.PathLike[str] | DefaultHandler) -> None:
        """Set the 404 default: a ``(responder) -> response`` callable or a file."""
        self._set_default(NOT_FOUND, value)

    def bad_request_default(self, value: str | os.PathLike[str] | DefaultHandler) -> None:
        """Set the 400 default."""
        self._set_default(BAD_REQUEST, value)

    def internal_server_error_default(
        self, value: str | os.PathLike[str] | DefaultHandler
    ) -> None:
        """Set the 500 default."""
        self._set_default(INTERNAL_SERVER_ERROR, value)

    def _set_default(self, status: int, value: Any) -> None:
        self._check_not_frozen()
        if isinstance(value, (str, os.PathLike)):
            path = os.fspath(value)
            if not Path(path).is_file():
                msg = f"Default file for status {status} does not exist: {path!r}."
                raise ConfigurationError(msg)
            self._defaults[status] = _file_default(status, path)
        elif callable(value):
            self._defaults[status] = value
        else:
            msg = f"Default for status {status} must be a file path or a callable, got {value!r}."
            raise ConfigurationError(msg)

    # -- Live reload --

    @property
    def broadcaster(self) -> ChangeBroadcaster:
        return self._broadcaster

    def _start_watches(self) -> None:
        """Watch every static directory once. Failures are logged, not fatal."""
        seen: set[str] = set()
        for directories in self._static_paths.values():
            for directory in directories:
                key = os.path.abspath(directory)
                if key in seen:
                    continue
                seen.add(key)
                try:
                    self._broadcaster.watch(directory)
                except WatchError as exc:
                    logger.warning("%s", exc)

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start serving through pounce. Blocks until interrupted."""
        self._ensure_frozen()

        _host = host or self.config.host
        _port = port or self.config.port

        from wren.server.dev import run_dev_server

        run_dev_server(
            self,
            _host,
            _port,
            quiet=self.config.quiet,
            log_level=self.config.log_level,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()

        if scope["type"] == "websocket":
            if self.config.live_reload:
                await self._broadcaster.handle(scope, receive, send)
            else:
                await receive()
                await send({"type": "websocket.close", "code": 1000})
            return

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            defaults=self._defaults,
            live_reload=self.config.live_reload,
        )

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the server at startup, starts the directory watches when
        live reload is on, and releases everything at shutdown.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    if self.config.live_reload:
                        self._start_watches()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self._broadcaster.close()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Compile the route trie exactly once, even under concurrent first calls."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._router.compile()
            self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the server after it has started serving requests. "
                "Register routes, paths, and defaults before calling server.run()."
            )
            raise RuntimeError(msg)

