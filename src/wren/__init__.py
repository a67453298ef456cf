"""Wren — a development server for static sites and small REST backends.

Serves static files from layered fallback directories, dispatches
REST-style routes with path variables, and reloads the browser when
watched files change.

Basic usage::

    from wren import Server, ServerConfig

    server = Server(ServerConfig(paths={"": ["public", "build"]}))

    @server.route("GET", "/api/users/:userId")
    def get_user(request, responder):
        return responder.ok().data({"id": request.route_params["userId"]})

    server.run()

From the command line::

    wren public build --path docs=site/docs --wait 0.2
"""

__version__ = "0.1.0"
__all__ = [
    "AnyResponse",
    "BodyParseError",
    "ChangeBroadcaster",
    "ConfigurationError",
    "FileResponse",
    "HTTPError",
    "InternalError",
    "NoDefaultConfigured",
    "NotFound",
    "Request",
    "Responder",
    "Response",
    "ResponseSender",
    "RouteConflict",
    "Server",
    "ServerConfig",
    "WatchError",
    "WrenError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "Server":
        from wren.app import Server

        return Server

    if name == "ServerConfig":
        from wren.config import ServerConfig

        return ServerConfig

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name in ("Response", "FileResponse", "AnyResponse"):
        from wren.http import response as _resp

        return getattr(_resp, name)

    if name in ("Responder", "ResponseSender"):
        from wren.server import responder as _responder

        return getattr(_responder, name)

    if name == "ChangeBroadcaster":
        from wren.realtime.broadcaster import ChangeBroadcaster

        return ChangeBroadcaster

    if name in (
        "BodyParseError",
        "ConfigurationError",
        "HTTPError",
        "InternalError",
        "NoDefaultConfigured",
        "NotFound",
        "RouteConflict",
        "WatchError",
        "WrenError",
    ):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
