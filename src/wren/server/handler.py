"""ASGI request handler — translates ASGI scope/messages to wren types.

Converts the scope to a typed Request, matches it against the route
trie, collects JSON bodies for POST/PUT, invokes the handler with a
``Responder``, and sends whatever response comes back.
"""

from collections.abc import Mapping

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.invoke import invoke
from wren._internal.types import DefaultHandler
from wren.errors import HTTPError
from wren.http.request import Request
from wren.http.response import AnyResponse, FileResponse, Response
from wren.routing.router import Router
from wren.server.errors import handle_http_error, handle_internal_error
from wren.server.responder import Responder
from wren.server.sender import send_file_response, send_response

# Methods whose body is collected and parsed as JSON before dispatch
BODY_METHODS: frozenset[str] = frozenset({"POST", "PUT"})


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    defaults: Mapping[int, DefaultHandler],
    live_reload: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = await dispatch(request, router=router, defaults=defaults, live_reload=live_reload)

    if isinstance(response, FileResponse):
        await send_file_response(response, send, request)
    else:
        await send_response(response, send)


async def dispatch(
    request: Request,
    *,
    router: Router,
    defaults: Mapping[int, DefaultHandler],
    live_reload: bool,
) -> AnyResponse:
    """Route *request* and produce a response. Never raises."""
    responder = Responder(request, defaults, live_reload=live_reload)
    try:
        match = router.match(request.method, request.raw_path)

        request = request.with_route_params(match.route_params)
        if request.method in BODY_METHODS:
            request = request.with_body(await request.json())
        responder = Responder(request, defaults, live_reload=live_reload)

        response = await invoke(match.route.handler, request, responder)
        if not isinstance(response, (Response, FileResponse)):
            msg = (
                f"Handler for {match.route.method} /{match.route.path} returned "
                f"{type(response).__name__}; expected a response from the responder."
            )
            raise TypeError(msg)
        return response

    except HTTPError as exc:
        try:
            return await handle_http_error(exc, responder)
        except Exception as inner:
            return await handle_internal_error(inner, responder)
    except Exception as exc:
        return await handle_internal_error(exc, responder)
