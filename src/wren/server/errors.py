"""Error handling pipeline for wren requests.

Maps HTTPError exceptions and unexpected failures to responses, using
the status defaults configured on the server or a plain-text body.
"""

import logging

from wren.errors import HTTPError, NoDefaultConfigured
from wren.http.response import AnyResponse, Response
from wren.server.responder import INTERNAL_SERVER_ERROR, Responder

logger = logging.getLogger("wren.server")


async def handle_http_error(exc: HTTPError, responder: Responder) -> AnyResponse:
    """Answer an HTTPError with the default for its status."""
    request = responder.request
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    try:
        return await responder.for_error(exc.status).do_default()
    except NoDefaultConfigured:
        return Response(body=exc.detail or str(exc.status), status=exc.status)


async def handle_internal_error(exc: Exception, responder: Responder) -> AnyResponse:
    """Log an unexpected failure and answer with the 500 default.

    A failing 500 default is logged too and replaced by a fixed body,
    so a response is always produced.
    """
    request = responder.request
    logger.exception("500 %s %s", request.method, request.path, exc_info=exc)
    try:
        return await responder.internal_server_error().do_default()
    except Exception:
        logger.exception("Internal server error default failed for %s %s", request.method, request.path)
        return Response(body="Internal server error.", status=INTERNAL_SERVER_ERROR)
