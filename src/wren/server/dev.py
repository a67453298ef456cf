"""Development listener.

Starts a pounce ASGI server with the live wren Server object.
Single worker, no code reload: live reload of the browser is the
server's own job (watches plus the notification channel).
"""

import logging

logger = logging.getLogger("wren.server")


def run_dev_server(
    app: object,
    host: str,
    port: int,
    *,
    quiet: bool = False,
    log_level: str = "info",
) -> None:
    """Start a pounce server with the given wren Server.

    Pounce's ``run()`` takes an import string, but wren has a live
    ``Server`` object, so ``pounce.Server`` is used directly with the
    ASGI callable.

    Args:
        app: ASGI callable (wren Server instance).
        host: Bind host address.
        port: Bind port number.
        quiet: Skip the "Serving ..." log line.
        log_level: Level name handed to pounce's own logging.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=False,
        log_level=log_level,
    )
    if not quiet:
        logger.info("Serving on http://%s:%d", host, port)
    Server(config, app).run()
