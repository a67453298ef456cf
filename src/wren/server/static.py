"""Static file resolution over an ordered chain of candidate directories.

For a relative file path, each candidate directory is tried strictly in
order and the first existing file wins. Only a true "not found" moves on
to the next candidate; any other filesystem error ends the chain with
the internal-server-error default.

Found files are served one of two ways:

- **buffered** — HTML documents while live reload is on (so the reload
  script can be injected), and every non-200 response;
- **streamed** — everything else, as a ``FileResponse`` the sender
  negotiates conditional and range requests for.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import stat as stat_module
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

import anyio

from wren._internal.invoke import invoke
from wren.http.request import Request
from wren.http.response import AnyResponse, FileResponse, Response
from wren.server.livereload import inject_live_reload, is_injectable

if TYPE_CHECKING:
    from wren.server.responder import Responder

logger = logging.getLogger("wren.server")

# Errors that mean "this candidate does not have the file"
_MISSING = (FileNotFoundError, NotADirectoryError)


def guess_type(path: str | os.PathLike[str]) -> str:
    """MIME type for *path*; text types carry ``charset=utf-8``."""
    content_type, _ = mimetypes.guess_type(os.fspath(path))
    if content_type is None:
        return "application/octet-stream"
    if content_type.startswith("text/"):
        return f"{content_type}; charset=utf-8"
    return content_type


def join_candidate(directory: str, relative_path: str) -> str | None:
    """Join *relative_path* onto *directory*.

    Returns ``None`` when the result would escape *directory* or could
    not name a file at all (an embedded NUL).
    """
    if "\x00" in relative_path:
        return None
    base = os.path.abspath(directory)
    relative = relative_path.lstrip("/")
    if not relative:
        return base
    target = os.path.normpath(os.path.join(base, relative))
    if os.path.commonpath([base, target]) != base:
        return None
    return target


async def resolve_static(
    candidates: Sequence[str],
    relative_path: str,
    *,
    request: Request,
    responder: Responder,
    live_reload: bool,
    status: int = 200,
    fallback: Callable[[], Any] | None = None,
) -> AnyResponse:
    """Serve *relative_path* from the first candidate directory that has it.

    Falls back to *fallback* (or the not-found default) when no
    candidate has the file.
    """
    for directory in candidates:
        target = join_candidate(directory, relative_path)
        if target is None:
            logger.debug("Rejected path under %s: %r", directory, relative_path)
            continue
        try:
            response = await _try_file(
                anyio.Path(target),
                request=request,
                status=status,
                live_reload=live_reload,
            )
        except OSError:
            logger.exception("Error reading %s", target)
            return await responder.internal_server_error().do_default()
        if response is not None:
            return response

    if fallback is not None:
        return await invoke(fallback)
    return await responder.not_found().do_default()


async def serve_file(
    path: str | os.PathLike[str],
    *,
    request: Request,
    responder: Responder,
    live_reload: bool,
    status: int = 200,
    fallback: Callable[[], Any] | None = None,
) -> AnyResponse:
    """Serve one file (a single-candidate chain)."""
    return await resolve_static(
        (os.fspath(path),),
        "",
        request=request,
        responder=responder,
        live_reload=live_reload,
        status=status,
        fallback=fallback,
    )


async def _try_file(
    target: anyio.Path,
    *,
    request: Request,
    status: int,
    live_reload: bool,
) -> AnyResponse | None:
    """Load *target* as a response, or ``None`` if it does not exist.

    Raises ``OSError`` for any failure other than "not found".
    """
    try:
        info = await target.stat()
    except _MISSING:
        return None

    if stat_module.S_ISDIR(info.st_mode):
        target = target / "index.html"

    content_type = guess_type(target.name)
    inject = live_reload and is_injectable(target.suffix)

    # Error bodies are never range-negotiated, so they are always buffered
    if inject or status != 200:
        try:
            raw = await target.read_bytes()
        except (*_MISSING, IsADirectoryError):
            return None
        if inject:
            body = inject_live_reload(raw)
            return Response(body=body, status=status, content_type=content_type)
        return Response(body=raw, status=status, content_type=content_type)

    try:
        handle = await anyio.open_file(target, "rb")
    except _MISSING:
        return None
    except IsADirectoryError:
        return _directory_redirect(request)

    try:
        info = os.fstat(handle.wrapped.fileno())
    except OSError:
        await handle.aclose()
        raise

    return FileResponse(
        path=target,
        file=handle,
        size=info.st_size,
        mtime=info.st_mtime,
        content_type=content_type,
        status=status,
    )


def _directory_redirect(request: Request) -> Response:
    """Redirect to the directory URL (with a trailing slash)."""
    location = request.raw_path if request.raw_path.endswith("/") else request.raw_path + "/"
    return Response(body="", status=301).with_header("Location", location)
