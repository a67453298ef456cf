"""ASGI response sending — translates wren responses to ASGI messages.

Buffered ``Response`` objects go out as one body message.
``FileResponse`` objects are streamed in chunks, with conditional
(304) and single-range (206 / 416) negotiation.
"""

import logging
from email.utils import formatdate, parsedate_to_datetime

from wren._internal.asgi import Send
from wren.http.request import Request
from wren.http.response import FileResponse, Response

logger = logging.getLogger("wren.server")


class RangeNotSatisfiable(Exception):  # noqa: N818
    """The requested byte range lies outside the file."""


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _encode_headers(pairs: list[tuple[str, str]]) -> list[tuple[bytes, bytes]]:
    return [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in pairs]


async def send_response(response: Response, send: Send) -> None:
    """Translate a buffered Response into ASGI send() calls."""
    body = response.body_bytes if _body_allowed(response.status) else b""
    headers = [
        ("content-type", response.content_type),
        *response.headers,
        ("content-length", str(len(body))),
    ]
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": _encode_headers(headers),
        }
    )
    await send({"type": "http.response.body", "body": body})


def parse_range(value: str, size: int) -> tuple[int, int] | None:
    """Parse a ``Range`` header into an inclusive ``(start, end)`` pair.

    Returns ``None`` when the header should be ignored (not a byte range,
    malformed, or multiple ranges) and the full file served instead.
    Raises ``RangeNotSatisfiable`` when the range lies outside the file.
    """
    unit, _, ranges = value.partition("=")
    if unit.strip().lower() != "bytes" or "," in ranges:
        return None
    start_text, sep, end_text = ranges.strip().partition("-")
    if not sep:
        return None
    try:
        if not start_text:
            suffix = int(end_text)
            if suffix <= 0 or size == 0:
                raise RangeNotSatisfiable(value)
            return max(size - suffix, 0), size - 1
        start = int(start_text)
        end = int(end_text) if end_text else size - 1
    except ValueError:
        return None
    if start < 0 or end < start:
        return None
    if start >= size:
        raise RangeNotSatisfiable(value)
    return start, min(end, size - 1)


def _not_modified(response: FileResponse, request: Request) -> bool:
    if_none_match = request.headers.get("if-none-match")
    if if_none_match is not None:
        tags = {tag.strip() for tag in if_none_match.split(",")}
        return "*" in tags or response.etag in tags

    if_modified_since = request.headers.get("if-modified-since")
    if if_modified_since:
        try:
            since = parsedate_to_datetime(if_modified_since)
        except (TypeError, ValueError):
            return False
        return int(response.mtime) <= since.timestamp()
    return False


async def send_file_response(response: FileResponse, send: Send, request: Request) -> None:
    """Stream a file to the client, then close it.

    Headers are sent before the first chunk, so a read error mid-stream
    can only be logged and the body cut short.
    """
    try:
        await _send_file(response, send, request)
    finally:
        await response.file.aclose()


async def _send_file(response: FileResponse, send: Send, request: Request) -> None:
    validators = [
        ("etag", response.etag),
        ("last-modified", formatdate(response.mtime, usegmt=True)),
    ]

    if response.status == 200 and _not_modified(response, request):
        await send(
            {
                "type": "http.response.start",
                "status": 304,
                "headers": _encode_headers([*validators, *response.headers]),
            }
        )
        await send({"type": "http.response.body", "body": b""})
        return

    status = response.status
    start, end = 0, response.size - 1
    headers = [
        ("content-type", response.content_type),
        ("accept-ranges", "bytes"),
        *validators,
        *response.headers,
    ]

    range_header = request.headers.get("range")
    if range_header and response.status == 200:
        try:
            byte_range = parse_range(range_header, response.size)
        except RangeNotSatisfiable:
            headers = [("content-range", f"bytes */{response.size}"), *response.headers]
            await send_response(
                Response(body="", status=416, headers=tuple(headers)),
                send,
            )
            return
        if byte_range is not None:
            start, end = byte_range
            status = 206
            headers.append(("content-range", f"bytes {start}-{end}/{response.size}"))

    remaining = max(end - start + 1, 0)
    headers.append(("content-length", str(remaining)))
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": _encode_headers(headers),
        }
    )

    try:
        if start:
            await response.file.seek(start)
        while remaining > 0:
            chunk = await response.file.read(min(response.chunk_size, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            await send(
                {
                    "type": "http.response.body",
                    "body": chunk,
                    "more_body": remaining > 0,
                }
            )
    except OSError:
        logger.exception("Error streaming %s", response.path)

    if remaining > 0 or response.size == 0:
        if remaining > 0:
            logger.error("Short read streaming %s (%d bytes missing)", response.path, remaining)
        await send({"type": "http.response.body", "body": b"", "more_body": False})
