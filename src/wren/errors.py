"""Wren exception hierarchy.

Shared across Router, Server, dispatcher, static serving, and the
change broadcaster so every module raises and catches the same types.
"""

from dataclasses import dataclass


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when server configuration is invalid.

    Always raised synchronously from the setup call that caused it
    (``add_route``, ``add_paths``, ``not_found_default``, ...).
    """


class RouteConflict(ConfigurationError):
    """A route cannot be added to the trie.

    Raised for differently-named variable siblings, a greedy segment
    that is not final, or illegal characters in the route path.
    """


class NoDefaultConfigured(WrenError):
    """``do_default()`` was called for a status with no default handler."""

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"There is no default handler for status {status}.")


class WatchError(WrenError):
    """A directory watch could not be established.

    Reported at startup but never fatal: the directory is still served,
    it just won't trigger live-reload notifications.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, the dispatcher, or handlers. The dispatcher
    catches these and answers with the default for the matching status.
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched, or the fallback chain was exhausted."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class BodyParseError(HTTPError):
    """400 — the request body of a POST/PUT is not valid JSON."""

    def __init__(self, detail: str = "Malformed JSON body") -> None:
        super().__init__(status=400, detail=detail)


class InternalError(HTTPError):
    """500 — filesystem or streaming failure while serving a request."""

    def __init__(self, detail: str = "Internal Server Error") -> None:
        super().__init__(status=500, detail=detail)
