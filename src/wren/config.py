"""Server configuration.

ServerConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeAlias

from wren.errors import ConfigurationError

StaticPaths: TypeAlias = str | Path | Sequence[str | Path]


def normalize_static_paths(paths: Mapping[str, StaticPaths]) -> dict[str, tuple[str, ...]]:
    """Normalize a static mapping so every URL prefix maps to a tuple.

    A single directory is equivalent to a one-element sequence. Order is
    kept: it is the fallback priority.
    """
    if not isinstance(paths, Mapping):
        msg = "Static paths must be a mapping of URL prefix to directories."
        raise ConfigurationError(msg)

    result: dict[str, tuple[str, ...]] = {}
    for url_path, directories in paths.items():
        if not isinstance(url_path, str):
            msg = f"URL path must be a string, got {url_path!r}."
            raise ConfigurationError(msg)
        if isinstance(directories, (str, Path)):
            directories = (directories,)
        normalized = tuple(str(d) for d in directories)
        if not normalized:
            msg = f"URL path {url_path!r} must map to at least one directory."
            raise ConfigurationError(msg)
        result[url_path] = normalized
    return result


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ServerConfig(
            port=3000,
            paths={"": ["public", "build"], "docs": "site/docs"},
            reload_debounce=0.2,
        )
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Static files: URL prefix -> candidate directories, in fallback order
    paths: Mapping[str, StaticPaths] = field(default_factory=dict)

    # Live reload: script injection, directory watches, notification channel
    live_reload: bool = True
    reload_debounce: float = 0.0  # Seconds; 0 sends every change immediately
    ignore_paths: tuple[str, ...] = ()

    # Default response files (404 / 400 / 500)
    not_found: str | None = None
    bad_request: str | None = None
    internal_server_error: str | None = None

    # Logging
    quiet: bool = False
    log_level: str = "info"

    def __post_init__(self) -> None:
        object.__setattr__(self, "paths", normalize_static_paths(self.paths))
        if self.reload_debounce < 0:
            msg = "reload_debounce must not be negative."
            raise ConfigurationError(msg)
