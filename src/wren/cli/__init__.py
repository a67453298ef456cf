"""Wren CLI — serve directories with live reload.

Entry point registered as ``wren`` in ``pyproject.toml``::

    [project.scripts]
    wren = "wren.cli:main"

Examples::

    wren public build                 # "/" falls back from public/ to build/
    wren --path docs=site/docs public # extra mapping under /docs
    wren public --no-listen --port 3000
"""

import argparse
import logging
import sys

from wren import __version__


def _path_mapping(value: str) -> tuple[str, str]:
    url_path, sep, directory = value.partition("=")
    if not sep or not directory:
        msg = f"expected URL=DIR, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return url_path, directory


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wren",
        description="Wren — a development server for static sites and small REST backends.",
    )
    parser.add_argument(
        "directories",
        nargs="*",
        help="Directories served at /, in fallback order",
    )
    parser.add_argument(
        "--path",
        dest="paths",
        action="append",
        type=_path_mapping,
        default=[],
        metavar="URL=DIR",
        help="Serve DIR under URL (repeatable; repeats for one URL set fallback order)",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind host address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port number")
    parser.add_argument(
        "--no-listen",
        action="store_true",
        help="Disable live reload (no watches, no script injection)",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=0.0,
        metavar="SECONDS",
        help="Debounce reload notifications by SECONDS",
    )
    parser.add_argument(
        "--ignore",
        dest="ignore_paths",
        action="append",
        default=[],
        metavar="PATH",
        help="Path the watcher ignores (repeatable)",
    )
    parser.add_argument("--not-found", metavar="FILE", help="File served for 404 responses")
    parser.add_argument("--bad-request", metavar="FILE", help="File served for 400 responses")
    parser.add_argument(
        "--internal-server-error",
        metavar="FILE",
        help="File served for 500 responses",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument("--version", action="version", version=f"wren {__version__}")
    return parser


def collect_paths(args: argparse.Namespace) -> dict[str, list[str]]:
    """Merge positional directories and ``--path`` options, keeping order."""
    paths: dict[str, list[str]] = {}
    if args.directories:
        paths[""] = list(args.directories)
    for url_path, directory in args.paths:
        key = url_path.strip("/")
        paths.setdefault(key, []).append(directory)
    return paths


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``wren`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    from wren.app import Server
    from wren.config import ServerConfig
    from wren.errors import ConfigurationError

    paths = collect_paths(args)
    if not paths:
        paths = {"": ["."]}

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ServerConfig(
            host=args.host,
            port=args.port,
            paths=paths,
            live_reload=not args.no_listen,
            reload_debounce=args.wait,
            ignore_paths=tuple(args.ignore_paths),
            not_found=args.not_found,
            bad_request=args.bad_request,
            internal_server_error=args.internal_server_error,
            quiet=args.quiet,
            log_level="warning" if args.quiet else "info",
        )
        server = Server(config)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    server.run()
