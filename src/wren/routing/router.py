"""Trie-based router keyed by HTTP method, then path segment.

Routes are registered during setup and the trie is frozen before the
server starts accepting traffic. Matching is purely structural: the
result never depends on registration order.
"""

import logging
from dataclasses import dataclass
from urllib.parse import quote, unquote

from wren._internal.types import Handler
from wren.errors import ConfigurationError, NotFound, RouteConflict
from wren.routing.route import PathSegment, Route, RouteMatch

logger = logging.getLogger("wren.routing")

METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH"})

# Characters a URL segment may contain unescaped (the unreserved set)
_SEGMENT_SAFE = "-_.!~*'()"


def normalize_path(path: str) -> str:
    """Strip exactly one leading and one trailing slash.

    ``/x/``, ``/x`` and ``x`` all normalize to ``x``.
    """
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    return path


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"                  -> [PathSegment("users")]
        "/users/:userId"          -> [PathSegment("users"), PathSegment(":userId", "variable", "userId")]
        "/static/::filePath"      -> [PathSegment("static"), PathSegment("::filePath", "greedy", "filePath")]

    Raises ``RouteConflict`` for illegal characters, unnamed variables,
    or a greedy segment that is not the last one.
    """
    normalized = normalize_path(path)

    stripped = normalized.replace(":", "").replace("/", "")
    if quote(stripped, safe=_SEGMENT_SAFE) != stripped:
        msg = f"The route path contains illegal characters: {path!r}."
        raise RouteConflict(msg)

    parts = normalized.split("/")
    segments: list[PathSegment] = []
    for index, part in enumerate(parts):
        if part.startswith("::"):
            if index != len(parts) - 1:
                msg = f"Greedy variable {part!r} must be the final segment of {path!r}."
                raise RouteConflict(msg)
            segments.append(PathSegment(value=part, kind="greedy", name=_variable_name(part, 2, path)))
        elif part.startswith(":"):
            segments.append(PathSegment(value=part, kind="variable", name=_variable_name(part, 1, path)))
        else:
            segments.append(PathSegment(value=part))
    return segments


def _variable_name(part: str, prefix: int, path: str) -> str:
    name = part[prefix:]
    if not name or ":" in name:
        msg = f"Route variable {part!r} in {path!r} needs a plain name."
        raise RouteConflict(msg)
    return name


class _TrieNode:
    """A node in the route trie. Mutable during registration only."""

    __slots__ = ("children", "terminal", "variable")

    def __init__(self) -> None:
        # Literal segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single variable-kind child (only one per level)
        self.variable: _VariableEdge | None = None
        # Handler registered for exactly this method + path
        self.terminal: Route | None = None


@dataclass(slots=True)
class _VariableEdge:
    """A variable (``:name``) or greedy (``::name``) edge in the trie."""

    name: str
    greedy: bool
    node: _TrieNode

    @property
    def marker(self) -> str:
        return ("::" if self.greedy else ":") + self.name


class Router:
    """Trie router with literal, variable, and greedy segments.

    Usage::

        router = Router()
        router.add("GET", "/users/:userId", get_user)
        router.add("GET", "/static/::filePath", serve_static)
        router.compile()
        match = router.match("GET", "/users/42")
        match.route_params  # {"userId": "42"}
    """

    __slots__ = ("_compiled", "_root")

    def __init__(self) -> None:
        # Root children are keyed by HTTP method
        self._root = _TrieNode()
        self._compiled = False

    def add(self, method: str, path: str, handler: Handler) -> Route:
        """Register *handler* for *method* and *path*.

        Re-registering an identical method + path replaces the handler.
        Raises ``RouteConflict`` (see ``parse_path`` and the sibling
        variable rule) and ``ConfigurationError`` for unknown methods.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        if not isinstance(method, str) or method.upper() not in METHODS:
            msg = f"Method must be one of: {', '.join(sorted(METHODS))}. Got {method!r}."
            raise ConfigurationError(msg)
        if not isinstance(path, str):
            msg = f"Route path must be a string, got {path!r}."
            raise ConfigurationError(msg)
        if not callable(handler):
            msg = f"Route handler for {method} {path!r} must be callable."
            raise ConfigurationError(msg)

        method = method.upper()
        segments = parse_path(path)
        self._check_siblings(method, segments)

        node = self._root.children.setdefault(method, _TrieNode())
        for seg in segments:
            if seg.is_variable:
                if node.variable is None:
                    node.variable = _VariableEdge(
                        name=seg.name,
                        greedy=seg.kind == "greedy",
                        node=_TrieNode(),
                    )
                node = node.variable.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        route = Route(method=method, path=normalize_path(path), handler=handler)
        if node.terminal is not None:
            logger.debug("Replacing handler for %s /%s", method, route.path)
        node.terminal = route
        return route

    def _check_siblings(self, method: str, segments: list[PathSegment]) -> None:
        """Reject a differently-named variable sibling before touching the trie."""
        node = self._root.children.get(method)
        for seg in segments:
            if node is None:
                return
            if seg.is_variable:
                edge = node.variable
                if edge is not None and edge.marker != seg.value:
                    msg = (
                        "A route cannot have more than one variable at any one location. "
                        f"You already have {edge.marker!r} so you must rename "
                        f"{seg.value!r} to {edge.marker!r}."
                    )
                    raise RouteConflict(msg)
                node = edge.node if edge is not None else None
            else:
                node = node.children.get(seg.value)

    @property
    def routes(self) -> list[Route]:
        """Return all registered routes, depth-first."""
        result: list[Route] = []
        for method_node in self._root.children.values():
            self._collect_routes(method_node, result)
        return result

    def _collect_routes(self, node: _TrieNode, result: list[Route]) -> None:
        if node.terminal is not None:
            result.append(node.terminal)
        for child in node.children.values():
            self._collect_routes(child, result)
        if node.variable is not None:
            self._collect_routes(node.variable.node, result)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    @property
    def compiled(self) -> bool:
        return self._compiled

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a method and a raw (percent-encoded) request path.

        Returns a ``RouteMatch`` with percent-decoded route params.
        Raises ``NotFound`` if no terminal handler is reachable.
        """
        parts = normalize_path(path).split("/")
        method_node = self._root.children.get(method.upper())
        result = None if method_node is None else self._match_node(method_node, parts, 0, {})

        if result is None:
            raise NotFound(f"No route matches {method} {path!r}")

        route, params = result
        return RouteMatch(route=route, route_params=params)

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> tuple[Route, dict[str, str]] | None:
        """Recursively match path parts against the trie."""
        edge = node.variable

        # All parts consumed: this node's handler, or an empty greedy match
        if index == len(parts):
            if node.terminal is not None:
                return node.terminal, params
            if edge is not None and edge.greedy and edge.node.terminal is not None:
                return edge.node.terminal, {**params, edge.name: ""}
            return None

        part = parts[index]

        # 1. Literal child first (specificity wins)
        child = node.children.get(part)
        if child is not None:
            result = self._match_node(child, parts, index + 1, params)
            if result is not None:
                return result

        if edge is None:
            return None

        # 2. Greedy: consume this and every following segment
        if edge.greedy:
            if edge.node.terminal is None:
                return None
            remaining = "/".join(unquote(p) for p in parts[index:])
            return edge.node.terminal, {**params, edge.name: remaining}

        # 3. Single-segment variable
        new_params = {**params, edge.name: unquote(part)}
        return self._match_node(edge.node, parts, index + 1, new_params)
