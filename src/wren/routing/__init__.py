"""Routing — method + path-segment trie with literal, variable and greedy segments.

Routes are registered during setup and frozen before the server
accepts traffic.
"""

from wren.routing.route import PathSegment, Route, RouteMatch
from wren.routing.router import METHODS, Router, normalize_path, parse_path

__all__ = ["METHODS", "PathSegment", "Route", "RouteMatch", "Router", "normalize_path", "parse_path"]
