"""Routing: filesystem discovery and first-match path matching.

The route table is built once by :func:`discover_routes` and replaced
wholesale whenever the project tree changes.
"""

from warren.routing.discovery import classify_directory, discover_routes
from warren.routing.matcher import match_route
from warren.routing.route import Route, RouteMatch, RouteTable, extract_params

__all__ = [
    "Route",
    "RouteMatch",
    "RouteTable",
    "classify_directory",
    "discover_routes",
    "extract_params",
    "match_route",
]
