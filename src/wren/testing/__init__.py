"""Test utilities for wren servers.

    from wren.testing import TestClient
"""

from wren.testing.client import TestClient, WebSocketSession

__all__ = ["TestClient", "WebSocketSession"]
