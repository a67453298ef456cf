"""Shared type aliases used across wren modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler, called as handler(request, responder), sync or async
Handler: TypeAlias = Callable[..., Any]

# Default handler for a status, called as default(responder), sync or async
DefaultHandler: TypeAlias = Callable[..., Any]
