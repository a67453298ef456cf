"""Change broadcaster — live-reload notifications over WebSocket.

Owns the set of open notification connections and the directory
watches. A filesystem change is classified (``refreshcss`` for
stylesheets, ``reload`` for everything else) and pushed to every open
connection.

The connection set is only mutated on the event loop thread (by
``handle()`` and ``close()``), so it needs no lock.
"""

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from pathlib import Path

from wren._internal.asgi import Receive, Scope, Send
from wren.errors import WatchError
from wren.realtime.connection import (
    CONNECTED,
    REFRESH_CSS,
    RELOAD,
    NotificationConnection,
)
from wren.realtime.watch import ReloadFilter, WatchHandle

logger = logging.getLogger("wren.realtime")


def classify_change(file_path: str | Path) -> str:
    """Message to send for a change to *file_path*."""
    return REFRESH_CSS if Path(file_path).suffix.lower() == ".css" else RELOAD


class ChangeBroadcaster:
    """Fan filesystem changes out to every live-reload client.

    Usage::

        broadcaster = ChangeBroadcaster(debounce=0.2, ignore_paths=("dist",))
        handle = broadcaster.watch("public")        # inside a running loop
        await broadcaster.handle(scope, receive, send)  # ASGI websocket scope
        await broadcaster.close()
    """

    __slots__ = ("_connections", "_debounce", "_ignore_paths", "_watches")

    def __init__(self, *, debounce: float = 0.0, ignore_paths: Sequence[str] = ()) -> None:
        self._debounce = debounce
        self._ignore_paths = tuple(ignore_paths)
        self._connections: set[NotificationConnection] = set()
        self._watches: list[WatchHandle] = []

    @property
    def connections(self) -> frozenset[NotificationConnection]:
        """Snapshot of the open connections."""
        return frozenset(self._connections)

    @property
    def watches(self) -> tuple[WatchHandle, ...]:
        return tuple(self._watches)

    # -- Notification channel --

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Serve one WebSocket notification connection until it closes.

        Accepts the handshake, sends ``connected``, then forwards every
        queued notification until the client disconnects.
        """
        if scope["type"] != "websocket":
            return

        message = await receive()
        if message["type"] != "websocket.connect":
            return
        await send({"type": "websocket.accept"})

        connection = NotificationConnection(self._debounce)
        connection.open()
        self._connections.add(connection)
        logger.debug("Live-reload client connected (%d open)", len(self._connections))
        try:
            connection.send_now(CONNECTED)
            await self._pump(connection, receive, send)
        finally:
            connection.close()
            self._connections.discard(connection)
            logger.debug("Live-reload client closed (%d open)", len(self._connections))

    async def _pump(self, connection: NotificationConnection, receive: Receive, send: Send) -> None:
        """Forward queued messages until the client goes away."""

        async def monitor_disconnect() -> None:
            while True:
                message = await receive()
                if message["type"] == "websocket.disconnect":
                    return

        async def produce_messages() -> None:
            while True:
                text = await connection.next_message()
                try:
                    await send({"type": "websocket.send", "text": text})
                except (OSError, RuntimeError):
                    logger.debug("Live-reload client went away mid-send")
                    return

        monitor_task = asyncio.create_task(monitor_disconnect())
        producer_task = asyncio.create_task(produce_messages())
        closed_task = asyncio.create_task(connection.wait_closed())
        tasks = (monitor_task, producer_task, closed_task)
        try:
            done, _pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        # Closed from the server side: tell the client the server is going away
        if closed_task in done and monitor_task not in done:
            with contextlib.suppress(OSError, RuntimeError):
                await send({"type": "websocket.close", "code": 1001})

    # -- Change events --

    def notify(self, file_path: str | Path) -> str:
        """Push the message for a change to *file_path* to every connection."""
        message = classify_change(file_path)
        for connection in tuple(self._connections):
            connection.push(message)
        return message

    # -- Watches --

    def watch(self, directory: str | Path) -> WatchHandle:
        """Start watching *directory*. Requires a running event loop.

        Raises ``WatchError`` if the directory cannot be observed.
        """
        path = Path(directory)
        if not path.is_dir():
            msg = f"Cannot watch {str(directory)!r}: not an existing directory."
            raise WatchError(msg)

        handle = WatchHandle(path, self.notify, ReloadFilter(path, self._ignore_paths))
        try:
            handle.start()
        except RuntimeError as exc:
            msg = f"Cannot watch {str(directory)!r}: {exc}"
            raise WatchError(msg) from exc
        self._watches.append(handle)
        logger.debug("Watching %s", path)
        return handle

    async def unwatch(self, handle: WatchHandle) -> None:
        """Release one watch."""
        with contextlib.suppress(ValueError):
            self._watches.remove(handle)
        await handle.close()

    async def close(self) -> None:
        """Release every watch and close every connection."""
        watches, self._watches = self._watches, []
        for handle in watches:
            await handle.close()
        connections, self._connections = self._connections, set()
        for connection in connections:
            connection.close()
        logger.debug("Closed %d live-reload connection(s)", len(connections))
