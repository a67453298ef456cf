"""One live-reload notification connection.

A connection moves ``CONNECTING -> OPEN -> CLOSED``. Messages are only
queued while it is ``OPEN``. With a debounce interval, each push cancels
the pending one and re-arms the timer, so only the last message of a
burst is delivered.
"""

import asyncio
import enum

# Wire messages
CONNECTED = "connected"
RELOAD = "reload"
REFRESH_CSS = "refreshcss"


class ConnectionState(enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class NotificationConnection:
    """Outbound message channel plus debounce timer for one client.

    All methods must be called from the event loop thread that owns
    the connection.
    """

    __slots__ = ("_closed", "_debounce", "_pending", "_queue", "state")

    def __init__(self, debounce: float = 0.0) -> None:
        self.state = ConnectionState.CONNECTING
        self._debounce = debounce
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._pending: asyncio.TimerHandle | None = None
        self._closed = asyncio.Event()

    def open(self) -> None:
        self.state = ConnectionState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def push(self, message: str) -> None:
        """Queue *message*, debounced when an interval is configured."""
        if not self.is_open:
            return
        if self._debounce <= 0:
            self._queue.put_nowait(message)
            return
        if self._pending is not None:
            self._pending.cancel()
        loop = asyncio.get_running_loop()
        self._pending = loop.call_later(self._debounce, self._flush, message)

    def send_now(self, message: str) -> None:
        """Queue *message* immediately, bypassing the debounce timer."""
        if self.is_open:
            self._queue.put_nowait(message)

    def _flush(self, message: str) -> None:
        self._pending = None
        if self.is_open:
            self._queue.put_nowait(message)

    async def next_message(self) -> str:
        """Wait for the next message to transmit."""
        return await self._queue.get()

    def close(self) -> None:
        """Mark closed and cancel any pending debounced send."""
        self.state = ConnectionState.CLOSED
        self._closed.set()
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    async def wait_closed(self) -> None:
        """Wait until ``close()`` has been called."""
        await self._closed.wait()
