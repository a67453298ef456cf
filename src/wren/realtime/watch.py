"""Directory watches backed by ``watchfiles.awatch``.

Each watch runs as a task on the event loop and reports every changed
path to a callback. Hidden files, common VCS/build directories (the
watchfiles default ignore set), and configured ignore paths never
trigger a change.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from watchfiles import Change, DefaultFilter, awatch

logger = logging.getLogger("wren.realtime")

# Milliseconds awatch waits to group filesystem events into one batch
_BATCH_MS = 100


class ReloadFilter(DefaultFilter):
    """watchfiles filter that also drops hidden entries below *root*."""

    def __init__(self, root: str | Path, ignore_paths: Sequence[str | Path] = ()) -> None:
        self.root = Path(root).resolve()
        super().__init__(ignore_paths=[Path(p).resolve() for p in ignore_paths])

    def __call__(self, change: Change, path: str) -> bool:
        try:
            relative = Path(path).resolve().relative_to(self.root)
        except ValueError:
            relative = Path(path)
        if any(part.startswith(".") for part in relative.parts):
            return False
        return super().__call__(change, path)


class WatchHandle:
    """A running watch over one directory tree.

    Created by ``ChangeBroadcaster.watch()``. ``close()`` stops the
    underlying watcher and waits for its task to finish.
    """

    __slots__ = ("_on_change", "_stop", "_task", "directory", "watch_filter")

    def __init__(
        self,
        directory: Path,
        on_change: Callable[[str], object],
        watch_filter: ReloadFilter,
    ) -> None:
        self.directory = directory
        self.watch_filter = watch_filter
        self._on_change = on_change
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start watching. Must be called with a running event loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        try:
            async for changes in awatch(
                self.directory,
                watch_filter=self.watch_filter,
                stop_event=self._stop,
                debounce=_BATCH_MS,
            ):
                for _change, path in sorted(changes):
                    logger.debug("Changed: %s", path)
                    self._on_change(path)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Watcher for %s failed", self.directory)

    async def close(self) -> None:
        """Release the watch."""
        self._stop.set()
        task, self._task = self._task, None
        if task is None:
            return
        try:
            await asyncio.wait_for(task, timeout=5.0)
        except TimeoutError:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
