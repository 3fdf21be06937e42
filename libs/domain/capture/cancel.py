from __future__ import annotations

import asyncio
import contextlib
import threading


class CancelToken:
    """Cooperative cancellation flag shared by a session and its loop.

    The flag is what the loop checks at its boundaries. The event only exists so
    that a pending delay wakes up early; `cancel()` may be called from any thread.
    """

    def __init__(self) -> None:
        self._flag = threading.Event()
        self._event: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def cancelled(self) -> bool:
        return self._flag.is_set()

    def cancel(self) -> None:
        self._flag.set()
        loop, event = self._loop, self._event
        if loop is None or event is None or loop.is_closed():
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            event.set()
        else:
            # loop already shutting down: nobody is waiting anymore
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(event.set)

    def _bind(self) -> asyncio.Event:
        if self._event is None:
            self._loop = asyncio.get_running_loop()
            self._event = asyncio.Event()
            if self._flag.is_set():
                self._event.set()
        return self._event

    async def sleep(self, seconds: float) -> None:
        """Wait `seconds`, returning early if cancelled."""
        event = self._bind()
        if seconds <= 0 or event.is_set():
            await asyncio.sleep(0)
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(event.wait(), timeout=seconds)
