# libs/domain/capture/service.py
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Final

from ports.telemetry import CaptureObserverPort
from ports.vision import FrameSourcePort, Region

from .comparator import FrameComparator
from .errors import SessionActiveError
from .model import CaptureConfig, CaptureState, is_terminal
from .session import CaptureSession, SessionHandle

LOG: Final = logging.getLogger("scrollstitch.service")


class CaptureService:
    """Inbound API for the embedding application: start, cancel, observe.

    A session stays registered until its terminal state has been collected with
    `wait()` (or dropped with `release()`); a handle can be reused after that.
    """

    def __init__(
        self,
        source: FrameSourcePort,
        comparator_factory: Callable[[CaptureConfig], FrameComparator] | None = None,
    ) -> None:
        self.source: Final = source
        self._comparator_factory = comparator_factory
        self._sessions: dict[SessionHandle, CaptureSession] = {}

    def start_capture(
        self,
        region: Region,
        config: CaptureConfig,
        observer: CaptureObserverPort | None = None,
        handle: SessionHandle | None = None,
    ) -> SessionHandle:
        """Begin a session on the running event loop and return its handle."""
        if handle is not None:
            existing = self._sessions.get(handle)
            if existing is not None and not is_terminal(existing.state):
                raise SessionActiveError(f"Session {handle} is already active")

        config = config.with_region(region)
        comparator = self._comparator_factory(config) if self._comparator_factory else None
        session = CaptureSession(self.source, config, comparator=comparator, handle=handle)
        if observer is not None:
            session.subscribe(observer)

        session.start()
        self._sessions[session.handle] = session
        LOG.info("Started session %s for region %s.", session.handle, region.as_roi())
        return session.handle

    def cancel(self, handle: SessionHandle) -> None:
        session = self._sessions.get(handle)
        if session is not None:
            session.cancel()

    def session(self, handle: SessionHandle) -> CaptureSession | None:
        return self._sessions.get(handle)

    def state(self, handle: SessionHandle) -> CaptureState | None:
        session = self._sessions.get(handle)
        return session.state if session is not None else None

    async def wait(self, handle: SessionHandle) -> CaptureState:
        """Await the terminal state and forget the session."""
        session = self._sessions.get(handle)
        if session is None:
            raise KeyError(handle)
        state = await session.wait()
        if is_terminal(state):
            self.release(handle)
        return state

    def release(self, handle: SessionHandle) -> None:
        session = self._sessions.get(handle)
        if session is not None and is_terminal(session.state):
            del self._sessions[handle]

    def active_handles(self) -> list[SessionHandle]:
        return [h for h, s in self._sessions.items() if not is_terminal(s.state)]
