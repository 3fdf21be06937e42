# libs/domain/capture/session.py
from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from typing import Final

from ports.telemetry import CaptureObserverPort
from ports.vision import Frame, FrameSourcePort

from .cancel import CancelToken
from .comparator import FrameComparator, build_comparator
from .errors import CaptureCancelled, SessionStateError, SourceUnavailable, StitchError
from .loop import CaptureLoop
from .model import (
    Cancelled,
    CaptureConfig,
    CaptureState,
    Capturing,
    Complete,
    Failed,
    Idle,
    Initializing,
    Stitching,
    is_terminal,
)
from .stitcher import Stitcher

LOG: Final = logging.getLogger("scrollstitch.session")

SessionHandle = str


class CaptureSession:
    """One scrolling-capture gesture: capture loop, then stitch, then a terminal state.

    The session is the only writer of its state. State changes are made and
    delivered to observers under one reentrant lock, so once Cancelled is
    published nothing else can follow it.
    """

    def __init__(
        self,
        source: FrameSourcePort,
        config: CaptureConfig,
        comparator: FrameComparator | None = None,
        stitcher: Stitcher | None = None,
        handle: SessionHandle | None = None,
    ) -> None:
        self.handle: Final[SessionHandle] = handle or uuid.uuid4().hex
        self.config: Final = config
        self._loop = CaptureLoop(source, comparator or build_comparator(config))
        self._stitcher = stitcher or Stitcher()
        self._token = CancelToken()
        self._lock = threading.RLock()
        self._state: CaptureState = Idle()
        self._observers: list[CaptureObserverPort] = []
        self._task: asyncio.Task[CaptureState] | None = None
        self._frames_captured = 0
        self._latest_frame: Frame | None = None

    # --- read-only views ------------------------------------------------------

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def frames_captured(self) -> int:
        return self._frames_captured

    @property
    def latest_frame(self) -> Frame | None:
        return self._latest_frame

    @property
    def progress(self) -> float:
        if isinstance(self._state, Complete):
            return 1.0
        return min(1.0, self._frames_captured / self.config.max_frames)

    def subscribe(self, observer: CaptureObserverPort) -> None:
        self._observers.append(observer)

    # --- control --------------------------------------------------------------

    def start(self) -> asyncio.Task[CaptureState]:
        """Schedule the capture on the running event loop."""
        with self._lock:
            if not isinstance(self._state, Idle) or self._task is not None:
                raise SessionStateError(f"Session {self.handle} cannot start from {self._state.kind}")
            self._task = asyncio.get_running_loop().create_task(
                self._run(), name=f"capture-{self.handle}"
            )
        return self._task

    async def run(self) -> CaptureState:
        return await self.start()

    async def wait(self) -> CaptureState:
        if self._task is not None:
            return await asyncio.shield(self._task)
        return self._state

    def cancel(self) -> None:
        """Request cooperative cancellation. Idempotent; no-op once terminal."""
        with self._lock:
            if is_terminal(self._state):
                return
            self._token.cancel()
            self._state = state = Cancelled()
            LOG.info("Session %s cancelled.", self.handle)
            self._publish_state(state)

    # --- internals ------------------------------------------------------------

    async def _run(self) -> CaptureState:
        self._transition(Initializing())
        try:
            frames = await self._loop.run(self.config, self._token, self._on_frame)
            self._transition(Stitching(frame_count=len(frames)))
            result = await asyncio.to_thread(
                self._stitcher.stitch, frames, self.config.overlap_fraction
            )
            if self._token.cancelled:
                raise CaptureCancelled("Cancelled while stitching")
            LOG.info(
                "Session %s stitched %d frames into %dx%d.",
                self.handle, result.frame_count, result.width, result.height,
            )
            self._transition(Complete(result=result))
        except asyncio.CancelledError:
            # task cancelled from outside (or loop teardown)
            self.cancel()
            raise
        except CaptureCancelled:
            self._transition(Cancelled())
        except SourceUnavailable as exc:
            self._transition(Failed(reason=str(exc), error=exc))
        except StitchError as exc:
            self._transition(Failed(reason=str(exc), error=exc))
        except Exception as exc:
            LOG.exception("Session %s crashed.", self.handle)
            self._transition(Failed(reason=f"{type(exc).__name__}: {exc}", error=exc))
        return self._state

    def _on_frame(self, index: int, frame: Frame) -> None:
        with self._lock:
            if self._token.cancelled:
                return
            self._frames_captured = index
            self._latest_frame = frame
            if not self._transition(Capturing(frame_index=index)):
                return
            for obs in list(self._observers):
                if self._token.cancelled:
                    return
                try:
                    obs.on_progress(index, frame)
                except Exception:
                    LOG.exception("Progress observer %r failed.", obs)

    def _transition(self, new: CaptureState) -> bool:
        with self._lock:
            if is_terminal(self._state):
                return False
            if self._token.cancelled and not isinstance(new, Cancelled):
                return False
            self._state = new
            LOG.debug("Session %s -> %s", self.handle, new.kind)
            self._publish_state(new)
        return True

    def _publish_state(self, state: CaptureState) -> None:
        # Called with the lock held, so another thread cannot interleave. An
        # observer on this thread may still move the session on (cancel); stop
        # delivering the superseded state once that happens.
        for obs in list(self._observers):
            if self._state is not state:
                return
            try:
                obs.on_state(state)
            except Exception:
                LOG.exception("State observer %r failed.", obs)
