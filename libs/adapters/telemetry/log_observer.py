from __future__ import annotations

import logging
from typing import Final

from domain.capture.model import (
    Capturing,
    CaptureState,
    Complete,
    Stitching,
    display_message,
)
from ports.telemetry import CaptureObserverPort
from ports.time import ClockPort
from ports.vision import Frame
from shared.contracts.v1.progress import ProgressEvent, StateEvent

from adapters.time.monotonic import MonotonicClockPort

LOG: Final = logging.getLogger("scrollstitch.events")


def progress_event(
    session_id: str, max_frames: int, frame_index: int, frame: Frame, ts: float
) -> ProgressEvent:
    return ProgressEvent(
        session_id=session_id,
        ts=ts,
        frame_index=frame_index,
        max_frames=max_frames,
        width=frame.width,
        height=frame.height,
        y=frame.region.y if frame.region is not None else None,
    )


def state_event(session_id: str, state: CaptureState, ts: float) -> StateEvent:
    fields: dict[str, int] = {}
    if isinstance(state, Capturing):
        fields["frame_index"] = state.frame_index
    elif isinstance(state, Stitching):
        fields["frame_count"] = state.frame_count
    elif isinstance(state, Complete):
        fields["frame_count"] = state.result.frame_count
        fields["width"] = state.result.width
        fields["height"] = state.result.height
    return StateEvent(
        session_id=session_id,
        ts=ts,
        state=state.kind,
        message=display_message(state),
        **fields,
    )


class LoggingCaptureObserver(CaptureObserverPort):
    """Logs session feedback as v1 contract dumps and keeps the last few."""

    def __init__(
        self,
        session_id: str,
        max_frames: int,
        clock: ClockPort | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.session_id = session_id
        self.max_frames = max_frames
        self.clock = clock or MonotonicClockPort()
        self.log = logger or LOG
        self.last_progress: ProgressEvent | None = None
        self.last_state: StateEvent | None = None

    def on_progress(self, frame_index: int, frame: Frame) -> None:
        evt = progress_event(self.session_id, self.max_frames, frame_index, frame, self.clock.now())
        self.last_progress = evt
        self.log.info("progress %s", evt.model_dump_json())

    def on_state(self, state: CaptureState) -> None:
        evt = state_event(self.session_id, state, self.clock.now())
        self.last_state = evt
        level = logging.WARNING if evt.state == "FAILED" else logging.INFO
        self.log.log(level, "state %s", evt.model_dump_json())
