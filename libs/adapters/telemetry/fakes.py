from __future__ import annotations

from domain.capture.model import CaptureState, is_terminal
from ports.telemetry import CaptureObserverPort
from ports.vision import Frame


class FakeCaptureObserver(CaptureObserverPort):
    """Records everything a session tells it."""

    def __init__(self) -> None:
        self.progress: list[tuple[int, Frame]] = []
        self.states: list[CaptureState] = []

    def on_progress(self, frame_index: int, frame: Frame) -> None:
        self.progress.append((frame_index, frame))

    def on_state(self, state: CaptureState) -> None:
        self.states.append(state)

    @property
    def kinds(self) -> list[str]:
        return [s.kind for s in self.states]

    @property
    def terminal(self) -> CaptureState | None:
        done = [s for s in self.states if is_terminal(s)]
        return done[-1] if done else None
