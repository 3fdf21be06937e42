from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .vision import Frame

if TYPE_CHECKING:  # pragma: no cover - domain types only used for hints
    from domain.capture.model import CaptureState


class CaptureObserverPort(ABC):
    """Receives session feedback; read-only view of the engine."""

    @abstractmethod
    def on_progress(self, frame_index: int, frame: Frame) -> None: ...

    @abstractmethod
    def on_state(self, state: CaptureState) -> None: ...
