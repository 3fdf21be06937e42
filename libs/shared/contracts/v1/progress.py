from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

StateName = Literal[
    "IDLE", "INITIALIZING", "CAPTURING", "STITCHING", "COMPLETE", "CANCELLED", "FAILED"
]


class ProgressEvent(BaseModel):
    api: Literal["v1"] = "v1"
    session_id: str
    ts: float
    frame_index: int
    max_frames: int
    width: int
    height: int
    y: int | None = None  # vertical origin the frame was captured at

    @property
    def progress(self) -> float:
        return min(1.0, self.frame_index / max(1, self.max_frames))


class StateEvent(BaseModel):
    api: Literal["v1"] = "v1"
    session_id: str
    ts: float
    state: StateName
    message: str
    frame_index: int | None = None
    frame_count: int | None = None
    width: int | None = None
    height: int | None = None
