from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, assert_never

from ports.vision import Frame, Region
from pydantic import BaseModel, ConfigDict, Field

ComparatorKind = Literal["exact", "mean_abs_diff"]
StateKind = Literal[
    "IDLE", "INITIALIZING", "CAPTURING", "STITCHING", "COMPLETE", "CANCELLED", "FAILED"
]


class CaptureConfig(BaseModel):
    """Per-session knobs; immutable once the session exists."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    region: Region
    overlap_fraction: float = Field(default=0.2, gt=0.0, lt=1.0)
    initial_delay: float = Field(default=0.5, ge=0.0)  # lets the UI settle
    inter_frame_delay: float = Field(default=0.5, ge=0.0)
    max_frames: int = Field(default=50, ge=1)
    capture_timeout: float = Field(default=5.0, gt=0.0)
    comparator: ComparatorKind = "exact"
    diff_threshold: float = Field(default=1.5, ge=0.0)

    @property
    def scroll_step(self) -> float:
        """Vertical distance between consecutive capture origins."""
        return self.region.height * (1.0 - self.overlap_fraction)

    def with_region(self, region: Region) -> CaptureConfig:
        return self.model_copy(update={"region": region})


@dataclass(frozen=True)
class StitchResult:
    image: Frame
    frame_count: int

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def size(self) -> tuple[int, int]:
        return self.image.size()


# --- state machine values -----------------------------------------------------


@dataclass(frozen=True)
class Idle:
    kind: ClassVar[StateKind] = "IDLE"


@dataclass(frozen=True)
class Initializing:
    kind: ClassVar[StateKind] = "INITIALIZING"


@dataclass(frozen=True)
class Capturing:
    frame_index: int
    kind: ClassVar[StateKind] = "CAPTURING"


@dataclass(frozen=True)
class Stitching:
    frame_count: int
    kind: ClassVar[StateKind] = "STITCHING"


@dataclass(frozen=True)
class Complete:
    result: StitchResult
    kind: ClassVar[StateKind] = "COMPLETE"


@dataclass(frozen=True)
class Cancelled:
    kind: ClassVar[StateKind] = "CANCELLED"


@dataclass(frozen=True)
class Failed:
    reason: str
    error: BaseException | None = None
    kind: ClassVar[StateKind] = "FAILED"


CaptureState = Idle | Initializing | Capturing | Stitching | Complete | Cancelled | Failed

TERMINAL_KINDS: frozenset[str] = frozenset({"COMPLETE", "CANCELLED", "FAILED"})


def is_terminal(state: CaptureState) -> bool:
    return state.kind in TERMINAL_KINDS


def is_active(state: CaptureState) -> bool:
    return state.kind in {"INITIALIZING", "CAPTURING", "STITCHING"}


def display_message(state: CaptureState) -> str:
    match state:
        case Idle():
            return "Ready"
        case Initializing():
            return "Setting up..."
        case Capturing(frame_index=n):
            return f"Capturing frame {n}"
        case Stitching():
            return "Stitching images..."
        case Complete():
            return "Complete!"
        case Cancelled():
            return "Cancelled"
        case Failed(reason=reason):
            return f"Error: {reason}"
        case _:
            assert_never(state)
