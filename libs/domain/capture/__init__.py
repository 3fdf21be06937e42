from .cancel import CancelToken
from .comparator import (
    ExactFrameComparator,
    FrameComparator,
    MeanAbsDiffComparator,
    build_comparator,
)
from .errors import (
    CaptureCancelled,
    CaptureError,
    DimensionMismatch,
    EmptyFrameSequence,
    SessionActiveError,
    SessionError,
    SessionStateError,
    SourceUnavailable,
    StitchError,
)
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
    StitchResult,
    display_message,
    is_active,
    is_terminal,
)
from .service import CaptureService
from .session import CaptureSession, SessionHandle
from .stitcher import Stitcher, array_to_frame, frame_to_array

__all__ = [
    "CancelToken",
    "Cancelled",
    "CaptureCancelled",
    "CaptureConfig",
    "CaptureError",
    "CaptureLoop",
    "CaptureService",
    "CaptureSession",
    "CaptureState",
    "Capturing",
    "Complete",
    "DimensionMismatch",
    "EmptyFrameSequence",
    "ExactFrameComparator",
    "Failed",
    "FrameComparator",
    "Idle",
    "Initializing",
    "MeanAbsDiffComparator",
    "SessionActiveError",
    "SessionError",
    "SessionHandle",
    "SessionStateError",
    "SourceUnavailable",
    "StitchError",
    "StitchResult",
    "Stitcher",
    "Stitching",
    "array_to_frame",
    "build_comparator",
    "display_message",
    "frame_to_array",
    "is_active",
    "is_terminal",
]
