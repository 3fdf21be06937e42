from .telemetry import CaptureObserverPort
from .time import ClockPort
from .vision import ROI, Frame, FrameSourcePort, PixelFormat, Region, SourceError

__all__ = [
    "CaptureObserverPort",
    "ClockPort",
    "Frame",
    "FrameSourcePort",
    "PixelFormat",
    "Region",
    "ROI",
    "SourceError",
]
