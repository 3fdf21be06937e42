from __future__ import annotations

from adapters.dx_capture.mss import MSSFrameSource
from domain.capture import CaptureService, build_comparator
from ports.vision import FrameSourcePort

from apps.scrollcap.settings import CaptureSettings


def build_source(settings: CaptureSettings) -> FrameSourcePort:
    if settings.source.adapter == "mss":
        return MSSFrameSource(monitor=settings.source.monitor)
    raise ValueError(f"Unknown capture adapter: {settings.source.adapter}")


def build_service(settings: CaptureSettings, source: FrameSourcePort | None = None) -> CaptureService:
    return CaptureService(source or build_source(settings), comparator_factory=build_comparator)
