from .fakes import DocumentFrameSource, FakeFrameSource, solid_frame

__all__ = [
    "DocumentFrameSource",
    "FakeFrameSource",
    "solid_frame",
]
