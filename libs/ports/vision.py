# libs/ports/vision.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Literal

ROI = tuple[int, int, int, int]  # x, y, w, h  (compat alias)

PixelFormat = Literal["BGRA", "RGBA", "RGB", "GRAY"]

BYTES_PER_PIXEL: dict[str, int] = {"BGRA": 4, "RGBA": 4, "RGB": 3, "GRAY": 1}


class SourceError(RuntimeError):
    """Transient failure of a frame source (nothing captured this time)."""


@dataclass(frozen=True)
class Region:
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Region must have positive size, got {self.width}x{self.height}")

    def translated(self, dy: int) -> Region:
        # only the vertical origin ever moves during a capture sequence
        return replace(self, y=self.y + int(dy))

    def as_roi(self) -> ROI:
        return self.x, self.y, self.width, self.height


@dataclass(frozen=True)
class Frame:
    width: int
    height: int
    # raw pixel bytes (row-major, contiguous). Keep it tech-agnostic.
    data: bytes
    pixel_format: PixelFormat = "BGRA"
    index: int = 0  # 1-based capture index; 0 for composites
    region: Region | None = None

    def __post_init__(self) -> None:
        if self.pixel_format not in BYTES_PER_PIXEL:
            raise ValueError(f"Unknown pixel format: {self.pixel_format!r}")
        expected = self.width * self.height * self.bytes_per_pixel
        if len(self.data) != expected:
            raise ValueError(
                f"Frame buffer holds {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height} {self.pixel_format}"
            )

    @property
    def bytes_per_pixel(self) -> int:
        return BYTES_PER_PIXEL[self.pixel_format]

    @property
    def stride(self) -> int:
        return self.width * self.bytes_per_pixel

    def size(self) -> tuple[int, int]:
        return self.width, self.height


class FrameSourcePort(ABC):
    """Produces one raster image of a screen region; domain never sees the OS API."""

    @abstractmethod
    async def capture(self, region: Region, timeout: float) -> Frame:
        """Raise SourceError when nothing could be captured."""
