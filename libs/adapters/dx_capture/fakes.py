from __future__ import annotations

import asyncio
from collections.abc import Iterable

import numpy as np
from ports.vision import BYTES_PER_PIXEL, Frame, FrameSourcePort, PixelFormat, Region, SourceError


def solid_frame(width: int, height: int, value: int, pixel_format: PixelFormat = "BGRA") -> Frame:
    """Single-colour frame; every channel byte is `value`."""
    bpp = BYTES_PER_PIXEL[pixel_format]
    return Frame(
        width=width,
        height=height,
        data=bytes([value & 0xFF]) * (width * height * bpp),
        pixel_format=pixel_format,
    )


class FakeFrameSource(FrameSourcePort):
    """Replays a script of frames and errors; records every requested region.

    Script items are Frames (returned) or exceptions (raised). Once the script
    runs out the last item repeats, unless `repeat_last` is False in which case
    SourceError is raised.
    """

    def __init__(
        self,
        script: Iterable[Frame | BaseException],
        repeat_last: bool = True,
        stall_s: float = 0.0,
    ) -> None:
        self._script = list(script)
        self._repeat_last = repeat_last
        self.stall_s = float(stall_s)
        self.requests: list[Region] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def capture(self, region: Region, timeout: float) -> Frame:
        n = len(self.requests)
        self.requests.append(region)
        if self.stall_s > 0:
            await asyncio.sleep(self.stall_s)
        if n < len(self._script):
            item = self._script[n]
        elif self._repeat_last and self._script:
            item = self._script[-1]
        else:
            raise SourceError("script exhausted")
        if isinstance(item, BaseException):
            raise item
        return item


class DocumentFrameSource(FrameSourcePort):
    """Serves slices of a synthetic tall page, as if the page scrolled under the region.

    Rows are distinct so consecutive frames always differ. Regions reaching
    past the page bottom fail with SourceError.
    """

    def __init__(self, width: int, height: int, pixel_format: PixelFormat = "BGRA") -> None:
        bpp = BYTES_PER_PIXEL[pixel_format]
        rows = np.arange(height, dtype=np.uint32)
        cols = np.arange(width, dtype=np.uint32)
        page = np.empty((height, width, bpp), dtype=np.uint8)
        for c in range(bpp):
            page[:, :, c] = ((rows[:, None] * (7 + c) + cols[None, :] * (c + 1)) % 251).astype(
                np.uint8
            )
        self.page = page
        self.pixel_format: PixelFormat = pixel_format
        self.requests: list[Region] = []

    async def capture(self, region: Region, timeout: float) -> Frame:
        self.requests.append(region)
        page_h, page_w = self.page.shape[:2]
        if region.x < 0 or region.y < 0 or region.x + region.width > page_w:
            raise SourceError(f"Region {region.as_roi()} outside page")
        if region.y + region.height > page_h:
            raise SourceError("end of page")
        tile = self.page[region.y : region.y + region.height, region.x : region.x + region.width]
        return Frame(
            width=region.width,
            height=region.height,
            data=np.ascontiguousarray(tile).tobytes(),
            pixel_format=self.pixel_format,
        )
