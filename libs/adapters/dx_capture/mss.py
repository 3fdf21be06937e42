from __future__ import annotations

import asyncio
import logging
from typing import Any, Final, cast

import mss
import mss.exception

from ports.vision import Frame, FrameSourcePort, Region, SourceError

LOG: Final = logging.getLogger("scrollstitch.mss")


class MSSFrameSource(FrameSourcePort):
    """Screen-region frames via mss; coordinates are relative to one monitor.

    mss handles are thread-affine, so each grab opens its own instance inside
    the worker thread.
    """

    def __init__(self, monitor: int = 1) -> None:
        self._monitor_idx = int(monitor)

    async def capture(self, region: Region, timeout: float) -> Frame:
        # timeout is enforced by the caller; a stalled thread is simply abandoned
        return await asyncio.to_thread(self._grab, region)

    def _monitor(self, sct: Any) -> dict[str, int]:
        monitors = sct.monitors
        # clamp to a real monitor (monitors[0] is "all")
        idx = self._monitor_idx
        if idx < 1 or idx >= len(monitors):
            idx = 1
        return cast(dict[str, int], dict(monitors[idx]))

    def _rect_for(self, mon: dict[str, int], region: Region) -> dict[str, int]:
        if (
            region.x < 0
            or region.y < 0
            or region.x + region.width > int(mon["width"])
            or region.y + region.height > int(mon["height"])
        ):
            raise SourceError(f"Region {region.as_roi()} falls outside monitor {self._monitor_idx}")
        return {
            "left": int(mon["left"]) + region.x,
            "top": int(mon["top"]) + region.y,
            "width": region.width,
            "height": region.height,
        }

    def _grab(self, region: Region) -> Frame:
        try:
            with mss.mss() as sct:
                rect = self._rect_for(self._monitor(sct), region)
                shot: Any = sct.grab(rect)
        except mss.exception.ScreenShotError as exc:
            raise SourceError(f"mss grab failed: {exc}") from exc
        # Prefer BGRA if available; fall back to raw
        if hasattr(shot, "bgra"):
            bgra_bytes = bytes(shot.bgra)
        else:
            bgra_bytes = bytes(shot.raw)
        LOG.debug("Grabbed %dx%d at %s", shot.width, shot.height, region.as_roi())
        return Frame(width=shot.width, height=shot.height, data=bgra_bytes, pixel_format="BGRA")
