# libs/domain/capture/loop.py
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Final

from ports.vision import Frame, FrameSourcePort, Region, SourceError

from .cancel import CancelToken
from .comparator import ExactFrameComparator, FrameComparator
from .errors import CaptureCancelled, SourceUnavailable
from .model import CaptureConfig
from .stitcher import round_half_up

LOG: Final = logging.getLogger("scrollstitch.loop")

FrameCallback = Callable[[int, Frame], None]


class CaptureLoop:
    """Sequential, bounded capture of a region at increasing vertical offsets.

    The loop owns the collected frames until `run` returns them. It never injects
    scroll events itself; the frame source is assumed to advance between captures.
    """

    def __init__(
        self,
        source: FrameSourcePort,
        comparator: FrameComparator | None = None,
    ) -> None:
        self.source: Final = source
        self.comparator: Final = comparator or ExactFrameComparator()

    async def run(
        self,
        config: CaptureConfig,
        token: CancelToken | None = None,
        on_frame: FrameCallback | None = None,
    ) -> list[Frame]:
        """Return an ordered, non-empty list of frames.

        Raises SourceUnavailable if the first capture fails and CaptureCancelled
        once the token is observed as cancelled.
        """
        token = token or CancelToken()
        origin = config.region

        self._check(token)
        await token.sleep(config.initial_delay)
        self._check(token)

        first = await self._grab(origin, 1, config.capture_timeout)
        self._check(token)
        if first is None:
            raise SourceUnavailable(f"Could not capture initial region {origin.as_roi()}")

        frames: list[Frame] = [first]
        self._emit(on_frame, first)

        step = config.scroll_step
        for index in range(2, config.max_frames + 1):
            self._check(token)
            await token.sleep(config.inter_frame_delay)
            self._check(token)

            region = origin.translated(round_half_up((index - 1) * step))
            frame = await self._grab(region, index, config.capture_timeout)
            # in-flight result is stale once cancelled
            self._check(token)

            if frame is None:
                LOG.info("Source exhausted at frame %d; keeping %d frames.", index, len(frames))
                break
            if not self.comparator.is_different(frames[-1], frame):
                LOG.info("Frame %d repeats frame %d; end of content.", index, index - 1)
                break

            frames.append(frame)
            self._emit(on_frame, frame)
        else:
            if config.max_frames > 1:
                LOG.info("Frame cap reached (%d).", config.max_frames)

        return frames

    async def _grab(self, region: Region, index: int, timeout: float) -> Frame | None:
        """Capture one frame; None on a transient failure or timeout."""
        try:
            frame = await asyncio.wait_for(self.source.capture(region, timeout), timeout=timeout)
        except SourceError as exc:
            LOG.debug("Capture %d of %s failed: %s", index, region.as_roi(), exc)
            return None
        except TimeoutError:
            LOG.debug("Capture %d of %s timed out after %.2fs", index, region.as_roi(), timeout)
            return None
        LOG.debug("Captured frame %d (%dx%d) at %s", index, frame.width, frame.height, region.as_roi())
        return replace(frame, index=index, region=region)

    @staticmethod
    def _check(token: CancelToken) -> None:
        if token.cancelled:
            raise CaptureCancelled("Capture cancelled")

    @staticmethod
    def _emit(on_frame: FrameCallback | None, frame: Frame) -> None:
        if on_frame is not None:
            on_frame(frame.index, frame)
