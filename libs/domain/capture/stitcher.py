"""Vertical compositing of overlapping frames into one tall image."""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Final

import numpy as np
from ports.vision import BYTES_PER_PIXEL, Frame, PixelFormat, Region

from .errors import DimensionMismatch, EmptyFrameSequence
from .model import StitchResult

LOG: Final = logging.getLogger("scrollstitch.stitcher")

SEAM_WEIGHT: Final = 0.5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def frame_to_array(frame: Frame) -> np.ndarray:
    """Read-only (height, width, channels) uint8 view over the frame buffer."""
    arr = np.frombuffer(frame.data, dtype=np.uint8)
    return arr.reshape(frame.height, frame.width, frame.bytes_per_pixel)


def array_to_frame(
    array: np.ndarray,
    pixel_format: PixelFormat = "BGRA",
    index: int = 0,
    region: Region | None = None,
) -> Frame:
    if array.ndim == 2:
        array = array[:, :, None]
    if array.ndim != 3 or array.shape[2] != BYTES_PER_PIXEL[pixel_format]:
        raise ValueError(f"Array of shape {array.shape} does not hold {pixel_format} pixels")
    height, width = array.shape[:2]
    data = np.ascontiguousarray(array, dtype=np.uint8).tobytes()
    return Frame(
        width=width,
        height=height,
        data=data,
        pixel_format=pixel_format,
        index=index,
        region=region,
    )


def blend_rows(existing: np.ndarray, new: np.ndarray, weight: float = SEAM_WEIGHT) -> np.ndarray:
    """Per-channel `existing*(1-w) + new*w`, rounded half up back to uint8."""
    mixed = existing.astype(np.float32) * (1.0 - weight) + new.astype(np.float32) * weight
    return np.clip(np.floor(mixed + 0.5), 0, 255).astype(np.uint8)


class Stitcher:
    """Top-aligned compositing with soft seams over the overlap rows."""

    def __init__(self, seam_weight: float = SEAM_WEIGHT) -> None:
        self.seam_weight = float(seam_weight)

    def stitch(self, frames: list[Frame], overlap_fraction: float) -> StitchResult:
        """Composite `frames` in order. The list is drained as frames are consumed."""
        if not frames:
            raise EmptyFrameSequence("No frames to stitch")
        if not 0.0 < overlap_fraction < 1.0:
            raise ValueError(f"overlap_fraction must be in (0, 1), got {overlap_fraction}")

        first = frames[0]
        for frame in frames[1:]:
            if frame.width != first.width:
                raise DimensionMismatch(
                    f"Frame {frame.index} is {frame.width}px wide, expected {first.width}px"
                )
            if frame.height != first.height or frame.pixel_format != first.pixel_format:
                raise DimensionMismatch(
                    f"Frame {frame.index} is {frame.width}x{frame.height} {frame.pixel_format}, "
                    f"expected {first.width}x{first.height} {first.pixel_format}"
                )

        count = len(frames)
        if count == 1:
            frames.clear()
            return StitchResult(image=first, frame_count=1)

        width, height = first.width, first.height
        overlap = min(height, round_half_up(height * overlap_fraction))
        advance = height - overlap
        total = height + (count - 1) * advance
        LOG.debug(
            "Stitching %d frames of %dx%d (overlap %dpx) into %dx%d",
            count, width, height, overlap, width, total,
        )

        canvas = np.empty((total, width, first.bytes_per_pixel), dtype=np.uint8)
        pending = deque(frames)
        frames.clear()

        canvas[:height] = frame_to_array(pending.popleft())
        top = 0
        while pending:
            src = frame_to_array(pending.popleft())
            top += advance
            canvas[top + overlap : top + height] = src[overlap:]
            if overlap:
                canvas[top : top + overlap] = blend_rows(
                    canvas[top : top + overlap], src[:overlap], self.seam_weight
                )
            del src

        region = None
        if first.region is not None:
            region = Region(first.region.x, first.region.y, width, total)
        image = array_to_frame(canvas, first.pixel_format, index=0, region=region)
        return StitchResult(image=image, frame_count=count)
