from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from ports.vision import Frame

from .model import CaptureConfig


class FrameComparator(ABC):
    """Decides whether `current` shows content that `previous` did not."""

    @abstractmethod
    def is_different(self, previous: Frame, current: Frame) -> bool: ...


class ExactFrameComparator(FrameComparator):
    """Byte-for-byte equality; any changed byte counts as new content."""

    def is_different(self, previous: Frame, current: Frame) -> bool:
        if previous.size() != current.size() or previous.pixel_format != current.pixel_format:
            # content reflowed
            return True
        return previous.data != current.data


class MeanAbsDiffComparator(FrameComparator):
    """Tolerates rendering jitter: mean absolute channel difference above `threshold`."""

    def __init__(self, threshold: float = 1.5) -> None:
        self.threshold = float(threshold)

    def is_different(self, previous: Frame, current: Frame) -> bool:
        if previous.size() != current.size() or previous.pixel_format != current.pixel_format:
            return True
        if previous.data == current.data:
            return False
        a = np.frombuffer(previous.data, dtype=np.uint8).astype(np.int16)
        b = np.frombuffer(current.data, dtype=np.uint8).astype(np.int16)
        diff = float(np.mean(np.abs(a - b)))
        return diff > self.threshold


def build_comparator(config: CaptureConfig) -> FrameComparator:
    if config.comparator == "exact":
        return ExactFrameComparator()
    if config.comparator == "mean_abs_diff":
        return MeanAbsDiffComparator(threshold=config.diff_threshold)
    raise ValueError(f"Unknown comparator: {config.comparator}")
