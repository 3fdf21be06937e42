from __future__ import annotations

from typing import Literal

from domain.capture.model import CaptureConfig
from ports.vision import Region
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SourceSettings(BaseModel):
    adapter: Literal["mss"] = "mss"
    monitor: int = 1


class CaptureSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SCROLLCAP_", extra="ignore")

    overlap_fraction: float = Field(default=0.2, gt=0.0, lt=1.0)
    initial_delay: float = Field(default=0.5, ge=0.0)
    inter_frame_delay: float = Field(default=0.5, ge=0.0)
    max_frames: int = Field(default=50, ge=1)
    capture_timeout: float = Field(default=5.0, gt=0.0)
    comparator: Literal["exact", "mean_abs_diff"] = "exact"
    diff_threshold: float = Field(default=1.5, ge=0.0)

    source: SourceSettings = SourceSettings()
    log_level: str = "INFO"

    def to_config(self, region: Region) -> CaptureConfig:
        return CaptureConfig(
            region=region,
            overlap_fraction=self.overlap_fraction,
            initial_delay=self.initial_delay,
            inter_frame_delay=self.inter_frame_delay,
            max_frames=self.max_frames,
            capture_timeout=self.capture_timeout,
            comparator=self.comparator,
            diff_threshold=self.diff_threshold,
        )
