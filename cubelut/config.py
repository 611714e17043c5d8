"""Configuration for .cube LUT parsing and colour processing."""

from __future__ import annotations

from dataclasses import dataclass, field

INTENSITY_RANGE = (0.0, 1.0)
BRIGHTNESS_RANGE = (-1.0, 1.0)
CONTRAST_RANGE = (0.5, 2.0)


def _check_range(name: str, value: float, bounds: tuple[float, float]) -> None:
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"{name} must be in [{low}, {high}], got {value}")


@dataclass(frozen=True)
class PipelineParams:
    """Per-call colour adjustment settings."""

    intensity: float = 1.0  # 0 = original colour, 1 = pure LUT output
    brightness: float = 0.0  # additive offset per channel
    contrast: float = 1.0  # multiplier around mid-gray 0.5

    def __post_init__(self) -> None:
        _check_range("intensity", self.intensity, INTENSITY_RANGE)
        _check_range("brightness", self.brightness, BRIGHTNESS_RANGE)
        _check_range("contrast", self.contrast, CONTRAST_RANGE)


@dataclass
class ParserConfig:
    """Settings for .cube parsing."""

    strict: bool = False  # raise on malformed data lines instead of skipping them


@dataclass
class ProcessingConfig:
    """Settings for the per-pixel colour pipeline."""

    max_workers: int | None = None  # thread pool size, None = executor default
    rows_per_band: int = 256  # image rows handed to each worker task

    def __post_init__(self) -> None:
        if self.rows_per_band < 1:
            raise ValueError(f"rows_per_band must be >= 1, got {self.rows_per_band}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")


@dataclass
class CubeLutConfig:
    """Top-level configuration combining all sub-configs."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    params: PipelineParams = field(default_factory=PipelineParams)
