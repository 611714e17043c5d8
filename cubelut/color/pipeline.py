"""Per-pixel colour pipeline: LUT sample, intensity blend, brightness/contrast.

Every step is a pure function of its inputs. ``process`` splits the image
into row bands and runs them on a thread pool; each band writes to its own
slice of the output so no locking is needed.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np

from cubelut.color.cube_parser import parse_cube_file
from cubelut.color.lut import Lut3D
from cubelut.color.sampler import sample_array
from cubelut.config import ParserConfig, PipelineParams, ProcessingConfig

logger = logging.getLogger(__name__)


def blend(original: np.ndarray, sampled: np.ndarray, intensity: float) -> np.ndarray:
    """Linear blend from the original colour toward the LUT colour."""
    return original * (1.0 - intensity) + sampled * intensity


def adjust_brightness_contrast(
    rgb: np.ndarray,
    brightness: float,
    contrast: float,
) -> np.ndarray:
    """Add ``brightness`` then scale around mid-gray by ``contrast``. Unclamped."""
    # Identity values are skipped so they do not perturb the low bits
    if brightness != 0.0:
        rgb = rgb + brightness
    if contrast != 1.0:
        rgb = (rgb - 0.5) * contrast + 0.5
    return rgb


def _grade(rgb: np.ndarray, lut: Lut3D, params: PipelineParams) -> np.ndarray:
    """Run the full colour math on float RGB in [0, 1] and clamp the result."""
    sampled = sample_array(lut, rgb)
    out = blend(rgb, sampled, params.intensity)
    out = adjust_brightness_contrast(out, params.brightness, params.contrast)
    return np.clip(out, 0.0, 1.0)


def process_pixel(
    pixel: tuple[float, ...],
    lut: Lut3D,
    params: PipelineParams | None = None,
) -> tuple[float, ...]:
    """Process one normalized RGB or RGBA pixel. Alpha is returned unchanged."""
    params = params or PipelineParams()
    rgb = np.asarray(pixel[:3], dtype=np.float64)
    out = _grade(rgb, lut, params)
    return (float(out[0]), float(out[1]), float(out[2]), *pixel[3:])


def _to_float(arr: np.ndarray) -> np.ndarray:
    """Map image channels to float64 in the image's nominal [0, 1] scale."""
    if np.issubdtype(arr.dtype, np.integer):
        info = np.iinfo(arr.dtype)
        return arr.astype(np.float64) / float(info.max)
    return arr.astype(np.float64, copy=False)


def _from_float(arr: np.ndarray, dtype: np.dtype) -> np.ndarray:
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return np.rint(arr * float(info.max)).astype(dtype)
    return arr.astype(dtype, copy=False)


def _check_image(image: np.ndarray) -> None:
    if image.ndim != 3 or image.shape[-1] not in (3, 4):
        raise ValueError(f"Image must be HxWx3 or HxWx4, got shape {image.shape}")
    if not (np.issubdtype(image.dtype, np.integer) or np.issubdtype(image.dtype, np.floating)):
        raise ValueError(f"Unsupported image dtype: {image.dtype}")
    if np.issubdtype(image.dtype, np.signedinteger):
        raise ValueError(f"Unsupported signed image dtype: {image.dtype}")


def process(
    image: np.ndarray,
    lut: Lut3D,
    params: PipelineParams | None = None,
    config: ProcessingConfig | None = None,
) -> np.ndarray:
    """Apply the LUT and adjustments to every pixel of an image.

    Args:
        image: HxWx3 (RGB) or HxWx4 (RGBA) array, uint8/uint16 or float in [0, 1].
        lut: Parsed cube, shared read-only by all worker threads.
        params: Intensity, brightness and contrast. Uses defaults if None.
        config: Thread pool and banding settings. Uses defaults if None.

    Returns:
        New array with the same shape and dtype as ``image``. The alpha
        channel, if present, is copied through untouched.
    """
    params = params or PipelineParams()
    config = config or ProcessingConfig()
    image = np.asarray(image)
    _check_image(image)

    height = image.shape[0]
    out = np.empty_like(image)
    if image.shape[-1] == 4:
        out[..., 3] = image[..., 3]

    def run_band(start: int, stop: int) -> None:
        rgb = _to_float(image[start:stop, :, :3])
        out[start:stop, :, :3] = _from_float(_grade(rgb, lut, params), image.dtype)

    bands = [
        (start, min(start + config.rows_per_band, height))
        for start in range(0, height, config.rows_per_band)
    ]
    logger.debug(
        "Processing %dx%d image in %d band(s) of up to %d rows",
        image.shape[1], height, len(bands), config.rows_per_band,
    )

    if len(bands) <= 1 or config.max_workers == 1:
        for start, stop in bands:
            run_band(start, stop)
        return out

    with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
        futures = [pool.submit(run_band, start, stop) for start, stop in bands]
        for future in futures:
            future.result()

    return out


class ColorPipeline:
    """A parsed LUT bound to fixed adjustment settings for repeated use."""

    def __init__(
        self,
        lut: Lut3D,
        params: PipelineParams | None = None,
        config: ProcessingConfig | None = None,
    ) -> None:
        self.lut = lut
        self.params = params or PipelineParams()
        self.config = config or ProcessingConfig()

    @classmethod
    def from_file(
        cls,
        lut_path: Path,
        params: PipelineParams | None = None,
        config: ProcessingConfig | None = None,
        parser_config: ParserConfig | None = None,
    ) -> ColorPipeline:
        lut = parse_cube_file(lut_path, config=parser_config)
        logger.info("LUT loaded from %s (size %d)", lut_path, lut.size)
        return cls(lut, params=params, config=config)

    def apply(self, image: np.ndarray) -> np.ndarray:
        return process(image, self.lut, self.params, self.config)
