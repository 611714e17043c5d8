"""Trilinear sampling of a 3D LUT.

Uses vectorized numpy trilinear interpolation over the flat table, so the
same code serves a single colour and a whole image.
"""

from __future__ import annotations

import numpy as np

from cubelut.color.lut import Lut3D


def sample_array(lut: Lut3D, rgb: np.ndarray) -> np.ndarray:
    """Sample the LUT at every colour in ``rgb``.

    Args:
        lut: Parsed cube.
        rgb: Float array of shape (..., 3) with channels nominally in [0, 1].

    Returns:
        float64 array with the same shape as ``rgb``.
    """
    rgb = np.asarray(rgb, dtype=np.float64)
    if rgb.shape[-1:] != (3,):
        raise ValueError(f"Expected colours with shape (..., 3), got {rgb.shape}")
    if np.isnan(rgb).any():
        raise ValueError("Cannot sample a LUT at NaN colour values")

    size = lut.size
    max_idx = size - 1
    table = lut.table
    stride_g = size
    stride_b = size * size

    p = np.clip(rgb * max_idx, 0, max_idx)
    # k/(N-1) * (N-1) can land a few ulps below k; snap so grid points hit exactly
    near = np.rint(p)
    tol = 4 * np.finfo(np.float64).eps * max(max_idx, 1)
    p = np.where(np.abs(p - near) <= tol, near, p)
    lo = np.floor(p)
    frac = p - lo
    i0 = np.clip(lo, 0, max_idx).astype(np.intp)
    i1 = np.clip(lo + 1, 0, max_idx).astype(np.intp)

    r0, g0, b0 = i0[..., 0], i0[..., 1], i0[..., 2]
    r1, g1, b1 = i1[..., 0], i1[..., 1], i1[..., 2]
    fr, fg, fb = frac[..., 0:1], frac[..., 1:2], frac[..., 2:3]

    c000 = table[r0 + g0 * stride_g + b0 * stride_b]
    c100 = table[r1 + g0 * stride_g + b0 * stride_b]
    c010 = table[r0 + g1 * stride_g + b0 * stride_b]
    c110 = table[r1 + g1 * stride_g + b0 * stride_b]
    c001 = table[r0 + g0 * stride_g + b1 * stride_b]
    c101 = table[r1 + g0 * stride_g + b1 * stride_b]
    c011 = table[r0 + g1 * stride_g + b1 * stride_b]
    c111 = table[r1 + g1 * stride_g + b1 * stride_b]

    c00 = c000 * (1 - fr) + c100 * fr
    c10 = c010 * (1 - fr) + c110 * fr
    c01 = c001 * (1 - fr) + c101 * fr
    c11 = c011 * (1 - fr) + c111 * fr
    c0 = c00 * (1 - fg) + c10 * fg
    c1 = c01 * (1 - fg) + c11 * fg
    return c0 * (1 - fb) + c1 * fb


def sample(lut: Lut3D, color: tuple[float, float, float]) -> tuple[float, float, float]:
    """Return the interpolated output colour for a single RGB triple."""
    out = sample_array(lut, np.asarray(color, dtype=np.float64).reshape(1, 3))[0]
    return float(out[0]), float(out[1]), float(out[2])
