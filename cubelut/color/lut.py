"""The 3D LUT value type and .cube serialization."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np


@dataclass(frozen=True, eq=False)
class Lut3D:
    """A dense N x N x N colour cube.

    ``table`` has shape (N^3, 3) in .cube row order: red varies fastest,
    blue slowest, so grid point (r, g, b) lives at ``r + g*N + b*N*N``.
    """

    size: int
    table: np.ndarray

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError(f"LUT size must be >= 1, got {self.size}")
        table = np.array(self.table, dtype=np.float64).reshape(-1, 3)
        expected = self.size ** 3
        if table.shape[0] != expected:
            raise ValueError(
                f"Expected {expected} LUT entries for size {self.size}, got {table.shape[0]}"
            )
        table.flags.writeable = False
        object.__setattr__(self, "table", table)

    @property
    def grid(self) -> np.ndarray:
        """Read-only (N, N, N, 3) view indexed as ``grid[r, g, b]``."""
        n = self.size
        # Row order gives axes (B, G, R) after reshape; swap to (R, G, B).
        return self.table.reshape(n, n, n, 3).transpose(2, 1, 0, 3)

    def entry(self, r: int, g: int, b: int) -> tuple[float, float, float]:
        row = self.grid[r, g, b]
        return float(row[0]), float(row[1]), float(row[2])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Lut3D):
            return NotImplemented
        return self.size == other.size and np.array_equal(self.table, other.table)

    __hash__ = None  # type: ignore[assignment]


def identity_lut(size: int) -> Lut3D:
    """Build a cube that maps every grid point to its own coordinates."""
    if size < 1:
        raise ValueError(f"LUT size must be >= 1, got {size}")
    vals = np.linspace(0.0, 1.0, size)
    # indexing="ij" over (b, g, r) so that r is the fastest axis when flattened
    b, g, r = np.meshgrid(vals, vals, vals, indexing="ij")
    table = np.stack([r.ravel(), g.ravel(), b.ravel()], axis=-1)
    return Lut3D(size=size, table=table)


def format_cube(lut: Lut3D, title: str | None = None) -> str:
    """Serialize a LUT to .cube text in the same row order it was parsed in."""
    lines = []
    if title:
        lines.append(f'TITLE "{title}"')
    lines.append(f"LUT_3D_SIZE {lut.size}")
    for r, g, b in lut.table:
        # repr() round-trips float64 exactly
        lines.append(f"{float(r)!r} {float(g)!r} {float(b)!r}")
    return "\n".join(lines) + "\n"


def write_cube_file(lut: Lut3D, path: Path, title: str | None = None) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_cube(lut, title=title), encoding="utf-8")
    return path
