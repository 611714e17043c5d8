"""Parsing of .cube 3D LUT text into a dense Lut3D.

Supports .cube files directly, or .zip/.lut archives containing .cube files.

The format is read leniently: a line with exactly one numeric token sets
the cube size (the last one wins), a line with exactly three numeric
tokens is the next table row, and anything else is skipped. Tokens that
do not parse as floats are dropped from the line before counting.
"""

from __future__ import annotations

import logging
import math
import zipfile
from pathlib import Path

from cubelut.color.lut import Lut3D
from cubelut.config import ParserConfig

logger = logging.getLogger(__name__)

# Header keywords whose numeric arguments must never be read as size or data
IGNORED_DIRECTIVES = frozenset({
    "TITLE",
    "DOMAIN_MIN",
    "DOMAIN_MAX",
    "LUT_1D_SIZE",
    "LUT_1D_INPUT_RANGE",
    "LUT_3D_INPUT_RANGE",
})


class CubeParseError(ValueError):
    """Base class for .cube parsing failures."""


class InvalidSizeError(CubeParseError):
    def __init__(self, size: int | None) -> None:
        if size is None:
            detail = "no LUT size line found"
        else:
            detail = f"LUT size must be positive, got {size}"
        super().__init__(f"Invalid .cube size: {detail}")
        self.size = size


class TruncatedDataError(CubeParseError):
    def __init__(self, size: int, expected: int, found: int) -> None:
        super().__init__(
            f"Truncated .cube data: expected {expected} entries for size {size}, found {found}"
        )
        self.size = size
        self.expected = expected
        self.found = found


class MalformedLineError(CubeParseError):
    def __init__(self, line_number: int, line: str) -> None:
        super().__init__(f"Malformed .cube line {line_number}: {line!r}")
        self.line_number = line_number
        self.line = line


def _parse_floats(tokens: list[str]) -> tuple[list[float], bool]:
    """Return the tokens that parse as floats, and whether any were dropped."""
    values: list[float] = []
    dropped = False
    for token in tokens:
        # float() accepts digit separators ("1_0" == 10.0); .cube numbers never carry them
        if "_" in token:
            dropped = True
            continue
        try:
            values.append(float(token))
        except ValueError:
            dropped = True
    return values, dropped


def _size_from(value: float) -> int:
    # A non-finite size can never describe a cube
    if not math.isfinite(value):
        return 0
    return int(value)


def parse_cube_text(text: str, strict: bool = False) -> Lut3D:
    """Parse .cube text content into a Lut3D.

    Args:
        text: Full contents of a .cube file.
        strict: Raise MalformedLineError for data lines that the lenient
            reader would silently skip.

    Returns:
        Lut3D with ``size**3`` entries in file order.

    Raises:
        InvalidSizeError: No size line, or the size is not positive.
        TruncatedDataError: Fewer than ``size**3`` entries in the file.
        MalformedLineError: Only in strict mode.
    """
    size: int | None = None
    rows: list[list[float]] = []

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        tokens = line.split()
        if tokens[0].upper() in IGNORED_DIRECTIVES:
            logger.debug("Ignoring directive on line %d: %s", line_number, tokens[0])
            continue

        values, dropped = _parse_floats(tokens)
        if len(values) == 1:
            if strict and dropped and tokens[0].upper() != "LUT_3D_SIZE":
                raise MalformedLineError(line_number, line)
            size = _size_from(values[0])
        elif len(values) == 3:
            if strict and dropped:
                raise MalformedLineError(line_number, line)
            rows.append(values)
        else:
            if strict:
                raise MalformedLineError(line_number, line)
            logger.debug("Skipping line %d with %d numeric fields", line_number, len(values))

    if size is None or size <= 0:
        raise InvalidSizeError(size)

    expected = size ** 3
    if len(rows) < expected:
        raise TruncatedDataError(size, expected, len(rows))
    if len(rows) > expected:
        logger.warning(
            "LUT has %d entries, using the first %d for size %d",
            len(rows), expected, size,
        )

    lut = Lut3D(size=size, table=rows[:expected])
    logger.info("Parsed 3D LUT: %dx%dx%d", size, size, size)
    return lut


def parse_cube_file(path: Path, config: ParserConfig | None = None) -> Lut3D:
    """Parse a .cube 3D LUT file (or extract one from a ZIP archive).

    Args:
        path: Path to a .cube file, or a .zip/.lut archive containing one.
        config: Parser settings. Uses defaults (lenient) if None.

    Returns:
        The parsed Lut3D.

    Raises:
        FileNotFoundError: If the path does not exist.
        CubeParseError: If the file cannot be parsed or no .cube found in archive.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"LUT file not found: {path}")
    config = config or ParserConfig()

    if zipfile.is_zipfile(path):
        with zipfile.ZipFile(path) as zf:
            cube_names = [n for n in zf.namelist() if n.lower().endswith(".cube")]
            if not cube_names:
                raise CubeParseError(f"No .cube file found inside archive: {path}")
            cube_name = cube_names[0]
            logger.info("Extracting '%s' from archive '%s'", cube_name, path.name)
            cube_text = zf.read(cube_name).decode("utf-8")
    else:
        cube_text = path.read_text(encoding="utf-8")

    return parse_cube_text(cube_text, strict=config.strict)
