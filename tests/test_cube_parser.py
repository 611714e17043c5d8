"""Tests for cubelut.color.cube_parser: .cube text and file parsing."""

from __future__ import annotations

import tempfile
import zipfile
from pathlib import Path

import numpy as np
import pytest

from cubelut.color.cube_parser import (
    CubeParseError,
    InvalidSizeError,
    MalformedLineError,
    TruncatedDataError,
    parse_cube_file,
    parse_cube_text,
)
from cubelut.color.lut import Lut3D, format_cube, identity_lut
from cubelut.config import ParserConfig

# 2x2x2 identity in .cube order (R fastest, B slowest)
IDENTITY_2_ROWS = [
    (0.0, 0.0, 0.0),
    (1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),
    (1.0, 1.0, 0.0),
    (0.0, 0.0, 1.0),
    (1.0, 0.0, 1.0),
    (0.0, 1.0, 1.0),
    (1.0, 1.0, 1.0),
]


def _cube_text(size: int, rows: list[tuple[float, float, float]], header: str = "") -> str:
    lines = [header, f"LUT_3D_SIZE {size}"] if header else [f"LUT_3D_SIZE {size}"]
    for r, g, b in rows:
        lines.append(f"{r:.6f} {g:.6f} {b:.6f}")
    return "\n".join(lines) + "\n"


# ---- lenient parsing ----


def test_parse_identity_cube():
    """Rows land in the table in file order, indexed r + g*N + b*N^2."""
    lut = parse_cube_text(_cube_text(2, IDENTITY_2_ROWS))
    assert lut.size == 2
    assert lut.table.shape == (8, 3)
    assert lut.entry(1, 0, 0) == (1.0, 0.0, 0.0)  # red
    assert lut.entry(0, 1, 0) == (0.0, 1.0, 0.0)  # green
    assert lut.entry(0, 0, 1) == (0.0, 0.0, 1.0)  # blue
    assert lut.entry(1, 1, 1) == (1.0, 1.0, 1.0)  # white


def test_bare_size_line():
    """A line holding just a number sets the size, as LUT_3D_SIZE does."""
    text = "2\n" + "\n".join(f"{r} {g} {b}" for r, g, b in IDENTITY_2_ROWS)
    lut = parse_cube_text(text)
    assert lut.size == 2


def test_size_is_truncated():
    text = "2.9\n" + "\n".join(f"{r} {g} {b}" for r, g, b in IDENTITY_2_ROWS)
    assert parse_cube_text(text).size == 2


def test_last_size_line_wins():
    text = "LUT_3D_SIZE 5\n" + _cube_text(2, IDENTITY_2_ROWS)
    lut = parse_cube_text(text)
    assert lut.size == 2


def test_comments_are_ignored():
    """Comments interleaved with data give the same cube as the stripped file."""
    plain = _cube_text(2, IDENTITY_2_ROWS)
    lines = plain.splitlines()
    commented = []
    for i, line in enumerate(lines):
        commented.append(f"# comment {i}")
        commented.append(line)
        commented.append("")
    assert parse_cube_text("\n".join(commented)) == parse_cube_text(plain)


def test_directives_are_ignored():
    header = 'TITLE "My LUT"\nDOMAIN_MIN 0.0 0.0 0.0\nDOMAIN_MAX 1.0 1.0 1.0'
    lut = parse_cube_text(_cube_text(2, IDENTITY_2_ROWS, header=header))
    assert lut == parse_cube_text(_cube_text(2, IDENTITY_2_ROWS))


def test_values_are_not_clamped():
    rows = [(1.5, -0.25, 0.5)] * 8
    lut = parse_cube_text(_cube_text(2, rows))
    assert lut.entry(0, 0, 0) == (1.5, -0.25, 0.5)


def test_malformed_lines_are_skipped():
    text = (
        "LUT_3D_SIZE 1\n"
        "0.1 0.2\n"            # two fields
        "0.1 0.2 0.3 0.4\n"    # four fields
        "0.5 0.6 0.7\n"
    )
    lut = parse_cube_text(text)
    assert lut.entry(0, 0, 0) == (0.5, 0.6, 0.7)


def test_unparseable_tokens_are_dropped():
    """Non-numeric tokens are dropped before counting fields."""
    text = "LUT_3D_SIZE 1\n0.5 abc 0.6 0.7\n"
    lut = parse_cube_text(text)
    assert lut.entry(0, 0, 0) == (0.5, 0.6, 0.7)


def test_underscore_tokens_are_dropped():
    """Python digit separators are not .cube numbers: "1_0" is dropped, not 10."""
    text = "LUT_3D_SIZE 1\n1_0 0 0\n0.5 0.6 0.7\n"
    lut = parse_cube_text(text)
    assert lut.entry(0, 0, 0) == (0.5, 0.6, 0.7)


def test_underscore_size_is_dropped():
    with pytest.raises(InvalidSizeError):
        parse_cube_text("1_0\n0 0 0\n")


def test_surplus_entries_use_first_rows():
    rows = IDENTITY_2_ROWS + [(0.5, 0.5, 0.5)]
    lut = parse_cube_text(_cube_text(2, rows))
    assert lut.table.shape == (8, 3)
    np.testing.assert_array_equal(lut.table, np.array(IDENTITY_2_ROWS))


# ---- errors ----


def test_missing_size():
    with pytest.raises(InvalidSizeError, match="no LUT size"):
        parse_cube_text("0.0 0.0 0.0\n1.0 1.0 1.0\n")


@pytest.mark.parametrize("size_line", ["LUT_3D_SIZE 0", "-3", "0.5", "nan"])
def test_non_positive_size(size_line):
    with pytest.raises(InvalidSizeError):
        parse_cube_text(f"{size_line}\n0.0 0.0 0.0\n")


def test_truncated_data():
    """Size 2 needs 8 rows; 7 is one short."""
    with pytest.raises(TruncatedDataError) as exc_info:
        parse_cube_text(_cube_text(2, IDENTITY_2_ROWS[:7]))
    assert exc_info.value.expected == 8
    assert exc_info.value.found == 7


def test_errors_are_value_errors():
    """Callers that only know ValueError still catch parse failures."""
    with pytest.raises(ValueError):
        parse_cube_text("")
    assert issubclass(TruncatedDataError, CubeParseError)


# ---- strict mode ----


def test_strict_rejects_wrong_field_count():
    text = "LUT_3D_SIZE 1\n0.1 0.2\n0.5 0.6 0.7\n"
    with pytest.raises(MalformedLineError) as exc_info:
        parse_cube_text(text, strict=True)
    assert exc_info.value.line_number == 2


def test_strict_rejects_bad_tokens():
    with pytest.raises(MalformedLineError):
        parse_cube_text("LUT_3D_SIZE 1\n0.5 abc 0.6 0.7\n", strict=True)


def test_strict_rejects_underscore_tokens():
    with pytest.raises(MalformedLineError):
        parse_cube_text("LUT_3D_SIZE 1\n1_0 0 0\n", strict=True)


def test_strict_accepts_well_formed_file():
    header = 'TITLE "ok"\nDOMAIN_MIN 0 0 0'
    lut = parse_cube_text(_cube_text(2, IDENTITY_2_ROWS, header=header), strict=True)
    assert lut.size == 2


# ---- round trip ----


@pytest.mark.parametrize("size", [1, 2, 5])
def test_round_trip(size):
    rng = np.random.default_rng(size)
    original = identity_lut(size)
    shuffled = Lut3D(size=size, table=rng.random((size ** 3, 3)))
    for lut in (original, shuffled):
        text = format_cube(lut, title="round trip")
        assert parse_cube_text(text) == lut
        assert parse_cube_text(format_cube(parse_cube_text(text))) == lut


# ---- files ----


def test_parse_cube_file(tmp_path):
    cube_path = tmp_path / "test.cube"
    cube_path.write_text(_cube_text(2, IDENTITY_2_ROWS))
    lut = parse_cube_file(cube_path)
    assert lut == identity_lut(2)


def test_parse_cube_from_zip():
    """Parse a .cube file extracted from a ZIP archive."""
    with tempfile.TemporaryDirectory() as tmpdir:
        cube_path = Path(tmpdir) / "inner.cube"
        cube_path.write_text(_cube_text(2, IDENTITY_2_ROWS))

        zip_path = Path(tmpdir) / "test.lut"
        with zipfile.ZipFile(zip_path, "w") as zf:
            zf.write(cube_path, "SomeFolder/my_lut.cube")

        lut = parse_cube_file(zip_path)
        assert lut.size == 2


def test_zip_without_cube(tmp_path):
    zip_path = tmp_path / "empty.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.writestr("readme.txt", "nothing here")
    with pytest.raises(CubeParseError, match="No .cube file"):
        parse_cube_file(zip_path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_cube_file(tmp_path / "nope.cube")


def test_strict_from_config(tmp_path):
    cube_path = tmp_path / "bad.cube"
    cube_path.write_text("LUT_3D_SIZE 1\n0.1 0.2\n0.5 0.6 0.7\n")
    assert parse_cube_file(cube_path).size == 1
    with pytest.raises(MalformedLineError):
        parse_cube_file(cube_path, config=ParserConfig(strict=True))


def test_parse_cube_file_takes_config_only(tmp_path):
    """Strictness for files comes from ParserConfig alone."""
    cube_path = tmp_path / "bad.cube"
    cube_path.write_text("LUT_3D_SIZE 1\n0.5 0.6 0.7\n")
    with pytest.raises(TypeError):
        parse_cube_file(cube_path, strict=True)
