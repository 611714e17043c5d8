"""Command-line interface for applying a .cube LUT to an image."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import cv2
import numpy as np

from cubelut.color.cube_parser import CubeParseError, parse_cube_file
from cubelut.color.pipeline import ColorPipeline
from cubelut.config import CubeLutConfig, ParserConfig, PipelineParams, ProcessingConfig

logger = logging.getLogger(__name__)


def _read_rgb_image(path: Path) -> np.ndarray:
    """Read an image as RGB or RGBA, keeping its bit depth."""
    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise OSError(f"Cannot decode image: {path}")
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def _write_rgb_image(path: Path, image: np.ndarray) -> None:
    if image.shape[2] == 4:
        bgr = cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)
    else:
        bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), bgr):
        raise OSError(f"Cannot encode image: {path}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cubelut-apply",
        description="Apply a .cube 3D LUT to an image, blended by intensity, "
        "followed by brightness and contrast adjustment.\n\n"
        "Example:\n"
        "  cubelut-apply photo.jpg --lut film.cube --intensity 0.8 --contrast 1.2",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "image",
        type=Path,
        nargs="?",
        default=None,
        help="Path to the input image (not needed with --info)",
    )
    parser.add_argument(
        "--lut",
        type=Path,
        required=True,
        metavar="PATH",
        help="Path to a .cube 3D LUT file (or .zip/.lut archive containing one)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output image path (default: <image_name>_lut<ext>)",
    )
    parser.add_argument(
        "--intensity",
        type=float,
        default=1.0,
        help="LUT strength, 0 = original, 1 = full LUT (default: 1.0)",
    )
    parser.add_argument(
        "--brightness",
        type=float,
        default=0.0,
        help="Additive brightness offset in [-1, 1] (default: 0.0)",
    )
    parser.add_argument(
        "--contrast",
        type=float,
        default=1.0,
        help="Contrast scale around mid-gray in [0.5, 2] (default: 1.0)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on malformed LUT data lines instead of skipping them",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker threads (default: automatic)",
    )
    parser.add_argument(
        "--info",
        action="store_true",
        help="Print the LUT size and entry count, then exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = CubeLutConfig(
            parser=ParserConfig(strict=args.strict),
            processing=ProcessingConfig(max_workers=args.workers),
            params=PipelineParams(
                intensity=args.intensity,
                brightness=args.brightness,
                contrast=args.contrast,
            ),
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        lut = parse_cube_file(args.lut, config=config.parser)
    except FileNotFoundError:
        print(f"Error: file not found: {args.lut}", file=sys.stderr)
        return 1
    except CubeParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.info:
        print(f"LUT: {args.lut}")
        print(f"  Size: {lut.size}x{lut.size}x{lut.size}")
        print(f"  Entries: {len(lut.table)}")
        return 0

    if args.image is None:
        print("Error: provide an image to process (or use --info)", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1
    if not args.image.exists():
        print(f"Error: file not found: {args.image}", file=sys.stderr)
        return 1

    output_path = args.output
    if output_path is None:
        output_path = args.image.parent / f"{args.image.stem}_lut{args.image.suffix}"

    pipeline = ColorPipeline(lut, params=config.params, config=config.processing)
    try:
        image = _read_rgb_image(args.image)
        logger.info(
            "Processing %s (%dx%d) with %s",
            args.image.name, image.shape[1], image.shape[0], args.lut.name,
        )
        result = pipeline.apply(image)
        _write_rgb_image(output_path, result)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Saved: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
