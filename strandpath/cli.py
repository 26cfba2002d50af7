# strandpath/cli.py
#
# Command line front end:
# - Computes a string art path from an image, or re-renders a saved blueprint
# - Writes SVG, blueprint JSON or a raster image depending on the extension
#

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .config import EarlyStopConfig, PathConfig, YarnStyle
from .pegs import (
    Peg,
    generate_circle_pegs,
    generate_rectangle_pegs,
    generate_square_pegs,
    jitter_pegs,
    pegs_from_coords,
)
from .planner import compute_path
from .preprocessing import load_image_to_pixels
from .renderer import Blueprint

logger = logging.getLogger("strandpath")


def _unit_interval(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not a number")
    if not 0.0 <= number <= 1.0:
        raise argparse.ArgumentTypeError(f"Value {value!r} should be between 0 and 1")
    return number


def _rgb(value: str) -> tuple:
    parts = value.replace(",", " ").split()
    if len(parts) != 3:
        raise argparse.ArgumentTypeError("Expected three values separated by spaces")
    try:
        color = tuple(int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid color {value!r}")
    if any(not 0 <= c <= 255 for c in color):
        raise argparse.ArgumentTypeError(f"Color values should be within [0, 255], got {value!r}")
    return color


def _size(value: str) -> tuple:
    try:
        width, height = (int(v) for v in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}")
    return width, height


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="strandpath",
        description="Generate string art from an image.",
    )
    parser.add_argument("input", type=Path, help="Input image or blueprint json file")
    parser.add_argument("output", type=Path, nargs="?",
                        help="Output file: svg, json or an image format (default: INPUT.svg)")
    parser.add_argument("-i", "--iterations", type=int, default=4000, help="Number of strands")
    parser.add_argument("--size", type=_size, help="Resize the image to WIDTHxHEIGHT first")

    pegs = parser.add_argument_group("pegs")
    pegs.add_argument("-S", "--peg-shape", choices=["circle", "square", "border"], default="circle")
    pegs.add_argument("-n", "--peg-number", type=int, default=288, help="Number of pegs")
    pegs.add_argument("-m", "--peg-margin", type=_unit_interval, default=0.05,
                      help="Margin between pegs and image edge [0, 1]")
    pegs.add_argument("-j", "--peg-jitter", type=float, default=0, help="Jitter peg positions by up to N pixels")
    pegs.add_argument("--seed", type=int, help="Seed for the peg jitter")
    pegs.add_argument("-s", "--peg-skip-within", type=float, default=0,
                      help="Don't connect pegs within pixel distance")
    pegs.add_argument("--save-pegs", type=Path, help="Write pegs to a json file")
    pegs.add_argument("--load-pegs", type=Path, help="Read pegs from a json file")

    path = parser.add_argument_group("pathing")
    path.add_argument("-o", "--line-opacity", type=_unit_interval, default=0.1,
                      help="Line opacity used when computing the path, low values encourage overlap")
    path.add_argument("-w", "--line-width", type=float, default=2, help="Line width used when computing the path")
    path.add_argument("-b", "--beam-width", type=int, default=1,
                      help="Beam search width, 1 is a purely greedy search")
    path.add_argument("-r", "--start-peg-radius", type=float, default=5,
                      help="Radius used to pick the starting peg, 0 for unconstrained")
    path.add_argument("-e", "--early-stop-threshold", type=float,
                      help="Stop as soon as the best strand improvement falls below this value")
    path.add_argument("-E", "--early-stop-patience", type=int, default=100,
                      help="Consecutive iterations without improvement to allow before stopping")
    path.add_argument("--workers", type=int, default=1, help="Threads used to score the beam")

    render = parser.add_argument_group("rendering")
    render.add_argument("-c", "--yarn-color", type=_rgb, default=(0, 0, 0), help='Yarn color, e.g. "0 0 0"')
    render.add_argument("-O", "--yarn-opacity", type=_unit_interval, default=0.2, help="Yarn opacity [0, 1]")
    render.add_argument("-W", "--yarn-width", type=float, default=1.0, help="Yarn width")
    render.add_argument("-t", "--transparent", action="store_true", help="Transparent background")
    render.add_argument("--output-scale", type=float, default=1.0, help="Output scale")

    parser.add_argument("-v", "--verbose", action="count", default=0)
    parser.add_argument("-q", "--quiet", action="store_true")
    return parser


def make_pegs(shape: str, count: int, margin: float, width: int, height: int) -> List[Peg]:
    """Lay out `count` pegs on `shape`, inset from the image edge by `margin`."""
    min_side = min(width, height)
    inset = margin * min_side
    if shape == "circle":
        coords = generate_circle_pegs(
            ((width - 1) / 2, (height - 1) / 2), (min_side - 1) / 2 - inset, count
        )
    elif shape == "square":
        length = min_side - 1 - 2 * inset
        coords = generate_square_pegs(((width - 1 - length) / 2, (height - 1 - length) / 2), length, count)
    else:
        coords = generate_rectangle_pegs(
            (inset, inset), width - 1 - 2 * inset, height - 1 - 2 * inset, count
        )
    return pegs_from_coords(*coords)


def save_pegs(pegs: Sequence[Peg], path: Path) -> None:
    path.write_text(json.dumps([{"x": p.x, "y": p.y, "id": p.id} for p in pegs]))


def load_pegs(path: Path) -> List[Peg]:
    try:
        return [Peg(float(p["x"]), float(p["y"]), int(p["id"])) for p in json.loads(path.read_text())]
    except (json.JSONDecodeError, KeyError, TypeError) as exc:
        raise ValueError(f"Invalid peg file {path}: {exc}") from exc


def run(args: argparse.Namespace) -> Path:
    output = args.output or args.input.with_suffix(".svg")
    display_yarn = YarnStyle(args.yarn_width, args.yarn_opacity, args.yarn_color)

    if args.input.suffix.lower() == ".json":
        logger.info(f"Loading blueprint {args.input}")
        blueprint = Blueprint.load(args.input)
    else:
        pixels = load_image_to_pixels(args.input, size=args.size)
        height, width = pixels.shape

        if args.load_pegs:
            pegs = load_pegs(args.load_pegs)
        else:
            pegs = make_pegs(args.peg_shape, args.peg_number, args.peg_margin, width, height)
        if args.peg_jitter:
            pegs = jitter_pegs(pegs, args.peg_jitter, seed=args.seed)
        if args.save_pegs:
            save_pegs(pegs, args.save_pegs)
        logger.info(f"Using {len(pegs)} pegs")

        config = PathConfig(
            iterations=args.iterations,
            yarn=YarnStyle(args.line_width, args.line_opacity),
            early_stop=EarlyStopConfig(args.early_stop_threshold, args.early_stop_patience),
            start_peg_radius=args.start_peg_radius,
            skip_within=args.peg_skip_within,
            beam_width=args.beam_width,
            workers=args.workers,
        )
        result = compute_path(pixels, pegs, config, logger=logger)
        logger.info(f"Computed {len(result.strands)} strands, score={result.score:.2f}")
        blueprint = Blueprint(result.peg_order, width, height)

    if args.transparent:
        blueprint.background = None

    suffix = output.suffix.lower()
    if suffix == ".svg":
        output.write_text(blueprint.render_svg(display_yarn, scale=args.output_scale))
    elif suffix == ".json":
        blueprint.save(output)
    else:
        img = blueprint.render_image(display_yarn, scale=args.output_scale)
        if suffix != ".png":
            # drop alpha channel
            img = img.convert("RGB")
        img.save(output)
    logger.info(f"Wrote {output}")
    return output


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.ERROR if args.quiet else [logging.WARNING, logging.INFO, logging.DEBUG][min(args.verbose, 2)]
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if not args.input.exists():
        parser.error(f"File {args.input} does not exist.")
    try:
        run(args)
    except (ValueError, OSError) as exc:
        parser.error(str(exc))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
