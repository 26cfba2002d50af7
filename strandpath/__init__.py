# strandpath/__init__.py

from .config import EarlyStopConfig, PathConfig, YarnStyle
from .pegs import (
    Peg,
    generate_circle_pegs,
    generate_line_pegs,
    generate_rectangle_pegs,
    generate_square_pegs,
    jitter_pegs,
    pegs_from_coords,
)
from .planner import compute_path, compute_svg
from .renderer import Blueprint, render_image, render_svg

__all__ = [
    "Blueprint",
    "EarlyStopConfig",
    "PathConfig",
    "Peg",
    "YarnStyle",
    "compute_path",
    "compute_svg",
    "generate_circle_pegs",
    "generate_line_pegs",
    "generate_rectangle_pegs",
    "generate_square_pegs",
    "jitter_pegs",
    "pegs_from_coords",
    "render_image",
    "render_svg",
]
