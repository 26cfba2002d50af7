# strandpath/planner.py

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import PathConfig, YarnStyle
from .path_algorithms import ALGORITHMS, PathResult
from .path_algorithms.base import StrandCallback
from .pegs import Peg
from .preprocessing import ImageSource, build_residual_field, load_image_to_pixels
from .renderer import render_svg
from .strands import StrandRasterizer


def resolve_algorithm(config: PathConfig, algorithm: Optional[str] = None) -> str:
    """Beam search for beam_width > 1, plain greedy otherwise."""
    if algorithm is None:
        return "beam-search" if config.beam_width > 1 else "greedy"
    return algorithm


def compute_path(
    pixels: np.ndarray,
    pegs: Sequence[Peg],
    config: PathConfig,
    *,
    algorithm: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
    strand_callback: Optional[StrandCallback] = None
) -> PathResult:
    """
    Dispatch to whichever PathAlgorithm is registered, passing along an
    optional logger and an optional strand_callback to receive each strand.

    :param pixels: grayscale pixel array (H, W), 0 is black
    :param pegs: ordered pegs, in image pixel coordinates
    :param config: pathing configuration, including the scoring yarn
    :param algorithm: key into ALGORITHMS registry, None picks from beam_width
    :param logger: optional Logger to receive debug/info messages
    :param strand_callback: optional callable called for each strand of the
                            path as strand_callback(from_id, to_id)
    :returns: PathResult holding the winning peg order
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    key = resolve_algorithm(config, algorithm)
    algo = ALGORITHMS.get(key)
    if algo is None:
        valid = ", ".join(ALGORITHMS.keys())
        logger.error(f"Unknown algorithm '{key}'. Valid options: {valid}")
        raise ValueError(f"Unknown algorithm '{key}'. Valid options: {valid}")

    field = build_residual_field(pixels)
    rasterizer = StrandRasterizer(
        pegs,
        field.width,
        field.height,
        stroke_width=config.yarn.width,
        skip_within=config.skip_within,
        logger=logger,
    )
    logger.info(f"Using {key} algorithm on {len(pegs)} pegs, image {field.width}x{field.height}")

    return algo.search(rasterizer, field, config, logger=logger, strand_callback=strand_callback)


def compute_svg(
    image_data: ImageSource,
    pegs: Sequence[Peg],
    config: PathConfig,
    display_yarn: YarnStyle,
    *,
    size: Optional[Tuple[int, int]] = None,
    background: Optional[Tuple[int, int, int]] = (255, 255, 255),
    algorithm: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> str:
    """
    Decode `image_data`, compute the peg path and return it as an SVG
    document drawn with `display_yarn`, sized like the (resized) image.
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    pixels = load_image_to_pixels(image_data, size=size, logger=logger)
    result = compute_path(pixels, pegs, config, algorithm=algorithm, logger=logger)
    height, width = pixels.shape
    return render_svg(result.peg_order, width, height, display_yarn,
                      background=background, logger=logger)
