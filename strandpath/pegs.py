# strandpath/pegs.py

import math
import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np

Coords = Tuple[List[float], List[float]]


@dataclass(frozen=True)
class Peg:
    """
    A fixed anchor point the yarn is wound around.
    (0, 0) is the top left corner of the image.
    """
    x: float
    y: float
    id: int

    def dist_to(self, other: "Peg") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def with_jitter(self, jitter: float, rng: Optional[np.random.Generator] = None) -> "Peg":
        """
        Return a copy of this peg moved by up to `jitter` pixels on each axis.
        The id is kept, so the jittered peg stands in for the original one.
        """
        if jitter <= 0:
            return self
        if rng is None:
            rng = np.random.default_rng()
        dx, dy = rng.uniform(-jitter, jitter, size=2)
        return replace(self, x=self.x + float(dx), y=self.y + float(dy))


def pegs_from_coords(xs: Sequence[float], ys: Sequence[float]) -> List[Peg]:
    if len(xs) != len(ys):
        raise ValueError(f"x and y coordinates differ in length ({len(xs)} != {len(ys)})")
    return [Peg(float(x), float(y), i) for i, (x, y) in enumerate(zip(xs, ys))]


def jitter_pegs(pegs: Sequence[Peg], jitter: float, seed: Optional[int] = None) -> List[Peg]:
    rng = np.random.default_rng(seed)
    return [peg.with_jitter(jitter, rng) for peg in pegs]


def generate_line_pegs(
    start: Tuple[float, float],
    end: Tuple[float, float],
    count: int,
    logger: Optional[logging.Logger] = None
) -> Coords:
    """
    `count` points evenly spaced from `start` to `end`, both ends included.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    if count < 2:
        logger.debug(f"generate_line_pegs: count={count} < 2, returning no pegs")
        return [], []

    (x0, y0), (x1, y1) = start, end
    xs = [x0 + (x1 - x0) * i / (count - 1) for i in range(count)]
    ys = [y0 + (y1 - y0) * i / (count - 1) for i in range(count)]
    return xs, ys


def generate_rectangle_pegs(
    origin: Tuple[float, float],
    width: float,
    height: float,
    count: int,
    logger: Optional[logging.Logger] = None
) -> Coords:
    """
    `count` points at equal spacing along the perimeter of a rectangle,
    starting at the `origin` corner and going top, right, bottom, left.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    if count < 2:
        logger.debug(f"generate_rectangle_pegs: count={count} < 2, returning no pegs")
        return [], []

    x0, y0 = origin
    perimeter = 2 * (width + height)
    corners = [
        (x0, y0),
        (x0 + width, y0),
        (x0 + width, y0 + height),
        (x0, y0 + height),
        (x0, y0),
    ]
    sides = [width, height, width, height]

    xs: List[float] = []
    ys: List[float] = []
    for i in range(count):
        dist = perimeter * i / count
        side = 0
        # walk the sides until `dist` falls on one
        while side < 3 and dist > sides[side]:
            dist -= sides[side]
            side += 1
        (ax, ay), (bx, by) = corners[side], corners[side + 1]
        t = dist / sides[side] if sides[side] else 0.0
        xs.append(ax + (bx - ax) * t)
        ys.append(ay + (by - ay) * t)

    logger.debug(f"generate_rectangle_pegs: {count} pegs on a {width}x{height} rectangle")
    return xs, ys


def generate_square_pegs(
    origin: Tuple[float, float],
    length: float,
    count: int,
    logger: Optional[logging.Logger] = None
) -> Coords:
    return generate_rectangle_pegs(origin, length, length, count, logger=logger)


def generate_circle_pegs(
    center: Tuple[float, float],
    radius: float,
    count: int,
    logger: Optional[logging.Logger] = None
) -> Coords:
    """
    Compute evenly spaced points around a circle, starting at angle 0.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    if count < 2:
        logger.debug(f"generate_circle_pegs: count={count} < 2, returning no pegs")
        return [], []

    cx, cy = center
    xs = [cx + radius * math.cos(2 * math.pi * i / count) for i in range(count)]
    ys = [cy + radius * math.sin(2 * math.pi * i / count) for i in range(count)]
    logger.debug(f"generate_circle_pegs: {count} pegs, radius={radius}")
    return xs, ys
