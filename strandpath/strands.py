# strandpath/strands.py

import math
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from .pegs import Peg
from .preprocessing import ResidualField


@dataclass(frozen=True)
class Fan:
    """
    Every admissible strand leaving one peg: the partner peg indices and the
    concatenated pixel coverage of each strand, split at `offsets`.
    """
    targets: np.ndarray
    pixels: np.ndarray
    offsets: np.ndarray

    def __len__(self) -> int:
        return len(self.targets)


class StrandRasterizer:
    """
    Rasterizes strands between pegs and scores them against a ResidualField.

    Coverage is the set of pixels Pillow paints for the segment at the
    scoring yarn width, computed once per peg pair and cached. Scoring and
    committing both read that same cache.

    Drawing a strand with opacity `a` multiplies the residual of every
    covered pixel by (1 - a), so a strand's score is `a * sum(residual)`
    over its pixels and the residual never drops below zero.
    """

    def __init__(
        self,
        pegs: Sequence[Peg],
        width: int,
        height: int,
        stroke_width: float = 1.0,
        skip_within: float = 0,
        logger: Optional[logging.Logger] = None
    ):
        if logger is None:
            logger = logging.getLogger(__name__)
        if width < 1 or height < 1:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        if not stroke_width > 0:
            raise ValueError(f"Stroke width must be positive, got {stroke_width}")
        ids = [peg.id for peg in pegs]
        if len(set(ids)) != len(ids):
            raise ValueError("Peg ids must be unique")

        self.logger = logger
        self.pegs: List[Peg] = list(pegs)
        self.width = width
        self.height = height
        self.line_width = max(1, int(round(stroke_width)))
        self.skip_within = skip_within
        self.ids = np.array(ids, dtype=np.int64)

        # clamp peg coordinates into the image
        self.coords = np.array(
            [
                (min(max(peg.x, 0.0), width - 1), min(max(peg.y, 0.0), height - 1))
                for peg in self.pegs
            ],
            dtype=np.float64,
        ).reshape(-1, 2)

        self._lines: Dict[Tuple[int, int], np.ndarray] = {}
        self._fans: Dict[int, Fan] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.pegs)

    def distance(self, i: int, j: int) -> float:
        (ax, ay), (bx, by) = self.coords[i], self.coords[j]
        return math.hypot(ax - bx, ay - by)

    def admissible(self, i: int, j: int) -> bool:
        return i != j and self.distance(i, j) >= self.skip_within

    def _rasterize(self, i: int, j: int) -> np.ndarray:
        (ax, ay), (bx, by) = self.coords[i], self.coords[j]
        pad = self.line_width
        x0 = max(int(math.floor(min(ax, bx))) - pad, 0)
        y0 = max(int(math.floor(min(ay, by))) - pad, 0)
        x1 = min(int(math.ceil(max(ax, bx))) + pad, self.width - 1)
        y1 = min(int(math.ceil(max(ay, by))) + pad, self.height - 1)

        # draw only the bounding box, then shift back into field coordinates
        mask = Image.new("L", (x1 - x0 + 1, y1 - y0 + 1), color=0)
        draw = ImageDraw.Draw(mask)
        draw.line([(ax - x0, ay - y0), (bx - x0, by - y0)], fill=255, width=self.line_width)
        ys, xs = np.nonzero(np.array(mask))
        if len(xs) == 0:
            xs = np.array([int(round(ax)) - x0])
            ys = np.array([int(round(ay)) - y0])
        return ((ys + y0) * self.width + (xs + x0)).astype(np.int32)

    def coverage(self, i: int, j: int) -> np.ndarray:
        """Flat pixel indices covered by the strand between pegs i and j."""
        key = (i, j) if i < j else (j, i)
        line = self._lines.get(key)
        if line is None:
            line = self._rasterize(*key)
            self._lines[key] = line
        return line

    def fan(self, i: int) -> Fan:
        fan = self._fans.get(i)
        if fan is not None:
            return fan
        with self._lock:
            fan = self._fans.get(i)
            if fan is None:
                fan = self._build_fan(i)
                self._fans[i] = fan
        return fan

    def _build_fan(self, i: int) -> Fan:
        targets = [j for j in range(len(self.pegs)) if self.admissible(i, j)]
        if not targets:
            empty = np.zeros(0, dtype=np.int64)
            return Fan(empty, np.zeros(0, dtype=np.int32), empty)
        lines = [self.coverage(i, j) for j in targets]
        lengths = np.array([len(line) for line in lines], dtype=np.int64)
        offsets = np.concatenate(([0], np.cumsum(lengths)[:-1]))
        return Fan(np.array(targets, dtype=np.int64), np.concatenate(lines), offsets)

    def populate_line_cache(self) -> None:
        """Rasterize every admissible strand up front."""
        self.logger.info(f"[strands] Populating line cache for {len(self.pegs)} pegs")
        for i in range(len(self.pegs)):
            self.fan(i)
        self.logger.debug(f"[strands] # line cache entries: {len(self._lines)}")

    def score_fan(
        self,
        i: int,
        field: ResidualField,
        opacity: float,
        exclude: Iterable[int] = ()
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Score every admissible strand from peg i.
        Returns (partner peg indices, scores), in peg order.
        """
        fan = self.fan(i)
        if not len(fan):
            return fan.targets, np.zeros(0, dtype=np.float64)
        sums = np.add.reduceat(field.values[fan.pixels], fan.offsets)
        scores = opacity * sums
        exclude = [e for e in exclude if e != i]
        if exclude:
            keep = ~np.isin(fan.targets, exclude)
            return fan.targets[keep], scores[keep]
        return fan.targets, scores

    def score(self, i: int, j: int, field: ResidualField, opacity: float) -> float:
        """Residual decrease if the strand i -> j were drawn."""
        return opacity * float(field.values[self.coverage(i, j)].sum())

    def commit(self, i: int, j: int, field: ResidualField, opacity: float) -> float:
        """Draw the strand i -> j into `field`. Returns the residual removed."""
        pixels = self.coverage(i, j)
        before = field.values[pixels]
        after = before * (1.0 - opacity)
        field.values[pixels] = after
        return float(before.sum() - after.sum())
