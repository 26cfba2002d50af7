# strandpath/path_algorithms/base.py

import logging
from concurrent.futures import Executor
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

import numpy as np
from skimage.draw import disk

from ..config import EarlyStopConfig, PathConfig
from ..pegs import Peg
from ..preprocessing import ResidualField
from ..strands import StrandRasterizer

# improvements at or below this count as a stall even without a threshold
NEGLIGIBLE_IMPROVEMENT = 1e-12

StrandCallback = Callable[[int, int], None]


@dataclass
class PathHypothesis:
    """One partial path under consideration, with its own residual."""
    path: List[int]
    residual: ResidualField
    score: float = 0.0

    @property
    def last(self) -> Optional[int]:
        return self.path[-1] if self.path else None

    @property
    def second_last(self) -> Optional[int]:
        return self.path[-2] if len(self.path) > 1 else None


@dataclass
class PathResult:
    peg_order: List[Peg] = field(default_factory=list)
    score: float = 0.0
    iterations: int = 0
    stopped_early: bool = False

    @property
    def strands(self) -> List[Tuple[int, int]]:
        return [(a.id, b.id) for a, b in zip(self.peg_order, self.peg_order[1:])]


@dataclass(frozen=True)
class Continuation:
    """Extending hypothesis `parent` with a strand `source` -> `target`."""
    score: float
    parent: int
    source: int
    target: int


class EarlyStopper:
    """
    Decides, per iteration, whether to stop before committing the best
    strand. An improvement below the loss threshold stops at once.
    Independently, iterations whose improvement is negligible are counted
    and `patience` consecutive ones stop the search.
    """

    def __init__(self, config: EarlyStopConfig, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.count = 0

    def __call__(self, improvement: float) -> bool:
        threshold = self.config.loss_threshold
        if threshold is not None and improvement < threshold:
            self.logger.debug(f"Improvement {improvement:.6g} below loss threshold {threshold}")
            return True
        if improvement > NEGLIGIBLE_IMPROVEMENT:
            self.count = 0
            return False
        self.count += 1
        self.logger.debug(f"Early stop count to {self.count}/{self.config.patience}")
        return self.count >= self.config.patience


def select_start_pegs(
    rasterizer: StrandRasterizer,
    field: ResidualField,
    radius: float
) -> List[int]:
    """
    Find the peg sitting on the darkest area (mean darkness within `radius`)
    and return it with every other peg within `radius` of it, by peg id.
    """
    n = len(rasterizer)
    if n == 0:
        return []
    target = field.values.reshape(field.shape)
    darkness = np.zeros(n, dtype=np.float64)
    for i, (x, y) in enumerate(rasterizer.coords):
        rr, cc = disk((y, x), radius, shape=field.shape)
        if len(rr):
            darkness[i] = target[rr, cc].mean()

    # darkest first, lowest id on ties
    start = int(np.lexsort((rasterizer.ids, -darkness))[0])
    seeds = [i for i in range(n) if i == start or rasterizer.distance(start, i) <= radius]
    return sorted(seeds, key=lambda i: rasterizer.ids[i])


def initial_hypotheses(
    rasterizer: StrandRasterizer,
    field: ResidualField,
    config: PathConfig
) -> List[PathHypothesis]:
    if len(rasterizer) == 0:
        return []
    if config.start_peg_radius > 0:
        seeds = select_start_pegs(rasterizer, field, config.start_peg_radius)
        return [PathHypothesis([s], field.copy()) for s in seeds]
    return [PathHypothesis([], field.copy())]


def _score_hypothesis(
    rasterizer: StrandRasterizer,
    hypothesis: PathHypothesis,
    opacity: float
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """(sources, targets, scores) of every admissible next strand."""
    if hypothesis.last is None:
        # empty path: any admissible pair may open it
        sources, targets, scores = [], [], []
        for i in range(len(rasterizer)):
            t, s = rasterizer.score_fan(i, hypothesis.residual, opacity)
            sources.append(np.full(len(t), i, dtype=np.int64))
            targets.append(t)
            scores.append(s)
        if not sources:
            empty = np.zeros(0, dtype=np.int64)
            return empty, empty, np.zeros(0)
        return np.concatenate(sources), np.concatenate(targets), np.concatenate(scores)

    exclude = [] if hypothesis.second_last is None else [hypothesis.second_last]
    targets, scores = rasterizer.score_fan(hypothesis.last, hypothesis.residual, opacity, exclude)
    return np.full(len(targets), hypothesis.last, dtype=np.int64), targets, scores


def rank_continuations(
    rasterizer: StrandRasterizer,
    beam: List[PathHypothesis],
    opacity: float,
    limit: int,
    executor: Optional[Executor] = None
) -> List[Continuation]:
    """
    Score every continuation of every hypothesis and return the best `limit`.
    Ordered by score descending, then candidate peg id, then opening peg id,
    then parent rank, whatever order the scoring finished in.
    """
    def score(hypothesis: PathHypothesis):
        return _score_hypothesis(rasterizer, hypothesis, opacity)

    if executor is not None and len(beam) > 1:
        scored = list(executor.map(score, beam))
    else:
        scored = [score(h) for h in beam]

    parents = np.concatenate(
        [np.full(len(t), rank, dtype=np.int64) for rank, (_, t, _) in enumerate(scored)]
    ) if scored else np.zeros(0, dtype=np.int64)
    if not len(parents):
        return []
    sources = np.concatenate([s for s, _, _ in scored])
    targets = np.concatenate([t for _, t, _ in scored])
    scores = np.concatenate([s for _, _, s in scored])

    ids = rasterizer.ids
    order = np.lexsort((parents, ids[sources], ids[targets], -scores))[:limit]
    return [
        Continuation(float(scores[k]), int(parents[k]), int(sources[k]), int(targets[k]))
        for k in order
    ]


def extend(hypothesis: PathHypothesis, continuation: Continuation) -> None:
    if not hypothesis.path:
        hypothesis.path.append(continuation.source)
    hypothesis.path.append(continuation.target)
    hypothesis.score += continuation.score


class PathAlgorithm:
    """
    Interface for any peg-path search.
    """
    def search(
        self,
        rasterizer: StrandRasterizer,
        field: ResidualField,
        config: PathConfig,
        logger: Optional[logging.Logger] = None,
        *,
        strand_callback: Optional[StrandCallback] = None
    ) -> PathResult:
        """
        Find an ordered peg path whose strands best cover `field`.
        `field` itself is left untouched.

        :param rasterizer: strand coverage and scoring over the peg set
        :param field: initial residual (target darkness)
        :param config: pathing configuration
        :param logger: optional logger for debug/info messages
        :param strand_callback: optional callback called for each strand of the
                                result, signature strand_callback(from_id, to_id)
        """
        raise NotImplementedError("Must implement search()")


def build_result(
    rasterizer: StrandRasterizer,
    winner: Optional[PathHypothesis],
    iterations: int,
    stopped_early: bool
) -> PathResult:
    # a lone start peg is not a strand
    if winner is None or len(winner.path) < 2:
        return PathResult(iterations=iterations, stopped_early=stopped_early)
    # report pegs where they were scored, clamped into the image
    peg_order = [
        replace(rasterizer.pegs[i], x=float(rasterizer.coords[i][0]), y=float(rasterizer.coords[i][1]))
        for i in winner.path
    ]
    return PathResult(
        peg_order=peg_order,
        score=winner.score,
        iterations=iterations,
        stopped_early=stopped_early,
    )
