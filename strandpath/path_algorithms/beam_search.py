# strandpath/path_algorithms/beam_search.py

import time
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..config import PathConfig
from ..preprocessing import ResidualField
from ..strands import StrandRasterizer
from .base import (
    Continuation,
    EarlyStopper,
    PathAlgorithm,
    PathHypothesis,
    PathResult,
    StrandCallback,
    build_result,
    extend,
    initial_hypotheses,
    rank_continuations,
)


class BeamSearchAlgorithm(PathAlgorithm):
    """
    Keep the `beam_width` best partial paths at every iteration.

    1. Score every next strand of every live path against that path's own
       residual (optionally on a thread pool).
    2. Once all scores are in, keep the best `beam_width` continuations.
    3. Branch: each survivor gets its own residual with the strand drawn in.
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
        if logger is None:
            logger = logging.getLogger(__name__)

        logger.debug(
            f"[beam-search] Starting: pegs={len(rasterizer)}, iterations={config.iterations}, "
            f"beam_width={config.beam_width}, workers={config.workers}"
        )
        start_time = time.time()
        opacity = config.yarn.opacity

        beam = initial_hypotheses(rasterizer, field, config)
        stopper = EarlyStopper(config.early_stop, logger)
        iterations = 0
        stopped_early = False

        executor = ThreadPoolExecutor(max_workers=config.workers) if config.workers > 1 else None
        try:
            for iteration in range(config.iterations):
                ranked = rank_continuations(
                    rasterizer, beam, opacity, config.beam_width, executor=executor
                )
                if not ranked:
                    logger.debug(
                        f"[beam-search] No admissible strand; stopping at iteration {iteration+1}"
                    )
                    break

                if stopper(ranked[0].score):
                    logger.info(f"[beam-search] Early stopping at iteration {iteration+1}")
                    stopped_early = True
                    break

                beam = self._branch(rasterizer, beam, ranked, opacity)
                iterations += 1
                logger.debug(
                    f"[beam-search] Iteration {iteration+1}/{config.iterations}: "
                    f"best +{ranked[0].score:.4f}, beam size={len(beam)}"
                )
        finally:
            if executor is not None:
                executor.shutdown()

        winner = max(beam, key=lambda h: h.score) if beam else None
        result = build_result(rasterizer, winner, iterations, stopped_early)
        if strand_callback:
            for frm, to in result.strands:
                strand_callback(frm, to)

        elapsed = time.time() - start_time
        logger.debug(
            f"[beam-search] Done in {elapsed:.2f}s; strands={len(result.strands)}, "
            f"score={result.score:.4f}"
        )
        return result

    @staticmethod
    def _branch(
        rasterizer: StrandRasterizer,
        beam: List[PathHypothesis],
        ranked: List[Continuation],
        opacity: float
    ) -> List[PathHypothesis]:
        # a parent's last surviving child inherits its residual buffer,
        # earlier children copy it before that child draws into it
        last_child = {c.parent: k for k, c in enumerate(ranked)}

        children: List[PathHypothesis] = []
        for k, cont in enumerate(ranked):
            parent = beam[cont.parent]
            residual = parent.residual if last_child[cont.parent] == k else parent.residual.copy()
            child = PathHypothesis(list(parent.path), residual, parent.score)
            rasterizer.commit(cont.source, cont.target, child.residual, opacity)
            extend(child, cont)
            children.append(child)
        return children
