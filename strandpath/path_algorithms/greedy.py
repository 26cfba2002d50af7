# strandpath/path_algorithms/greedy.py

import time
import logging
from typing import Optional

from ..config import PathConfig
from ..preprocessing import ResidualField
from ..strands import StrandRasterizer
from .base import (
    EarlyStopper,
    PathAlgorithm,
    PathResult,
    StrandCallback,
    build_result,
    extend,
    initial_hypotheses,
    rank_continuations,
)


class GreedyAlgorithm(PathAlgorithm):
    """
    Always draw the single best next strand from the current peg,
    committing it straight into one residual field.
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
            f"[greedy] Starting: pegs={len(rasterizer)}, iterations={config.iterations}, "
            f"opacity={config.yarn.opacity}, skip_within={config.skip_within}"
        )
        start_time = time.time()
        opacity = config.yarn.opacity
        ids = rasterizer.ids

        # several hypotheses only until the first strand picks one of them
        beam = initial_hypotheses(rasterizer, field, config)
        stopper = EarlyStopper(config.early_stop, logger)
        current = beam[0] if beam else None
        iterations = 0
        stopped_early = False

        for iteration in range(config.iterations):
            ranked = rank_continuations(rasterizer, beam, opacity, limit=1)
            if not ranked:
                logger.debug(f"[greedy] No admissible strand; stopping at iteration {iteration+1}")
                break

            best = ranked[0]
            if stopper(best.score):
                logger.info(f"[greedy] Early stopping at iteration {iteration+1}")
                stopped_early = True
                break

            # commit best pick
            current = beam[best.parent]
            beam = [current]
            rasterizer.commit(best.source, best.target, current.residual, opacity)
            extend(current, best)
            iterations += 1
            logger.debug(
                f"[greedy] Strand {iteration+1}: {ids[best.source]} -> {ids[best.target]} "
                f"score={best.score:.4f}"
            )
            if strand_callback:
                strand_callback(int(ids[best.source]), int(ids[best.target]))

        elapsed = time.time() - start_time
        logger.debug(f"[greedy] Done in {elapsed:.2f}s; total strands={iterations}")
        return build_result(rasterizer, current, iterations, stopped_early)
