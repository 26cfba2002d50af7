# strandpath/config.py

import numbers
from dataclasses import dataclass, field
from typing import Optional, Tuple

# === Defaults ===
DEFAULT_ITERATIONS = 4000
DEFAULT_PATIENCE = 100


def hex_color(color: Tuple[int, int, int]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*color)


def _check_positive_int(name: str, value) -> None:
    # bools are Integral too
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")


@dataclass(frozen=True)
class YarnStyle:
    """
    How a strand is drawn. The scoring yarn lives in PathConfig and only
    drives the simulated ink buildup; the display yarn is passed to the
    renderer separately.
    """
    width: float = 1.0
    opacity: float = 0.2
    color: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self):
        if not self.width > 0:
            raise ValueError(f"Yarn width must be positive, got {self.width}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Yarn opacity must be within [0, 1], got {self.opacity}")
        if len(self.color) != 3 or any(not 0 <= c <= 255 for c in self.color):
            raise ValueError(f"Yarn color must be three values within [0, 255], got {self.color}")
        object.__setattr__(self, "color", tuple(int(c) for c in self.color))

    @property
    def hex(self) -> str:
        return hex_color(self.color)


@dataclass(frozen=True)
class EarlyStopConfig:
    # an improvement below loss_threshold stops the search at once;
    # patience counts consecutive iterations with no improvement at all
    loss_threshold: Optional[float] = None
    patience: int = DEFAULT_PATIENCE

    def __post_init__(self):
        if self.loss_threshold is not None and self.loss_threshold < 0:
            raise ValueError(f"Early stop loss threshold must be >= 0, got {self.loss_threshold}")
        _check_positive_int("Early stop patience", self.patience)


@dataclass(frozen=True)
class PathConfig:
    """
    Pathing configuration.

    :param iterations: maximum number of strands
    :param yarn: scoring yarn, its width sets the line coverage and its
                 opacity how much residual a pass removes
    :param early_stop: early stopping policy
    :param start_peg_radius: radius in pixels used to pick the starting
                             region, 0 leaves the first strand unconstrained
    :param skip_within: never connect pegs closer than this many pixels
    :param beam_width: number of paths kept per iteration, 1 is greedy
    :param workers: threads used to score the beam, 1 scores inline
    """
    iterations: int = DEFAULT_ITERATIONS
    yarn: YarnStyle = field(default_factory=YarnStyle)
    early_stop: EarlyStopConfig = field(default_factory=EarlyStopConfig)
    start_peg_radius: float = 0
    skip_within: float = 0
    beam_width: int = 1
    workers: int = 1

    def __post_init__(self):
        _check_positive_int("iterations", self.iterations)
        if self.start_peg_radius < 0:
            raise ValueError(f"start_peg_radius must be >= 0, got {self.start_peg_radius}")
        if self.skip_within < 0:
            raise ValueError(f"skip_within must be >= 0, got {self.skip_within}")
        _check_positive_int("beam_width", self.beam_width)
        _check_positive_int("workers", self.workers)
