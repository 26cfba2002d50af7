# strandpath/renderer.py

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import svgwrite
from PIL import Image, ImageDraw

from .config import YarnStyle, hex_color
from .pegs import Peg

Color = Tuple[int, int, int]


def _scaled_size(width: int, height: int, scale: float) -> Tuple[int, int]:
    if scale <= 0:
        raise ValueError(f"Render scale must be positive, got {scale}")
    return max(1, round(width * scale)), max(1, round(height * scale))


def render_svg(
    peg_order: Sequence[Peg],
    width: int,
    height: int,
    yarn: YarnStyle,
    background: Optional[Color] = (255, 255, 255),
    scale: float = 1.0,
    logger: Optional[logging.Logger] = None
) -> str:
    """
    Serialize the peg path as an SVG document, one line per strand so
    overlapping strands build up opacity. An empty path gives a blank canvas.

    :param peg_order: pegs in the order the yarn visits them
    :param width: source image width in pixels
    :param height: source image height in pixels
    :param yarn: display yarn (width, opacity, color)
    :param background: background color, None for a transparent canvas
    :param scale: how much to up/down scale the output
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    render_width, render_height = _scaled_size(width, height, scale)
    logger.debug(
        f"render_svg called with {len(peg_order)} pegs, "
        f"size={render_width}x{render_height}, yarn={yarn}"
    )

    dwg = svgwrite.Drawing(
        size=(render_width, render_height),
        viewBox=f"0 0 {render_width} {render_height}",
    )
    if background is not None:
        dwg.add(dwg.rect(insert=(0, 0), size=("100%", "100%"), fill=hex_color(background)))

    if len(peg_order) > 1:
        strands = dwg.g(
            fill="none",
            stroke=yarn.hex,
            stroke_width=round(yarn.width * scale, 3),
            stroke_opacity=yarn.opacity,
            stroke_linecap="round",
        )
        for peg_a, peg_b in zip(peg_order, peg_order[1:]):
            strands.add(dwg.line(
                start=(round(peg_a.x * scale, 3), round(peg_a.y * scale, 3)),
                end=(round(peg_b.x * scale, 3), round(peg_b.y * scale, 3)),
            ))
        dwg.add(strands)

    logger.debug("Completed render_svg")
    return dwg.tostring()


def render_image(
    peg_order: Sequence[Peg],
    width: int,
    height: int,
    yarn: YarnStyle,
    background: Optional[Color] = (255, 255, 255),
    scale: float = 1.0,
    logger: Optional[logging.Logger] = None
) -> Image.Image:
    """
    Raster preview of the peg path: each strand is alpha-composited onto
    an RGBA canvas with the display yarn.
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    size = _scaled_size(width, height, scale)
    logger.debug(f"render_image called with {len(peg_order)} pegs, size={size}")

    fill = background + (255,) if background is not None else (0, 0, 0, 0)
    img = Image.new("RGBA", size, fill)
    draw = ImageDraw.Draw(img, "RGBA")
    line_colour = yarn.color + (round(255 * yarn.opacity),)
    line_width = max(1, round(yarn.width * scale))

    for idx, (peg_a, peg_b) in enumerate(zip(peg_order, peg_order[1:]), start=1):
        draw.line(
            [(peg_a.x * scale, peg_a.y * scale), (peg_b.x * scale, peg_b.y * scale)],
            fill=line_colour,
            width=line_width
        )
        if idx % 500 == 0:
            logger.debug(f"Drew {idx}/{len(peg_order) - 1} lines")

    logger.debug("Completed render_image")
    return img


@dataclass
class Blueprint:
    """
    A computed string art path with the size of the image it was computed
    on. Can be saved as JSON and rendered again with any display yarn.
    """
    peg_order: List[Peg]
    width: int
    height: int
    background: Optional[Color] = (255, 255, 255)
    strands: int = field(init=False)

    def __post_init__(self):
        self.strands = max(len(self.peg_order) - 1, 0)

    def to_json(self) -> str:
        return json.dumps({
            "peg_order": [asdict(peg) for peg in self.peg_order],
            "width": self.width,
            "height": self.height,
            "background": list(self.background) if self.background is not None else None,
        })

    @classmethod
    def from_json(cls, text: str) -> "Blueprint":
        try:
            data = json.loads(text)
            if not isinstance(data, dict):
                raise TypeError(f"expected a JSON object, got {type(data).__name__}")
            background = data.get("background")
            return cls(
                peg_order=[Peg(float(p["x"]), float(p["y"]), int(p["id"])) for p in data["peg_order"]],
                width=int(data["width"]),
                height=int(data["height"]),
                background=tuple(background) if background is not None else None,
            )
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise ValueError(f"Invalid blueprint: {exc}") from exc

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(self.to_json())

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Blueprint":
        return cls.from_json(Path(path).read_text())

    def render_svg(self, yarn: YarnStyle, scale: float = 1.0) -> str:
        return render_svg(self.peg_order, self.width, self.height, yarn,
                          background=self.background, scale=scale)

    def render_image(self, yarn: YarnStyle, scale: float = 1.0) -> Image.Image:
        return render_image(self.peg_order, self.width, self.height, yarn,
                            background=self.background, scale=scale)
