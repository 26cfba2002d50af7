# strandpath/tests/test_renderer.py

import xml.etree.ElementTree as ET
from unittest import TestCase

import numpy as np
import pytest

from strandpath.config import YarnStyle
from strandpath.pegs import Peg, pegs_from_coords
from strandpath.renderer import Blueprint, render_image, render_svg

SVG = "{http://www.w3.org/2000/svg}"


def _lines(root):
    return root.findall(f".//{SVG}line")


class RenderSvgTests(TestCase):
    def setUp(self):
        self.pegs = pegs_from_coords([0, 10, 10, 0], [0, 0, 20, 20])
        self.yarn = YarnStyle(width=2, opacity=0.5, color=(255, 0, 0))

    def test_empty_path_is_a_blank_canvas(self):
        root = ET.fromstring(render_svg([], 30, 20, self.yarn))
        self.assertEqual(root.get("width"), "30")
        self.assertEqual(root.get("height"), "20")
        self.assertEqual(_lines(root), [])
        self.assertIsNotNone(root.find(f"{SVG}rect"))

    def test_one_line_per_strand_with_yarn_style(self):
        root = ET.fromstring(render_svg(self.pegs, 30, 20, self.yarn))
        lines = _lines(root)
        self.assertEqual(len(lines), 3)

        group = root.find(f"{SVG}g")
        self.assertEqual(group.get("stroke"), "#ff0000")
        self.assertEqual(group.get("stroke-opacity"), "0.5")
        self.assertEqual(float(group.get("stroke-width")), 2.0)
        self.assertEqual(group.get("fill"), "none")

        first = lines[0]
        self.assertEqual(
            [float(first.get(k)) for k in ("x1", "y1", "x2", "y2")],
            [0.0, 0.0, 10.0, 0.0],
        )

    def test_scale_applies_to_canvas_and_coordinates(self):
        root = ET.fromstring(render_svg(self.pegs, 30, 20, self.yarn, scale=2))
        self.assertEqual(root.get("width"), "60")
        last = _lines(root)[-1]
        self.assertEqual(float(last.get("y1")), 40.0)
        self.assertEqual(float(root.find(f"{SVG}g").get("stroke-width")), 4.0)

        with self.assertRaises(ValueError):
            render_svg(self.pegs, 30, 20, self.yarn, scale=0)

    def test_background_rect_uses_hex_color(self):
        root = ET.fromstring(render_svg(self.pegs, 30, 20, self.yarn, background=(20, 30, 40)))
        self.assertEqual(root.find(f"{SVG}rect").get("fill"), "#141e28")

    def test_transparent_background_has_no_rect(self):
        root = ET.fromstring(render_svg(self.pegs, 30, 20, self.yarn, background=None))
        self.assertIsNone(root.find(f"{SVG}rect"))

    def test_rendering_is_idempotent(self):
        first = render_svg(self.pegs, 30, 20, self.yarn)
        self.assertEqual(first, render_svg(self.pegs, 30, 20, self.yarn))


def test_render_image_draws_strands():
    pegs = [Peg(0, 5, 0), Peg(19, 5, 1)]
    img = render_image(pegs, 20, 10, YarnStyle(width=1, opacity=1.0))
    assert img.mode == "RGBA"
    assert img.size == (20, 10)

    arr = np.array(img)
    assert tuple(arr[5, 10]) == (0, 0, 0, 255)
    assert tuple(arr[0, 0]) == (255, 255, 255, 255)

    clear = np.array(render_image([], 20, 10, YarnStyle(), background=None))
    assert (clear[..., 3] == 0).all()


def test_blueprint_round_trip(tmp_path):
    blueprint = Blueprint(pegs_from_coords([1.5, 8, 3], [2, 9.25, 7]), 10, 12, background=(20, 30, 40))
    assert blueprint.strands == 2

    path = tmp_path / "plan.json"
    blueprint.save(path)
    loaded = Blueprint.load(path)
    assert loaded == blueprint

    yarn = YarnStyle()
    assert loaded.render_svg(yarn) == blueprint.render_svg(yarn)


@pytest.mark.parametrize("text", ["not json", "[]", "42", "{}", '{"peg_order": [{"x": 1}], "width": 3, "height": 3}'])
def test_invalid_blueprint_raises_value_error(text):
    with pytest.raises(ValueError):
        Blueprint.from_json(text)
