# strandpath/tests/test_cli.py

import json
import xml.etree.ElementTree as ET

import pytest
from PIL import Image

from strandpath.cli import build_parser, main, make_pegs

SVG = "{http://www.w3.org/2000/svg}"


@pytest.fixture
def image_file(tmp_path, portrait):
    path = tmp_path / "portrait.png"
    Image.fromarray(portrait).save(path)
    return path


def test_image_to_svg(image_file):
    assert main([str(image_file), "-i", "20", "-n", "24", "-q"]) == 0
    root = ET.parse(image_file.with_suffix(".svg")).getroot()
    assert root.get("width") == "40"
    assert 0 < len(root.findall(f".//{SVG}line")) <= 20


def test_blueprint_can_be_rerendered(image_file, tmp_path):
    plan = tmp_path / "plan.json"
    pegs = tmp_path / "pegs.json"
    main([str(image_file), str(plan), "-i", "10", "-n", "16", "-b", "2", "--save-pegs", str(pegs), "-q"])

    data = json.loads(plan.read_text())
    assert data["width"] == 40
    assert len(json.loads(pegs.read_text())) == 16

    out = tmp_path / "plan.png"
    main([str(plan), str(out), "-c", "255 0 0", "-t", "--output-scale", "2", "-q"])
    with Image.open(out) as img:
        assert img.size == (80, 80)
        assert img.mode == "RGBA"


def test_missing_input_exits_with_usage_error(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "nope.png"), "-q"])
    assert exc.value.code == 2


def test_bad_option_values_are_rejected():
    parser = build_parser()
    for argv in (["x.png", "-o", "1.5"], ["x.png", "-c", "1 2"], ["x.png", "--size", "big"]):
        with pytest.raises(SystemExit):
            parser.parse_args(argv)


@pytest.mark.parametrize("shape", ["circle", "square", "border"])
def test_make_pegs_stays_inside_the_image(shape):
    pegs = make_pegs(shape, 40, 0.05, 60, 30)
    assert len(pegs) == 40
    assert all(0 <= p.x <= 59 and 0 <= p.y <= 29 for p in pegs)


def test_blueprint_that_is_not_an_object_is_a_usage_error(tmp_path):
    plan = tmp_path / "plan.json"
    plan.write_text("[]")
    with pytest.raises(SystemExit) as exc:
        main([str(plan), str(tmp_path / "out.svg"), "-q"])
    assert exc.value.code == 2
