# strandpath/tests/conftest.py

import io

import numpy as np
import pytest
from PIL import Image

from strandpath.pegs import generate_circle_pegs, pegs_from_coords


@pytest.fixture
def portrait() -> np.ndarray:
    """40x40 gray image with a dark diagonal band and a dark blob."""
    img = np.full((40, 40), 230, dtype=np.uint8)
    for i in range(40):
        img[i, max(0, i - 3):min(40, i + 3)] = 40
    img[5:12, 25:33] = 0
    return img


@pytest.fixture
def ring_pegs():
    return pegs_from_coords(*generate_circle_pegs((19.5, 19.5), 18, 16))


@pytest.fixture
def png_bytes(portrait) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(portrait).save(buf, format="PNG")
    return buf.getvalue()
