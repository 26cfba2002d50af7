# strandpath/tests/test_preprocessing.py

import io
from unittest import TestCase

import numpy as np
from PIL import Image

from strandpath.preprocessing import (
    build_residual_field,
    load_image_to_pixels,
    pixels_to_darkness,
)


def _encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class PreprocessingTests(TestCase):
    def test_load_image_to_pixels_accepts_various_formats(self):
        """Ensure PNG, JPEG, BMP all decode from bytes and file-like objects."""
        gradient = np.tile(np.linspace(0, 255, 50, dtype=np.uint8), (40, 1))
        pil = Image.fromarray(gradient)

        for fmt in ("PNG", "JPEG", "BMP"):
            data = _encode(pil, fmt)
            for source in (data, io.BytesIO(data)):
                out = load_image_to_pixels(source)
                self.assertIsInstance(out, np.ndarray)
                self.assertEqual(out.dtype, np.uint8)
                self.assertEqual(out.shape, (40, 50))

    def test_resize_uses_width_height_order(self):
        pil = Image.new("RGB", (64, 32), (10, 20, 30))
        out = load_image_to_pixels(_encode(pil), size=(20, 10))
        self.assertEqual(out.shape, (10, 20))

    def test_levels_quantization(self):
        """Quantizing to N levels yields exactly N distinct gray values."""
        gradient = np.tile(np.arange(256, dtype=np.uint8), (10, 1))
        arr = load_image_to_pixels(_encode(Image.fromarray(gradient)), levels=4)

        unique = sorted(set(arr.ravel().tolist()))
        self.assertEqual(unique, [0, 85, 170, 255])

    def test_transparency_is_composited_over_white(self):
        clear = Image.new("RGBA", (8, 8), (0, 0, 0, 0))
        out = load_image_to_pixels(_encode(clear))
        self.assertTrue((out == 255).all())

    def test_undecodable_buffer_raises_value_error(self):
        with self.assertRaises(ValueError):
            load_image_to_pixels(b"definitely not an image")

    def test_invalid_size_raises_value_error(self):
        with self.assertRaises(ValueError):
            load_image_to_pixels(_encode(Image.new("L", (4, 4))), size=(0, 4))

    def test_darkness_and_residual_field(self):
        pixels = np.array([[0, 255], [51, 255]], dtype=np.uint8)
        darkness = pixels_to_darkness(pixels)
        np.testing.assert_allclose(darkness, [[1.0, 0.0], [0.8, 0.0]])

        field = build_residual_field(pixels)
        self.assertEqual((field.width, field.height), (2, 2))
        self.assertAlmostEqual(field.total(), 1.8)

        clone = field.copy()
        clone.values[0] = 0.0
        self.assertAlmostEqual(field.total(), 1.8)

        preview = field.as_image()
        self.assertEqual(preview.size, (2, 2))
        self.assertEqual(np.array(preview)[0, 1], 255)

    def test_darkness_requires_single_channel(self):
        with self.assertRaises(ValueError):
            pixels_to_darkness(np.zeros((4, 4, 3), dtype=np.uint8))
