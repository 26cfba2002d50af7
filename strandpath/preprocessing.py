# strandpath/preprocessing.py

import io
import os
import logging
from typing import BinaryIO, Optional, Tuple, Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

ImageSource = Union[str, bytes, os.PathLike, BinaryIO]

# === Configuration ===
# None keeps the full 256 gray levels; set to a small number to posterize.
DEFAULT_LEVELS = None


class ResidualField:
    """
    Per-pixel darkness still missing from the canvas, in [0, 1].
    Stored flat (row-major) so line coverage can index it directly.
    """

    def __init__(self, values: np.ndarray, width: int, height: int):
        if values.size != width * height:
            raise ValueError(f"Residual of size {values.size} does not match {width}x{height}")
        self.values = values.reshape(-1)
        self.width = width
        self.height = height

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    def total(self) -> float:
        return float(self.values.sum())

    def copy(self) -> "ResidualField":
        return ResidualField(self.values.copy(), self.width, self.height)

    def as_image(self) -> Image.Image:
        """Residual as a grayscale image, white where no ink is missing."""
        arr = np.round(255.0 * (1.0 - self.values.reshape(self.shape))).clip(0, 255)
        return Image.fromarray(arr.astype(np.uint8))


def _open(source: ImageSource) -> Image.Image:
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        img = Image.open(source)
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"Could not decode image: {exc}") from exc
    return img


def load_image_to_pixels(
    source: ImageSource,
    size: Optional[Tuple[int, int]] = None,
    levels: Optional[int] = DEFAULT_LEVELS,
    gamma: float = 1.0,
    autocontrast: bool = False,
    logger: Optional[logging.Logger] = None,
) -> np.ndarray:
    """
    Decode an image, composite any transparency over white, convert to
    grayscale, optionally resize, autocontrast, apply gamma correction and
    quantize to `levels` gray values.
    Returns a NumPy array (H, W) dtype=uint8.

    :param source: encoded bytes, file path or file-like object
    :param size: optional (width, height) to resize the image to
    :param levels: number of gray levels to quantize to, None to skip
    :param gamma: gamma correction exponent
    :param autocontrast: whether to apply PIL.ImageOps.autocontrast
    :param logger: optional logger to receive debug messages
    """
    if logger is None:
        logger = logging.getLogger(__name__)
    if size is not None and (size[0] < 1 or size[1] < 1):
        raise ValueError(f"Image size must be positive, got {size}")
    if levels is not None and levels < 2:
        raise ValueError(f"levels must be at least 2, got {levels}")

    logger.debug("Decoding image")
    img = _open(source)

    # Composite transparency over white
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        img = img.convert("RGBA")
        bg = Image.new("RGBA", img.size, (255, 255, 255, 255))
        img = Image.alpha_composite(bg, img)

    img = img.convert("L")

    if size:
        logger.debug(f"Resizing image to {size}")
        img = img.resize(size, Image.Resampling.LANCZOS)

    if autocontrast:
        logger.debug("Applying autocontrast")
        img = ImageOps.autocontrast(img, cutoff=1)

    if gamma != 1.0:
        logger.debug(f"Applying gamma correction (gamma={gamma})")
        # build LUT: new = 255 * (old/255)**gamma
        lut = [round((i / 255) ** gamma * 255) for i in range(256)]
        img = img.point(lut)

    arr = np.array(img, dtype=np.uint8)
    if levels is not None:
        logger.debug(f"Quantizing to {levels} gray levels")
        scale = (levels - 1) / 255.0
        arr = (np.round(arr.astype(np.float32) * scale) / scale).round().astype(np.uint8)

    logger.debug(f"Finished preprocessing image, shape={arr.shape}")
    return arr


def pixels_to_darkness(pixels: np.ndarray) -> np.ndarray:
    """Map grayscale pixels to darkness: 0 (white) -> 1 (black)."""
    if pixels.ndim != 2:
        raise ValueError(f"Expected a single channel (H, W) array, got shape {pixels.shape}")
    return (255.0 - pixels.astype(np.float64)) / 255.0


def build_residual_field(pixels: np.ndarray) -> ResidualField:
    """The canvas starts blank, so the residual is the whole target darkness."""
    darkness = pixels_to_darkness(pixels)
    height, width = darkness.shape
    return ResidualField(darkness.ravel().copy(), width, height)
