"""Pixel containers for the quilting engine.

Images are read-only 8-bit grids with either three (RGB) or four (RGBA)
channels. Blocks are square views into an image (or into the canvas being
synthesized) and never copy pixel data.
"""

from dataclasses import dataclass
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image as PILImage

from .errors import InvalidParameters, NoValidCandidates, OutOfBounds, ShapeMismatch


class Image:
    """Immutable pixel grid. Use ``as_image`` to build the right variant."""

    channels = 0

    def __init__(self, pixels: np.ndarray):
        pixels = np.asarray(pixels)
        if pixels.dtype != np.uint8:
            raise ShapeMismatch(f"{type(self).__name__} needs uint8 pixels, got {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] != self.channels:
            raise ShapeMismatch(
                f"{type(self).__name__} needs shape (H, W, {self.channels}), got {pixels.shape}"
            )
        # Own a private copy so the caller cannot mutate us afterwards
        self._pixels = pixels.copy()
        self._pixels.flags.writeable = False

    @property
    def pixels(self) -> np.ndarray:
        """Read-only (height, width, channels) array."""
        return self._pixels

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self._pixels.shape

    def get_pixel(self, x: int, y: int) -> Tuple[int, ...]:
        """Returns the channel values at column x, row y."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBounds(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return tuple(int(v) for v in self._pixels[y, x])

    def to_pil(self) -> PILImage.Image:
        """Hands the pixels to Pillow, e.g. for an image writer."""
        return PILImage.fromarray(self._pixels.copy())

    @staticmethod
    def from_pil(image: PILImage.Image) -> 'Image':
        """Wraps a decoded Pillow image. RGBA is kept, every other mode becomes RGB."""
        if image.mode != 'RGBA' and image.mode != 'RGB':
            image = image.convert('RGB')
        return as_image(np.array(image))

    def __eq__(self, other):
        if not isinstance(other, Image):
            return NotImplemented
        return self.channels == other.channels and np.array_equal(self._pixels, other._pixels)

    __hash__ = None

    def __repr__(self):
        return f"{type(self).__name__}({self.width}x{self.height})"


class RGB8Image(Image):
    channels = 3


class RGBA8Image(Image):
    channels = 4


_VARIANTS = {cls.channels: cls for cls in (RGB8Image, RGBA8Image)}


def as_image(data: Union[Image, np.ndarray]) -> Image:
    """Builds an Image from an array, normalising dtype and channel layout.

    Args:
        data: An existing Image (returned as is) or an array shaped (H, W),
              (H, W, 1), (H, W, 3) or (H, W, 4). Float arrays are taken to be
              in [0, 1]; other integer arrays are clipped to [0, 255].

    Returns:
        An RGB8Image or RGBA8Image.

    Raises:
        ShapeMismatch: If the array layout is not supported.
    """
    if isinstance(data, Image):
        return data

    array = np.asarray(data)
    if array.dtype != np.uint8:
        if np.issubdtype(array.dtype, np.floating):
            array = np.round(np.clip(array, 0, 1) * 255).astype(np.uint8)
        else:
            array = np.clip(array, 0, 255).astype(np.uint8)

    if array.ndim == 2 or (array.ndim == 3 and array.shape[2] == 1):
        array = cv2.cvtColor(np.array(array), cv2.COLOR_GRAY2RGB)

    if array.ndim != 3 or array.shape[2] not in _VARIANTS:
        raise ShapeMismatch(f"Unsupported image shape {array.shape}. Expected (H,W), (H,W,3) or (H,W,4).")
    return _VARIANTS[array.shape[2]](array)


@dataclass(frozen=True, eq=False)
class Block:
    """A square region of ``source`` starting at ``origin`` = (row, col)."""

    source: np.ndarray
    origin: Tuple[int, int]
    size: int

    @property
    def pixels(self) -> np.ndarray:
        y, x = self.origin
        return self.source[y:y + self.size, x:x + self.size]

    def __eq__(self, other):
        if not isinstance(other, Block):
            return NotImplemented
        return (self.source is other.source and self.origin == other.origin
                and self.size == other.size)

    __hash__ = None


def sample(image, origin: Tuple[int, int], size: int) -> Block:
    """Returns the size x size block of ``image`` whose top-left corner is ``origin``.

    ``image`` may be an Image, a Canvas or a plain (H, W, C) array.

    Raises:
        InvalidParameters: If size is not positive.
        OutOfBounds: If any part of the block falls outside the image.
    """
    pixels = image.pixels if hasattr(image, 'pixels') else np.asarray(image)
    if size <= 0:
        raise InvalidParameters(f"Block size must be positive, got {size}")

    y, x = int(origin[0]), int(origin[1])
    h, w = pixels.shape[:2]
    if y < 0 or x < 0 or y + size > h or x + size > w:
        raise OutOfBounds(f"Block of size {size} at {(y, x)} does not fit in {h}x{w} image")
    return Block(pixels, (y, x), size)


def candidate_origins(image_shape: Tuple[int, ...], size: int) -> np.ndarray:
    """All origins whose block fits in an image of ``image_shape``, in raster order.

    Returns:
        An (N, 2) int array of (row, col) pairs.
    """
    h, w = image_shape[:2]
    if size <= 0:
        raise InvalidParameters(f"Block size must be positive, got {size}")
    if h < size or w < size:
        raise NoValidCandidates(f"Source image {h}x{w} is smaller than block size {size}")

    rows, cols = np.mgrid[0:h - size + 1, 0:w - size + 1]
    return np.stack([rows.ravel(), cols.ravel()], axis=1)
