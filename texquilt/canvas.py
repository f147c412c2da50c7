"""Output canvas and the compositor that commits blocks into it."""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .errors import CanvasStateError, InvalidParameters, OutOfBounds, ShapeMismatch
from .image import Block, Image, as_image
from .seam import Seam


@dataclass(frozen=True)
class OverlapRegion:
    """Footprint of a block on the canvas and the strips already filled.

    ``top`` and ``left`` are the strip thicknesses in pixels, 0 when the
    strip is absent. ``height`` and ``width`` are clipped to the canvas.
    """

    row: int
    col: int
    height: int
    width: int
    top: int
    left: int

    @property
    def has_overlap(self) -> bool:
        return self.top > 0 or self.left > 0


class Canvas:
    """Mutable output grid. Cells start unfilled and are filled block by block."""

    def __init__(self, height: int, width: int, channels: int = 3):
        if height <= 0 or width <= 0:
            raise InvalidParameters(f"Canvas size must be positive, got {height}x{width}")
        if channels not in (3, 4):
            raise InvalidParameters(f"Canvas needs 3 or 4 channels, got {channels}")
        self._pixels = np.zeros((height, width, channels), dtype=np.uint8)
        self._filled = np.zeros((height, width), dtype=bool)
        self._fill_count = np.zeros((height, width), dtype=np.uint16)
        self._finalized = False

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def channels(self) -> int:
        return self._pixels.shape[2]

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the current pixels."""
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    @property
    def filled(self) -> np.ndarray:
        view = self._filled.view()
        view.flags.writeable = False
        return view

    @property
    def fill_count(self) -> np.ndarray:
        """How many times each cell went from unfilled to filled (1 everywhere once complete)."""
        view = self._fill_count.view()
        view.flags.writeable = False
        return view

    @property
    def finalized(self) -> bool:
        return self._finalized

    def is_complete(self) -> bool:
        return bool(self._filled.all())

    def footprint(self, position: Tuple[int, int], block_size: int) -> Tuple[int, int]:
        """Height and width of a block placed at position, clipped to the canvas."""
        y, x = position
        if not (0 <= y < self.height and 0 <= x < self.width):
            raise OutOfBounds(f"Position {position} outside {self.height}x{self.width} canvas")
        return min(block_size, self.height - y), min(block_size, self.width - x)

    def overlap_region(self, position: Tuple[int, int], block_size: int, overlap: int) -> OverlapRegion:
        """Locates the top and left strips of a block footprint that are already filled."""
        y, x = position
        h, w = self.footprint(position, block_size)
        top = min(overlap, h)
        left = min(overlap, w)
        if top and not self._filled[y:y + top, x:x + w].all():
            top = 0
        if left and not self._filled[y:y + h, x:x + left].all():
            left = 0
        return OverlapRegion(y, x, h, w, top, left)

    def finalize(self) -> Image:
        """Freezes the canvas and returns its pixels as an Image."""
        if not self.is_complete():
            missing = int(np.count_nonzero(~self._filled))
            raise CanvasStateError(f"Cannot finalize canvas, {missing} cells are still unfilled")
        self._finalized = True
        return as_image(self._pixels)

    def __repr__(self):
        return f"Canvas({self.width}x{self.height}x{self.channels}, filled={int(self._filled.sum())})"


def place(canvas: Canvas, position: Tuple[int, int], block: Block,
          seam: Optional[Seam] = None, blend: bool = False):
    """Writes block into canvas at position, honouring the seam.

    Unfilled cells always take the block's pixels. Filled cells take them
    only on the new-block side of the seam; the rest is preserved. With
    blend=True, seam path cells get the rounded mean of old and new pixels.
    Parts of the block past the canvas edge are dropped.

    Raises:
        CanvasStateError: If the canvas was already finalized.
        ShapeMismatch: If channels or seam do not fit the block footprint.
        OutOfBounds: If position lies outside the canvas.
    """
    if canvas.finalized:
        raise CanvasStateError("Canvas is finalized and can no longer be written")
    h, w = canvas.footprint(position, block.size)

    new_pixels = block.pixels[:h, :w]
    if new_pixels.ndim != 3 or new_pixels.shape[2] != canvas.channels:
        raise ShapeMismatch(f"Block has shape {new_pixels.shape}, canvas has {canvas.channels} channels")
    if new_pixels.shape[:2] != (h, w):
        raise ShapeMismatch(f"Block provides {new_pixels.shape[:2]} pixels, footprint needs {(h, w)}")

    seam = seam if seam is not None else Seam()
    seam_mask = seam.new_block_mask(h, w)
    boundary = seam.boundary_mask(h, w) if blend else None

    y, x = position
    region = canvas._pixels[y:y + h, x:x + w]
    filled = canvas._filled[y:y + h, x:x + w]
    unfilled = ~filled
    take_new = unfilled | seam_mask

    if boundary is not None:
        boundary &= filled
        mixed = (region[boundary].astype(np.uint16) + new_pixels[boundary] + 1) // 2

    region[take_new] = new_pixels[take_new]
    if boundary is not None:
        region[boundary] = mixed.astype(np.uint8)

    canvas._fill_count[y:y + h, x:x + w][unfilled] += 1
    filled[...] = True
