"""Synthesis parameters."""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

import numpy as np

from .error_surface import METRICS
from .errors import InvalidParameters


def _ceildiv(a: int, b: int) -> int:
    return -(a // -b)


@dataclass(frozen=True)
class QuiltParams:
    """Validated parameters of one quilting run.

    Args:
        size: Output size as (height, width); an int gives a square output.
        block_size: Side of the square blocks, in pixels.
        overlap: Width of the strip shared by neighbouring blocks, in pixels.
        tolerance: Blocks with error up to min_error * (1 + tolerance) are
                   eligible, 0 keeps only the best matches.
        seed: Seed for the random generator, None draws fresh entropy.
        metric: Pixel distance, 'ssd' (squared Euclidean) or 'l1'.
        blend_seam: Average old and new pixels on the seam path itself.
        max_candidates: Score at most this many random source blocks per
                        placement instead of every block.
        workers: Number of processes used to score candidates.
    """

    size: Union[int, Tuple[int, int]] = (1024, 1024)
    block_size: int = 64
    overlap: int = 12
    tolerance: float = 0.1
    seed: Optional[int] = None
    metric: str = 'ssd'
    blend_seam: bool = False
    max_candidates: Optional[int] = None
    workers: int = 1

    def __post_init__(self):
        size = self.size
        if isinstance(size, (int, np.integer)):
            size = (int(size), int(size))
        else:
            size = tuple(int(s) for s in size)
            if len(size) != 2:
                raise InvalidParameters(f"Size must be an int or a (height, width) pair, got {self.size}")
        object.__setattr__(self, 'size', size)

        if min(size) <= 0:
            raise InvalidParameters(f"Output size must be positive, got {size}")
        if self.block_size <= 0:
            raise InvalidParameters(f"Block size must be positive, got {self.block_size}")
        if self.overlap < 0:
            raise InvalidParameters(f"Overlap must be non-negative, got {self.overlap}")
        if self.overlap >= self.block_size:
            raise InvalidParameters(
                f"Overlap must be smaller than the block size, got {self.overlap} and {self.block_size}"
            )
        if self.tolerance < 0:
            raise InvalidParameters(f"Tolerance must be non-negative, got {self.tolerance}")
        if self.metric not in METRICS:
            raise InvalidParameters(f"Unknown metric '{self.metric}', expected one of {METRICS}")
        if self.max_candidates is not None and self.max_candidates <= 0:
            raise InvalidParameters(f"max_candidates must be positive, got {self.max_candidates}")
        if self.workers < 1:
            raise InvalidParameters(f"workers must be at least 1, got {self.workers}")

    @property
    def step(self) -> int:
        """Distance between the origins of neighbouring blocks."""
        return self.block_size - self.overlap

    @property
    def layout(self) -> Tuple[int, int]:
        """Number of block rows and columns needed to cover the output."""
        return tuple(max(1, _ceildiv(extent - self.overlap, self.step)) for extent in self.size)

    def positions(self) -> Iterator[Tuple[int, int]]:
        """Canvas origins of every block, in raster scan order."""
        rows, cols = self.layout
        for i in range(rows):
            for j in range(cols):
                yield i * self.step, j * self.step

    def rng(self) -> np.random.Generator:
        return np.random.default_rng(self.seed)
