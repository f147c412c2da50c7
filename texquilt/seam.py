"""Minimum error boundary cuts through overlap regions."""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import EmptySurface, ShapeMismatch


def find_seam(error_surface: np.ndarray) -> np.ndarray:
    """Finds a min-cost top-to-bottom seam on the error_surface using dynamic programming.

    The cumulative cost of a cell is its own error plus the cheapest of the
    (up to) three cells above it. Backtracking starts from the cheapest cell
    of the last row, the leftmost one on ties. When predecessors tie, the one
    straight above wins, then the upper-left, then the upper-right.

    Args:
        error_surface: A 2D array where each element is the cost (e.g., SSD).

    Returns:
        An int array holding the seam column for every row.

    Raises:
        ShapeMismatch: If the surface is not 2D.
        EmptySurface: If the surface has no rows or no columns.
    """
    surface = np.asarray(error_surface, dtype=np.float64)
    if surface.ndim != 2:
        raise ShapeMismatch(f"Error surface must be 2D, got shape {surface.shape}")
    h, w = surface.shape
    if h == 0 or w == 0:
        raise EmptySurface(f"Cannot cut a seam through an empty {h}x{w} surface")

    dp_costs = surface.copy()
    for r in range(1, h):
        above = dp_costs[r - 1]
        above_left = np.full(w, np.inf)
        above_left[1:] = above[:-1]
        above_right = np.full(w, np.inf)
        above_right[:-1] = above[1:]
        dp_costs[r] += np.minimum(np.minimum(above_left, above), above_right)

    path = np.empty(h, dtype=np.intp)
    c = int(np.argmin(dp_costs[h - 1]))
    path[h - 1] = c
    for r in range(h - 1, 0, -1):
        above = dp_costs[r - 1]
        best = c
        if c > 0 and above[c - 1] < above[best]:
            best = c - 1
        if c < w - 1 and above[c + 1] < above[best]:
            best = c + 1
        c = best
        path[r - 1] = c
    return path


def find_horizontal_seam(error_surface: np.ndarray) -> np.ndarray:
    """Finds a min-cost left-to-right seam; returns the seam row for every column."""
    return find_seam(np.asarray(error_surface).T)


def is_connected(path: np.ndarray) -> bool:
    """True when consecutive seam positions differ by at most one step."""
    return bool(np.all(np.abs(np.diff(np.asarray(path))) <= 1))


@dataclass(frozen=True, eq=False)
class Seam:
    """Cut through the overlap of one block, in block-local coordinates.

    ``vertical`` runs through the left overlap strip (one column per row) and
    ``horizontal`` through the top strip (one row per column). A block with
    both overlaps has an L-shaped cut. Cells on a path belong to the new block.
    """

    vertical: Optional[np.ndarray] = None
    horizontal: Optional[np.ndarray] = None

    def _check(self, height: int, width: int):
        if self.vertical is not None:
            if len(self.vertical) != height:
                raise ShapeMismatch(f"Vertical seam spans {len(self.vertical)} rows, block has {height}")
            if len(self.vertical) and (self.vertical.min() < 0 or self.vertical.max() >= width):
                raise ShapeMismatch("Vertical seam leaves the block")
        if self.horizontal is not None:
            if len(self.horizontal) != width:
                raise ShapeMismatch(f"Horizontal seam spans {len(self.horizontal)} columns, block has {width}")
            if len(self.horizontal) and (self.horizontal.min() < 0 or self.horizontal.max() >= height):
                raise ShapeMismatch("Horizontal seam leaves the block")

    def new_block_mask(self, height: int, width: int) -> np.ndarray:
        """Boolean (height, width) mask, True where the new block's pixels win."""
        self._check(height, width)
        mask = np.ones((height, width), dtype=bool)
        if self.vertical is not None:
            mask &= np.arange(width)[np.newaxis, :] >= self.vertical[:, np.newaxis]
        if self.horizontal is not None:
            mask &= np.arange(height)[:, np.newaxis] >= self.horizontal[np.newaxis, :]
        return mask

    def boundary_mask(self, height: int, width: int) -> np.ndarray:
        """Path cells that border the preserved side of the cut."""
        self._check(height, width)
        mask = np.zeros((height, width), dtype=bool)
        if self.vertical is not None:
            mask[np.arange(height), self.vertical] = True
        if self.horizontal is not None:
            mask[self.horizontal, np.arange(width)] = True
        return mask & self.new_block_mask(height, width)
