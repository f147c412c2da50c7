"""Candidate selection: which source block goes to a canvas position."""

import functools
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np

from .canvas import Canvas, OverlapRegion
from .error_surface import METRICS, compute_overlap_error, overlap_errors
from .errors import InvalidParameters, ShapeMismatch
from .image import Image, as_image, candidate_origins
from .seam import Seam, find_horizontal_seam, find_seam

# Upper bound on gathered strip values per scoring chunk
_CHUNK_ELEMENTS = 1 << 21

Strip = Tuple[Tuple[int, int, int, int], np.ndarray]


@dataclass(frozen=True, eq=False)
class Selection:
    """The block chosen for one canvas position, with its cut."""

    origin: Tuple[int, int]
    error: float
    vertical_surface: Optional[np.ndarray]
    horizontal_surface: Optional[np.ndarray]
    seam: Seam


def _scoring_strips(region: OverlapRegion) -> List[Tuple[int, int, int, int]]:
    """Block-local (r0, r1, c0, c1) boxes covering the overlap, each cell once."""
    boxes = []
    if region.left:
        boxes.append((0, region.height, 0, region.left))
    if region.top:
        c0 = region.left
        if c0 < region.width:
            boxes.append((0, region.top, c0, region.width))
    return boxes


def _score_chunk(origins: np.ndarray, source: np.ndarray, strips: List[Strip], metric: str) -> np.ndarray:
    """Scores candidate blocks at ``origins`` against the canvas strips.
    Top-level so that multiprocessing can pickle it.
    """
    total = np.zeros(len(origins), dtype=np.float64)
    for (r0, r1, c0, c1), target in strips:
        rows = origins[:, 0, np.newaxis, np.newaxis] + np.arange(r0, r1)[np.newaxis, :, np.newaxis]
        cols = origins[:, 1, np.newaxis, np.newaxis] + np.arange(c0, c1)[np.newaxis, np.newaxis, :]
        total += overlap_errors(source[rows, cols], target, metric)
    return total


def candidate_set(origins: np.ndarray, max_candidates: Optional[int], rng: np.random.Generator) -> np.ndarray:
    """Every origin, or a sorted uniform sample of max_candidates of them."""
    if max_candidates is None or len(origins) <= max_candidates:
        return origins
    picked = rng.choice(len(origins), size=max_candidates, replace=False)
    return origins[np.sort(picked)]


def score_candidates(source: np.ndarray, canvas: Canvas, region: OverlapRegion, origins: np.ndarray,
                     metric: str = 'ssd', pool=None) -> np.ndarray:
    """Total overlap error of every candidate origin for the given region.

    Args:
        source: Source pixels (H, W, C).
        canvas: The canvas being synthesized; only read.
        region: Overlap geometry at the placement position.
        origins: (N, 2) candidate origins.
        metric: 'ssd' or 'l1'.
        pool: Optional multiprocessing pool; chunks are scored on its workers.

    Returns:
        (N,) float64 errors, in the order of origins.
    """
    boxes = _scoring_strips(region)
    if not boxes:
        return np.zeros(len(origins), dtype=np.float64)

    y, x = region.row, region.col
    strips = [((r0, r1, c0, c1), np.array(canvas.pixels[y + r0:y + r1, x + c0:x + c1]))
              for r0, r1, c0, c1 in boxes]

    cells = sum((r1 - r0) * (c1 - c0) for r0, r1, c0, c1 in boxes) * source.shape[2]
    chunk_len = max(1, _CHUNK_ELEMENTS // cells)
    chunks = [origins[i:i + chunk_len] for i in range(0, len(origins), chunk_len)]

    worker = functools.partial(_score_chunk, source=source, strips=strips, metric=metric)
    if pool is not None and len(chunks) > 1:
        results = pool.map(worker, chunks)
    else:
        results = [worker(chunk) for chunk in chunks]
    return np.concatenate(results)


def pick_candidate(errors: np.ndarray, tolerance: float, rng: np.random.Generator) -> int:
    """Index of a uniformly chosen candidate within tolerance of the best error."""
    min_error = np.min(errors)
    # Blocks with error up to min_error * (1 + tolerance) are considered equivalent
    threshold = min_error * (1 + tolerance)
    valid_indices = np.flatnonzero(errors <= threshold)
    return int(rng.choice(valid_indices))


def cut_seam(block_pixels: np.ndarray, canvas: Canvas, region: OverlapRegion,
             metric: str = 'ssd') -> Tuple[Optional[np.ndarray], Optional[np.ndarray], Seam]:
    """Error surfaces of the chosen block's strips and the seam through them.

    Returns:
        (vertical_surface, horizontal_surface, seam); a surface is None when
        its strip is absent.
    """
    y, x, h, w = region.row, region.col, region.height, region.width
    block = block_pixels[:h, :w]
    existing = canvas.pixels[y:y + h, x:x + w]

    vertical_surface = horizontal_surface = None
    vertical = horizontal = None
    if region.left:
        vertical_surface = compute_overlap_error(block[:, :region.left], existing[:, :region.left], metric)
        vertical = find_seam(vertical_surface)
    if region.top:
        horizontal_surface = compute_overlap_error(block[:region.top, :], existing[:region.top, :], metric)
        horizontal = find_horizontal_seam(horizontal_surface)
    return vertical_surface, horizontal_surface, Seam(vertical=vertical, horizontal=horizontal)


def select_block(source: Union[Image, np.ndarray], canvas: Canvas, position: Tuple[int, int],
                 block_size: int, overlap: int, tolerance: float, rng: np.random.Generator, *,
                 metric: str = 'ssd', max_candidates: Optional[int] = None, pool=None) -> Selection:
    """Finds a source block matching the canvas at position, and its seam.

    Every candidate within tolerance of the lowest overlap error is equally
    likely to be chosen, which keeps the synthesized texture varied.
    Neither the source nor the canvas is modified.

    Raises:
        InvalidParameters: On bad block size, overlap, tolerance or metric.
        NoValidCandidates: If the source is smaller than the block.
        ShapeMismatch: If source and canvas channel layouts differ.
    """
    if block_size <= 0:
        raise InvalidParameters(f"Block size must be positive, got {block_size}")
    if not 0 <= overlap < block_size:
        raise InvalidParameters(f"Overlap must be in [0, {block_size}), got {overlap}")
    if tolerance < 0:
        raise InvalidParameters(f"Tolerance must be non-negative, got {tolerance}")
    if metric not in METRICS:
        raise InvalidParameters(f"Unknown metric '{metric}', expected one of {METRICS}")
    if max_candidates is not None and max_candidates <= 0:
        raise InvalidParameters(f"max_candidates must be positive, got {max_candidates}")

    source = as_image(source)
    if source.channels != canvas.channels:
        raise ShapeMismatch(f"Source has {source.channels} channels, canvas has {canvas.channels}")

    origins = candidate_set(candidate_origins(source.shape, block_size), max_candidates, rng)
    region = canvas.overlap_region(position, block_size, overlap)
    errors = score_candidates(source.pixels, canvas, region, origins, metric, pool)

    chosen = pick_candidate(errors, tolerance, rng)
    y, x = (int(v) for v in origins[chosen])
    block_pixels = source.pixels[y:y + block_size, x:x + block_size]
    vertical_surface, horizontal_surface, seam = cut_seam(block_pixels, canvas, region, metric)
    return Selection((y, x), float(errors[chosen]), vertical_surface, horizontal_surface, seam)
