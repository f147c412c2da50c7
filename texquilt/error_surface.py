"""Per-pixel costs between a candidate block and the canvas it overlaps."""

import numpy as np

from .errors import InvalidParameters, ShapeMismatch

# 'ssd' is the squared Euclidean distance across channels, 'l1' the Manhattan distance
METRICS = ('ssd', 'l1')


def _pixel_distance(diff: np.ndarray, metric: str) -> np.ndarray:
    """Reduces signed channel differences (..., C) to one distance per pixel."""
    if metric == 'ssd':
        return np.sum(diff * diff, axis=-1)
    if metric == 'l1':
        return np.sum(np.abs(diff), axis=-1)
    raise InvalidParameters(f"Unknown metric '{metric}', expected one of {METRICS}")


def compute_overlap_error(candidate: np.ndarray, canvas_overlap: np.ndarray,
                          metric: str = 'ssd') -> np.ndarray:
    """Computes the error surface between two equally shaped regions.

    Args:
        candidate: Overlap strip of the candidate block, (H, W, C) or (H, W).
        canvas_overlap: Pixels already on the canvas in the same strip.
        metric: 'ssd' or 'l1'.

    Returns:
        A float64 (H, W) array of non-negative per-pixel costs.

    Raises:
        ShapeMismatch: If the two regions differ in shape.
    """
    candidate = np.asarray(candidate)
    canvas_overlap = np.asarray(canvas_overlap)
    if candidate.shape != canvas_overlap.shape:
        raise ShapeMismatch(f"Overlap shapes differ: {candidate.shape} vs {canvas_overlap.shape}")

    # Integer arithmetic keeps the surface exact for 8-bit input
    diff = candidate.astype(np.int64) - canvas_overlap.astype(np.int64)
    if diff.ndim == 2:
        diff = diff[..., np.newaxis]
    return _pixel_distance(diff, metric).astype(np.float64)


def overlap_errors(candidates: np.ndarray, target: np.ndarray, metric: str = 'ssd') -> np.ndarray:
    """Total overlap error of a stack of candidate strips against one target strip.

    Args:
        candidates: (N, H, W, C) strips cut from the source image.
        target: (H, W, C) strip of the canvas.

    Returns:
        A float64 array with one summed error per candidate.
    """
    if candidates.shape[1:] != target.shape:
        raise ShapeMismatch(f"Candidate strips {candidates.shape[1:]} do not match target {target.shape}")

    diff = candidates.astype(np.int64) - target.astype(np.int64)[np.newaxis]
    per_pixel = _pixel_distance(diff, metric)
    return per_pixel.reshape(len(candidates), -1).sum(axis=1).astype(np.float64)
