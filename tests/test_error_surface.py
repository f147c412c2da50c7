import numpy as np
import pytest

from texquilt.error_surface import compute_overlap_error, overlap_errors
from texquilt.errors import InvalidParameters, ShapeMismatch


def test_identical_regions_have_zero_error(noise_texture):
    region = noise_texture[:8, :3]
    surface = compute_overlap_error(region, region.copy())
    assert surface.shape == (8, 3)
    assert surface.dtype == np.float64
    assert np.all(surface == 0)


def test_squared_euclidean_distance():
    candidate = np.array([[[1, 2, 3], [0, 0, 0]]], dtype=np.uint8)
    existing = np.zeros((1, 2, 3), dtype=np.uint8)
    surface = compute_overlap_error(candidate, existing)
    assert surface.tolist() == [[14.0, 0.0]]


def test_l1_distance():
    candidate = np.array([[[1, 2, 3]]], dtype=np.uint8)
    existing = np.array([[[4, 0, 3]]], dtype=np.uint8)
    assert compute_overlap_error(candidate, existing, metric='l1').tolist() == [[5.0]]


def test_no_uint8_wraparound():
    candidate = np.zeros((1, 1, 3), dtype=np.uint8)
    existing = np.full((1, 1, 3), 255, dtype=np.uint8)
    assert compute_overlap_error(candidate, existing)[0, 0] == 3 * 255 ** 2
    assert compute_overlap_error(existing, candidate)[0, 0] == 3 * 255 ** 2


def test_single_channel_regions():
    surface = compute_overlap_error(np.array([[3, 1]]), np.array([[0, 1]]))
    assert surface.tolist() == [[9.0, 0.0]]


def test_shape_mismatch():
    with pytest.raises(ShapeMismatch):
        compute_overlap_error(np.zeros((4, 2, 3)), np.zeros((4, 3, 3)))


def test_unknown_metric():
    with pytest.raises(InvalidParameters):
        compute_overlap_error(np.zeros((2, 2, 3)), np.zeros((2, 2, 3)), metric='cosine')


@pytest.mark.parametrize("metric", ['ssd', 'l1'])
def test_batched_errors_match_surfaces(noise_texture, metric):
    target = noise_texture[:6, :2]
    candidates = np.stack([noise_texture[y:y + 6, x:x + 2] for y, x in [(0, 0), (3, 4), (10, 17)]])

    totals = overlap_errors(candidates, target, metric)

    expected = [compute_overlap_error(c, target, metric).sum() for c in candidates]
    assert totals.tolist() == expected
    assert totals[0] == 0


def test_batched_shape_mismatch(noise_texture):
    with pytest.raises(ShapeMismatch):
        overlap_errors(np.zeros((3, 6, 2, 3)), np.zeros((6, 3, 3)))
