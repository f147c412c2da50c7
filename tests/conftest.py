import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def solid_texture():
    """16x16 texture of a single colour."""
    return np.full((16, 16, 3), (90, 140, 200), dtype=np.uint8)


@pytest.fixture
def noise_texture():
    """20x20 random RGB texture, identical on every run."""
    return np.random.default_rng(7).integers(0, 256, size=(20, 20, 3), dtype=np.uint8)


@pytest.fixture
def brick_texture():
    """40x40 brick-like pattern with mortar lines."""
    texture = np.zeros((40, 40, 3), dtype=np.uint8)
    brick_h, brick_w = 10, 20
    for i in range(40):
        for j in range(40):
            row = i // brick_h
            col = (j + (brick_w // 2 if row % 2 else 0)) // brick_w
            texture[i, j] = (180, 120, 80) if (row + col) % 2 == 0 else (160, 100, 60)
            if i % brick_h == 0 or j % brick_w == 0:
                texture[i, j] = (200, 200, 200)
    return texture
