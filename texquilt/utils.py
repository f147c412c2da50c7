"""
Visualization helpers for quilting results and seams.

Figures are rendered with Matplotlib and returned as RGB NumPy arrays so
callers can display or store them however they like.
"""

from typing import Optional, Union

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.gridspec import GridSpec

from .errors import ShapeMismatch
from .image import Image
from .seam import Seam


def _pixels(texture: Union[Image, np.ndarray]) -> np.ndarray:
    return texture.pixels if isinstance(texture, Image) else np.asarray(texture)


def _figure_to_array(fig) -> np.ndarray:
    """Renders fig and returns its RGB pixels, closing the figure."""
    fig.canvas.draw()
    img = np.asarray(fig.canvas.buffer_rgba())[:, :, :3].copy()
    plt.close(fig)
    return img


def visualize_results(original_texture: Union[Image, np.ndarray],
                      synthesized_texture: Union[Image, np.ndarray],
                      title: Optional[str] = None) -> np.ndarray:
    """Visualizes original and synthesized textures side-by-side.

    Args:
        original_texture: The source texture.
        synthesized_texture: The quilted texture.
        title: Optional title for the entire visualization.

    Returns:
        A NumPy array representing the visualization image (RGB).
    """
    fig = plt.figure(figsize=(12, 6))

    plt.subplot(1, 2, 1)
    plt.imshow(_pixels(original_texture))
    plt.title('Original Texture')
    plt.axis('off')

    plt.subplot(1, 2, 2)
    plt.imshow(_pixels(synthesized_texture))
    plt.title('Synthesized Texture')
    plt.axis('off')

    if title:
        plt.suptitle(title, fontsize=16)
    plt.tight_layout()
    return _figure_to_array(fig)


def visualize_seam(existing: np.ndarray, candidate: np.ndarray,
                   error_surface: np.ndarray, seam: Seam) -> np.ndarray:
    """Visualizes the minimum error boundary cut between canvas and a new block.

    Args:
        existing: Canvas pixels under the block footprint (H, W, C).
        candidate: The new block cropped to the same footprint.
        error_surface: The overlap error the cut was found in, either a
            (H, overlap) left strip, an (overlap, W) top strip or a full
            (H, W) map.
        seam: The cut, in block-local coordinates.

    Returns:
        A NumPy array representing the visualization image (RGB).
    """
    existing = np.asarray(existing)
    candidate = np.asarray(candidate)
    error_surface = np.asarray(error_surface, dtype=float)
    h, w = candidate.shape[:2]
    if error_surface.ndim != 2 or error_surface.shape[0] > h or error_surface.shape[1] > w:
        raise ShapeMismatch(f"Error surface {error_surface.shape} does not fit a {h}x{w} block")
    take_new = seam.new_block_mask(h, w)

    fig = plt.figure(figsize=(15, 5))
    gs = GridSpec(1, 4, figure=fig)

    ax1 = fig.add_subplot(gs[0, 0])
    ax1.imshow(existing)
    ax1.set_title('Existing (Canvas)')
    ax1.axis('off')

    ax2 = fig.add_subplot(gs[0, 1])
    ax2.imshow(candidate)
    ax2.set_title('Candidate Block')
    ax2.axis('off')

    ax3 = fig.add_subplot(gs[0, 2])
    ax3.imshow(error_surface, cmap='magma')
    sh, sw = error_surface.shape
    if seam.vertical is not None and sh == h:
        ax3.plot(seam.vertical, np.arange(h), color='cyan', linewidth=1)
    if seam.horizontal is not None and sw == w:
        ax3.plot(np.arange(w), seam.horizontal, color='cyan', linewidth=1)
    ax3.set_title('Overlap Error')
    ax3.axis('off')

    ax4 = fig.add_subplot(gs[0, 3])
    result = np.where(take_new[:, :, np.newaxis], candidate, existing)
    ax4.imshow(result)
    if seam.vertical is not None:
        ax4.plot(seam.vertical, np.arange(h), color='red', linewidth=1)
    if seam.horizontal is not None:
        ax4.plot(np.arange(w), seam.horizontal, color='red', linewidth=1)
    ax4.set_title('Result with Min Cut')
    ax4.axis('off')

    plt.tight_layout()
    return _figure_to_array(fig)
