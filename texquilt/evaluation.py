"""
Quality metrics for quilted textures.
"""

from typing import Optional, Union

import cv2
import numpy as np
from skimage.metrics import structural_similarity as ssim

from .image import Image, as_image


def _rgb(texture: Union[Image, np.ndarray]) -> np.ndarray:
    return np.array(as_image(texture).pixels[:, :, :3])


def compute_ssim_patches(original, synthesized, patch_size=64, num_patches=20, rng=None):
    """
    Compute SSIM between random patches from original and synthesized textures.

    Parameters:
    -----------
    original : Image or ndarray
        Original texture
    synthesized : Image or ndarray
        Synthesized texture
    patch_size : int
        Size of patches to compare
    num_patches : int
        Number of random patches to sample
    rng : numpy.random.Generator, optional
        Source of patch positions; a fixed generator gives repeatable scores

    Returns:
    --------
    float
        Average SSIM value, 0.0 when the images are too small to compare
    """
    original = _rgb(original)
    synthesized = _rgb(synthesized)
    rng = rng if rng is not None else np.random.default_rng()

    h_orig, w_orig = original.shape[:2]
    h_synth, w_synth = synthesized.shape[:2]
    patch_size = min(patch_size, h_orig, w_orig, h_synth, w_synth)
    if patch_size < 7:  # smallest window SSIM accepts
        return 0.0

    ssim_values = []
    for _ in range(num_patches):
        i_orig = rng.integers(0, h_orig - patch_size + 1)
        j_orig = rng.integers(0, w_orig - patch_size + 1)
        i_synth = rng.integers(0, h_synth - patch_size + 1)
        j_synth = rng.integers(0, w_synth - patch_size + 1)

        patch_orig = original[i_orig:i_orig + patch_size, j_orig:j_orig + patch_size]
        patch_synth = synthesized[i_synth:i_synth + patch_size, j_synth:j_synth + patch_size]
        ssim_values.append(ssim(patch_orig, patch_synth, data_range=255, channel_axis=2,
                                win_size=min(7, patch_size // 2 * 2 - 1)))

    return float(np.mean(ssim_values))


def compute_histogram_distance(original, synthesized, bins=64):
    """
    Chi-square distance between per-channel colour histograms, averaged over RGB.
    0 means identical colour distributions.
    """
    original = _rgb(original)
    synthesized = _rgb(synthesized)

    distances = []
    for c in range(3):
        hist_orig = cv2.calcHist([original], [c], None, [bins], [0, 256]).flatten()
        hist_synth = cv2.calcHist([synthesized], [c], None, [bins], [0, 256]).flatten()
        hist_orig /= hist_orig.sum()
        hist_synth /= hist_synth.sum()
        distances.append(0.5 * np.sum((hist_orig - hist_synth) ** 2 / (hist_orig + hist_synth + 1e-10)))

    return float(np.mean(distances))


def compute_edge_consistency(original, synthesized):
    """1 minus the difference in Canny edge density; 1.0 means equally busy textures."""
    orig_edges = cv2.Canny(cv2.cvtColor(_rgb(original), cv2.COLOR_RGB2GRAY), 50, 150)
    synth_edges = cv2.Canny(cv2.cvtColor(_rgb(synthesized), cv2.COLOR_RGB2GRAY), 50, 150)

    orig_edge_density = np.count_nonzero(orig_edges) / orig_edges.size
    synth_edge_density = np.count_nonzero(synth_edges) / synth_edges.size
    return float(1.0 - abs(orig_edge_density - synth_edge_density))


def seam_energy(texture, block_size, overlap):
    """
    Gradient energy inside the overlap strips relative to the whole texture.

    Parameters:
    -----------
    texture : Image or ndarray
        Synthesized texture
    block_size, overlap : int
        The parameters it was quilted with

    Returns:
    --------
    float
        About 1.0 when seams are as busy as the texture itself, larger when
        they stand out; 0.0 for a flat texture
    """
    gray = cv2.cvtColor(_rgb(texture), cv2.COLOR_RGB2GRAY).astype(np.float32)
    gx = cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3)
    gy = cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3)
    magnitude = cv2.magnitude(gx, gy)

    overall = float(magnitude.mean())
    if overall == 0.0 or overlap == 0:
        return 0.0

    step = block_size - overlap
    h, w = gray.shape
    strips = np.zeros((h, w), dtype=bool)
    for start in range(step, w, step):
        strips[:, start:start + overlap] = True
    for start in range(step, h, step):
        strips[start:start + overlap, :] = True
    if not strips.any():
        return 0.0
    return float(magnitude[strips].mean() / overall)


def evaluate_texture_quality(original, synthesized, rng: Optional[np.random.Generator] = None,
                             verbose=False):
    """
    Evaluate synthesized texture quality.

    Returns:
    --------
    dict
        'ssim', 'histogram_distance', 'edge_consistency' and 'overall_score'
    """
    ssim_score = compute_ssim_patches(original, synthesized, rng=rng)
    hist_distance = compute_histogram_distance(original, synthesized)
    edge_consistency = compute_edge_consistency(original, synthesized)

    results = {
        'ssim': ssim_score,
        'histogram_distance': hist_distance,
        'edge_consistency': edge_consistency,
        'overall_score': (ssim_score + edge_consistency) / 2 - hist_distance / 10
    }

    if verbose:
        print("\n" + "=" * 50)
        print("TEXTURE QUALITY EVALUATION")
        print("=" * 50)
        print(f"SSIM Score:           {ssim_score:.4f} (higher is better)")
        print(f"Histogram Distance:   {hist_distance:.4f} (lower is better)")
        print(f"Edge Consistency:     {edge_consistency:.4f} (higher is better)")
        print(f"Overall Score:        {results['overall_score']:.4f}")
        print("=" * 50)

    return results
