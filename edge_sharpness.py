#!/usr/bin/env python3
"""
Per-region edge sharpness.

Measures how abruptly luminance changes across the boundary of each colour
region. Crisp regions (a spotlight with a defined rim) score near 1, soft
washes that fade into their neighbours score near 0. The renderer uses the
score to pick a blur radius per region.
"""

import dataclasses

import numpy as np

from extract_colors import round2
from gradient_spec import ColorRegion
from image_source import RawImage


# =============================================================================
# Constants
# =============================================================================

GRADIENT_CEILING = 50.0  # Mean boundary gradient (0-255 luma) that maps to 1.0


# =============================================================================
# Edge Sharpness
# =============================================================================

def boundary_mask(assignments: np.ndarray) -> np.ndarray:
    """
    Flag interior pixels with a 4-connected neighbour in another cluster.

    Returns:
        Boolean array of shape (h-2, w-2) aligned with assignments[1:-1, 1:-1]
    """
    center = assignments[1:-1, 1:-1]
    return (
        (assignments[:-2, 1:-1] != center)
        | (assignments[2:, 1:-1] != center)
        | (assignments[1:-1, :-2] != center)
        | (assignments[1:-1, 2:] != center)
    )


def compute_edge_sharpness(img: RawImage, colors: list[ColorRegion],
                           assignments: np.ndarray) -> list[float]:
    """
    Score each region's boundary crispness.

    Border pixels are never sampled. At every interior boundary pixel the
    central-difference luminance gradient is taken; a region's score is its
    mean gradient magnitude / 50, clamped to 1 and rounded to 2 decimals.
    Regions with no interior boundary pixels score 0.

    Args:
        img: Analysed image
        colors: Regions the assignments index into
        assignments: (height, width) cluster index per pixel

    Returns:
        One score per region, in the order of `colors`
    """
    n = len(colors)
    if img.height < 3 or img.width < 3 or n == 0:
        return [0.0] * n

    lum = img.luminance()
    edges = boundary_mask(assignments)

    gx = lum[1:-1, 2:] - lum[1:-1, :-2]
    gy = lum[2:, 1:-1] - lum[:-2, 1:-1]
    magnitude = np.hypot(gx, gy)

    owners = assignments[1:-1, 1:-1][edges]
    sums = np.bincount(owners, weights=magnitude[edges], minlength=n)
    counts = np.bincount(owners, minlength=n)

    scores = []
    for c in range(n):
        if counts[c] == 0:
            scores.append(0.0)
            continue
        mean_grad = sums[c] / counts[c]
        scores.append(round2(min(1.0, mean_grad / GRADIENT_CEILING)))
    return scores


def annotate_edge_sharpness(colors: list[ColorRegion], sharpness: list[float]) -> list[ColorRegion]:
    """Return copies of `colors` with edge_sharpness filled in."""
    if len(colors) != len(sharpness):
        raise ValueError(f"Got {len(sharpness)} sharpness scores for {len(colors)} regions")
    return [dataclasses.replace(region, edge_sharpness=score)
            for region, score in zip(colors, sharpness)]
