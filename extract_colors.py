#!/usr/bin/env python3
"""
Extract dominant colour regions from an image with spatially tracked k-means.

Clusters are formed on RGB only; each pixel's normalised position rides
along so every cluster also reports where it sits (centroid) and how
scattered it is (spread). The colour helpers at the top are shared by the
other analysis stages.
"""

import math
from typing import Optional

import numpy as np
from sklearn.cluster import kmeans_plusplus

from gradient_spec import ColorRegion, Point
from image_source import RawImage


# =============================================================================
# Constants
# =============================================================================

DEFAULT_CLUSTERS = 5
DEFAULT_MAX_ITER = 20
MAX_SPREAD_DISTANCE = 0.707  # Mean distance that maps to spread 1.0


# =============================================================================
# Rounding
# =============================================================================

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from -inf (0.5 -> 1, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def round2(value: float) -> float:
    """Round to 2 decimals with halves rounded up, as reported in every result."""
    return math.floor(value * 100 + 0.5) / 100


# =============================================================================
# Color Helpers
# =============================================================================

def rgb_to_hex(rgb) -> str:
    """Convert an (r, g, b) triple of 0-255 ints to '#rrggbb'."""
    r, g, b = (max(0, min(255, int(c))) for c in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def luminance(rgb) -> float:
    """Relative luma of one colour, 0-1."""
    r, g, b = rgb
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def rgb_to_hsl_array(pixels: np.ndarray) -> tuple:
    """
    Convert an (n, 3) RGB array to HSL.

    Returns:
        (hue in degrees [0, 360), saturation 0-1, lightness 0-1) arrays;
        achromatic pixels get hue 0
    """
    rgb = pixels.astype(np.float64) / 255
    r, g, b = rgb[:, 0], rgb[:, 1], rgb[:, 2]
    hi = rgb.max(axis=1)
    lo = rgb.min(axis=1)
    d = hi - lo
    lightness = (hi + lo) / 2

    chromatic = d > 0
    safe_d = np.where(chromatic, d, 1.0)
    denom = np.where(lightness > 0.5, 2 - hi - lo, hi + lo)
    saturation = np.where(chromatic, d / np.where(denom > 0, denom, 1.0), 0.0)

    hue = np.where(
        hi == r, (g - b) / safe_d + np.where(g < b, 6, 0),
        np.where(hi == g, (b - r) / safe_d + 2, (r - g) / safe_d + 4),
    ) / 6
    hue = np.where(chromatic, hue * 360, 0.0)
    return hue, saturation, lightness


def assign_pixels_to_clusters(img: RawImage, colors: list) -> np.ndarray:
    """
    Map every pixel to its nearest colour region by RGB distance.

    Ties go to the earlier region in `colors`.

    Returns:
        (height, width) int array of indices into `colors`
    """
    palette = np.array([c.rgb for c in colors], dtype=np.float64).reshape(-1, 3)
    flat = img.pixels.reshape(-1, 3).astype(np.float64)
    return _nearest_centroid(flat, palette).reshape(img.height, img.width)


def _nearest_centroid(samples: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Index of the nearest centroid per sample, first index on ties."""
    dists = np.empty((len(samples), len(centroids)))
    for c, centroid in enumerate(centroids):
        dists[:, c] = ((samples - centroid) ** 2).sum(axis=1)
    return dists.argmin(axis=1)


# =============================================================================
# K-Means
# =============================================================================

def normalized_positions(width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Row-major x and y coordinates of every pixel, scaled to 0-1.

    A dimension of length 1 maps to 0.
    """
    xs = np.arange(width, dtype=np.float64) / max(width - 1, 1)
    ys = np.arange(height, dtype=np.float64) / max(height - 1, 1)
    grid_x, grid_y = np.meshgrid(xs, ys)
    return grid_x.ravel(), grid_y.ravel()


def extract_colors(img: RawImage, k: int = DEFAULT_CLUSTERS, max_iter: int = DEFAULT_MAX_ITER,
                   seed: Optional[int] = None) -> list[ColorRegion]:
    """
    Cluster the image's pixels into at most k colour regions.

    Args:
        img: Image to analyse
        k: Number of clusters; capped at the pixel count
        max_iter: Maximum assign/update rounds
        seed: Random seed for k-means++ seeding (None = nondeterministic)

    Returns:
        Regions sorted by weight descending. Empty clusters are dropped and
        edge_sharpness is left at 0 for a later pass.
    """
    samples = img.pixels.reshape(-1, 3).astype(np.float64)
    xs, ys = normalized_positions(img.width, img.height)
    total = len(samples)
    k = max(1, min(int(k), total))

    # k-means++ over colour only; positions start at the chosen pixels
    seeds, seed_idx = kmeans_plusplus(samples, n_clusters=k, random_state=seed, n_local_trials=1)
    centroids = seeds.astype(np.float64)
    cent_x = xs[seed_idx].copy()
    cent_y = ys[seed_idx].copy()

    assignments = np.zeros(total, dtype=np.intp)
    for _ in range(max_iter):
        nearest = _nearest_centroid(samples, centroids)
        if np.array_equal(nearest, assignments):
            break
        assignments = nearest

        counts = np.bincount(assignments, minlength=k)
        occupied = counts > 0
        for channel in range(3):
            sums = np.bincount(assignments, weights=samples[:, channel], minlength=k)
            centroids[occupied, channel] = sums[occupied] / counts[occupied]
        cent_x[occupied] = np.bincount(assignments, weights=xs, minlength=k)[occupied] / counts[occupied]
        cent_y[occupied] = np.bincount(assignments, weights=ys, minlength=k)[occupied] / counts[occupied]

    results = []
    for c in range(k):
        members = assignments == c
        count = int(members.sum())
        if count == 0:
            continue

        dist = np.hypot(xs[members] - cent_x[c], ys[members] - cent_y[c])
        spread = min(1.0, float(dist.mean()) / MAX_SPREAD_DISTANCE)
        rgb = tuple(round_half_up(v) for v in centroids[c])

        results.append(ColorRegion(
            hex=rgb_to_hex(rgb),
            rgb=rgb,
            position=Point(round2(cent_x[c]), round2(cent_y[c])),
            weight=round2(count / total),
            spread=round2(spread),
        ))

    results.sort(key=lambda region: region.weight, reverse=True)
    return results


# =============================================================================
# CLI
# =============================================================================

if __name__ == '__main__':
    import argparse
    import sys

    from image_source import load_image

    parser = argparse.ArgumentParser(description='Print the dominant colour regions of an image.')
    parser.add_argument('image', help='Path to the image file')
    parser.add_argument('--clusters', '-k', type=int, default=DEFAULT_CLUSTERS, help='Number of clusters')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible runs')
    args = parser.parse_args()

    try:
        img = load_image(args.image)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    regions = extract_colors(img, k=args.clusters, seed=args.seed)
    print(f"{'Hex':<9} {'Weight':>7} {'Spread':>7}  Position")
    print("-" * 40)
    for region in regions:
        print(f"{region.hex:<9} {region.weight:>7.2f} {region.spread:>7.2f}  "
              f"({region.position.x:.2f}, {region.position.y:.2f})")
