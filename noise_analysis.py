#!/usr/bin/env python3
"""
Grain and noise characteristics.

Two passes over the luminance field:
  1. Neighbour differences give overall intensity, and sign alternations of
     the horizontal difference give a grain frequency.
  2. A high-pass residual (image minus a 5x5 box blur) gives contrast (its
     spread) and sharpness (its own Laplacian variance).
"""

import numpy as np
from scipy import ndimage

from blur_analysis import laplacian_variance
from extract_colors import round2
from gradient_spec import NoiseInfo
from image_source import RawImage


# =============================================================================
# Constants
# =============================================================================

INTENSITY_SCALE = 10.0  # Mean neighbour difference (fraction of 255) x this = intensity
SMOOTH_INTENSITY = 0.15  # Below this the image is considered noise-free
FINE_ALTERNATION = 0.6
MEDIUM_ALTERNATION = 0.35

BOX_BLUR_SIZE = 5  # 5x5 box blur for the residual
CONTRAST_CEILING = 20.0  # Residual std that maps to contrast 1.0
SHARPNESS_CEILING = 80.0  # Residual Laplacian variance that maps to sharpness 1.0

MIN_BASE_FREQUENCY = 0.3
MAX_BASE_FREQUENCY = 1.0
BASE_FREQUENCY_SLOPE = 0.875


# =============================================================================
# Stage 1: Neighbour Differences
# =============================================================================

def neighbour_statistics(lum: np.ndarray) -> tuple[float, float]:
    """
    Mean absolute neighbour difference and horizontal sign-alternation rate.

    Every pixel of the (h-1) x (w-1) grid is compared with its right and
    bottom neighbour. Alternations count sign flips of the rightward
    difference in scanline order, carrying across row ends; a zero
    difference counts as positive.

    Returns:
        (mean_difference in 0-255 units, alternation_rate); both 0 for an
        empty grid
    """
    h, w = lum.shape
    if h < 2 or w < 2:
        return 0.0, 0.0

    base = lum[:-1, :-1]
    diff_right = lum[:-1, 1:] - base
    diff_down = lum[1:, :-1] - base

    comparisons = 2 * base.size
    mean_diff = float(np.abs(diff_right).sum() + np.abs(diff_down).sum()) / comparisons

    signs = np.where(diff_right.ravel() >= 0, 1, -1)
    alternations = int(np.count_nonzero(signs[1:] != signs[:-1]))
    return mean_diff, alternations / base.size


def frequency_class(alternation_rate: float) -> str:
    if alternation_rate > FINE_ALTERNATION:
        return 'fine'
    if alternation_rate > MEDIUM_ALTERNATION:
        return 'medium'
    return 'coarse'


# =============================================================================
# Stage 2: High-Pass Residual
# =============================================================================

def high_pass_residual(lum: np.ndarray) -> np.ndarray:
    """
    Luminance minus its 5x5 box blur, for pixels at least 2 px from every border.

    Returns an empty array for images smaller than 5x5.
    """
    margin = BOX_BLUR_SIZE // 2
    h, w = lum.shape
    if h <= 2 * margin or w <= 2 * margin:
        return np.empty((0, 0))
    blurred = ndimage.uniform_filter(lum, size=BOX_BLUR_SIZE)
    return (lum - blurred)[margin:h - margin, margin:w - margin]


# =============================================================================
# Noise
# =============================================================================

def analyze_noise(img: RawImage) -> NoiseInfo:
    """
    Measure the amount and character of grain in an image.

    Returns:
        NoiseInfo with intensity, contrast and sharpness in 0-1,
        base_frequency in 0.3-1.0 and the derived frequency/type labels
    """
    lum = img.luminance()

    mean_diff, alternation_rate = neighbour_statistics(lum)
    intensity = min(1.0, mean_diff / 255 * INTENSITY_SCALE)
    frequency = frequency_class(alternation_rate)

    if intensity < SMOOTH_INTENSITY:
        noise_type = 'smooth'
    elif frequency == 'fine':
        noise_type = 'grain'
    else:
        noise_type = 'speckle'

    base_frequency = min(MAX_BASE_FREQUENCY,
                         max(MIN_BASE_FREQUENCY, MIN_BASE_FREQUENCY + alternation_rate * BASE_FREQUENCY_SLOPE))

    residual = high_pass_residual(lum)
    residual_std = float(residual.std()) if residual.size else 0.0
    contrast = min(1.0, residual_std / CONTRAST_CEILING)
    sharpness = min(1.0, laplacian_variance(residual) / SHARPNESS_CEILING)

    return NoiseInfo(
        intensity=round2(intensity),
        frequency=frequency,
        type=noise_type,
        sharpness=round2(sharpness),
        contrast=round2(contrast),
        base_frequency=round2(base_frequency),
    )
