#!/usr/bin/env python3
"""
Global blur estimate from the variance of the Laplacian.

Sharp images have strong second derivatives at their edges and therefore a
high Laplacian variance; blurred images do not.
"""

import numpy as np
from scipy import ndimage

from extract_colors import round2
from gradient_spec import BlurInfo
from image_source import RawImage


# =============================================================================
# Constants
# =============================================================================

VARIANCE_CEILING = 1000.0  # Laplacian variance that maps to 1.0 (fully sharp)

# Normalised variance thresholds, checked from sharpest down
BLUR_LEVELS = (
    (0.5, 'none'),
    (0.25, 'light'),
    (0.1, 'medium'),
)


# =============================================================================
# Blur
# =============================================================================

def laplacian_variance(field: np.ndarray) -> float:
    """
    Population variance of the 4-neighbour Laplacian over interior pixels.

    Returns 0 when the field has no interior (fewer than 3 rows or columns).
    """
    if field.shape[0] < 3 or field.shape[1] < 3:
        return 0.0
    lap = ndimage.laplace(field.astype(np.float64))[1:-1, 1:-1]
    return float(lap.var())


def blur_level(variance: float) -> str:
    """Map a normalised variance (1 = sharp) onto a blur level."""
    for threshold, level in BLUR_LEVELS:
        if variance > threshold:
            return level
    return 'heavy'


def analyze_blur(img: RawImage) -> BlurInfo:
    """
    Estimate how blurred the image is.

    Returns:
        BlurInfo whose variance is the Laplacian variance / 1000 clamped to 1
        and rounded; the level is derived from the unrounded value.
    """
    normalised = min(1.0, laplacian_variance(img.luminance()) / VARIANCE_CEILING)
    return BlurInfo(level=blur_level(normalised), variance=round2(normalised))
