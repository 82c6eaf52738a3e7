#!/usr/bin/env python3
"""
Image-wide lighting: vignette detection and overall mood.
"""

import numpy as np

from extract_colors import rgb_to_hsl_array, round2
from gradient_spec import MoodInfo, VignetteInfo
from image_source import RawImage


# =============================================================================
# Constants
# =============================================================================

CENTER_RING = 0.35  # Normalised radius below which a pixel counts as centre
EDGE_RING = 0.65  # Normalised radius above which a pixel counts as edge
FULL_VIGNETTE_DIFF = 0.4  # Centre/edge luminance gap that maps to strength 1.0
VIGNETTE_THRESHOLD = 0.1

SATURATION_FLOOR = 0.1  # Pixels at or below this saturation carry no hue
MIN_SATURATED_SHARE = 0.05  # Needed before temperature leaves 'neutral'

# Mean luminance upper bounds, darkest first
BRIGHTNESS_LEVELS = (
    (0.2, 'dark'),
    (0.35, 'medium-dark'),
    (0.55, 'medium'),
    (0.75, 'medium-bright'),
)


# =============================================================================
# Vignette
# =============================================================================

def radial_distance(width: int, height: int) -> np.ndarray:
    """Distance of each pixel from (w/2, h/2), normalised by the centre-to-corner distance."""
    cx = width / 2
    cy = height / 2
    ys, xs = np.mgrid[0:height, 0:width]
    return np.hypot(xs - cx, ys - cy) / np.hypot(cx, cy)


def detect_vignette(img: RawImage) -> VignetteInfo:
    """
    Compare mean brightness of the centre ring with the edge ring.

    Only darkening towards the edges counts; a brighter edge gives strength 0.
    """
    lum = img.luminance() / 255
    dist = radial_distance(img.width, img.height)

    center = lum[dist < CENTER_RING]
    edge = lum[dist > EDGE_RING]
    avg_center = float(center.mean()) if center.size else 0.0
    avg_edge = float(edge.mean()) if edge.size else 0.0

    diff = max(0.0, avg_center - avg_edge)
    strength = min(1.0, diff / FULL_VIGNETTE_DIFF)
    return VignetteInfo(detected=strength > VIGNETTE_THRESHOLD, strength=round2(strength))


# =============================================================================
# Mood
# =============================================================================

def hue_temperature(hue: float) -> str:
    """Classify a hue in degrees as warm, cool or neutral."""
    if 0 <= hue <= 70 or hue >= 300:
        return 'warm'
    if 160 <= hue <= 280:
        return 'cool'
    return 'neutral'


def brightness_label(mean_luminance: float) -> str:
    for bound, label in BRIGHTNESS_LEVELS:
        if mean_luminance < bound:
            return label
    return 'bright'


def detect_mood(img: RawImage) -> MoodInfo:
    """
    Overall colour temperature and brightness.

    Temperature uses the plain (non-circular) mean hue of saturated pixels, so
    a mix of deep reds and magentas can average into the neutral band.
    """
    flat = img.pixels.reshape(-1, 3)
    hue, saturation, _ = rgb_to_hsl_array(flat)
    mean_lum = float(img.luminance().mean()) / 255

    saturated = saturation > SATURATION_FLOOR
    temperature = 'neutral'
    if np.count_nonzero(saturated) >= len(flat) * MIN_SATURATED_SHARE:
        temperature = hue_temperature(float(hue[saturated].mean()))

    return MoodInfo(temperature=temperature, brightness=brightness_label(mean_lum))
