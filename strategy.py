#!/usr/bin/env python3
"""
Pick the CSS rendering strategy that best reproduces an analysed image.

    simple   linear base + blurred radial blobs
    mesh     many positioned radials with per-group blur
    hybrid   dominant base layer + mesh accents for depth
    organic  SVG shapes with per-shape blur, for geometry CSS cannot draw
"""

from typing import Optional

import numpy as np
from sklearn.decomposition import PCA

from gradient_spec import DISTINCTIVE_TYPES, ColorRegion, ShapeInfo


# =============================================================================
# Constants
# =============================================================================

# Organic gate
DEFINED_EDGE_SHARPNESS = 0.25
COMPLEX_SHAPES = 0.6
COMPLEX_EDGE_SHARPNESS = 0.12
SOFT_EDGE_SHARPNESS = 0.10

# Layout decision
SIMPLE_MAX_REGIONS = 3
SIMPLE_LINEARITY = 0.75
SIMPLE_SHARPNESS_RANGE = 0.3
MESH_MIN_REGIONS = 5
MESH_LINEARITY = 0.65
DOMINANT_WEIGHT = 0.5
HYBRID_SHARPNESS_RANGE = 0.4
FALLBACK_MESH_REGIONS = 4
FALLBACK_MESH_LINEARITY = 0.7


# =============================================================================
# Features
# =============================================================================

def centroid_linearity(colors: list[ColorRegion]) -> float:
    """
    Share of the centroids' spatial variance along their principal axis.

    1 means the regions line up, 0.5 means a round scatter. Positions with no
    variance at all count as 0.5.
    """
    positions = np.array([[c.position.x, c.position.y] for c in colors], dtype=np.float64)
    if len(positions) < 2 or float(positions.var(axis=0).sum()) <= 0:
        return 0.5
    pca = PCA(n_components=2).fit(positions)
    return float(pca.explained_variance_ratio_[0])


def is_organic(colors: list[ColorRegion], shapes: Optional[ShapeInfo]) -> bool:
    """True when the detected contours are strong evidence of organic shapes."""
    if shapes is None or shapes.style == 'blobby' or len(shapes.contours) < 2:
        return False

    max_sharpness = max((c.edge_sharpness for c in colors), default=0.0)
    distinctive = [c for c in shapes.contours if c.type in DISTINCTIVE_TYPES]
    contour_types = {c.type for c in shapes.contours}
    wave_count = sum(1 for c in distinctive if c.type == 'wave')
    petal_count = sum(1 for c in distinctive if c.type == 'petal')

    has_defined_edges = max_sharpness > DEFINED_EDGE_SHARPNESS
    is_complex = shapes.complexity > COMPLEX_SHAPES and max_sharpness > COMPLEX_EDGE_SHARPNESS
    has_distinctive_shapes = (wave_count >= 2 or petal_count >= 2) and max_sharpness > SOFT_EDGE_SHARPNESS
    has_spatial_richness = (
        len(colors) >= 5
        and len(distinctive) >= 1
        and len(shapes.contours) >= 3
        and max_sharpness > SOFT_EDGE_SHARPNESS
    )
    has_abundant_distinctive = len(distinctive) >= 3
    has_type_diversity = len(contour_types) >= 3 and max_sharpness > SOFT_EDGE_SHARPNESS

    return (has_defined_edges or is_complex or has_distinctive_shapes
            or has_spatial_richness or has_abundant_distinctive or has_type_diversity)


# =============================================================================
# Classification
# =============================================================================

def classify_strategy(colors: list[ColorRegion], shapes: Optional[ShapeInfo] = None) -> str:
    """
    Recommend a rendering strategy.

    Args:
        colors: Regions with edge sharpness filled in
        shapes: Shape analysis, if any contours were found

    Returns:
        One of 'simple', 'mesh', 'hybrid', 'organic'
    """
    if not colors:
        return 'simple'
    if is_organic(colors, shapes):
        return 'organic'
    if len(colors) <= 2:
        return 'simple'

    region_count = len(colors)
    linearity = centroid_linearity(colors)
    sharpness = [c.edge_sharpness for c in colors]
    sharpness_range = max(sharpness) - min(sharpness)
    has_dominant_base = max(c.weight for c in colors) > DOMINANT_WEIGHT

    if (region_count <= SIMPLE_MAX_REGIONS and linearity > SIMPLE_LINEARITY
            and sharpness_range < SIMPLE_SHARPNESS_RANGE):
        return 'simple'
    if region_count >= MESH_MIN_REGIONS and linearity < MESH_LINEARITY and not has_dominant_base:
        return 'mesh'
    if has_dominant_base or sharpness_range > HYBRID_SHARPNESS_RANGE:
        return 'hybrid'
    if region_count >= FALLBACK_MESH_REGIONS and linearity < FALLBACK_MESH_LINEARITY:
        return 'mesh'
    return 'hybrid'
