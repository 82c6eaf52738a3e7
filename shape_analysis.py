#!/usr/bin/env python3
"""
Organic shape analysis of colour regions.

Every non-background cluster is measured (PCA axes, convex hull, tip angle,
cross-section profile, edge straightness) and, when its geometry is
distinctive enough, classified into a contour type the renderer can draw:

    petal         concave region tapering to an acute tip
    wave          elongated band with an oscillating centreline
    wisp          very elongated, thin stroke
    ribbon        elongated band of moderate thickness
    angular-veil  large flat area bounded by few straight edges
    veil          large flat area with smooth curved edges

Anything else stays a blob and is left to the radial gradient layers.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from extract_colors import normalized_positions, round2, round_half_up
from gradient_spec import (
    AngularVeilContour, ColorRegion, PetalContour, Point, RibbonContour,
    ShapeInfo, VeilContour, WaveContour, WispContour,
)
from image_source import RawImage

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MIN_CLUSTER_PIXELS = 20  # Smaller clusters have no meaningful geometry
MIN_EIGENVALUE = 0.0001
MAX_HULL_POINTS = 800  # Hull input is subsampled above this
TIP_ANGLE = 70  # Hull angles at or below this (degrees) mark a tip
CROSS_SECTION_BINS = 20
MIN_MAJOR_SPAN = 0.01
SIGNIFICANT_TURN = 25  # Degrees
AXIS_EXTENT = 3  # Wisp/ribbon/wave endpoints lie 3 standard deviations out
PETAL_BASE_EXTENT = 2
MAX_VEIL_VERTICES = 6

FLOW_BINS = 36
MIN_FLOW_MAGNITUDE = 2.0

# Classification thresholds
PETAL_MAX_CONVEXITY = 0.7
PETAL_ELONGATION = (1.3, 5.0)
WAVE_ELONGATION = 2.5
WAVE_SINUOSITY = 0.12
WISP_ELONGATION = 3.5
THIN_THICKNESS = 0.06
VEIL_MIN_AREA = 0.06
VEIL_MAX_ELONGATION = 2.8
ANGULAR_STRAIGHTNESS = 0.5

# Contour type -> style group
STYLE_GROUPS = {
    'petal': 'organic',
    'wave': 'wavy',
    'wisp': 'wavy',
    'ribbon': 'wavy',
    'angular-veil': 'angular',
    'veil': 'mixed',
}


# =============================================================================
# Flow Direction
# =============================================================================

def compute_flow_direction(img: RawImage) -> int:
    """
    Dominant flow direction in degrees [0, 360).

    Gradient orientations of interior pixels are histogrammed into 36 bins
    weighted by magnitude, smoothed circularly, and the peak is rotated 90
    degrees: the flow runs perpendicular to the dominant gradient.
    """
    histogram = np.zeros(FLOW_BINS)
    if img.height >= 3 and img.width >= 3:
        lum = img.luminance()
        gx = (lum[1:-1, 2:] - lum[1:-1, :-2]).ravel()
        gy = (lum[2:, 1:-1] - lum[:-2, 1:-1]).ravel()
        mag = np.hypot(gx, gy)
        strong = mag >= MIN_FLOW_MAGNITUDE

        angle = np.degrees(np.arctan2(gy[strong], gx[strong]))
        angle = np.where(angle < 0, angle + 360, angle)
        bins = np.floor(angle / (360 / FLOW_BINS)).astype(int) % FLOW_BINS
        histogram = np.bincount(bins, weights=mag[strong], minlength=FLOW_BINS)

    smoothed = 0.25 * np.roll(histogram, 1) + 0.5 * histogram + 0.25 * np.roll(histogram, -1)
    peak = int(np.argmax(smoothed))
    grad_angle = (peak + 0.5) * (360 / FLOW_BINS)
    return round_half_up((grad_angle + 90) % 360)


# =============================================================================
# Geometry
# =============================================================================

@dataclass
class ClusterGeometry:
    """Measurements of one cluster in normalised image coordinates."""
    points: np.ndarray  # (n, 2) member positions, row-major order
    centroid: tuple  # (x, y)
    eigenvalue1: float  # Variance along the major axis
    eigenvalue2: float  # Variance along the minor axis, floored at 1e-4
    major_axis_angle: int  # Degrees, 0 = right, 90 = down
    major_axis: tuple  # Unit vector
    minor_axis: tuple  # Major axis rotated +90 degrees
    elongation: float
    area: float  # Fraction of the image covered
    hull: list  # Convex hull vertices, counter-clockwise (x, y) tuples
    convexity: float  # Area / hull area, low = concave or pointed
    min_hull_angle: int  # Smallest interior hull angle, degrees
    tip_point: Optional[tuple]  # Hull vertex of that angle when acute enough
    sinuosity: float  # Centreline oscillation relative to length
    avg_thickness: float  # Mean cross-section width
    edge_straightness: float  # 1 = few straight edges, 0 = many small turns


def _cross(o: tuple, a: tuple, b: tuple) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull(points: np.ndarray) -> list:
    """
    Andrew's monotone chain hull of an (n, 2) point array.

    Inputs above 800 points are subsampled to every ceil(n/800)-th point.
    Collinear points are dropped. Two or fewer points are returned sorted.
    """
    if len(points) > MAX_HULL_POINTS:
        step = math.ceil(len(points) / MAX_HULL_POINTS)
        points = points[::step]

    order = np.lexsort((points[:, 1], points[:, 0]))
    ordered = [(float(points[i, 0]), float(points[i, 1])) for i in order]
    if len(ordered) <= 2:
        return ordered

    lower = []
    for p in ordered:
        while len(lower) >= 2 and _cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper = []
    for p in reversed(ordered):
        while len(upper) >= 2 and _cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    # Each chain's last point starts the other chain
    return lower[:-1] + upper[:-1]


def polygon_area(vertices: list) -> float:
    """Shoelace area of a closed polygon."""
    n = len(vertices)
    total = 0.0
    for i in range(n):
        x1, y1 = vertices[i]
        x2, y2 = vertices[(i + 1) % n]
        total += x1 * y2 - x2 * y1
    return abs(total) / 2


def _angle_between(v1: tuple, v2: tuple) -> Optional[float]:
    """Angle between two vectors in degrees, None if either is degenerate."""
    len1 = math.hypot(*v1)
    len2 = math.hypot(*v2)
    if len1 < 1e-8 or len2 < 1e-8:
        return None
    cos_a = max(-1.0, min(1.0, (v1[0] * v2[0] + v1[1] * v2[1]) / (len1 * len2)))
    return math.degrees(math.acos(cos_a))


def find_min_hull_angle(hull: list) -> tuple[int, Optional[tuple]]:
    """
    Smallest interior angle of the hull.

    Returns:
        (angle rounded to whole degrees, tip vertex or None). The tip is only
        reported for angles of 70 degrees or less; hulls with fewer than 3
        vertices give (180, None).
    """
    if len(hull) < 3:
        return 180, None

    n = len(hull)
    min_angle = 180.0
    tip = None
    for i in range(n):
        prev, curr, nxt = hull[i - 1], hull[i], hull[(i + 1) % n]
        angle = _angle_between((prev[0] - curr[0], prev[1] - curr[1]),
                               (nxt[0] - curr[0], nxt[1] - curr[1]))
        if angle is not None and angle < min_angle:
            min_angle = angle
            tip = curr

    if min_angle > TIP_ANGLE:
        tip = None
    return round_half_up(min_angle), tip


def _turn_angles(hull: list, degenerate: Optional[float] = None) -> list:
    """Exterior turn angle at each hull vertex; `degenerate` where a side has no length."""
    n = len(hull)
    angles = []
    for i in range(n):
        prev, curr, nxt = hull[i - 1], hull[i], hull[(i + 1) % n]
        angle = _angle_between((curr[0] - prev[0], curr[1] - prev[1]),
                               (nxt[0] - curr[0], nxt[1] - curr[1]))
        angles.append(degenerate if angle is None else angle)
    return angles


def edge_straightness(hull: list) -> float:
    """
    Angularity of a hull: 1 for a few sharp corners, towards 0 for many turns.

    Vertices turning more than 25 degrees are significant. Degenerate hulls
    (under 3 vertices or no perimeter) score 0.
    """
    if len(hull) < 3:
        return 0.0
    perimeter = sum(math.dist(hull[i], hull[(i + 1) % len(hull)]) for i in range(len(hull)))
    if perimeter < 1e-6:
        return 0.0

    significant = sum(1 for a in _turn_angles(hull) if a is not None and a > SIGNIFICANT_TURN)
    if significant <= 2:
        return 0.9
    if significant <= 5:
        return max(0.0, 1 - (significant - 2) * 0.1)
    return max(0.0, 0.5 - (significant - 5) * 0.06)


def _cross_section_bins(points: np.ndarray, centroid: tuple, major_axis: tuple,
                        minor_axis: tuple) -> Optional[tuple]:
    """
    Bin member pixels into 20 slices along the major axis.

    Returns:
        (bin index per point, minor-axis projection per point, span), or None
        when the major-axis span is under 0.01
    """
    dx = points[:, 0] - centroid[0]
    dy = points[:, 1] - centroid[1]
    major = dx * major_axis[0] + dy * major_axis[1]
    minor = dx * minor_axis[0] + dy * minor_axis[1]

    span = float(major.max() - major.min())
    if span < MIN_MAJOR_SPAN:
        return None
    t = (major - major.min()) / span
    bins = np.minimum(CROSS_SECTION_BINS - 1, np.floor(t * CROSS_SECTION_BINS).astype(int))
    return bins, minor, span


def analyze_cross_sections(points: np.ndarray, centroid: tuple, major_axis: tuple,
                           minor_axis: tuple) -> tuple[float, float]:
    """
    Centreline sinuosity and mean width of the cluster.

    Slices with fewer than 2 pixels are ignored. Sinuosity is the standard
    deviation of the per-slice minor-axis centres relative to 30% of the
    length, clamped to 1.

    Returns:
        (sinuosity, avg_thickness)
    """
    binned = _cross_section_bins(points, centroid, major_axis, minor_axis)
    if binned is None:
        return 0.0, 0.0
    bins, minor, span = binned

    centres = []
    widths = []
    for b in range(CROSS_SECTION_BINS):
        members = minor[bins == b]
        if len(members) < 2:
            continue
        centres.append(float(members.mean()))
        widths.append(float(members.max() - members.min()))

    if len(centres) < 3:
        return 0.0, (round2(float(np.mean(widths))) if widths else 0.0)

    sinuosity = min(1.0, float(np.std(centres)) / (span * 0.3))
    return round2(sinuosity), round2(float(np.mean(widths)))


def analyze_geometry(points: np.ndarray, width: int, height: int) -> ClusterGeometry:
    """
    Measure a cluster from its member positions.

    Args:
        points: (n, 2) normalised (x, y) positions, n >= 1
        width: Image width in pixels
        height: Image height in pixels
    """
    cx, cy = points.mean(axis=0)
    dx = points[:, 0] - cx
    dy = points[:, 1] - cy
    cxx = float((dx * dx).mean())
    cyy = float((dy * dy).mean())
    cxy = float((dx * dy).mean())

    # Closed-form eigen decomposition of the 2x2 covariance
    trace = cxx + cyy
    det = cxx * cyy - cxy * cxy
    disc = math.sqrt(max(0.0, trace * trace / 4 - det))
    eigenvalue1 = trace / 2 + disc
    eigenvalue2 = max(MIN_EIGENVALUE, trace / 2 - disc)
    elongation = math.sqrt(eigenvalue1 / eigenvalue2)

    if abs(cxy) > 1e-8:
        evx, evy = eigenvalue1 - cyy, cxy
    elif cxx >= cyy:
        evx, evy = 1.0, 0.0
    else:
        evx, evy = 0.0, 1.0
    length = math.hypot(evx, evy) or 1.0
    evx /= length
    evy /= length
    major_axis_angle = round_half_up((math.degrees(math.atan2(evy, evx)) + 360) % 360) % 360

    centroid = (float(cx), float(cy))
    major_axis = (evx, evy)
    minor_axis = (-evy, evx)

    area = len(points) / (width * height)
    hull = convex_hull(points)
    hull_area = polygon_area(hull)
    convexity = area / hull_area if hull_area > 0 else 1.0

    min_angle, tip = find_min_hull_angle(hull)
    sinuosity, thickness = analyze_cross_sections(points, centroid, major_axis, minor_axis)

    return ClusterGeometry(
        points=points,
        centroid=centroid,
        eigenvalue1=eigenvalue1,
        eigenvalue2=eigenvalue2,
        major_axis_angle=major_axis_angle,
        major_axis=major_axis,
        minor_axis=minor_axis,
        elongation=elongation,
        area=area,
        hull=hull,
        convexity=convexity,
        min_hull_angle=min_angle,
        tip_point=tip,
        sinuosity=sinuosity,
        avg_thickness=thickness,
        edge_straightness=edge_straightness(hull),
    )


def cluster_points(assignments: np.ndarray, index: int) -> np.ndarray:
    """Normalised (x, y) positions of a cluster's pixels in row-major order."""
    height, width = assignments.shape
    xs, ys = normalized_positions(width, height)
    members = assignments.ravel() == index
    return np.column_stack([xs[members], ys[members]])


# =============================================================================
# Classification
# =============================================================================

def classify_shape(g: ClusterGeometry) -> Optional[str]:
    """Contour type for a cluster's geometry, or None for a plain blob. First match wins."""
    if (g.convexity < PETAL_MAX_CONVEXITY
            and g.min_hull_angle < TIP_ANGLE
            and g.tip_point is not None
            and PETAL_ELONGATION[0] < g.elongation < PETAL_ELONGATION[1]):
        return 'petal'
    if g.elongation > WAVE_ELONGATION and g.sinuosity > WAVE_SINUOSITY:
        return 'wave'
    if g.elongation > WISP_ELONGATION and g.avg_thickness < THIN_THICKNESS:
        return 'wisp'
    if g.elongation > WAVE_ELONGATION and g.avg_thickness >= THIN_THICKNESS and g.sinuosity < WAVE_SINUOSITY:
        return 'ribbon'
    if g.area > VEIL_MIN_AREA and g.elongation < VEIL_MAX_ELONGATION:
        return 'angular-veil' if g.edge_straightness >= ANGULAR_STRAIGHTNESS else 'veil'
    return None


# =============================================================================
# Contour Construction
# =============================================================================

def _point(xy: tuple) -> Point:
    return Point(round2(xy[0]), round2(xy[1]))


def project_to_edge(centroid: tuple, axis: tuple, eigenvalue: float, sign: int) -> Point:
    """Point 3 standard deviations along `axis`, clamped to the image."""
    extent = math.sqrt(eigenvalue) * AXIS_EXTENT * sign
    return Point(
        round2(max(0.0, min(1.0, centroid[0] + axis[0] * extent))),
        round2(max(0.0, min(1.0, centroid[1] + axis[1] * extent))),
    )


def estimate_wave_frequency(g: ClusterGeometry) -> int:
    """Approximate number of full oscillations: half the centreline's mean crossings."""
    binned = _cross_section_bins(g.points, g.centroid, g.major_axis, g.minor_axis)
    if binned is None:
        return 1
    bins, minor, _ = binned

    centres = []
    for b in range(CROSS_SECTION_BINS):
        members = minor[bins == b]
        if len(members) >= 2:
            centres.append(float(members.mean()))
    if not centres:
        return 1

    mean_centre = float(np.mean(centres))
    crossings = 0
    prev_sign = 0
    for c in centres:
        sign = 1 if c - mean_centre > 0 else -1
        if prev_sign != 0 and sign != prev_sign:
            crossings += 1
        prev_sign = sign
    return max(1, round_half_up(crossings / 2))


def simplify_hull(hull: list, max_vertices: int = MAX_VEIL_VERTICES) -> tuple:
    """Keep the hull vertices with the largest turn angles, in hull order."""
    if len(hull) > max_vertices:
        angles = _turn_angles(hull, degenerate=0.0)
        ranked = sorted(range(len(hull)), key=lambda i: -angles[i])
        kept = set(ranked[:max_vertices])
        hull = [p for i, p in enumerate(hull) if i in kept]
    return tuple(_point(p) for p in hull)


def build_contour(shape_type: str, g: ClusterGeometry, region: ColorRegion):
    """Build the contour of `shape_type` for a classified cluster."""
    common = dict(
        position=_point(g.centroid),
        direction=float(g.major_axis_angle),
        curvature=round2(1 - g.edge_straightness),
        thickness=round2(g.avg_thickness),
        blur=round2(1 - region.edge_sharpness),
        color=region.hex,
        opacity=round2(min(0.9, 0.3 + region.weight)),
    )

    if shape_type in ('wave', 'wisp', 'ribbon'):
        start = project_to_edge(g.centroid, g.major_axis, g.eigenvalue1, -1)
        end = project_to_edge(g.centroid, g.major_axis, g.eigenvalue1, 1)
        if shape_type == 'wave':
            return WaveContour(**common, start_point=start, end_point=end,
                               amplitude=round2(g.sinuosity),
                               frequency=estimate_wave_frequency(g))
        if shape_type == 'wisp':
            return WispContour(**common, start_point=start, end_point=end)
        return RibbonContour(**common, start_point=start, end_point=end)

    if shape_type == 'petal':
        if g.tip_point is not None:
            tip_dir = (g.tip_point[0] - g.centroid[0], g.tip_point[1] - g.centroid[1])
        else:
            tip_dir = g.major_axis
        tip_len = math.hypot(*tip_dir) or 1.0
        reach = math.sqrt(g.eigenvalue1) * PETAL_BASE_EXTENT
        start = Point(
            round2(g.centroid[0] - tip_dir[0] / tip_len * reach),
            round2(g.centroid[1] - tip_dir[1] / tip_len * reach),
        )
        tip = _point(g.tip_point) if g.tip_point is not None else None
        return PetalContour(
            **common,
            start_point=start,
            end_point=tip if tip is not None else _point(g.centroid),
            body_width=round2(g.avg_thickness / max(0.01, math.sqrt(g.eigenvalue1) * 4)),
            tip_point=tip,
        )

    if shape_type == 'angular-veil':
        return AngularVeilContour(**common, vertices=simplify_hull(g.hull))
    if shape_type == 'veil':
        return VeilContour(**common)
    raise ValueError(f"Unknown contour type: {shape_type!r}")


# =============================================================================
# Style & Complexity
# =============================================================================

def compute_style(contours) -> str:
    """Dominant style group; 'mixed' when no group holds a majority."""
    if not contours:
        return 'blobby'

    counts = {}
    for c in contours:
        group = STYLE_GROUPS[c.type]
        counts[group] = counts.get(group, 0) + 1

    best_group, best_count = 'mixed', 0
    for group, count in counts.items():
        if count > best_count:
            best_group, best_count = group, count

    if best_count <= len(contours) / 2 and len(counts) > 1:
        return 'mixed'
    return best_group


def compute_complexity(contours, num_colors: int) -> float:
    """Blend of contour count, type diversity, blur range and petal presence, 0-1."""
    if not contours:
        return 0.0
    contour_ratio = min(1.0, len(contours) / max(1, num_colors))
    type_diversity = min(1.0, len({c.type for c in contours}) / 3)
    blurs = [c.blur for c in contours]
    blur_range = max(blurs) - min(blurs)
    petal_bonus = 0.2 if any(c.type == 'petal' for c in contours) else 0.0

    complexity = contour_ratio * 0.3 + type_diversity * 0.25 + blur_range * 0.25 + petal_bonus
    return round2(min(1.0, complexity))


# =============================================================================
# Shapes
# =============================================================================

def background_index(colors: list[ColorRegion]) -> int:
    """Index of the first region with the largest weight."""
    best = 0
    for i, region in enumerate(colors):
        if region.weight > colors[best].weight:
            best = i
    return best


def analyze_shapes(img: RawImage, colors: list[ColorRegion], assignments: np.ndarray) -> ShapeInfo:
    """
    Classify every non-background region into a contour where possible.

    Args:
        img: Analysed image
        colors: Regions with edge_sharpness already filled in
        assignments: (height, width) cluster index per pixel, indexing `colors`

    Returns:
        ShapeInfo with contours in region order (empty when nothing qualifies)
    """
    flow_direction = compute_flow_direction(img)
    contours = []

    if colors:
        bg = background_index(colors)
        for i, region in enumerate(colors):
            if i == bg:
                continue
            points = cluster_points(assignments, i)
            if len(points) < MIN_CLUSTER_PIXELS:
                logger.debug("Skipping %s: %d pixels", region.hex, len(points))
                continue

            geometry = analyze_geometry(points, img.width, img.height)
            shape_type = classify_shape(geometry)
            logger.debug(
                "%s: elongation=%.2f convexity=%.2f sinuosity=%.2f thickness=%.2f -> %s",
                region.hex, geometry.elongation, geometry.convexity,
                geometry.sinuosity, geometry.avg_thickness, shape_type or 'blob',
            )
            if shape_type is None:
                continue
            contours.append(build_contour(shape_type, geometry, region))

    return ShapeInfo(
        complexity=compute_complexity(contours, len(colors)),
        flow_direction=float(flow_direction),
        style=compute_style(contours),
        contours=tuple(contours),
    )
