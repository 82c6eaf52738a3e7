#!/usr/bin/env python3
"""
Render a GradientSpec as layered CSS.

Layer stack, bottom to top:
    container background   base gradient (plus vignette, sharp accents and
                           SVG contours depending on strategy)
    ::before               blurred radial colour blobs
    ::after                feTurbulence noise overlay
    children               lifted above both pseudo-elements
"""

import math
from typing import Optional
from urllib.parse import quote

from extract_colors import luminance, round2, round_half_up
from gradient_spec import (
    FIDELITY_LEVELS, AngularVeilContour, BlurInfo, ColorRegion, GradientSpec, NoiseInfo,
    ShapeInfo, VeilContour, VignetteInfo,
)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_SELECTOR = '.gradient-container'

BLUR_LEVEL_RADIUS = {'heavy': 60, 'medium': 35, 'light': 15, 'none': 0}
MIN_BLUR_RADIUS = {'exact': 30, 'vibe': 40, 'inspired': 20}
EXACT_MAX_BLUR = 80  # Exact fidelity maps variance 0 -> 80px
NOISE_OCTAVES = {'exact': 5, 'vibe': 4, 'inspired': 3}
MAX_NOISE_OPACITY = 0.25

SHARP_EDGE = 0.5  # Regions at or above this edge sharpness form the sharp tier
MIN_BASE_WEIGHT = 0.15  # A hybrid base region must cover more than this
VIGNETTE_OPACITY = 0.6

# Characters encodeURIComponent leaves untouched
URI_SAFE = "-_.!~*'()"


# =============================================================================
# Helpers
# =============================================================================

def declarations(props: dict, indent: str = '  ') -> str:
    """Format a property dict as indented CSS declarations."""
    return "\n".join(f"{indent}{name}: {value};" for name, value in props.items())


def _num(value: float) -> str:
    """Format a number without a trailing .0, matching hand-written CSS."""
    value = round2(value)
    return str(int(value)) if value == int(value) else str(value)


def rgba(rgb, alpha: float) -> str:
    r, g, b = rgb
    return f"rgba({r},{g},{b},{_num(alpha)})"


def darkest_first(colors: list[ColorRegion]) -> list[ColorRegion]:
    return sorted(colors, key=lambda c: luminance(c.rgb))


def linear_between(first: ColorRegion, second: ColorRegion) -> str:
    """Linear gradient from `first` to `second`, angled along the line joining their centroids."""
    dx = second.position.x - first.position.x
    dy = second.position.y - first.position.y
    angle = round_half_up(math.degrees(math.atan2(dy, dx)) + 90)
    return f"linear-gradient({angle}deg, {first.hex} 0%, {second.hex} 100%)"


# =============================================================================
# Base Layer
# =============================================================================

def base_gradient(colors: list[ColorRegion]) -> str:
    """Base gradient between the two darkest regions; a solid colour when there is only one."""
    ordered = darkest_first(colors)
    if len(ordered) == 1:
        return ordered[0].hex
    return linear_between(ordered[0], ordered[1])


def pick_base_region(colors: list[ColorRegion]) -> Optional[ColorRegion]:
    """Darkest large region (weight x darkness), if it covers enough of the image."""
    if not colors:
        return None
    best = max(colors, key=lambda c: c.weight * (1 - luminance(c.rgb)))
    return best if best.weight > MIN_BASE_WEIGHT else None


def vignette_layer(vignette: VignetteInfo) -> Optional[str]:
    if not vignette.detected or vignette.strength <= 0.1:
        return None
    opacity = round2(vignette.strength * VIGNETTE_OPACITY)
    return f"radial-gradient(ellipse at center, transparent 40%, rgba(0,0,0,{_num(opacity)}) 100%)"


def split_base(spec: GradientSpec) -> tuple[str, list[ColorRegion]]:
    """
    Container base value and the regions left over as accents.

    Hybrid and organic layouts lift the darkest large region into the base
    and blend it towards the darkest remaining accent; everything else uses
    the two-darkest base with every region as an accent.
    """
    colors = list(spec.colors)
    if spec.strategy in ('hybrid', 'organic'):
        base = pick_base_region(colors)
        if base is not None:
            accents = [c for c in colors if c is not base]
            if not accents:
                return base.hex, accents
            return linear_between(base, darkest_first(accents)[0]), accents
    return base_gradient(colors), colors


# =============================================================================
# Blur Layer
# =============================================================================

def blur_radius_px(blur: BlurInfo, fidelity: str) -> int:
    """
    Blur radius for the colour blobs.

    Blobs are always blurred a little so they blend, even when the
    reference itself is sharp.
    """
    if fidelity == 'exact':
        base = round_half_up((1 - blur.variance) * EXACT_MAX_BLUR)
    else:
        base = BLUR_LEVEL_RADIUS[blur.level]
    return max(base, MIN_BLUR_RADIUS[fidelity])


def blur_overflow_pct(radius_px: int) -> str:
    """How far ::before extends past the container so blurred edges stay hidden."""
    return f"{max(10, round_half_up(radius_px * 0.5))}%"


def blob_limit(count: int, fidelity: str) -> int:
    if fidelity == 'exact':
        return count
    if fidelity == 'vibe':
        return min(count, 4)
    return min(count, 2)


def color_blob(region: ColorRegion, sharp: bool = False) -> str:
    """
    Radial gradient for one region, centred on its centroid.

    Three stops: full opacity, 35% opacity at 55% of the radius, then the
    same colour at zero alpha. Sharp regions keep their full opacity out to
    the knee so the edge reads without a blur filter.
    """
    x = round_half_up(region.position.x * 100)
    y = round_half_up(region.position.y * 100)
    opacity = round2(min(0.9, 0.4 + region.weight))
    radius = round_half_up(30 + region.spread * 40)
    mid_radius = round_half_up(radius * 0.55)
    mid_opacity = round2(opacity * (0.8 if sharp else 0.35))
    return (
        f"radial-gradient(circle at {x}% {y}%, "
        f"{rgba(region.rgb, opacity)} 0%, "
        f"{rgba(region.rgb, mid_opacity)} {mid_radius}%, "
        f"{rgba(region.rgb, 0)} {radius}%)"
    )


def blur_layer(regions: list[ColorRegion], blur: BlurInfo, fidelity: str) -> dict:
    """CSS properties for the blurred ::before blob layer."""
    radius = blur_radius_px(blur, fidelity)
    props = {
        'content': "''",
        'position': 'absolute',
        'inset': f"-{blur_overflow_pct(radius)}",
        'background': ",\n    ".join(color_blob(r) for r in regions) or 'none',
        'filter': f"blur({radius}px)" if radius > 0 else 'none',
        'pointer-events': 'none',
    }
    return props


def split_tiers(regions: list[ColorRegion]) -> tuple[list[ColorRegion], list[ColorRegion]]:
    """(sharp, diffuse) split on edge sharpness."""
    sharp = [r for r in regions if r.edge_sharpness >= SHARP_EDGE]
    diffuse = [r for r in regions if r.edge_sharpness < SHARP_EDGE]
    return sharp, diffuse


# =============================================================================
# Noise Layer
# =============================================================================

def noise_svg_data_uri(noise: NoiseInfo, fidelity: str) -> str:
    """Inline feTurbulence SVG as a CSS url() value."""
    svg = (
        "<svg viewBox='0 0 256 256' xmlns='http://www.w3.org/2000/svg'>"
        "<filter id='n'><feTurbulence type='fractalNoise' "
        f"baseFrequency='{_num(noise.base_frequency)}' numOctaves='{NOISE_OCTAVES[fidelity]}' "
        "stitchTiles='stitch'/></filter>"
        "<rect width='100%' height='100%' filter='url(#n)'/></svg>"
    )
    return f'url("data:image/svg+xml,{quote(svg, safe=URI_SAFE)}")'


def noise_layer(noise: NoiseInfo, fidelity: str) -> dict:
    """CSS properties for the ::after noise overlay."""
    return {
        'content': "''",
        'position': 'absolute',
        'inset': '0',
        'background': noise_svg_data_uri(noise, fidelity),
        'opacity': _num(round2(noise.intensity * MAX_NOISE_OPACITY)),
        'mix-blend-mode': 'overlay',
        'pointer-events': 'none',
    }


# =============================================================================
# Shape Layer
# =============================================================================

def contour_blur(contour) -> float:
    """SVG blur (stdDeviation in viewBox units) for a contour's edge softness."""
    return round2(1 + contour.blur * 6)


def contour_svg(contour, filter_id: str) -> str:
    """One SVG element for a contour, in a 0-100 viewBox."""
    cx = contour.position.x * 100
    cy = contour.position.y * 100
    fill = f"fill='{contour.color}' fill-opacity='{_num(contour.opacity)}' filter='url(#{filter_id})'"

    if isinstance(contour, AngularVeilContour) and len(contour.vertices) >= 3:
        points = " ".join(f"{_num(v.x * 100)},{_num(v.y * 100)}" for v in contour.vertices)
        return f"<polygon points='{points}' {fill}/>"

    if hasattr(contour, 'start_point'):
        start, end = contour.start_point, contour.end_point
        half_length = math.dist((start.x, start.y), (end.x, end.y)) * 50
    else:
        half_length = contour.thickness * 60
    rx = max(10.0 if isinstance(contour, (AngularVeilContour, VeilContour)) else 2.0, half_length)
    ry = max(1.0, contour.thickness * 50)
    return (
        f"<ellipse cx='{_num(cx)}' cy='{_num(cy)}' rx='{_num(rx)}' ry='{_num(ry)}' "
        f"transform='rotate({_num(contour.direction)} {_num(cx)} {_num(cy)})' {fill}/>"
    )


def shape_layer(shapes: Optional[ShapeInfo]) -> Optional[str]:
    """Inline SVG of every contour as a CSS background value, one blur filter per distinct softness."""
    if shapes is None or not shapes.contours:
        return None

    filter_ids = {b: f"b{i}" for i, b in enumerate(sorted({contour_blur(c) for c in shapes.contours}))}
    filters = "".join(
        f"<filter id='{fid}' x='-50%' y='-50%' width='200%' height='200%'>"
        f"<feGaussianBlur stdDeviation='{_num(b)}'/></filter>"
        for b, fid in filter_ids.items()
    )
    body = "".join(contour_svg(c, filter_ids[contour_blur(c)]) for c in shapes.contours)
    svg = (
        "<svg viewBox='0 0 100 100' preserveAspectRatio='none' xmlns='http://www.w3.org/2000/svg'>"
        f"<defs>{filters}</defs>{body}</svg>"
    )
    return f'url("data:image/svg+xml,{quote(svg, safe=URI_SAFE)}") center / 100% 100% no-repeat'


# =============================================================================
# Compose
# =============================================================================

def generate_css(spec: GradientSpec, selector: str = DEFAULT_SELECTOR, fidelity: str = 'vibe',
                 border_radius: Optional[str] = None) -> str:
    """
    Compose the full stylesheet fragment for a gradient container.

    Args:
        spec: Analysis result
        selector: CSS selector; a bare name gets a leading '.'
        fidelity: 'exact', 'vibe' or 'inspired'
        border_radius: Optional radius applied to the container and its layers

    Raises:
        ValueError: If fidelity is unknown or the spec has no colours
    """
    if fidelity not in FIDELITY_LEVELS:
        raise ValueError(f"Unknown fidelity: {fidelity!r}")
    if not spec.colors:
        raise ValueError("Cannot render a spec without colours")

    sel = selector if selector.startswith(('.', '#')) else f".{selector}"
    radius = border_radius if border_radius not in (None, '', '0') else None

    base, accents = split_base(spec)

    # Sharp accents sit unblurred on the container; the rest go to ::before
    background = []
    if spec.strategy == 'simple':
        blobs = accents[:blob_limit(len(accents), fidelity)]
    else:
        sharp, diffuse = split_tiers(accents[:blob_limit(len(accents), fidelity)])
        blobs = diffuse
        background.extend(color_blob(r, sharp=True) for r in sharp)

    if spec.strategy == 'organic':
        shapes = shape_layer(spec.shapes)
        if shapes:
            background.insert(0, shapes)

    vignette = vignette_layer(spec.vignette)
    if vignette:
        background.insert(0, vignette)
    background.append(base)

    lines = []

    lines.append(f"{sel} {{")
    lines.append("  position: relative;")
    lines.append("  overflow: hidden;")
    if radius:
        lines.append(f"  border-radius: {radius};")
    layers = ",\n    ".join(background)
    lines.append(f"  background: {layers};")
    lines.append("}")
    lines.append("")

    lines.append(f"{sel}::before {{")
    lines.append(declarations(blur_layer(blobs, spec.blur, fidelity)))
    if radius:
        lines.append(f"  border-radius: {radius};")
    lines.append("  z-index: 1;")
    lines.append("}")
    lines.append("")

    lines.append(f"{sel}::after {{")
    lines.append(declarations(noise_layer(spec.noise, fidelity)))
    if radius:
        lines.append(f"  border-radius: {radius};")
    lines.append("  z-index: 2;")
    lines.append("}")
    lines.append("")

    lines.append(f"{sel} > * {{")
    lines.append("  position: relative;")
    lines.append("  z-index: 3;")
    lines.append("}")

    return "\n".join(lines)
