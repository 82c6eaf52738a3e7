#!/usr/bin/env python3
"""
Unified gradient analysis pipeline.

Turns a reference image into a GradientSpec that the CSS generator can
render. Four stages: Decode → Feature Extraction → Classification → Render
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from blur_analysis import analyze_blur
from edge_sharpness import annotate_edge_sharpness, compute_edge_sharpness
from extract_colors import DEFAULT_MAX_ITER, assign_pixels_to_clusters, extract_colors
from gradient_spec import FIDELITY_LEVELS, Dimensions, GradientSpec
from image_source import DEFAULT_ANALYSIS_SIZE, RawImage, load_image
from noise_analysis import analyze_noise
from region_mapper import detect_mood, detect_vignette
from shape_analysis import analyze_shapes
from strategy import classify_strategy

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Fidelity -> default number of colour clusters
FIDELITY_CLUSTERS = {
    'exact': 8,
    'vibe': 5,
    'inspired': 3,
}
DEFAULT_FIDELITY = 'vibe'


# =============================================================================
# Options
# =============================================================================

@dataclass
class AnalyzeOptions:
    """Per-run knobs for the analysis pipeline."""
    color_clusters: Optional[int] = None  # Overrides the fidelity default
    # Side of the square working buffer. Larger is slower but gives PCA and
    # hull measurements of small regions more pixels to work with.
    analysis_size: int = DEFAULT_ANALYSIS_SIZE
    max_iter: int = DEFAULT_MAX_ITER
    seed: Optional[int] = None  # k-means++ seed; None keeps runs random


def clusters_for(fidelity: str, options: AnalyzeOptions) -> int:
    """
    Number of colour clusters for a run.

    Raises:
        ValueError: If fidelity is unknown or the override is not positive
    """
    if fidelity not in FIDELITY_LEVELS:
        raise ValueError(
            f"Unknown fidelity {fidelity!r}; expected one of {', '.join(FIDELITY_LEVELS)}"
        )
    if options.color_clusters is None:
        return FIDELITY_CLUSTERS[fidelity]
    if options.color_clusters < 1:
        raise ValueError(f"Cluster count must be at least 1, got {options.color_clusters}")
    return options.color_clusters


# =============================================================================
# Main Pipeline
# =============================================================================

def analyze_pixels(img: RawImage, fidelity: str = DEFAULT_FIDELITY,
                   options: Optional[AnalyzeOptions] = None) -> GradientSpec:
    """
    Run every analysis stage on an already decoded image.

    Raises:
        ValueError: If fidelity or options are invalid
    """
    options = options or AnalyzeOptions()
    k = clusters_for(fidelity, options)
    started = time.perf_counter()

    # Stage 1: Colours
    draft = extract_colors(img, k=k, max_iter=options.max_iter, seed=options.seed)
    logger.debug("Extracted %d colour regions (k=%d)", len(draft), k)

    # Stage 2: Image-wide features (independent of each other)
    blur = analyze_blur(img)
    noise = analyze_noise(img)
    vignette = detect_vignette(img)
    mood = detect_mood(img)

    # Stage 3: Per-region features from one shared assignment map
    assignments = assign_pixels_to_clusters(img, draft)
    colors = annotate_edge_sharpness(draft, compute_edge_sharpness(img, draft, assignments))
    shapes = analyze_shapes(img, colors, assignments)
    if not shapes.contours:
        shapes = None
    logger.debug("Found %d contours", len(shapes.contours) if shapes else 0)

    # Stage 4: Classification
    strategy = classify_strategy(colors, shapes)

    logger.debug("Analysed %dx%d buffer in %.3fs -> %s",
                 img.width, img.height, time.perf_counter() - started, strategy)

    return GradientSpec(
        colors=tuple(colors),
        noise=noise,
        blur=blur,
        vignette=vignette,
        dimensions=Dimensions(width=img.original_width, height=img.original_height),
        mood=mood,
        strategy=strategy,
        shapes=shapes,
    )


def analyze_image(image_path: str, fidelity: str = DEFAULT_FIDELITY,
                  options: Optional[AnalyzeOptions] = None) -> GradientSpec:
    """
    Decode an image file and analyse it.

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If the file can't be decoded or the arguments are invalid
    """
    options = options or AnalyzeOptions()
    clusters_for(fidelity, options)
    img = load_image(image_path, target_size=options.analysis_size)
    logger.info("Loaded %s (%dx%d)", image_path, img.original_width, img.original_height)
    return analyze_pixels(img, fidelity, options)


# =============================================================================
# CLI
# =============================================================================

def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog='gradient-spec',
        description='Analyse reference images and generate layered CSS gradients with noise, blur and shapes.',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    def add_common(sub):
        sub.add_argument('image', help='Path to the image file')
        sub.add_argument('--fidelity', '-f', choices=FIDELITY_LEVELS, default=DEFAULT_FIDELITY,
                         help='How closely the output should follow the reference (default: vibe)')
        sub.add_argument('--output', '-o', default=None, help='Write to a file instead of stdout')
        sub.add_argument('--size', type=int, default=DEFAULT_ANALYSIS_SIZE,
                         help='Analysis resolution in pixels (default: 100)')
        sub.add_argument('--seed', type=int, default=None, help='Random seed for reproducible runs')
        sub.add_argument('--verbose', '-v', action='store_true', help='Log pipeline progress')

    analyze_cmd = subparsers.add_parser('analyze', help='Output the gradient specification as JSON')
    add_common(analyze_cmd)
    analyze_cmd.add_argument('--clusters', type=int, default=None, help='Override the number of colour clusters')

    generate_cmd = subparsers.add_parser('generate', help='Analyse an image and generate CSS in one step')
    add_common(generate_cmd)
    generate_cmd.add_argument('--selector', '-s', default='.gradient-container',
                              help='CSS selector for the container (default: .gradient-container)')
    generate_cmd.add_argument('--border-radius', '-r', default=None, help="Border radius, e.g. '16px'")

    return parser


def main(argv: Optional[list] = None) -> int:
    import sys
    from pathlib import Path

    from generate_css import generate_css
    from gradient_spec import spec_to_json

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"Error: File not found: {image_path.resolve()}", file=sys.stderr)
        return 1

    options = AnalyzeOptions(
        color_clusters=getattr(args, 'clusters', None),
        analysis_size=args.size,
        seed=args.seed,
    )

    try:
        spec = analyze_image(str(image_path), args.fidelity, options)
        if args.command == 'analyze':
            text = spec_to_json(spec)
            label = 'Gradient spec'
        else:
            text = generate_css(spec, selector=args.selector, fidelity=args.fidelity,
                                border_radius=args.border_radius)
            label = 'CSS'
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        try:
            Path(args.output).write_text(text + "\n", encoding='utf-8')
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        print(f"{label} written to {args.output}")
    else:
        print(text)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
