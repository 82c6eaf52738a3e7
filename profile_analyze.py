#!/usr/bin/env python3
"""Profile the analysis pipeline to identify performance bottlenecks."""

import cProfile
import io
import pstats
import sys
import time
from pathlib import Path

from analyze import FIDELITY_CLUSTERS, AnalyzeOptions, analyze_pixels
from blur_analysis import analyze_blur
from edge_sharpness import annotate_edge_sharpness, compute_edge_sharpness
from extract_colors import assign_pixels_to_clusters, extract_colors
from image_source import load_image
from noise_analysis import analyze_noise
from region_mapper import detect_mood, detect_vignette
from shape_analysis import analyze_shapes
from strategy import classify_strategy


def profile_image(image_path: str, verbose: bool = True, fidelity: str = 'vibe',
                  analysis_size: int = 100) -> dict:
    """Time each stage of the pipeline on a single image."""

    if verbose:
        print(f"\n{'='*60}")
        print(f"Profiling: {Path(image_path).name}")
        print(f"{'='*60}")

    timings = {}

    def timed(stage, fn, *args, **kwargs):
        start = time.perf_counter()
        result = fn(*args, **kwargs)
        timings[stage] = time.perf_counter() - start
        return result

    img = timed('load_image', load_image, image_path, target_size=analysis_size)
    draft = timed('extract_colors', extract_colors, img, k=FIDELITY_CLUSTERS[fidelity])
    timed('analyze_blur', analyze_blur, img)
    timed('analyze_noise', analyze_noise, img)
    timed('detect_vignette', detect_vignette, img)
    timed('detect_mood', detect_mood, img)
    assignments = timed('assign_pixels', assign_pixels_to_clusters, img, draft)
    sharpness = timed('edge_sharpness', compute_edge_sharpness, img, draft, assignments)
    colors = annotate_edge_sharpness(draft, sharpness)
    shapes = timed('analyze_shapes', analyze_shapes, img, colors, assignments)
    strategy = timed('classify_strategy', classify_strategy, colors,
                     shapes if shapes.contours else None)

    total = sum(timings.values())
    timings['total'] = total

    if verbose:
        print(f"  Buffer: {img.width}x{img.height} (original {img.original_width}x{img.original_height})")
        print(f"  Regions: {len(colors)} | Contours: {len(shapes.contours)} | Strategy: {strategy}")
        print(f"\nStage timings:")
        for stage, t in timings.items():
            pct = (t / total * 100) if stage != 'total' and total > 0 else 100
            print(f"  {stage:20s}: {t:6.3f}s ({pct:5.1f}%)")

    return timings


def detailed_profile(image_path: str, analysis_size: int = 100) -> str:
    """Run cProfile over analyze_pixels (decode excluded) and return the report."""

    img = load_image(image_path, target_size=analysis_size)

    profiler = cProfile.Profile()
    profiler.enable()
    analyze_pixels(img, options=AnalyzeOptions(analysis_size=analysis_size))
    profiler.disable()

    stream = io.StringIO()
    stats = pstats.Stats(profiler, stream=stream)
    stats.sort_stats('cumulative')
    stats.print_stats(30)  # Top 30 functions

    return stream.getvalue()


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Time the gradient analysis stages.')
    parser.add_argument('images', nargs='*', help='Images to profile (default: source_images/*.jpeg)')
    parser.add_argument('--size', type=int, default=100, help='Analysis resolution in pixels')
    parser.add_argument('--detailed', action='store_true', help='Print a cProfile report for the first image')
    args = parser.parse_args()

    images = [Path(p) for p in args.images]
    if not images:
        images = sorted((Path(__file__).parent / "source_images").glob("*.jpeg"))

    if not images:
        print("No images given and none found in source_images/")
        sys.exit(1)

    print(f"Found {len(images)} test images")

    all_timings = []
    for img in images:
        all_timings.append((img.name, profile_image(str(img), analysis_size=args.size)))

    print(f"\n{'='*60}")
    print("SUMMARY")
    print(f"{'='*60}")
    print(f"{'Image':<35} {'Colours':>8} {'Shapes':>8} {'Total':>8}")
    print("-" * 60)
    for name, timings in all_timings:
        print(f"{name:<35} {timings['extract_colors']:>7.3f}s {timings['analyze_shapes']:>7.3f}s "
              f"{timings['total']:>7.3f}s")

    if args.detailed:
        print(f"\n{'='*60}")
        print("Detailed profile of analyze_pixels()")
        print(f"{'='*60}")
        print(detailed_profile(str(images[0]), analysis_size=args.size))


if __name__ == "__main__":
    main()
