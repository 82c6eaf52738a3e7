#!/usr/bin/env python3
"""Debug script to inspect per-cluster shape geometry and classification."""

import sys
from pathlib import Path

import numpy as np

from edge_sharpness import annotate_edge_sharpness, compute_edge_sharpness
from extract_colors import assign_pixels_to_clusters, extract_colors
from image_source import RawImage, load_image
from shape_analysis import (
    MIN_CLUSTER_PIXELS, analyze_geometry, background_index, classify_shape,
    cluster_points, compute_flow_direction,
)


def describe_clusters(img: RawImage, colors: list, assignments: np.ndarray) -> list[dict]:
    """
    Measure every cluster, background and small ones included.

    Returns:
        One dict per region with its geometry and the contour type it would
        get ('background', 'too-small' or 'blob' when it gets none)
    """
    bg = background_index(colors) if colors else -1
    rows = []

    for i, region in enumerate(colors):
        points = cluster_points(assignments, i)
        row = {
            'index': i,
            'hex': region.hex,
            'weight': region.weight,
            'edge_sharpness': region.edge_sharpness,
            'pixels': len(points),
        }
        if len(points) == 0:
            row['classification'] = 'empty'
            rows.append(row)
            continue

        g = analyze_geometry(points, img.width, img.height)
        row.update({
            'elongation': g.elongation,
            'convexity': g.convexity,
            'area': g.area,
            'sinuosity': g.sinuosity,
            'thickness': g.avg_thickness,
            'straightness': g.edge_straightness,
            'min_hull_angle': g.min_hull_angle,
            'tip': g.tip_point,
            'direction': g.major_axis_angle,
            'hull': g.hull,
            'centroid': g.centroid,
        })

        if i == bg:
            row['classification'] = 'background'
        elif len(points) < MIN_CLUSTER_PIXELS:
            row['classification'] = 'too-small'
        else:
            row['classification'] = classify_shape(g) or 'blob'
        rows.append(row)

    return rows


def print_report(rows: list[dict], flow_direction: int):
    print(f"Flow direction: {flow_direction}°")
    print(f"\n{'#':>2} {'Hex':<8} {'Weight':>6} {'Px':>6} {'Elong':>6} {'Conv':>5} "
          f"{'Sinu':>5} {'Thick':>5} {'Strt':>5} {'Angle':>5}  Type")
    print("-" * 78)
    for row in rows:
        if 'elongation' not in row:
            print(f"{row['index']:>2} {row['hex']:<8} {row['weight']:>6.2f} {row['pixels']:>6}  {row['classification']}")
            continue
        tip = " (tip)" if row['tip'] is not None else ""
        print(f"{row['index']:>2} {row['hex']:<8} {row['weight']:>6.2f} {row['pixels']:>6} "
              f"{row['elongation']:>6.2f} {row['convexity']:>5.2f} {row['sinuosity']:>5.2f} "
              f"{row['thickness']:>5.2f} {row['straightness']:>5.2f} {row['min_hull_angle']:>4}°{tip}  "
              f"{row['classification']}")


def visualize_clusters(img: RawImage, colors: list, assignments: np.ndarray,
                       rows: list[dict], output_path: str):
    """
    Save the image, its cluster map, and each cluster's hull and axis side by side.
    """
    import matplotlib.pyplot as plt

    palette = np.array([c.rgb for c in colors], dtype=np.uint8)
    cluster_map = palette[assignments]

    fig, axes = plt.subplots(1, 2, figsize=(12, 6))
    axes[0].imshow(img.pixels)
    axes[0].set_title('Analysis buffer')

    ax = axes[1]
    ax.imshow(cluster_map, extent=(0, 1, 1, 0))
    for row in rows:
        if 'hull' not in row or row['classification'] in ('background', 'too-small'):
            continue
        hull = np.array(row['hull'] + row['hull'][:1])
        if len(hull) > 1:
            ax.plot(hull[:, 0], hull[:, 1], color='white', lw=1)
        cx, cy = row['centroid']
        ax.scatter([cx], [cy], c='black', s=30, marker='x')
        ax.annotate(row['classification'], (cx, cy), color='white', fontsize=8,
                    xytext=(4, 4), textcoords='offset points')
        if row['tip'] is not None:
            ax.scatter([row['tip'][0]], [row['tip'][1]], c='red', s=20)
    ax.set_xlim(0, 1)
    ax.set_ylim(1, 0)
    ax.set_title('Clusters, hulls and contour types')

    plt.tight_layout()
    plt.savefig(output_path, dpi=150)
    plt.close()
    print(f"Saved cluster overlay to {output_path}")


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Inspect shape geometry of each colour cluster.')
    parser.add_argument('image', help='Path to the image file')
    parser.add_argument('--clusters', '-k', type=int, default=5, help='Number of colour clusters')
    parser.add_argument('--size', type=int, default=100, help='Analysis resolution in pixels')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--plot', default=None, help='Save a cluster overlay PNG to this path')
    args = parser.parse_args()

    image_path = Path(args.image)
    if not image_path.exists():
        print(f"File not found: {image_path}")
        sys.exit(1)

    print(f"Analyzing: {image_path}")
    print("=" * 78)

    img = load_image(str(image_path), target_size=args.size)
    draft = extract_colors(img, k=args.clusters, seed=args.seed)
    assignments = assign_pixels_to_clusters(img, draft)
    colors = annotate_edge_sharpness(draft, compute_edge_sharpness(img, draft, assignments))

    rows = describe_clusters(img, colors, assignments)
    print_report(rows, compute_flow_direction(img))

    if args.plot:
        visualize_clusters(img, colors, assignments, rows, args.plot)


if __name__ == "__main__":
    main()
