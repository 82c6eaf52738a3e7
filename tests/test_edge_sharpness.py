"""Tests for edge_sharpness: per-region boundary crispness."""

import numpy as np
import pytest

from edge_sharpness import annotate_edge_sharpness, boundary_mask, compute_edge_sharpness
from extract_colors import assign_pixels_to_clusters
from gradient_spec import ColorRegion, Point
from image_source import RawImage


def _region(rgb, x=0.5) -> ColorRegion:
    return ColorRegion('#%02x%02x%02x' % rgb, rgb, Point(x, 0.5), 0.5, 0.3)


def _gray_ramp(edge_width: int, width: int = 60, height: int = 10) -> RawImage:
    """Black to 200-grey step across the middle, spread over edge_width pixels."""
    row = np.interp(np.arange(width), [width / 2 - edge_width / 2, width / 2 + edge_width / 2], [0, 200])
    value = np.tile(row, (height, 1))
    return RawImage.from_array(np.stack([value] * 3, axis=-1))


class TestBoundaryMask:

    def test_flags_both_sides_of_a_boundary(self):
        assignments = np.zeros((5, 6), dtype=int)
        assignments[:, 3:] = 1
        mask = boundary_mask(assignments)
        assert mask.shape == (3, 4)
        # Interior columns 1..4 map to mask columns 0..3; the boundary is between 2 and 3
        assert mask[:, 1].all() and mask[:, 2].all()
        assert not mask[:, 0].any() and not mask[:, 3].any()


class TestComputeEdgeSharpness:
    """Mean boundary gradient, normalised and rounded."""

    def test_red_blue_split(self, split_image):
        colors = [_region((255, 0, 0), 0.22), _region((0, 0, 255), 0.78)]
        assignments = assign_pixels_to_clusters(split_image, colors)
        # Luma step 76.245 -> 29.07 across the boundary: 47.175 / 50
        assert compute_edge_sharpness(split_image, colors, assignments) == [0.94, 0.94]

    def test_uniform_image_has_no_edges(self, gray_image):
        colors = [_region((128, 128, 128))]
        assignments = assign_pixels_to_clusters(gray_image, colors)
        assert compute_edge_sharpness(gray_image, colors, assignments) == [0.0]

    def test_hard_edge_beats_soft_edge(self):
        colors = [_region((0, 0, 0), 0.25), _region((200, 200, 200), 0.75)]
        hard = _gray_ramp(1)
        soft = _gray_ramp(40)
        hard_scores = compute_edge_sharpness(hard, colors, assign_pixels_to_clusters(hard, colors))
        soft_scores = compute_edge_sharpness(soft, colors, assign_pixels_to_clusters(soft, colors))
        assert hard_scores[0] == 1.0
        assert soft_scores[0] < 0.5
        assert soft_scores[0] < hard_scores[0]

    def test_tiny_image_scores_zero(self):
        img = RawImage.from_array(np.array([[[0, 0, 0], [255, 255, 255]],
                                            [[255, 255, 255], [0, 0, 0]]], dtype=np.uint8))
        colors = [_region((0, 0, 0)), _region((255, 255, 255))]
        assignments = assign_pixels_to_clusters(img, colors)
        assert compute_edge_sharpness(img, colors, assignments) == [0.0, 0.0]

    def test_region_without_pixels_scores_zero(self, split_image):
        colors = [_region((255, 0, 0)), _region((0, 0, 255)), _region((0, 255, 0))]
        assignments = assign_pixels_to_clusters(split_image, colors)
        assert compute_edge_sharpness(split_image, colors, assignments)[2] == 0.0

    def test_no_regions(self, split_image):
        assert compute_edge_sharpness(split_image, [], np.zeros((10, 10), dtype=int)) == []


class TestAnnotateEdgeSharpness:

    def test_returns_updated_copies(self):
        colors = [_region((255, 0, 0)), _region((0, 0, 255))]
        annotated = annotate_edge_sharpness(colors, [0.4, 0.9])
        assert [c.edge_sharpness for c in annotated] == [0.4, 0.9]
        assert [c.edge_sharpness for c in colors] == [0.0, 0.0]
        assert annotated[0].hex == colors[0].hex

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            annotate_edge_sharpness([_region((255, 0, 0))], [0.1, 0.2])
