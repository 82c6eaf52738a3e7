"""Tests for the debug and profiling scripts."""

import matplotlib

matplotlib.use('Agg')

from debug_shapes import describe_clusters, print_report, visualize_clusters  # noqa: E402
from edge_sharpness import annotate_edge_sharpness, compute_edge_sharpness  # noqa: E402
from extract_colors import assign_pixels_to_clusters, extract_colors  # noqa: E402
from profile_analyze import detailed_profile, profile_image  # noqa: E402


def _clustered(img, k, seed=0):
    draft = extract_colors(img, k=k, seed=seed)
    assignments = assign_pixels_to_clusters(img, draft)
    colors = annotate_edge_sharpness(draft, compute_edge_sharpness(img, draft, assignments))
    return colors, assignments


class TestDebugShapes:
    """Per-cluster geometry report."""

    def test_describe_split(self, split_image):
        colors, assignments = _clustered(split_image, 2)
        rows = describe_clusters(split_image, colors, assignments)
        assert [r['index'] for r in rows] == [0, 1]
        assert {r['classification'] for r in rows} == {'background', 'angular-veil'}
        assert all(r['pixels'] == 50 for r in rows)

    def test_report_prints_every_row(self, split_image, capsys):
        colors, assignments = _clustered(split_image, 2)
        print_report(describe_clusters(split_image, colors, assignments), 275)
        out = capsys.readouterr().out
        assert 'Flow direction: 275' in out
        assert '#ff0000' in out and '#0000ff' in out

    def test_visualize_writes_png(self, split_image, tmp_path):
        colors, assignments = _clustered(split_image, 2)
        rows = describe_clusters(split_image, colors, assignments)
        out = tmp_path / "clusters.png"
        visualize_clusters(split_image, colors, assignments, rows, str(out))
        assert out.exists() and out.stat().st_size > 0


class TestProfile:

    def test_profile_image_times_every_stage(self, image_file):
        timings = profile_image(str(image_file), verbose=False, analysis_size=30)
        for stage in ('load_image', 'extract_colors', 'analyze_blur', 'analyze_noise',
                      'detect_vignette', 'detect_mood', 'assign_pixels', 'edge_sharpness',
                      'analyze_shapes', 'classify_strategy', 'total'):
            assert timings[stage] >= 0
        assert timings['total'] == sum(v for k, v in timings.items() if k != 'total')

    def test_detailed_profile_report(self, image_file):
        report = detailed_profile(str(image_file), analysis_size=30)
        assert 'function calls' in report
