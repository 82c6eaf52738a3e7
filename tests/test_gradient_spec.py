"""Tests for gradient_spec: result types and their JSON form."""

import json

import pytest

from gradient_spec import (
    AngularVeilContour, BlurInfo, ColorRegion, Dimensions, GradientSpec,
    MoodInfo, NoiseInfo, PetalContour, Point, RibbonContour, ShapeInfo,
    VeilContour, VignetteInfo, WaveContour, WispContour, contour_from_dict,
    spec_from_dict, spec_from_json, spec_to_dict, spec_to_json,
)


def _common(**overrides):
    values = dict(
        position=Point(0.4, 0.6),
        direction=30.0,
        curvature=0.2,
        thickness=0.08,
        blur=0.7,
        color='#336699',
        opacity=0.5,
    )
    values.update(overrides)
    return values


def _spec(shapes=None) -> GradientSpec:
    return GradientSpec(
        colors=(
            ColorRegion('#102030', (16, 32, 48), Point(0.3, 0.4), 0.6, 0.45, 0.12),
            ColorRegion('#f0e0d0', (240, 224, 208), Point(0.7, 0.2), 0.4, 0.3),
        ),
        noise=NoiseInfo(0.2, 'medium', 'speckle', 0.4, 0.3, 0.55),
        blur=BlurInfo('medium', 0.18),
        vignette=VignetteInfo(True, 0.35),
        dimensions=Dimensions(1920, 1080),
        mood=MoodInfo('cool', 'medium-dark'),
        strategy='hybrid',
        shapes=shapes,
    )


class TestContourSerialisation:
    """Each contour variant carries its own extra fields in camelCase."""

    def test_wave_fields(self):
        wave = WaveContour(**_common(), start_point=Point(0.1, 0.5), end_point=Point(0.9, 0.5),
                           amplitude=0.3, frequency=2)
        d = wave.to_dict()
        assert d['type'] == 'wave'
        assert d['startPoint'] == {'x': 0.1, 'y': 0.5}
        assert d['endPoint'] == {'x': 0.9, 'y': 0.5}
        assert d['amplitude'] == 0.3
        assert d['frequency'] == 2

    def test_petal_without_tip_omits_tip_point(self):
        petal = PetalContour(**_common(), start_point=Point(0.2, 0.2), end_point=Point(0.4, 0.6),
                             body_width=0.4)
        d = petal.to_dict()
        assert d['bodyWidth'] == 0.4
        assert 'tipPoint' not in d
        assert contour_from_dict(d).tip_point is None

    def test_angular_veil_vertices(self):
        veil = AngularVeilContour(**_common(), vertices=(Point(0, 0), Point(1, 0), Point(1, 1)))
        d = veil.to_dict()
        assert d['type'] == 'angular-veil'
        assert len(d['vertices']) == 3

    def test_every_type_round_trips(self):
        contours = [
            VeilContour(**_common()),
            AngularVeilContour(**_common(), vertices=(Point(0.1, 0.1), Point(0.9, 0.2), Point(0.5, 0.8))),
            WispContour(**_common(), start_point=Point(0, 0.5), end_point=Point(1, 0.5)),
            RibbonContour(**_common(), start_point=Point(0, 0.2), end_point=Point(1, 0.8)),
            WaveContour(**_common(), start_point=Point(0, 0.5), end_point=Point(1, 0.5),
                        amplitude=0.25, frequency=3),
            PetalContour(**_common(), start_point=Point(0.3, 0.3), end_point=Point(0.1, 0.1),
                         body_width=0.5, tip_point=Point(0.1, 0.1)),
        ]
        for contour in contours:
            assert contour_from_dict(contour.to_dict()) == contour

    def test_unknown_type_rejected(self):
        data = VeilContour(**_common()).to_dict()
        data['type'] = 'spiral'
        with pytest.raises(ValueError, match="Unknown contour type"):
            contour_from_dict(data)


class TestSpecSerialisation:
    """Whole-spec dict/JSON conversion."""

    def test_camel_case_keys(self):
        d = spec_to_dict(_spec())
        assert d['colors'][0]['edgeSharpness'] == 0.12
        assert d['noise']['baseFrequency'] == 0.55
        assert d['dimensions'] == {'width': 1920, 'height': 1080}

    def test_shapes_omitted_when_absent(self):
        assert 'shapes' not in spec_to_dict(_spec())

    def test_json_round_trip_with_shapes(self):
        shapes = ShapeInfo(
            complexity=0.45,
            flow_direction=95.0,
            style='wavy',
            contours=(WispContour(**_common(), start_point=Point(0, 0.5), end_point=Point(1, 0.5)),),
        )
        spec = _spec(shapes)
        text = spec_to_json(spec)
        assert json.loads(text)['shapes']['flowDirection'] == 95.0
        assert spec_from_json(text) == spec

    def test_missing_edge_sharpness_defaults_to_zero(self):
        d = spec_to_dict(_spec())
        del d['colors'][1]['edgeSharpness']
        assert spec_from_dict(d).colors[1].edge_sharpness == 0.0

    def test_unknown_strategy_rejected(self):
        d = spec_to_dict(_spec())
        d['strategy'] = 'radial'
        with pytest.raises(ValueError, match="Unknown strategy"):
            spec_from_dict(d)

    def test_unknown_shape_style_rejected(self):
        shapes = ShapeInfo(complexity=0.2, flow_direction=0.0, style='angular',
                           contours=(VeilContour(**_common()),))
        d = spec_to_dict(_spec(shapes))
        d['shapes']['style'] = 'spiky'
        with pytest.raises(ValueError, match="Unknown shape style"):
            spec_from_dict(d)
