"""Tests for region_mapper: vignette and mood detection."""

import numpy as np
import pytest

from conftest import solid
from image_source import RawImage
from region_mapper import (
    brightness_label, detect_mood, detect_vignette, hue_temperature, radial_distance,
)


def _solid_image(rgb, size: int = 10) -> RawImage:
    return RawImage.from_array(solid(rgb, size, size))


class TestRadialDistance:

    def test_centre_and_corner(self):
        dist = radial_distance(10, 10)
        assert dist[5, 5] == 0.0
        assert dist[0, 0] == pytest.approx(1.0)


class TestDetectVignette:
    """Centre-vs-edge brightness comparison."""

    def test_darkened_corners(self, vignette_image):
        vignette = detect_vignette(vignette_image)
        assert vignette.detected
        assert vignette.strength > 0.5

    def test_flat_image(self, gray_image):
        vignette = detect_vignette(gray_image)
        assert not vignette.detected
        assert vignette.strength == 0.0

    def test_bright_edges_do_not_count(self, vignette_image):
        inverted = RawImage.from_array(255 - vignette_image.pixels)
        vignette = detect_vignette(inverted)
        assert not vignette.detected
        assert vignette.strength == 0.0

    def test_single_pixel(self):
        vignette = detect_vignette(_solid_image((255, 255, 255), size=1))
        assert 0.0 <= vignette.strength <= 1.0


class TestMood:
    """Colour temperature and brightness."""

    def test_hue_bands(self):
        assert hue_temperature(0) == 'warm'
        assert hue_temperature(70) == 'warm'
        assert hue_temperature(120) == 'neutral'
        assert hue_temperature(160) == 'cool'
        assert hue_temperature(280) == 'cool'
        assert hue_temperature(290) == 'neutral'
        assert hue_temperature(300) == 'warm'

    def test_brightness_bands(self):
        assert brightness_label(0.1) == 'dark'
        assert brightness_label(0.2) == 'medium-dark'
        assert brightness_label(0.5) == 'medium'
        assert brightness_label(0.7) == 'medium-bright'
        assert brightness_label(0.75) == 'bright'

    def test_warm_orange(self):
        assert detect_mood(_solid_image((255, 128, 0))).temperature == 'warm'

    def test_cool_blue(self):
        mood = detect_mood(_solid_image((0, 0, 255)))
        assert mood.temperature == 'cool'
        assert mood.brightness == 'dark'

    def test_green_is_neutral(self):
        assert detect_mood(_solid_image((0, 255, 0))).temperature == 'neutral'

    def test_gray_is_neutral(self, gray_image):
        mood = detect_mood(gray_image)
        assert mood.temperature == 'neutral'
        assert mood.brightness == 'medium'

    def test_few_saturated_pixels_stay_neutral(self):
        arr = solid((128, 128, 128), 10, 10)
        arr[0, :4] = (255, 0, 0)
        assert detect_mood(RawImage.from_array(arr)).temperature == 'neutral'

    def test_exactly_five_percent_saturated_counts(self):
        arr = solid((128, 128, 128), 20, 20)
        arr[0, :20] = (255, 0, 0)
        assert detect_mood(RawImage.from_array(arr)).temperature == 'warm'

    def test_white_is_bright(self):
        assert detect_mood(_solid_image((255, 255, 255))).brightness == 'bright'
