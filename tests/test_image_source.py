"""Tests for image_source: decoding and RawImage construction."""

import numpy as np
import pytest
from PIL import Image

import image_source
from image_source import RawImage, load_image


def _write_png(path, width, height, rgb=(200, 100, 50)):
    Image.new('RGB', (width, height), rgb).save(path)
    return path


class TestLoadImage:
    """Decoding files into fixed-size analysis buffers."""

    def test_resizes_to_square_buffer(self, image_file):
        img = load_image(str(image_file))
        assert img.pixels.shape == (100, 100, 3)
        assert img.pixels.dtype == np.uint8
        assert (img.original_width, img.original_height) == (120, 80)

    def test_custom_target_size(self, image_file):
        img = load_image(str(image_file), target_size=32)
        assert (img.width, img.height) == (32, 32)

    def test_converts_to_rgb(self, tmp_path):
        path = tmp_path / "gray.png"
        Image.new('L', (10, 10), 90).save(path)
        img = load_image(str(path), target_size=10)
        assert img.pixels.shape == (10, 10, 3)
        assert np.all(img.pixels == 90)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Image not found"):
            load_image(str(tmp_path / "nope.png"))

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.png"
        path.write_text("definitely not a PNG")
        with pytest.raises(ValueError, match="Could not open image"):
            load_image(str(path))

    def test_rejects_non_positive_size(self, image_file):
        with pytest.raises(ValueError, match="positive"):
            load_image(str(image_file), target_size=0)

    def test_rejects_oversized_image(self, tmp_path, monkeypatch):
        monkeypatch.setattr(image_source, 'MAX_IMAGE_DIMENSION', 16)
        path = _write_png(tmp_path / "big.png", 20, 10)
        with pytest.raises(ValueError, match="exceed maximum"):
            load_image(str(path))

    def test_rejects_too_many_pixels(self, tmp_path, monkeypatch):
        monkeypatch.setattr(image_source, 'MAX_IMAGE_PIXELS', 100)
        path = _write_png(tmp_path / "wide.png", 20, 10)
        with pytest.raises(ValueError, match="exceeding maximum"):
            load_image(str(path))


class TestRawImage:
    """In-memory construction and derived fields."""

    def test_from_buffer(self):
        data = bytes([255, 0, 0] * 6)
        img = RawImage.from_buffer(data, 3, 2)
        assert (img.width, img.height) == (3, 2)
        assert img.data == data
        assert (img.original_width, img.original_height) == (3, 2)

    def test_from_buffer_length_mismatch(self):
        with pytest.raises(ValueError, match="expected 18"):
            RawImage.from_buffer(bytes(17), 3, 2)

    def test_from_buffer_bad_size(self):
        with pytest.raises(ValueError):
            RawImage.from_buffer(b"", 0, 2)

    def test_from_array_wrong_shape(self):
        with pytest.raises(ValueError):
            RawImage.from_array(np.zeros((4, 4), dtype=np.uint8))

    def test_from_array_empty(self):
        with pytest.raises(ValueError, match="no pixels"):
            RawImage.from_array(np.zeros((0, 4, 3), dtype=np.uint8))

    def test_float_input_clipped(self):
        img = RawImage.from_array(np.array([[[300.0, -5.0, 127.6]]]))
        assert img.pixels[0, 0].tolist() == [255, 0, 128]

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError, match="finite"):
            RawImage.from_array(np.array([[[np.nan, 0.0, 0.0]]]))

    def test_pixels_read_only(self, split_image):
        with pytest.raises(ValueError):
            split_image.pixels[0, 0, 0] = 1

    def test_source_array_is_copied(self):
        arr = np.zeros((2, 2, 3), dtype=np.uint8)
        img = RawImage.from_array(arr)
        arr[:] = 255
        assert img.pixels.max() == 0

    def test_luminance(self, split_image):
        lum = split_image.luminance()
        assert lum.shape == (10, 10)
        assert lum[0, 0] == pytest.approx(0.299 * 255)
        assert lum[0, 9] == pytest.approx(0.114 * 255)

    def test_original_size_override(self):
        img = RawImage.from_array(np.zeros((4, 4, 3), dtype=np.uint8), original_size=(800, 600))
        assert (img.original_width, img.original_height) == (800, 600)
