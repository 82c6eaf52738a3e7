"""Shared test fixtures: small synthetic images built with numpy."""

import numpy as np
import pytest
from PIL import Image

from image_source import RawImage


def solid(rgb, width: int, height: int) -> np.ndarray:
    """A (height, width, 3) array filled with one colour."""
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[:] = rgb
    return arr


@pytest.fixture
def split_image() -> RawImage:
    """10x10, left half pure red, right half pure blue."""
    arr = solid((0, 0, 255), 10, 10)
    arr[:, :5] = (255, 0, 0)
    return RawImage.from_array(arr)


@pytest.fixture
def gray_image() -> RawImage:
    """20x20 uniform mid grey."""
    return RawImage.from_array(solid((128, 128, 128), 20, 20))


@pytest.fixture
def vignette_image() -> RawImage:
    """40x40 grey image, bright in the centre and falling off to black at the corners."""
    h = w = 40
    ys, xs = np.mgrid[0:h, 0:w]
    dist = np.hypot(xs - w / 2, ys - h / 2) / np.hypot(w / 2, h / 2)
    value = np.clip(255 * (1 - dist), 0, 255).astype(np.uint8)
    return RawImage.from_array(np.stack([value] * 3, axis=-1))


@pytest.fixture
def noise_image() -> RawImage:
    """64x64 uniform random RGB noise (fixed seed)."""
    rng = np.random.default_rng(0)
    return RawImage.from_array(rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8))


@pytest.fixture
def ramp_image() -> RawImage:
    """64x64 grey ramp, black on the left to white on the right."""
    row = np.round(np.linspace(0, 255, 64)).astype(np.uint8)
    value = np.tile(row, (64, 1))
    return RawImage.from_array(np.stack([value] * 3, axis=-1))


@pytest.fixture
def image_file(tmp_path):
    """A 120x80 PNG with three colour bands, written with Pillow."""
    arr = solid((20, 30, 120), 120, 80)
    arr[:, 40:80] = (230, 120, 40)
    arr[:, 80:] = (240, 230, 210)
    path = tmp_path / "bands.png"
    Image.fromarray(arr).save(path)
    return path
