#!/usr/bin/env python3
"""
Decode images into the fixed-size RGB buffers the analysers work on.

Every analysis stage reads a RawImage: an 8-bit RGB pixel array plus the
size of the original file. Images are downsampled to a small square before
analysis; the aspect ratio is intentionally not preserved.
"""

from dataclasses import dataclass

import numpy as np
from PIL import Image


# =============================================================================
# Constants
# =============================================================================

DEFAULT_ANALYSIS_SIZE = 100  # Analysis buffers are 100x100 by default

# Image size limits (security: prevent decompression bombs)
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 10_000  # 10k pixels per side

# Rec. 601 luma weights
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])


# =============================================================================
# Raw Image
# =============================================================================

@dataclass(frozen=True, eq=False)
class RawImage:
    """An 8-bit RGB buffer plus the dimensions of the file it came from."""
    pixels: np.ndarray  # (height, width, 3) uint8, read-only
    original_width: int
    original_height: int

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def data(self) -> bytes:
        """Flat row-major RGB bytes, length width*height*3."""
        return self.pixels.tobytes()

    def luminance(self) -> np.ndarray:
        """Per-pixel luma 0.299R + 0.587G + 0.114B as a (height, width) float field."""
        return self.pixels.astype(np.float64) @ LUMA_WEIGHTS

    @classmethod
    def from_array(cls, array, original_size: tuple = None) -> 'RawImage':
        """
        Wrap an in-memory RGB array.

        Args:
            array: Array-like of shape (height, width, 3) with values 0-255
            original_size: Optional (width, height) of the source; defaults to
                the array's own size

        Raises:
            ValueError: If the array is not a non-empty (h, w, 3) RGB image
        """
        pixels = np.asarray(array)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Expected an (height, width, 3) RGB array, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError("Image has no pixels")
        if pixels.dtype != np.uint8:
            if np.issubdtype(pixels.dtype, np.floating) and not np.all(np.isfinite(pixels)):
                raise ValueError("Pixel values must be finite")
            pixels = np.clip(np.rint(pixels), 0, 255).astype(np.uint8)
        else:
            pixels = pixels.copy()
        pixels.setflags(write=False)

        if original_size is None:
            original_size = (pixels.shape[1], pixels.shape[0])
        return cls(pixels=pixels, original_width=int(original_size[0]),
                   original_height=int(original_size[1]))

    @classmethod
    def from_buffer(cls, data: bytes, width: int, height: int) -> 'RawImage':
        """
        Wrap a flat row-major RGB byte buffer.

        Raises:
            ValueError: If the buffer length does not match width*height*3
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid image size {width}x{height}")
        expected = width * height * 3
        if len(data) != expected:
            raise ValueError(f"Buffer has {len(data)} bytes, expected {expected} for {width}x{height} RGB")
        pixels = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 3)
        return cls.from_array(pixels)


# =============================================================================
# Decode
# =============================================================================

def load_image(image_path: str, target_size: int = DEFAULT_ANALYSIS_SIZE) -> RawImage:
    """
    Load an image file and resample it to a target_size x target_size RGB buffer.

    Args:
        image_path: Path to the input image
        target_size: Side length of the analysis buffer in pixels

    Returns:
        RawImage whose original_width/original_height hold the file's size

    Raises:
        FileNotFoundError: If image file doesn't exist
        ValueError: If file is not a valid image, exceeds size limits or
            target_size is not positive
    """
    if target_size <= 0:
        raise ValueError(f"Analysis size must be positive, got {target_size}")

    try:
        img = Image.open(image_path)
    except FileNotFoundError:
        raise FileNotFoundError(f"Image not found: {image_path}")
    except Exception as e:
        raise ValueError(f"Could not open image: {e}")

    with img:
        # Validate image dimensions (security: prevent decompression bombs)
        width, height = img.size
        if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
            raise ValueError(
                f"Image dimensions {width}x{height} exceed maximum "
                f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
            )
        if width * height > MAX_IMAGE_PIXELS:
            raise ValueError(
                f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
            )

        try:
            rgb = img.convert('RGB')
            resized = rgb.resize((target_size, target_size), Image.Resampling.BILINEAR)
        except OSError as e:
            raise ValueError(f"Could not decode image: {e}")

        pixels = np.array(resized, dtype=np.uint8)

    return RawImage.from_array(pixels, original_size=(width, height))
