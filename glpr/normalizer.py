"""
Image normalization for the license recognition network.

Converts a cropped plate image of any size into the fixed input tensor the
network was trained on.

Pipeline:
  1. resize_to_width(image, width)      – aspect-preserving INTER_AREA resize
  2. fit_height(image, height)          – center crop or zero pad to the height
  3. to_grayscale(image)                – luma-weighted BGR → gray
  4. normalize(image, width, height)    – all of the above, then transpose and
                                          scale to float32 in [0, 1]

  load_image(path) reads a plate image from disk as a BGR array.

Usage example:
  from glpr.normalizer import load_image, normalize
  tensor = normalize(load_image("plate.jpg"), 128, 64)
  tensor.shape   # (1, 128, 64, 1)
"""

import logging
import os

import cv2
import numpy as np

from .errors import InvalidImage

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

def _as_image(image) -> np.ndarray:
    """
    Validate image and return it as a uint8 array of shape (H, W) or (H, W, C)
    with C in {3, 4}. Single-channel 3-D input is squeezed to 2-D.
    """
    if not isinstance(image, np.ndarray):
        raise InvalidImage(f"expected a numpy array, got {type(image).__name__}")
    if image.ndim not in (2, 3):
        raise InvalidImage(f"expected a 2-D or 3-D pixel grid, got shape {image.shape}")
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImage(f"image has zero width or height: shape {image.shape}")
    if image.ndim == 3:
        channels = image.shape[2]
        if channels == 1:
            image = image[:, :, 0]
        elif channels not in (3, 4):
            raise InvalidImage(f"unsupported channel count: {channels}")

    if image.dtype != np.uint8:
        if not np.issubdtype(image.dtype, np.number):
            raise InvalidImage(f"unsupported pixel type: {image.dtype}")
        image = np.clip(image, 0, 255).astype(np.uint8)
    return image


def load_image(path: str) -> np.ndarray:
    """
    Read an image file as a BGR array.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidImage: If the file cannot be decoded as an image.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Image not found: {path}")
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise InvalidImage(f"Could not decode image: {path}")
    return image


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def _scaled_height(src_width: int, src_height: int, width: int) -> int:
    """Height after scaling src_width to width, rounded half up, at least 1."""
    return max(1, (2 * src_height * width + src_width) // (2 * src_width))


def resize_to_width(image: np.ndarray, width: int) -> np.ndarray:
    """
    Resize image so its width is exactly width pixels, keeping the aspect
    ratio. INTER_AREA averages source pixels, which keeps small glyphs legible
    when shrinking.
    """
    h, w = image.shape[:2]
    new_h = _scaled_height(w, h, width)
    if (w, h) == (width, new_h):
        return image
    return cv2.resize(image, (width, new_h), interpolation=cv2.INTER_AREA)


def _vertical_margin(delta: int):
    """Split delta rows into (top, bottom) with top = floor(delta / 2)."""
    top = delta // 2
    return top, delta - top


def fit_height(image: np.ndarray, height: int) -> np.ndarray:
    """
    Bring image to exactly height rows without touching its width.

    Taller images lose an edge at the top and bottom (center crop); shorter or
    equally tall images get a black border at the top and bottom (center pad).
    """
    h = image.shape[0]
    if h > height:
        top, _ = _vertical_margin(h - height)
        logger.debug("cropping %d rows to %d (top=%d)", h, height, top)
        return image[top:top + height]

    top, bottom = _vertical_margin(height - h)
    logger.debug("padding %d rows to %d (top=%d, bottom=%d)", h, height, top, bottom)
    return cv2.copyMakeBorder(image, top, bottom, 0, 0, cv2.BORDER_CONSTANT, value=0)


# ---------------------------------------------------------------------------
# Color
# ---------------------------------------------------------------------------

def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Reduce a validated image to one intensity channel with OpenCV's luma
    weights. 2-D input is returned as is.
    """
    if image.ndim == 2:
        return image
    code = cv2.COLOR_BGRA2GRAY if image.shape[2] == 4 else cv2.COLOR_BGR2GRAY
    return cv2.cvtColor(image, code)


# ---------------------------------------------------------------------------
# Tensor
# ---------------------------------------------------------------------------

def normalize(image: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Turn a plate image into the recognition network's input tensor.

    Args:
        image: uint8 NumPy array, grayscale (H, W), BGR (H, W, 3) or
               BGRA (H, W, 4).
        width: Target width of the network input.
        height: Target height of the network input.

    Returns:
        C-contiguous float32 array of shape (1, width, height, 1). Element
        [0, x, y, 0] holds the gray intensity at column x, row y of the
        resized image, divided by 255.

    Raises:
        InvalidImage: If image is not a non-empty 2-D/3-D pixel grid.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"target size must be positive, got {width}x{height}")

    img = _as_image(image)
    img = resize_to_width(img, width)
    img = fit_height(img, height)
    gray = to_grayscale(img)

    # the network iterates the width axis first
    transposed = np.ascontiguousarray(gray.T, dtype=np.float32)
    transposed /= np.float32(255.0)
    return transposed.reshape(1, width, height, 1)
