"""
glpr – German license plate text recognition.

Main entry points: LicenseRecognizer(...).recognize(image) and
read_license_plate(image_path)
"""

from .config import DEFAULT_CONFIG, RecognizerConfig
from .decoder import decode
from .errors import GLPRError, InvalidImage, ShapeMismatch
from .normalizer import load_image, normalize
from .recognizer import LicenseRecognizer, read_license_plate, recognize

__all__ = [
    "DEFAULT_CONFIG",
    "RecognizerConfig",
    "normalize",
    "load_image",
    "decode",
    "recognize",
    "LicenseRecognizer",
    "read_license_plate",
    "GLPRError",
    "InvalidImage",
    "ShapeMismatch",
]
