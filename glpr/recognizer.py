"""
End-to-end license plate text recognition.

Pipeline:
  1. normalize(image)   – fixed-size transposed grayscale tensor
  2. infer(tensor)      – recognition network, any callable
  3. decode(grid)       – greedy CTC collapse into the plate string

Usage example:
  from glpr.recognizer import LicenseRecognizer
  with LicenseRecognizer(model_path="model/glpr-model.tflite") as recognizer:
      print(recognizer.recognize_file("resources/plate.jpg"))   # e.g. "B-MW 1234"
"""

import logging
from typing import Optional, Sequence

import numpy as np

from .config import DEFAULT_CONFIG, RecognizerConfig
from .decoder import as_grid, decode
from .errors import ShapeMismatch
from .inference import _DEFAULT_MODEL_PATH, NUM_THREADS, Infer, load_inference
from .normalizer import load_image, normalize

logger = logging.getLogger(__name__)


def _check_grid_shape(grid, config: RecognizerConfig) -> np.ndarray:
    arr = as_grid(grid, config.num_classes)
    if arr.shape[0] != config.time_steps:
        raise ShapeMismatch(
            f"probability grid has {arr.shape[0]} time steps, expected {config.time_steps}"
        )
    return arr


def recognize(image: np.ndarray, infer: Infer, config: RecognizerConfig = DEFAULT_CONFIG) -> str:
    """
    Read the plate text from a cropped plate image.

    Args:
        image: Grayscale, BGR or BGRA NumPy array.
        infer: Callable mapping the input tensor to the probability grid.
        config: Model contract to normalize and decode with.

    Raises:
        InvalidImage: If image is empty or malformed.
        ShapeMismatch: If infer returns a grid other than
                       (config.time_steps, config.num_classes).
    """
    tensor = normalize(image, config.width, config.height)
    grid = _check_grid_shape(infer(tensor), config)
    return decode(grid, config.alphabet, config.num_classes)


def _shape_matches(advertised: Sequence[int], expected: Sequence[int]) -> bool:
    """Compare shapes, ignoring a batch axis of 1 and dynamic (<= 0) dims."""
    advertised = list(advertised)
    if len(advertised) == len(expected) + 1 and advertised[0] in (1, -1):
        advertised = advertised[1:]
    if len(advertised) != len(expected):
        return False
    return all(a <= 0 or a == e for a, e in zip(advertised, expected))


class LicenseRecognizer:
    """Extracts the license from an image of a car license plate as plain text."""

    def __init__(self,
                 infer: Optional[Infer] = None,
                 config: RecognizerConfig = DEFAULT_CONFIG,
                 model_path: str = _DEFAULT_MODEL_PATH,
                 num_threads: int = NUM_THREADS):
        """
        Args:
            infer: Inference callable. When omitted, the model at model_path
                   is loaded and owned (closed by close()).
            config: Model contract.
            model_path: Model file used when infer is None.
            num_threads: Interpreter threads used when infer is None.

        Raises:
            ShapeMismatch: If the engine advertises input or output shapes
                           that disagree with config.
        """
        self.config = config
        self._owns_infer = infer is None
        if infer is None:
            infer = load_inference(model_path, num_threads=num_threads)
        self._infer = infer
        try:
            self._check_engine_shapes()
        except ShapeMismatch:
            self.close()
            raise

    def _check_engine_shapes(self) -> None:
        input_shape = getattr(self._infer, "input_shape", None)
        if input_shape is not None and not _shape_matches(input_shape, self.config.input_shape):
            raise ShapeMismatch(
                f"model input shape {tuple(input_shape)} does not match {self.config.input_shape}"
            )
        output_shape = getattr(self._infer, "output_shape", None)
        if output_shape is not None and not _shape_matches(output_shape, self.config.output_shape):
            raise ShapeMismatch(
                f"model output shape {tuple(output_shape)} does not match {self.config.output_shape}"
            )

    def recognize(self, image: np.ndarray) -> str:
        """Return the car license on image as plain text."""
        if self._infer is None:
            raise RuntimeError("recognizer is closed")
        return recognize(image, self._infer, self.config)

    def recognize_file(self, image_path: str) -> str:
        """Load image_path and return its license text."""
        return self.recognize(load_image(image_path))

    def close(self) -> None:
        """Close the inference engine if this recognizer loaded it."""
        if self._owns_infer and self._infer is not None:
            close = getattr(self._infer, "close", None)
            if close is not None:
                close()
        self._infer = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def read_license_plate(image_path: str, model_path: str = _DEFAULT_MODEL_PATH) -> str:
    """
    End-to-end helper: load a cropped plate image and the model, return the
    plate string.

    Raises:
        FileNotFoundError: If the image or model file does not exist.
        InvalidImage: If the image file cannot be decoded.
    """
    image = load_image(image_path)
    with LicenseRecognizer(model_path=model_path) as recognizer:
        return recognizer.recognize(image)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main(argv=None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Read the text of a cropped license plate image")
    parser.add_argument("image", help="Cropped plate image")
    parser.add_argument("--model", "-m", default=_DEFAULT_MODEL_PATH,
                        help="Recognition model (.tflite or TorchScript .pt)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log pipeline details")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    plate = read_license_plate(args.image, model_path=args.model)
    print(plate if plate else "<no text>")
    return 0 if plate else 1


if __name__ == "__main__":
    raise SystemExit(main())
