"""
Inference engines for the license recognition network.

The pipeline only needs a callable mapping the (1, width, height, 1) input
tensor to the (time_steps, num_classes) probability grid. Two adapters are
provided:

  TFLiteInference       – a .tflite model run by tensorflow.lite.Interpreter
  TorchScriptInference  – a TorchScript export run by torch

tensorflow and torch are imported lazily so the preprocessing and decoding
code can be used without either installed.
"""

import logging
import os
from typing import Callable, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)

Infer = Callable[[np.ndarray], np.ndarray]

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
_DEFAULT_MODEL_PATH = "model/glpr-model.tflite"

NUM_THREADS = 4

_TFLITE_SUFFIXES = (".tflite",)
_TORCH_SUFFIXES = (".pt", ".pth", ".torchscript")


def _check_model_file(model_path: str) -> None:
    if not os.path.isfile(model_path):
        raise FileNotFoundError(f"Model not found: {model_path}")


class TFLiteInference:
    """Runs a TensorFlow Lite recognition model."""

    def __init__(self, model_path: str = _DEFAULT_MODEL_PATH, num_threads: int = NUM_THREADS):
        _check_model_file(model_path)
        import tensorflow as tf  # noqa: PLC0415

        self.model_path = model_path
        self._interpreter = tf.lite.Interpreter(model_path=model_path, num_threads=num_threads)
        self._interpreter.allocate_tensors()
        self._input = self._interpreter.get_input_details()[0]
        self._output = self._interpreter.get_output_details()[0]
        logger.info(
            "Loaded TFLite model %s (input %s, output %s, %d threads)",
            model_path, self.input_shape, self.output_shape, num_threads,
        )

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._input["shape"])

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._output["shape"])

    def __call__(self, tensor: np.ndarray) -> np.ndarray:
        if self._interpreter is None:
            raise RuntimeError("interpreter is closed")
        self._interpreter.set_tensor(self._input["index"], tensor.astype(self._input["dtype"], copy=False))
        self._interpreter.invoke()
        # get_tensor returns a copy, safe to keep after the next invoke
        return self._interpreter.get_tensor(self._output["index"])

    def close(self) -> None:
        self._interpreter = None


class TorchScriptInference:
    """Runs a TorchScript export of the recognition model."""

    def __init__(self, model_path: str, device: str = "cpu"):
        _check_model_file(model_path)
        import torch  # noqa: PLC0415

        self.model_path = model_path
        self.device = torch.device(device)
        self._model = torch.jit.load(model_path, map_location=self.device)
        self._model.eval()
        logger.info("Loaded TorchScript model %s on %s", model_path, self.device)

    def __call__(self, tensor: np.ndarray) -> np.ndarray:
        import torch  # noqa: PLC0415

        if self._model is None:
            raise RuntimeError("model is closed")
        with torch.no_grad():
            out = self._model(torch.from_numpy(tensor).to(self.device))
        return out.cpu().numpy()

    def close(self) -> None:
        self._model = None


def load_inference(model_path: str = _DEFAULT_MODEL_PATH,
                   num_threads: int = NUM_THREADS,
                   device: Optional[str] = None):
    """
    Load the inference adapter matching the model file's suffix.

    Raises:
        FileNotFoundError: If model_path does not exist.
        ValueError: If the suffix belongs to no supported engine.
    """
    _check_model_file(model_path)
    suffix = os.path.splitext(model_path)[1].lower()
    if suffix in _TFLITE_SUFFIXES:
        return TFLiteInference(model_path, num_threads=num_threads)
    if suffix in _TORCH_SUFFIXES:
        return TorchScriptInference(model_path, device=device or "cpu")
    raise ValueError(f"Unsupported model format '{suffix}': {model_path}")
