"""
Fixed model contract of the license recognition network.

The recognizer consumes a (1, width, height, 1) grayscale tensor and emits a
(time_steps, num_classes) probability grid. The alphabet maps class indices
to characters positionally.

The reference alphabet has 41 characters while the network emits 42 classes:
the last class is the CTC blank and has no character, so the decoder drops it.
"""

from dataclasses import dataclass
from typing import Tuple

GERMAN_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZÄÖÜ0123456789- "


@dataclass(frozen=True)
class RecognizerConfig:
    """Input geometry and output label space of one recognition model."""
    width: int = 128          # input image width
    height: int = 64          # input image height
    depth: int = 1            # 1 for gray scale
    time_steps: int = 32      # output sequence length
    num_classes: int = 42     # output classes per time step
    alphabet: str = GERMAN_ALPHABET

    def __post_init__(self):
        for name in ("width", "height", "time_steps", "num_classes"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.depth != 1:
            raise ValueError(f"only single-channel input is supported, got depth={self.depth}")
        if not self.alphabet:
            raise ValueError("alphabet must not be empty")
        if self.num_classes < len(self.alphabet):
            raise ValueError(
                f"num_classes ({self.num_classes}) is smaller than the alphabet "
                f"({len(self.alphabet)} characters)"
            )

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return (1, self.width, self.height, self.depth)

    @property
    def output_shape(self) -> Tuple[int, int]:
        return (self.time_steps, self.num_classes)


DEFAULT_CONFIG = RecognizerConfig()
