"""
Greedy CTC-style decoding of the recognition network output.

The network emits one probability row per time step. Decoding takes the best
class per step, collapses adjacent repeats and maps the surviving classes to
characters by position. Classes without a character (such as the trailing
CTC blank) are dropped.
"""

import logging
from typing import List, Optional

import numpy as np

from .errors import ShapeMismatch

logger = logging.getLogger(__name__)


def as_grid(grid, num_classes: int) -> np.ndarray:
    """
    Return grid as a 2-D float array of shape (T, num_classes).

    Floating input keeps its precision; anything else becomes float32. A
    leading batch axis of size 1 is squeezed. Anything else that is not
    (T > 0, num_classes) raises ShapeMismatch.
    """
    try:
        arr = np.asarray(grid)
        if not np.issubdtype(arr.dtype, np.floating):
            arr = arr.astype(np.float32)
    except (ValueError, TypeError) as exc:
        raise ShapeMismatch(f"probability grid is not a rectangular array of numbers: {exc}") from exc

    if arr.ndim == 3 and arr.shape[0] == 1:
        arr = arr[0]
    if arr.ndim != 2:
        raise ShapeMismatch(f"expected a (time_steps, classes) grid, got shape {arr.shape}")
    if arr.shape[0] == 0:
        raise ShapeMismatch("probability grid has no time steps")
    if arr.shape[1] != num_classes:
        raise ShapeMismatch(
            f"probability grid has {arr.shape[1]} classes per step, expected {num_classes}"
        )
    return arr


def best_path(grid: np.ndarray) -> List[int]:
    """
    Index of the highest score at each time step; ties keep the lowest index.

    NaN scores never win. A step made only of NaN yields -1, which no
    alphabet maps to a character.
    """
    missing = np.isnan(grid)
    # np.argmax returns the first occurrence of the maximum
    best = np.argmax(np.where(missing, -np.inf, grid), axis=1)
    best[missing.all(axis=1)] = -1
    return [int(i) for i in best]


def collapse(indices) -> List[int]:
    """Drop every index equal to the one kept right before it."""
    res = []
    for c in indices:
        if not res or res[-1] != c:
            res.append(c)
    return res


def decode(grid, alphabet: str, num_classes: Optional[int] = None) -> str:
    """
    Decode a probability grid into text.

    Args:
        grid: Array-like of shape (T, num_classes) or (1, T, num_classes).
        alphabet: Characters in class-index order.
        num_classes: Expected classes per time step. Defaults to
                     len(alphabet); models with a trailing blank class pass
                     a larger value.

    Returns:
        The decoded string, possibly empty.

    Raises:
        ShapeMismatch: If the grid has no time steps or the wrong number of
                       classes.
    """
    if num_classes is None:
        num_classes = len(alphabet)
    arr = as_grid(grid, num_classes)

    kept = collapse(best_path(arr))
    text = "".join(alphabet[c] for c in kept if 0 <= c < len(alphabet))
    logger.debug("decoded %d steps -> %d groups -> %r", arr.shape[0], len(kept), text)
    return text
