from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np


RGBA = Tuple[float, float, float, float]

WHITE: RGBA = (1.0, 1.0, 1.0, 1.0)
BLACK: RGBA = (0.0, 0.0, 0.0, 1.0)
RED: RGBA = (1.0, 0.0, 0.0, 1.0)
GREEN: RGBA = (0.0, 1.0, 0.0, 1.0)
BLUE: RGBA = (0.0, 0.0, 1.0, 1.0)
TRANSPARENT: RGBA = (0.0, 0.0, 0.0, 0.0)


def to_rgba(color: Sequence[float] | np.ndarray) -> RGBA:
    """
    Normalize an RGB or RGBA sequence into a 4-tuple of floats.
    RGB input gets alpha 1.0. Values are not clipped.
    """
    c = np.asarray(color, dtype=float).reshape(-1)
    if c.shape == (3,):
        return (float(c[0]), float(c[1]), float(c[2]), 1.0)
    if c.shape == (4,):
        return (float(c[0]), float(c[1]), float(c[2]), float(c[3]))
    raise ValueError(f"color must have 3 or 4 components, got {c.shape[0]}")


def modulate(a: Sequence[float], b: Sequence[float]) -> RGBA:
    # Channel-wise product, the way a texel is tinted by the vertex color
    ca = to_rgba(a)
    cb = to_rgba(b)
    return (ca[0] * cb[0], ca[1] * cb[1], ca[2] * cb[2], ca[3] * cb[3])
