from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import os
import numpy as np
from PIL import Image, UnidentifiedImageError


logger = logging.getLogger(__name__)


class ResourceLoadError(OSError):
    """
    Raised when an image path does not exist or its data cannot be decoded.
    """
    def __init__(self, path: str, reason: str):
        super().__init__(f"failed to load image {path!r}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True, eq=False)
class Texture:
    """
    Opaque, immutable texture handle. Equality is identity: triangles that
    share a texture share this exact object.
    """
    pixels: np.ndarray  # (H, W, 4) uint8, RGBA, row 0 is the top of the image
    source: Optional[str] = None

    def __post_init__(self):
        px = np.asarray(self.pixels)
        if px.ndim != 3 or px.shape[2] != 4 or px.shape[0] == 0 or px.shape[1] == 0:
            raise ValueError(f"texture pixels must have shape (H, W, 4), got {px.shape}")
        px = np.array(px, dtype=np.uint8)
        px.setflags(write=False)
        object.__setattr__(self, "pixels", px)

    @staticmethod
    def from_image(image: Image.Image, source: Optional[str] = None) -> "Texture":
        return Texture(pixels=np.asarray(image.convert("RGBA")), source=source)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    def sample(self, uv: np.ndarray) -> np.ndarray:
        """
        Nearest-texel lookup for texcoords of shape (..., 2), clamped to the edge.
        NaN texcoords read as 0, infinities as the matching edge.
        v = 0 is the bottom row. Returns float RGBA in [0, 1] of shape (..., 4).
        """
        uv = np.nan_to_num(np.asarray(uv, dtype=float), nan=0.0, posinf=1.0, neginf=0.0)
        cols = np.clip(np.floor(uv[..., 0] * self.width), 0, self.width - 1).astype(np.intp)
        rows = np.clip(np.floor((1.0 - uv[..., 1]) * self.height), 0, self.height - 1).astype(np.intp)
        return self.pixels[rows, cols].astype(float) / 255.0

    def mean_color(self) -> np.ndarray:
        return self.pixels.reshape(-1, 4).astype(float).mean(axis=0) / 255.0

    def __repr__(self) -> str:
        return f"Texture({self.width}x{self.height}, source={self.source!r})"


def load_image(path: str) -> Texture:
    """
    Decode an image file into a `Texture`. Failures raise `ResourceLoadError`;
    nothing is retried.
    """
    if not os.path.exists(path):
        raise ResourceLoadError(path, "no such file")
    try:
        with Image.open(path) as img:
            texture = Texture.from_image(img, source=path)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ResourceLoadError(path, str(e)) from e
    logger.debug("loaded texture %s (%dx%d)", path, texture.width, texture.height)
    return texture
