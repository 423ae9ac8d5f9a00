from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Optional, Sequence, Tuple
import numpy as np

from .color import RGBA, WHITE, to_rgba
from .geometry import PointLike, Positions, RendTri, Shape, Tri, ZERO_TEXCOORDS, as_point

if TYPE_CHECKING:
    from textures import Texture


# Unit-square texcoords in the same corner order as the rectangle split below.
_UNIT_TEXCOORDS = (
    Positions(np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])),
    Positions(np.array([[1.0, 1.0], [0.0, 1.0], [1.0, 0.0]])),
)


class Rect(Shape):
    """
    Axis-aligned rectangle from two opposite corners, emitted as two triangles:

        (x0, y0), (x1, y0), (x0, y1)   then   (x1, y1), (x0, y1), (x1, y0)

    New primitives follow this vertex order so winding stays consistent.
    """
    def __init__(self,
                 p0: PointLike,
                 p1: PointLike,
                 color: Sequence[float] = WHITE,
                 texture: Optional["Texture"] = None):
        self.p0 = as_point(p0)
        self.p1 = as_point(p1)
        self.color: RGBA = to_rgba(color)
        self.texture = texture
        self._tris = self._build()

    def _build(self) -> Tuple[RendTri, RendTri]:
        x0, y0 = self.p0
        x1, y1 = self.p1
        first = Positions(np.array([[x0, y0], [x1, y0], [x0, y1]], dtype=float))
        second = Positions(np.array([[x1, y1], [x0, y1], [x1, y0]], dtype=float))
        if self.texture is None:
            tex = (ZERO_TEXCOORDS, ZERO_TEXCOORDS)
        else:
            tex = _UNIT_TEXCOORDS
        return (
            RendTri(Tri(first, tex[0], self.color), self.texture),
            RendTri(Tri(second, tex[1], self.color), self.texture),
        )

    def __iter__(self) -> Iterator[RendTri]:
        return iter(self._tris)

    def triangle_count(self) -> int:
        return 2

    def __repr__(self) -> str:
        kind = "image" if self.texture is not None else "rect"
        return f"{kind}(({self.p0[0]:g}, {self.p0[1]:g}), ({self.p1[0]:g}, {self.p1[1]:g}))"


def rect(first: PointLike, second: PointLike, color: Sequence[float] = WHITE) -> Rect:
    return Rect(first, second, color=color)


def image_rect(texture: "Texture",
               p0: PointLike,
               p1: PointLike,
               color: Sequence[float] = WHITE) -> Rect:
    """
    Rectangle mapped with the full texture: (0, 0) at p0's corner, (1, 1) at p1's.
    Both triangles hold the very same texture handle.
    """
    if texture is None:
        raise ValueError("image_rect requires a texture")
    return Rect(p0, p1, color=color, texture=texture)


def image_w(texture: "Texture", width: float, color: Sequence[float] = WHITE) -> Rect:
    """
    Image rectangle centred on the origin with the given width and the
    height that keeps the texture's native aspect ratio.
    """
    height = float(width) * texture.height / texture.width
    hw, hh = float(width) / 2.0, height / 2.0
    return image_rect(texture, (-hw, -hh), (hw, hh), color=color)


def image_h(texture: "Texture", height: float, color: Sequence[float] = WHITE) -> Rect:
    width = float(height) * texture.width / texture.height
    hw, hh = width / 2.0, float(height) / 2.0
    return image_rect(texture, (-hw, -hh), (hw, hh), color=color)
