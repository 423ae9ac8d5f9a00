from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Optional, Sequence, Tuple
import math
import numpy as np

from .color import RGBA, WHITE, to_rgba

if TYPE_CHECKING:
    from textures import Texture


PointLike = Any  # (x, y) list/tuple, ndarray of shape (2,), or anything with .x and .y


def as_point(p: PointLike) -> np.ndarray:
    """
    Convert a caller-supplied 2D pair into a read-only float64 array of shape (2,).
    Accepts sequences, numpy arrays and objects exposing `x` / `y` attributes.
    """
    if hasattr(p, "x") and hasattr(p, "y") and not isinstance(p, np.ndarray):
        arr = np.array([p.x, p.y], dtype=float)
    else:
        arr = np.array(p, dtype=float)
    if arr.shape != (2,):
        raise ValueError(f"expected a 2-component point, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


# Vectors and points share a representation; the name documents intent at call sites.
as_vector = as_point


@dataclass(frozen=True, eq=False)
class Positions:
    """
    Exactly three 2D points in caller-given order (winding is preserved).
    Used for both space coordinates and texture coordinates.
    """
    points: np.ndarray  # shape (3, 2)

    def __post_init__(self):
        pts = np.array(self.points, dtype=float)
        if pts.shape != (3, 2):
            raise ValueError(f"Positions requires shape (3, 2), got {pts.shape}")
        pts.setflags(write=False)
        object.__setattr__(self, "points", pts)

    @staticmethod
    def of(a: PointLike, b: PointLike, c: PointLike) -> "Positions":
        return Positions(np.stack([as_point(a), as_point(b), as_point(c)]))

    def map(self, f: Callable[[np.ndarray], np.ndarray]) -> "Positions":
        return Positions(np.stack([as_point(f(p)) for p in self.points]))

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.points)

    def __len__(self) -> int:
        return 3

    def __getitem__(self, i: int) -> np.ndarray:
        return self.points[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Positions):
            return NotImplemented
        return bool(np.array_equal(self.points, other.points))

    def __hash__(self) -> int:
        # + 0.0 folds -0.0 into 0.0, which array_equal treats as equal
        return hash((self.points + 0.0).tobytes())


ZERO_TEXCOORDS = Positions(np.zeros((3, 2)))


@dataclass(frozen=True)
class Tri:
    """
    One triangle: space vertices, texture coordinates and an RGBA color.
    """
    positions: Positions
    texcoords: Positions
    color: RGBA = WHITE

    @staticmethod
    def new(positions: Sequence[PointLike],
            texcoords: Sequence[PointLike],
            color: Sequence[float] = WHITE) -> "Tri":
        if len(positions) != 3 or len(texcoords) != 3:
            raise ValueError("a triangle needs exactly three positions and three texcoords")
        return Tri(
            positions=Positions.of(*positions),
            texcoords=Positions.of(*texcoords),
            color=to_rgba(color),
        )

    @staticmethod
    def new_pos(positions: Sequence[PointLike]) -> "Tri":
        """
        Single-color white triangle with every texcoord at (0, 0).
        """
        if len(positions) != 3:
            raise ValueError("a triangle needs exactly three positions")
        return Tri(positions=Positions.of(*positions), texcoords=ZERO_TEXCOORDS, color=WHITE)


@dataclass(frozen=True)
class RendTri:
    """
    Renderable triangle: a `Tri` plus an optional texture handle.
    The texture is shared, never copied; many triangles may point at one handle.
    """
    tri: Tri
    texture: Optional["Texture"] = None

    @staticmethod
    def from_tri(tri: Tri) -> "RendTri":
        return RendTri(tri=tri, texture=None)

    @property
    def positions(self) -> Positions:
        return self.tri.positions

    @property
    def texcoords(self) -> Positions:
        return self.tri.texcoords

    @property
    def color(self) -> RGBA:
        return self.tri.color

    def map_pos(self, f: Callable[[np.ndarray], np.ndarray]) -> "RendTri":
        return replace(self, tri=replace(self.tri, positions=self.tri.positions.map(f)))

    def map_tex(self, f: Callable[[np.ndarray], np.ndarray]) -> "RendTri":
        return replace(self, tri=replace(self.tri, texcoords=self.tri.texcoords.map(f)))

    def map_color(self, f: Callable[[RGBA], Sequence[float]]) -> "RendTri":
        return replace(self, tri=replace(self.tri, color=to_rgba(f(self.tri.color))))

    def with_texture(self, texture: Optional["Texture"]) -> "RendTri":
        return replace(self, texture=texture)


class Shape:
    """
    Anything that yields a finite, restartable sequence of `RendTri`.

    Subclasses implement `__iter__` so that every call starts a fresh pass;
    iterating never consumes or mutates the shape.
    """
    def __iter__(self) -> Iterator[RendTri]:
        raise NotImplementedError

    @property
    def children(self) -> Tuple["Shape", ...]:
        return ()

    # ---- Composition DSL ----
    def combine(self, other: Iterable[RendTri]) -> "Combine":
        return Combine(self, as_shape(other))

    def __or__(self, other: Iterable[RendTri]) -> "Combine":
        return self.combine(other)

    # ---- Transform helpers ----
    def translate(self, vector: PointLike) -> "Translate":
        return Translate(self, as_vector(vector))

    def rotate(self, angle: float) -> "Rotate":
        return Rotate(self, angle)

    # ---- Draining ----
    def collect(self) -> "Triangles":
        return Triangles(tuple(self))

    def triangle_count(self) -> int:
        return sum(1 for _ in self)


class Triangles(Shape):
    """
    A materialized list of triangles; itself a shape.
    """
    def __init__(self, tris: Iterable[RendTri] = ()):
        self.tris: Tuple[RendTri, ...] = tuple(tris)
        for t in self.tris:
            if not isinstance(t, RendTri):
                raise TypeError(f"Triangles expects RendTri items, got {type(t).__name__}")

    def __iter__(self) -> Iterator[RendTri]:
        return iter(self.tris)

    def __len__(self) -> int:
        return len(self.tris)

    def triangle_count(self) -> int:
        return len(self.tris)

    def __repr__(self) -> str:
        return f"Triangles(n={len(self.tris)})"


def as_shape(obj: Any) -> Shape:
    if isinstance(obj, Shape):
        return obj
    if isinstance(obj, RendTri):
        return Triangles((obj,))
    if isinstance(obj, Iterable):
        # One-shot iterators are materialized so the result stays restartable
        return Triangles(obj)
    raise TypeError(f"cannot use {type(obj).__name__} as a shape")


class Translate(Shape):
    def __init__(self, shape: Iterable[RendTri], vector: np.ndarray):
        self.shape = as_shape(shape)
        self.vector = as_vector(vector)

    @property
    def children(self) -> Tuple[Shape, ...]:
        return (self.shape,)

    def __iter__(self) -> Iterator[RendTri]:
        v = self.vector
        for rt in self.shape:
            yield replace(rt, tri=replace(rt.tri, positions=Positions(rt.tri.positions.points + v)))

    def __repr__(self) -> str:
        return f"Translate({self.shape!r}, ({self.vector[0]:g}, {self.vector[1]:g}))"


class Rotate(Shape):
    """
    Rotation about the global origin. Rotate about a pivot p with
    `shape.translate(-p).rotate(theta).translate(p)`.
    """
    def __init__(self, shape: Iterable[RendTri], angle: float):
        self.shape = as_shape(shape)
        self.angle = float(angle)
        c = math.cos(self.angle)
        s = math.sin(self.angle)
        self._matrix = np.array([[c, -s], [s, c]], dtype=float)

    @property
    def children(self) -> Tuple[Shape, ...]:
        return (self.shape,)

    def __iter__(self) -> Iterator[RendTri]:
        # Row-vector points: p' = p @ R^T
        rt_matrix = self._matrix.T
        for rt in self.shape:
            yield replace(rt, tri=replace(rt.tri, positions=Positions(rt.tri.positions.points @ rt_matrix)))

    def __repr__(self) -> str:
        return f"Rotate({self.shape!r}, {self.angle:g})"


class Combine(Shape):
    def __init__(self, first: Iterable[RendTri], second: Iterable[RendTri]):
        self.first = as_shape(first)
        self.second = as_shape(second)

    @property
    def children(self) -> Tuple[Shape, ...]:
        return (self.first, self.second)

    def __iter__(self) -> Iterator[RendTri]:
        # Walk nested Combine nodes with an explicit stack so long folds
        # do not stack up one generator frame per node.
        stack: list[Shape] = [self.second, self.first]
        while stack:
            node = stack.pop()
            if isinstance(node, Combine):
                stack.append(node.second)
                stack.append(node.first)
            else:
                yield from node

    def __repr__(self) -> str:
        return f"Combine({self.first!r}, {self.second!r})"


def combine_all(shapes: Iterable[Iterable[RendTri]]) -> Shape:
    """
    Left fold of any number of shapes into nested `Combine`s.
    """
    items = [as_shape(s) for s in shapes]
    if not items:
        raise ValueError("combine_all requires at least one shape")
    cur = items[0]
    for nxt in items[1:]:
        cur = Combine(cur, nxt)
    return cur
