from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple
import io
import logging
import os
import numpy as np
import matplotlib.pyplot as plt
from PIL import Image

from shapes import RendTri, as_shape, combine_all
from textures import Texture

from .config import RenderConfig


logger = logging.getLogger(__name__)

Bounds = Tuple[Tuple[float, float], Tuple[float, float]]


def triangle_arrays(
    shape: Iterable[RendTri],
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, List[Optional[Texture]]]:
    """
    Drain one pass of a shape into flat arrays, the layout a vertex buffer wants:
    positions (N, 3, 2), texcoords (N, 3, 2), colors (N, 4) and one texture per triangle.
    """
    tris = list(as_shape(shape))
    if not tris:
        return np.zeros((0, 3, 2)), np.zeros((0, 3, 2)), np.zeros((0, 4)), []
    positions = np.stack([rt.tri.positions.points for rt in tris])
    texcoords = np.stack([rt.tri.texcoords.points for rt in tris])
    colors = np.array([rt.tri.color for rt in tris], dtype=float)
    textures = [rt.texture for rt in tris]
    return positions, texcoords, colors, textures


def autosize_bounds(
    shape: Iterable[RendTri],
    margin: float = 0.1,
    default_bounds: Tuple[float, float, float, float] = (-1.0, 1.0, -1.0, 1.0),
) -> Bounds:
    """
    Square x/y limits around every vertex of the shape, padded by `margin`.
    Returns `default_bounds` for an empty (or entirely non-finite) shape.
    """
    positions, _, _, _ = triangle_arrays(shape)
    pts = positions.reshape(-1, 2)
    pts = pts[np.all(np.isfinite(pts), axis=1)]
    if pts.size == 0:
        xmin, xmax, ymin, ymax = default_bounds
        return (xmin, xmax), (ymin, ymax)
    pmin = pts.min(axis=0)
    pmax = pts.max(axis=0)
    center = (pmin + pmax) / 2.0
    half = float(np.max(pmax - pmin)) / 2.0 + margin
    if half <= 0.0:
        half = 1.0
    return ((float(center[0] - half), float(center[0] + half)),
            (float(center[1] - half), float(center[1] + half)))


_EDGE_TOL = 1e-9


def _is_top_left(a: np.ndarray, b: np.ndarray) -> bool:
    # For a counter-clockwise triangle (y up): a left edge runs downward,
    # a top edge is horizontal and runs leftward.
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    return bool(dy < 0.0 or (dy == 0.0 and dx < 0.0))


def _covered(w: np.ndarray, top_left: bool) -> np.ndarray:
    # Pixels exactly on an edge belong to the triangle only when the edge is top-left,
    # so a pixel on an edge shared by two triangles is painted once.
    if top_left:
        return w >= -_EDGE_TOL
    return w > _EDGE_TOL


def _paint_triangle(acc: np.ndarray, xs: np.ndarray, ys: np.ndarray, rt: RendTri) -> None:
    p = rt.tri.positions.points
    t = rt.tri.texcoords.points
    if not np.all(np.isfinite(p)):
        return
    if rt.texture is not None and not np.all(np.isfinite(t)):
        return
    (x0, y0), (x1, y1), (x2, y2) = p
    area = (x1 - x0) * (y2 - y0) - (x2 - x0) * (y1 - y0)
    if area == 0.0:
        return
    if area < 0.0:
        # Clockwise input: swap two vertices so the fill rule sees one orientation
        order = [0, 2, 1]
        p = p[order]
        t = t[order]
        area = -area
        (x0, y0), (x1, y1), (x2, y2) = p
    lo = p.min(axis=0)
    hi = p.max(axis=0)
    i0 = int(np.searchsorted(xs, lo[0], side="left"))
    i1 = int(np.searchsorted(xs, hi[0], side="right"))
    j0 = int(np.searchsorted(ys, lo[1], side="left"))
    j1 = int(np.searchsorted(ys, hi[1], side="right"))
    if i0 >= i1 or j0 >= j1:
        return
    gx, gy = np.meshgrid(xs[i0:i1], ys[j0:j1])
    # Barycentric weights; w_i is zero on the edge opposite vertex i
    w0 = ((x1 - gx) * (y2 - gy) - (x2 - gx) * (y1 - gy)) / area
    w1 = ((x2 - gx) * (y0 - gy) - (x0 - gx) * (y2 - gy)) / area
    w2 = 1.0 - w0 - w1
    inside = (_covered(w0, _is_top_left(p[1], p[2]))
              & _covered(w1, _is_top_left(p[2], p[0]))
              & _covered(w2, _is_top_left(p[0], p[1])))
    if not np.any(inside):
        return
    color = np.asarray(rt.tri.color, dtype=float)
    if rt.texture is not None:
        uv = (w0[inside][:, None] * t[0]
              + w1[inside][:, None] * t[1]
              + w2[inside][:, None] * t[2])
        src = rt.texture.sample(uv) * color
    else:
        src = np.tile(color, (int(inside.sum()), 1))
    a = src[:, 3:4]
    region = acc[j0:j1, i0:i1]
    dst = region[inside]
    # "over" compositing on a premultiplied accumulator
    out = np.empty_like(dst)
    out[:, :3] = src[:, :3] * a + dst[:, :3] * (1.0 - a)
    out[:, 3:4] = a + dst[:, 3:4] * (1.0 - a)
    region[inside] = out


def sample_shape_rgba(
    shape: Iterable[RendTri],
    xlim: Tuple[float, float],
    ylim: Tuple[float, float],
    resolution: int = 512,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Rasterize a shape over a regular grid, returning X, Y, RGBA.

    Triangles are painted in emission order (later ones on top). Textured
    fragments are texel * color. Row 0 of the result lies at ylim[0], so pass
    origin="lower" to imshow.
    """
    shape = as_shape(shape)
    xs = np.linspace(xlim[0], xlim[1], resolution)
    ys = np.linspace(ylim[0], ylim[1], resolution)
    X, Y = np.meshgrid(xs, ys)
    acc = np.zeros((resolution, resolution, 4), dtype=float)
    count = 0
    for rt in shape:
        _paint_triangle(acc, xs, ys, rt)
        count += 1
    alpha = acc[:, :, 3:4]
    RGBA = np.zeros_like(acc)
    np.divide(acc[:, :, :3], alpha, out=RGBA[:, :, :3], where=alpha > 0.0)
    RGBA[:, :, 3:4] = alpha
    logger.debug("rasterized %d triangles at %dx%d", count, resolution, resolution)
    return X, Y, np.clip(RGBA, 0.0, 1.0)


def rgba_to_image(
    RGBA: np.ndarray,
    background: Optional[Sequence[float]] = None,
) -> Image.Image:
    """
    Convert a lower-origin RGBA float grid into a Pillow image (top row first).
    With a background color, the result is flattened to RGB.
    """
    img = np.flipud(np.clip(RGBA, 0.0, 1.0))
    if background is None:
        return Image.fromarray((img * 255.0 + 0.5).astype(np.uint8))
    bg = np.asarray(background, dtype=float).reshape(1, 1, 3)
    a = img[:, :, 3:4]
    rgb = img[:, :, :3] * a + bg * (1.0 - a)
    return Image.fromarray((rgb * 255.0 + 0.5).astype(np.uint8))


def render_to_axes(
    ax,
    shape: Iterable[RendTri],
    xlim: Optional[Tuple[float, float]] = None,
    ylim: Optional[Tuple[float, float]] = None,
    resolution: int = 512,
    title: Optional[str] = None,
    interpolation: str = "nearest",
    show_axes: bool = False,
    show_grid: bool = False,
) -> None:
    shape = as_shape(shape)
    if xlim is None or ylim is None:
        xlim, ylim = autosize_bounds(shape)

    _, _, RGBA = sample_shape_rgba(shape, xlim, ylim, resolution=resolution)
    ax.imshow(
        RGBA,
        extent=(xlim[0], xlim[1], ylim[0], ylim[1]),
        origin="lower",
        interpolation=interpolation,
        aspect="equal",
    )
    if title:
        ax.set_title(title)
    if show_axes:
        ax.set_aspect("equal", adjustable="box")
        ax.set_xlim(*xlim)
        ax.set_ylim(*ylim)
        ax.grid(show_grid, alpha=0.2, linestyle="--")
    else:
        ax.axis("off")


def render_to_file(
    shape: Iterable[RendTri],
    out_path: Optional[str],
    config: RenderConfig = RenderConfig(),
    title: Optional[str] = None,
    format: Optional[str] = None,
    return_image: bool = False,
) -> Optional[Image.Image]:
    """
    Render a shape with matplotlib. Writes `out_path` when given; with
    `return_image=True` also returns the figure as a Pillow image.
    """
    if out_path is None and not return_image:
        raise ValueError("render_to_file needs an output path or return_image=True")
    shape = as_shape(shape)
    xlim, ylim = config.resolve_bounds(shape)
    fig, ax = plt.subplots(1, 1, figsize=config.figsize, constrained_layout=True)
    fig.patch.set_facecolor(config.background)
    render_to_axes(
        ax,
        shape,
        xlim=xlim,
        ylim=ylim,
        resolution=config.resolution,
        title=title,
        show_axes=config.show_axes,
    )
    try:
        if out_path is not None:
            out_dir = os.path.dirname(out_path)
            if out_dir:
                os.makedirs(out_dir, exist_ok=True)
            fig.savefig(out_path, dpi=config.dpi, format=format, facecolor=config.background)
            logger.info("wrote %s", out_path)
        if return_image:
            buffer = io.BytesIO()
            fig.savefig(buffer, format="png", dpi=config.dpi, facecolor=config.background)
            buffer.seek(0)
            return Image.open(buffer)
    finally:
        plt.close(fig)
    return None


def render_frames_to_gif(
    frames: Sequence[Iterable[RendTri]],
    out_path: str,
    config: RenderConfig = RenderConfig(),
    duration_ms: int = 40,
) -> str:
    """
    Rasterize each frame directly (no matplotlib figure) and write an animated GIF.
    All frames share one set of bounds so the animation does not jump.
    """
    shapes = [as_shape(f) for f in frames]
    if not shapes:
        raise ValueError("render_frames_to_gif requires at least one frame")
    xlim, ylim = config.resolve_bounds(combine_all(shapes))
    images = []
    for s in shapes:
        _, _, RGBA = sample_shape_rgba(s, xlim, ylim, resolution=config.resolution)
        images.append(rgba_to_image(RGBA, background=config.background))
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    images[0].save(
        out_path,
        format="GIF",
        save_all=True,
        append_images=images[1:],
        duration=duration_ms,
        loop=0,
    )
    logger.info("wrote %d frames to %s", len(images), out_path)
    return out_path
