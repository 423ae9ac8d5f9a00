import io
import logging
from typing import Iterable, List, Optional

import numpy as np
import matplotlib.pyplot as plt
from PIL import Image
from shapely.geometry import Polygon, box
import shapely.ops

from shapes import RendTri, as_shape
from shapes.color import modulate


logger = logging.getLogger(__name__)


def rendtri_to_shapely(rt: RendTri) -> Polygon:
    return Polygon([tuple(p) for p in rt.tri.positions.points])


def _fill_color(rt: RendTri) -> np.ndarray:
    # Textured triangles are flattened to the texture's mean color, tinted
    if rt.texture is not None:
        return np.clip(np.array(modulate(rt.texture.mean_color(), rt.tri.color)), 0.0, 1.0)
    return np.clip(np.array(rt.tri.color, dtype=float), 0.0, 1.0)


def shape_to_shapely(shape: Iterable[RendTri]):
    """
    Union of every non-degenerate triangle: the area the shape covers.
    """
    polys: List[Polygon] = []
    for rt in as_shape(shape):
        if not np.all(np.isfinite(rt.tri.positions.points)):
            continue
        poly = rendtri_to_shapely(rt)
        if poly.is_empty or poly.area == 0.0:
            continue
        polys.append(poly)
    if not polys:
        return Polygon()
    return shapely.ops.unary_union(polys)


def coverage_area(shape: Iterable[RendTri]) -> float:
    return float(shape_to_shapely(shape).area)


def draw_shape_on_axis(
    ax: plt.Axes,
    shape: Iterable[RendTri],
    margin: float = 0.1,
) -> None:
    """
    Draws every triangle as a filled polygon in emission order, clipped to a
    square frame around the covered area.
    """
    shape = as_shape(shape)
    total_shape = shape_to_shapely(shape)

    if total_shape.is_empty:
        ax.set_aspect('equal')
        ax.axis('off')
        return

    minx, miny, maxx, maxy = total_shape.bounds
    max_dim = max(maxx - minx, maxy - miny)
    center_x = (minx + maxx) / 2
    center_y = (miny + maxy) / 2
    half_side = (max_dim / 2) + margin

    clip_xmin = center_x - half_side
    clip_xmax = center_x + half_side
    clip_ymin = center_y - half_side
    clip_ymax = center_y + half_side

    clip_box = box(clip_xmin, clip_ymin, clip_xmax, clip_ymax)

    ax.set_aspect('equal')
    ax.set_xlim(clip_xmin, clip_xmax)
    ax.set_ylim(clip_ymin, clip_ymax)
    ax.axis('off')

    for z, rt in enumerate(shape):
        if not np.all(np.isfinite(rt.tri.positions.points)):
            continue
        poly = rendtri_to_shapely(rt)
        if not poly.is_valid or poly.area == 0.0:
            continue
        clipped = poly.intersection(clip_box)
        if clipped.is_empty or not isinstance(clipped, Polygon):
            continue
        rgba = _fill_color(rt)
        x, y = clipped.exterior.xy
        ax.fill(x, y, fc=rgba, ec=rgba, linewidth=0.3, joinstyle='round', zorder=z)


def save_shape_as_svg(
    shape: Iterable[RendTri],
    filename: str
) -> None:
    fig, ax = plt.subplots(figsize=(6, 6))
    try:
        draw_shape_on_axis(ax, shape)
        fig.savefig(
            filename,
            format='svg',
            bbox_inches='tight',
            pad_inches=0
        )
    finally:
        plt.close(fig)
    logger.info("wrote %s", filename)


def save_shape_as_png(
    shape: Iterable[RendTri],
    filename: Optional[str] = None,
    resolution: int = 128
) -> Optional[Image.Image]:
    """
    Saves the vector drawing as a PNG, or returns it as a Pillow image when
    filename is None.
    """
    # Figure is 3 inches wide; DPI picks the final pixel size
    dpi = resolution / 3.0
    fig, ax = plt.subplots(figsize=(3, 3))
    try:
        draw_shape_on_axis(ax, shape)
        if filename is None:
            buffer = io.BytesIO()
            fig.savefig(
                buffer,
                format='png',
                dpi=dpi,
                bbox_inches='tight',
                pad_inches=0,
                facecolor='white'
            )
            buffer.seek(0)
            return Image.open(buffer)
        fig.savefig(
            filename,
            format='png',
            dpi=dpi,
            bbox_inches='tight',
            pad_inches=0,
            facecolor='white'
        )
    finally:
        plt.close(fig)
    logger.info("wrote %s", filename)
    return None
