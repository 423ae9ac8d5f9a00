from __future__ import annotations

import argparse
import logging
import math
import os
from typing import List, Tuple

import numpy as np
import matplotlib.pyplot as plt

from common.logging import setup_default_logging
from plotting import autosize_bounds, render_to_axes, save_shape_as_svg
from shapes import BLUE, RED, Shape, Rect, combine_all, image_w, rect
from textures import Texture


logger = logging.getLogger(__name__)


def checkerboard_texture(cells: int = 8, cell_px: int = 8) -> Texture:
    n = cells * cell_px
    ii, jj = np.meshgrid(np.arange(n) // cell_px, np.arange(n) // cell_px)
    on = ((ii + jj) % 2 == 0)
    px = np.zeros((n, n // 2, 4), dtype=np.uint8)
    px[..., 3] = 255
    px[on[:, : n // 2]] = (240, 200, 60, 255)
    px[~on[:, : n // 2]] = (40, 90, 160, 255)
    return Texture(pixels=px, source="checkerboard")


def rotate_about(shape: Shape, pivot: Tuple[float, float], angle: float) -> Shape:
    px, py = pivot
    return shape.translate((-px, -py)).rotate(angle).translate((px, py))


def gallery() -> List[Tuple[str, Shape]]:
    unit = rect((-0.5, -0.5), (0.5, 0.5))
    bar = Rect((0.0, -0.1), (0.8, 0.1), color=RED)
    spokes = combine_all(bar.rotate(i * math.pi / 4.0) for i in range(8))
    tex = checkerboard_texture()
    return [
        ("Rect", unit),
        ("translate (0.1, 0.1)", unit.translate((0.1, 0.1))),
        ("rotate π/6 about origin", Rect((0.2, 0.2), (0.6, 0.4), color=BLUE).rotate(math.pi / 6.0)),
        ("rotate π/6 about pivot", rotate_about(Rect((0.2, 0.2), (0.6, 0.4), color=BLUE), (0.4, 0.3), math.pi / 6.0)),
        ("combine: 8 spokes", spokes),
        ("image_w(tex, 0.4)", image_w(tex, 0.4).rotate(0.3)),
    ]


def main():
    parser = argparse.ArgumentParser(description="Render a gallery of primitives and combinators.")
    parser.add_argument("--outdir", type=str, default="plots", help="output directory")
    parser.add_argument("--res", type=int, default=200, help="raster resolution per panel")
    parser.add_argument("--log-level", type=str, default="INFO", help="logging level")
    args = parser.parse_args()
    setup_default_logging(args.log_level)
    os.makedirs(args.outdir, exist_ok=True)

    items = gallery()
    cols = 3
    rows = (len(items) + cols - 1) // cols
    fig, axes = plt.subplots(rows, cols, figsize=(4.0 * cols, 4.0 * rows), constrained_layout=True)
    axes = np.atleast_2d(axes)
    for idx, (title, shape) in enumerate(items):
        ax = axes[idx // cols, idx % cols]
        xlim, ylim = autosize_bounds(shape, margin=0.2)
        render_to_axes(ax, shape, xlim=xlim, ylim=ylim, resolution=args.res, title=title,
                       show_axes=True, show_grid=True)
    for idx in range(len(items), rows * cols):
        axes[idx // cols, idx % cols].axis("off")
    grid_path = os.path.join(args.outdir, "shapes_gallery.png")
    fig.savefig(grid_path, dpi=150)
    plt.close(fig)
    logger.info("wrote %s", grid_path)

    save_shape_as_svg(items[4][1], os.path.join(args.outdir, "shapes_spokes.svg"))


if __name__ == "__main__":
    main()
