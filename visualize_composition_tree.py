from __future__ import annotations

import argparse
import logging
import math
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
from matplotlib.patches import Circle

from common.logging import setup_default_logging
from plotting.renderer import autosize_bounds, sample_shape_rgba
from shapes import Combine, Rect, Rotate, Shape, Translate, Triangles


logger = logging.getLogger(__name__)


@dataclass
class TreeNode:
    kind: str  # "op" or "leaf"
    label: str
    shape: Optional[Shape] = None
    children: List["TreeNode"] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0


def _label_for(shape: Shape) -> str:
    if isinstance(shape, Translate):
        return f"T({shape.vector[0]:.2g}, {shape.vector[1]:.2g})"
    if isinstance(shape, Rotate):
        return f"R {math.degrees(shape.angle):.0f}°"
    if isinstance(shape, Combine):
        return "∪"
    if isinstance(shape, Rect):
        return "image" if shape.texture is not None else "rect"
    if isinstance(shape, Triangles):
        return f"tris[{len(shape)}]"
    return type(shape).__name__


def build_tree(shape: Shape) -> TreeNode:
    """
    Mirror a shape expression as a tree of labelled nodes.
    Leaves keep their shape so they can be drawn as thumbnails.
    """
    kids = shape.children
    if not kids:
        return TreeNode(kind="leaf", label=_label_for(shape), shape=shape)
    return TreeNode(kind="op", label=_label_for(shape), children=[build_tree(c) for c in kids])


def _compute_depth(root: TreeNode) -> int:
    if not root.children:
        return 1
    return 1 + max(_compute_depth(ch) for ch in root.children)


def _assign_positions(root: TreeNode, y_step: float = 1.6) -> None:
    """
    Leaves get uniform x spacing in order; parents sit over the mean of their
    children; y is depth-based.
    """
    def assign_x(node: TreeNode, depth: int, next_x: float) -> Tuple[float, List[float]]:
        if not node.children:
            node.x = next_x
            node.y = -depth * y_step
            return next_x + 1.0, [node.x]
        xs: List[float] = []
        for ch in node.children:
            next_x, child_xs = assign_x(ch, depth + 1, next_x)
            xs.extend(child_xs)
        node.x = sum(xs) / len(xs)
        node.y = -depth * y_step
        return next_x, [node.x]

    assign_x(root, 0, 0.0)


def _gather_edges(node: TreeNode) -> List[Tuple[Tuple[float, float], Tuple[float, float]]]:
    edges: List[Tuple[Tuple[float, float], Tuple[float, float]]] = []
    for ch in node.children:
        edges.append(((node.x, node.y), (ch.x, ch.y)))
        edges.extend(_gather_edges(ch))
    return edges


def _collect_leaves(node: TreeNode, out: List[TreeNode]) -> List[TreeNode]:
    if not node.children:
        out.append(node)
    for c in node.children:
        _collect_leaves(c, out)
    return out


def _draw_tree(root: TreeNode,
               node_radius: float = 0.32,
               op_facecolor: Tuple[float, float, float] = (0.9, 0.9, 0.9),
               op_edgecolor: Tuple[float, float, float] = (0.2, 0.2, 0.2),
               font_size: int = 7,
               figsize_scale: float = 0.9) -> plt.Figure:
    leaves = _collect_leaves(root, [])
    x_min = min(l.x for l in leaves) - 1.0
    x_max = max(l.x for l in leaves) + 1.0
    depth = _compute_depth(root)
    y_min = -depth * 1.6 - 0.6
    y_max = 0.6
    width = x_max - x_min
    height = y_max - y_min
    fig_w = max(4.0, min(18.0, figsize_scale * width * 1.2))
    fig_h = max(3.0, min(12.0, figsize_scale * height * 0.9))
    fig, ax = plt.subplots(figsize=(fig_w, fig_h))
    for (x0, y0), (x1, y1) in _gather_edges(root):
        ax.plot([x0, x1], [y0, y1], color=(0.5, 0.5, 0.5), linewidth=1.0, zorder=1)

    def draw_node(n: TreeNode):
        if n.kind == "op":
            circ = Circle((n.x, n.y), node_radius, facecolor=op_facecolor, edgecolor=op_edgecolor,
                          linewidth=1.0, zorder=3)
            ax.add_patch(circ)
            ax.text(n.x, n.y, n.label, ha="center", va="center", fontsize=font_size, zorder=4)
        else:
            # Thumbnail in the leaf's own frame
            xlim, ylim = autosize_bounds(n.shape, margin=0.05)
            _, _, RGBA = sample_shape_rgba(n.shape, xlim, ylim, resolution=64)
            half = node_radius * 1.4
            extent = (n.x - half, n.x + half, n.y - half, n.y + half)
            ax.imshow(RGBA, extent=extent, origin="lower", interpolation="bilinear", zorder=3)
            ax.text(n.x, n.y - half - 0.15, n.label, ha="center", va="top", fontsize=font_size, zorder=4)
        for c in n.children:
            draw_node(c)

    draw_node(root)
    ax.set_xlim(x_min, x_max)
    ax.set_ylim(y_min, y_max)
    ax.set_aspect("equal")
    ax.axis("off")
    fig.tight_layout()
    return fig


def visualize_shape_tree(shape: Shape, out_path: str, dpi: int = 200) -> str:
    root = build_tree(shape)
    _assign_positions(root)
    fig = _draw_tree(root)
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    try:
        fig.savefig(out_path, dpi=dpi)
    finally:
        plt.close(fig)
    logger.info("wrote %s", out_path)
    return out_path


def example_shape() -> Shape:
    petal = Rect((-0.2, -0.1), (0.2, 0.1), color=(0.95, 0.55, 0.7)).translate((0.3, 0.0))
    center = Rect((-0.08, -0.08), (0.08, 0.08), color=(0.95, 0.8, 0.2))
    ring = petal.rotate(0.0) | petal.rotate(2.0 * math.pi / 3.0) | petal.rotate(4.0 * math.pi / 3.0)
    return ring | center


def main():
    parser = argparse.ArgumentParser(description="Draw the expression tree of an example shape.")
    parser.add_argument("--out", type=str, default="plots/composition_tree.png", help="Output PNG path")
    parser.add_argument("--dpi", type=int, default=200, help="Output image DPI (default: 200)")
    parser.add_argument("--log-level", type=str, default="INFO", help="logging level")
    args = parser.parse_args()
    setup_default_logging(args.log_level)
    visualize_shape_tree(example_shape(), out_path=args.out, dpi=args.dpi)


if __name__ == "__main__":
    main()
