from __future__ import annotations

import math

import numpy as np
import pytest

import demo_flower
import plot_shapes
import visualize_composition_tree as vct
from shapes import Rect


def test_build_petal_falls_back_to_flat_rect(tmp_path) -> None:
    cfg = demo_flower.FlowerConfig(petal_path=str(tmp_path / "missing.png"))
    petal = demo_flower.build_petal(cfg)
    tris = list(petal)
    assert len(tris) == 2
    assert all(rt.texture is None for rt in tris)


def test_build_petal_uses_image(png_path) -> None:
    petal = demo_flower.build_petal(demo_flower.FlowerConfig(petal_path=png_path))
    tris = list(petal)
    assert tris[0].texture is tris[1].texture
    pts = np.concatenate([rt.tri.positions.points for rt in tris])
    # 20x10 image at width 0.4, shifted right by 0.3
    assert pts[:, 0].min() == pytest.approx(0.1)
    assert pts[:, 1].max() - pts[:, 1].min() == pytest.approx(0.2)


def test_flower_and_frames(png_path) -> None:
    cfg = demo_flower.FlowerConfig(petal_path=png_path, frames=3)
    flower = demo_flower.build_flower(demo_flower.build_petal(cfg), cfg.petals)
    assert flower.triangle_count() == 12
    assert len({id(rt.texture) for rt in flower}) == 1
    frames = demo_flower.flower_frames(flower, cfg)
    assert len(frames) == 3
    assert frames[1].angle == cfg.spin / cfg.fps


@pytest.mark.parametrize("field,value", [("fps", 0.0), ("frames", 0), ("petals", 0), ("petal_width", -0.1)])
def test_flower_config_rejects_bad_values(field, value) -> None:
    with pytest.raises(ValueError, match=field):
        demo_flower.FlowerConfig(**{field: value})


def test_gallery_shapes_all_produce_triangles() -> None:
    for title, shape in plot_shapes.gallery():
        assert shape.triangle_count() > 0, title


def test_rotate_about_keeps_pivot() -> None:
    turned = plot_shapes.rotate_about(Rect((0, 0), (1, 1)), (0.0, 0.0), math.pi / 3)
    first = next(iter(turned))
    np.testing.assert_allclose(first.tri.positions.points[0], [0.0, 0.0], atol=1e-12)


def test_build_tree_mirrors_expression() -> None:
    root = vct.build_tree(vct.example_shape())
    assert root.label == "∪"
    assert len(root.children) == 2
    leaves = vct._collect_leaves(root, [])
    assert len(leaves) == 4
    assert all(leaf.label == "rect" for leaf in leaves)


def test_visualize_shape_tree_writes_png(tmp_path) -> None:
    out = vct.visualize_shape_tree(vct.example_shape(), str(tmp_path / "tree.png"), dpi=50)
    assert (tmp_path / "tree.png").exists()
    assert out.endswith("tree.png")
