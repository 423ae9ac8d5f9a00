from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from plotting import (
    RenderConfig,
    autosize_bounds,
    render_frames_to_gif,
    render_to_file,
    rgba_to_image,
    sample_shape_rgba,
    triangle_arrays,
)
from shapes import BLUE, RED, Rect, Triangles, image_rect


def test_triangle_arrays_layout(petal) -> None:
    shape = petal.combine(Rect((0, 0), (1, 1), color=RED))
    positions, texcoords, colors, textures = triangle_arrays(shape)
    assert positions.shape == (4, 3, 2)
    assert texcoords.shape == (4, 3, 2)
    assert colors.shape == (4, 4)
    assert textures[0] is textures[1]
    assert textures[2] is None and textures[3] is None
    np.testing.assert_array_equal(colors[3], RED)


def test_triangle_arrays_empty() -> None:
    positions, texcoords, colors, textures = triangle_arrays(Triangles())
    assert positions.shape == (0, 3, 2)
    assert colors.shape == (0, 4)
    assert textures == []


def test_autosize_bounds_is_square_with_margin() -> None:
    xlim, ylim = autosize_bounds(Rect((0, 0), (2, 1)), margin=0.5)
    assert xlim == pytest.approx((-0.5, 2.5))
    assert ylim == pytest.approx((-1.0, 2.0))


def test_autosize_bounds_defaults_for_empty() -> None:
    assert autosize_bounds(Triangles()) == ((-1.0, 1.0), (-1.0, 1.0))


def test_sample_flat_rect() -> None:
    _, _, RGBA = sample_shape_rgba(Rect((-0.5, -0.5), (0.5, 0.5), color=RED), (-1, 1), (-1, 1), resolution=21)
    assert RGBA.shape == (21, 21, 4)
    np.testing.assert_allclose(RGBA[10, 10], RED)
    assert RGBA[0, 0, 3] == 0.0
    assert RGBA[20, 20, 3] == 0.0


def test_sample_paints_in_emission_order() -> None:
    under = Rect((-0.5, -0.5), (0.5, 0.5), color=RED)
    over = Rect((-0.25, -0.25), (0.25, 0.25), color=BLUE)
    _, _, a = sample_shape_rgba(under.combine(over), (-1, 1), (-1, 1), resolution=21)
    _, _, b = sample_shape_rgba(over.combine(under), (-1, 1), (-1, 1), resolution=21)
    np.testing.assert_allclose(a[10, 10], BLUE)
    np.testing.assert_allclose(b[10, 10], RED)


def test_sample_blends_translucent_color() -> None:
    base = Rect((-1, -1), (1, 1), color=(1.0, 0.0, 0.0, 1.0))
    glass = Rect((-1, -1), (1, 1), color=(0.0, 0.0, 1.0, 0.5))
    _, _, RGBA = sample_shape_rgba(base | glass, (-0.5, 0.5), (-0.5, 0.5), resolution=5)
    # (-0.25, -0.25) lies inside exactly one triangle of each rect
    np.testing.assert_allclose(RGBA[1, 1], [0.5, 0.0, 0.5, 1.0])


def test_sample_textured_rect(texture_4x2) -> None:
    shape = image_rect(texture_4x2, (-1, -1), (1, 1))
    _, _, RGBA = sample_shape_rgba(shape, (-1, 1), (-1, 1), resolution=21)
    # Top of the shape shows the top (red) row of the image
    np.testing.assert_allclose(RGBA[18, 10], RED)
    np.testing.assert_allclose(RGBA[2, 10], BLUE)


def test_sample_skips_degenerate_and_nan() -> None:
    flat = Rect((0, 0), (1, 0))
    broken = Rect((0, 0), (1, 1)).translate((float("nan"), 0.0))
    _, _, RGBA = sample_shape_rgba(flat | broken, (-1, 1), (-1, 1), resolution=11)
    assert not np.any(RGBA[:, :, 3])


@pytest.mark.parametrize("p0,p1", [((-1, -1), (1, 1)), ((1, -1), (-1, 1))])
def test_translucent_rect_diagonal_is_painted_once(p0, p1) -> None:
    shape = Rect(p0, p1, color=(1.0, 0.0, 0.0, 0.5))
    # The 5x5 grid over (-0.5, 0.5) puts pixels exactly on the shared diagonal
    _, _, RGBA = sample_shape_rgba(shape, (-0.5, 0.5), (-0.5, 0.5), resolution=5)
    np.testing.assert_allclose(RGBA[:, :, 3], 0.5)
    np.testing.assert_allclose(RGBA[:, :, 0], 1.0)


def test_adjacent_rects_share_an_edge_once() -> None:
    left = Rect((-1, -1), (0, 1), color=(0.0, 0.0, 1.0, 0.5))
    right = Rect((0, -1), (1, 1), color=(0.0, 0.0, 1.0, 0.5))
    _, _, RGBA = sample_shape_rgba(left | right, (-0.5, 0.5), (-0.5, 0.5), resolution=5)
    # Column 2 lies on x = 0
    np.testing.assert_allclose(RGBA[:, :, 3], 0.5)


def test_sample_skips_nan_texcoords(texture_4x2) -> None:
    shape = Triangles(rt.map_tex(lambda p: p * np.nan) for rt in image_rect(texture_4x2, (-1, -1), (1, 1)))
    _, _, RGBA = sample_shape_rgba(shape | Rect((-0.2, -0.2), (0.2, 0.2), color=RED), (-1, 1), (-1, 1), resolution=11)
    np.testing.assert_allclose(RGBA[5, 5], RED)
    assert RGBA[1, 1, 3] == 0.0


def test_rgba_to_image_flips_rows() -> None:
    RGBA = np.zeros((2, 1, 4))
    RGBA[0] = (1.0, 0.0, 0.0, 1.0)  # bottom
    RGBA[1] = (0.0, 0.0, 1.0, 1.0)  # top
    img = rgba_to_image(RGBA)
    assert img.mode == "RGBA"
    assert img.getpixel((0, 0)) == (0, 0, 255, 255)
    assert img.getpixel((0, 1)) == (255, 0, 0, 255)

    flat = rgba_to_image(np.zeros((1, 1, 4)), background=(1.0, 1.0, 1.0))
    assert flat.mode == "RGB"
    assert flat.getpixel((0, 0)) == (255, 255, 255)


def test_render_config_validation() -> None:
    with pytest.raises(ValueError):
        RenderConfig(resolution=0)
    with pytest.raises(ValueError):
        RenderConfig(xlim=(0.0, 1.0))
    cfg = RenderConfig(xlim=(0.0, 1.0), ylim=(2.0, 3.0))
    assert cfg.resolve_bounds(Triangles()) == ((0.0, 1.0), (2.0, 3.0))


def test_render_to_file_writes_png(tmp_path, petal) -> None:
    out = tmp_path / "out" / "petal.png"
    result = render_to_file(petal, str(out), config=RenderConfig(resolution=32, figsize=(2, 2), dpi=50))
    assert result is None
    assert out.exists()
    with Image.open(out) as img:
        assert img.size[0] > 0


def test_render_to_file_in_memory(petal) -> None:
    img = render_to_file(petal, None, config=RenderConfig(resolution=16, figsize=(1, 1), dpi=40), return_image=True)
    assert isinstance(img, Image.Image)
    with pytest.raises(ValueError):
        render_to_file(petal, None)


def test_render_frames_to_gif(tmp_path, unit_rect) -> None:
    frames = [unit_rect.rotate(a) for a in (0.0, 0.4, 0.8)]
    out = render_frames_to_gif(frames, str(tmp_path / "spin.gif"), config=RenderConfig(resolution=24))
    with Image.open(out) as img:
        assert img.n_frames == 3
        assert img.size == (24, 24)
    with pytest.raises(ValueError):
        render_frames_to_gif([], str(tmp_path / "empty.gif"))
