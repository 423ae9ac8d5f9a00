"""Shared fixtures: small shapes and in-memory textures."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
from PIL import Image

from shapes import Rect, Shape, image_w
from textures import Texture


@pytest.fixture()
def unit_rect() -> Rect:
    return Rect([-0.5, -0.5], [0.5, 0.5])


@pytest.fixture()
def texture_4x2() -> Texture:
    # 4 wide, 2 tall: top row red, bottom row blue
    px = np.zeros((2, 4, 4), dtype=np.uint8)
    px[0] = (255, 0, 0, 255)
    px[1] = (0, 0, 255, 255)
    return Texture(pixels=px, source="memory")


@pytest.fixture()
def png_path(tmp_path) -> str:
    path = tmp_path / "petal.png"
    Image.new("RGBA", (20, 10), (200, 100, 150, 255)).save(path)
    return str(path)


@pytest.fixture()
def petal(texture_4x2) -> Shape:
    return image_w(texture_4x2, 0.4).translate([0.3, 0.0])
