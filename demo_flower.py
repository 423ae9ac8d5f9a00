from __future__ import annotations

import argparse
import logging
import math
import os
from dataclasses import dataclass

from common.logging import setup_default_logging
from plotting import RenderConfig, render_frames_to_gif, render_to_file
from shapes import Shape, Rect, combine_all, image_w
from textures import ResourceLoadError, load_image


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowerConfig:
    petal_path: str = "examples/petal.png"
    petal_width: float = 0.4
    petal_offset: float = 0.3
    petals: int = 6
    frames: int = 48
    fps: float = 24.0
    spin: float = 1.0  # radians per second

    def __post_init__(self):
        if self.petals < 1:
            raise ValueError("petals must be at least 1")
        if self.frames < 1:
            raise ValueError("frames must be at least 1")
        if not self.fps > 0:
            raise ValueError("fps must be positive")
        if not self.petal_width > 0:
            raise ValueError("petal_width must be positive")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Spin a flower made of rotated petal images.")
    p.add_argument("--petal", type=str, default="examples/petal.png", help="petal image path")
    p.add_argument("--petals", type=int, default=6, help="number of petals")
    p.add_argument("--frames", type=int, default=48, help="number of animation frames")
    p.add_argument("--fps", type=float, default=24.0, help="frames per second")
    p.add_argument("--spin", type=float, default=1.0, help="rotation speed in rad/s")
    p.add_argument("--res", type=int, default=256, help="raster resolution")
    p.add_argument("--outdir", type=str, default="plots/flower", help="output directory")
    p.add_argument("--png", action="store_true", help="also save the first frame as a matplotlib PNG")
    p.add_argument("--log-level", type=str, default="INFO", help="logging level")
    return p.parse_args()


def build_petal(cfg: FlowerConfig) -> Shape:
    try:
        texture = load_image(cfg.petal_path)
        base = image_w(texture, cfg.petal_width)
    except ResourceLoadError as e:
        # Flat-colored stand-in with the same footprint
        logger.warning("%s; drawing flat petals instead", e)
        hw, hh = cfg.petal_width / 2.0, cfg.petal_width / 4.0
        base = Rect((-hw, -hh), (hw, hh), color=(0.95, 0.55, 0.7, 1.0))
    return base.translate((cfg.petal_offset, 0.0))


def build_flower(petal: Shape, petals: int = 6) -> Shape:
    # Rotated copies share the same petal; the union is collected once
    return combine_all(
        petal.rotate(i / petals * 2.0 * math.pi) for i in range(petals)
    ).collect()


def flower_frames(flower: Shape, cfg: FlowerConfig) -> list:
    return [flower.rotate(cfg.spin * i / cfg.fps) for i in range(cfg.frames)]


def main() -> None:
    args = parse_args()
    setup_default_logging(args.log_level)
    cfg = FlowerConfig(
        petal_path=args.petal,
        petals=args.petals,
        frames=args.frames,
        fps=args.fps,
        spin=args.spin,
    )
    render_cfg = RenderConfig(resolution=args.res, margin=0.05)
    os.makedirs(args.outdir, exist_ok=True)

    flower = build_flower(build_petal(cfg), cfg.petals)
    logger.info("flower has %d triangles", flower.triangle_count())

    frames = flower_frames(flower, cfg)
    gif_path = os.path.join(args.outdir, "flower.gif")
    render_frames_to_gif(frames, gif_path, config=render_cfg, duration_ms=int(1000 / cfg.fps))
    if args.png:
        render_to_file(frames[0], os.path.join(args.outdir, "flower.png"), config=render_cfg)


if __name__ == "__main__":
    main()
