from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from shapes import Shape


@dataclass(frozen=True)
class RenderConfig:
    resolution: int = 512
    margin: float = 0.1
    figsize: Tuple[float, float] = (6.0, 6.0)
    dpi: int = 150
    background: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    show_axes: bool = False
    xlim: Optional[Tuple[float, float]] = None
    ylim: Optional[Tuple[float, float]] = None

    def __post_init__(self):
        if self.resolution < 1:
            raise ValueError("resolution must be positive")
        if (self.xlim is None) != (self.ylim is None):
            raise ValueError("xlim and ylim must be given together")

    def resolve_bounds(self, shape: Shape) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        if self.xlim is not None and self.ylim is not None:
            return self.xlim, self.ylim
        # Imported here: renderer depends on this module
        from .renderer import autosize_bounds
        return autosize_bounds(shape, margin=self.margin)
