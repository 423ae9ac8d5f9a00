# Re-export core geometry API for convenience
from .color import (
    RGBA,
    WHITE,
    BLACK,
    RED,
    GREEN,
    BLUE,
    TRANSPARENT,
    to_rgba,
    modulate,
)
from .geometry import (
    as_point,
    as_vector,
    as_shape,
    Positions,
    Tri,
    RendTri,
    Shape,
    Triangles,
    Translate,
    Rotate,
    Combine,
    combine_all,
)
from .primitives import (
    Rect,
    rect,
    image_rect,
    image_w,
    image_h,
)
