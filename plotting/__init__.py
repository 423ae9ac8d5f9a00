from .config import RenderConfig
from .renderer import (
    triangle_arrays,
    autosize_bounds,
    sample_shape_rgba,
    rgba_to_image,
    render_to_axes,
    render_to_file,
    render_frames_to_gif,
)
from .vectorizer import (
    rendtri_to_shapely,
    shape_to_shapely,
    coverage_area,
    draw_shape_on_axis,
    save_shape_as_svg,
    save_shape_as_png,
)
