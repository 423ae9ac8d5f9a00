from .loader import (
    Texture,
    ResourceLoadError,
    load_image,
)
