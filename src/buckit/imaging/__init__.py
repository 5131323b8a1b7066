from buckit.imaging.generator import ImageGenerator
from buckit.imaging.prompt import build_image_prompt, get_season

__all__ = [
    "ImageGenerator",
    "build_image_prompt",
    "get_season",
]
