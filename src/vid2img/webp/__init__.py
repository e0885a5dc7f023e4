from vid2img.webp.options import AlphaFiltering, ImageHint, Preprocessing, Preset, WebpOptions
from vid2img.webp.task import WebpEncoderConfig, WebpEncoderTask

__all__ = [
    "AlphaFiltering",
    "ImageHint",
    "Preprocessing",
    "Preset",
    "WebpEncoderConfig",
    "WebpEncoderTask",
    "WebpOptions",
]
