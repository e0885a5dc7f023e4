from vid2img.animation import KeyframeDistance
from vid2img.avif.options import AvifOptions, Codec
from vid2img.avif.task import AvifEncoderConfig, AvifEncoderTask

__all__ = ["AvifEncoderConfig", "AvifEncoderTask", "AvifOptions", "Codec", "KeyframeDistance"]
