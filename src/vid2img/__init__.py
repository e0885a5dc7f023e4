"""vid2img: convert videos into AVIF and WebP images and animations."""

__version__ = "0.1.0"
