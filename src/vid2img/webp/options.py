"""libwebp encoder and animation options.

Every tuning field is optional. Unset fields keep the value the chosen preset
gives them, set fields are clamped to libwebp's range where libwebp has one.
"""

from __future__ import annotations

import string
from dataclasses import dataclass, fields
from enum import Enum, IntEnum

from vid2img.animation import KeyframeDistance
from vid2img.exceptions import InvalidConfigError, InvalidOptionError

MAX_METHOD = 6
MAX_PASS = 10
MAX_LOOP_COUNT = 65535
DEFAULT_QUALITY = 75.0


class Preset(str, Enum):
    DEFAULT = "default"
    PICTURE = "picture"
    PHOTO = "photo"
    DRAWING = "drawing"
    ICON = "icon"
    TEXT = "text"


class ImageHint(IntEnum):
    DEFAULT = 0
    PICTURE = 1
    PHOTO = 2
    GRAPH = 3


class AlphaFiltering(IntEnum):
    NONE = 0
    FAST = 1
    BEST = 2


class Preprocessing(IntEnum):
    NONE = 0
    SEGMENT_SMOOTH = 1
    PSEUDO_RANDOM_DITHERING = 2


# option attribute -> (WebPConfig field, clamp range)
_CONFIG_FIELDS: dict[str, tuple[str, tuple[int, int] | None]] = {
    "method": ("method", None),
    "image_hint": ("image_hint", None),
    "target_size": ("target_size", None),
    "target_psnr": ("target_PSNR", None),
    "segments": ("segments", (1, 4)),
    "sns_strength": ("sns_strength", (0, 100)),
    "filter_strength": ("filter_strength", (0, 100)),
    "filter_sharpness": ("filter_sharpness", (0, 7)),
    "strong_filter": ("filter_type", None),
    "autofilter": ("autofilter", None),
    "alpha_compression": ("alpha_compression", None),
    "alpha_filtering": ("alpha_filtering", None),
    "alpha_quality": ("alpha_quality", (0, 100)),
    "passes": ("pass", (0, 100)),
    "show_compressed": ("show_compressed", None),
    "preprocessing": ("preprocessing", None),
    "partitions": ("partitions", (0, 3)),
    "partition_limit": ("partition_limit", (0, 100)),
    "emulate_jpeg_size": ("emulate_jpeg_size", None),
    "thread_level": ("thread_level", None),
    "low_memory": ("low_memory", None),
    "near_lossless": ("near_lossless", (0, 100)),
    "exact": ("exact", None),
    "use_delta_palette": ("use_delta_palette", None),
    "use_sharp_yuv": ("use_sharp_yuv", None),
}


def parse_background_color(value: str) -> int:
    """Parse ``#RRGGBB`` (opaque) or ``#AARRGGBB`` into a 32-bit ARGB value."""
    text = value.strip()
    digits = text[1:]
    if (
        not text.startswith("#")
        or len(digits) not in (6, 8)
        or not all(char in string.hexdigits for char in digits)
    ):
        raise InvalidOptionError(
            f"invalid background color '{value}', expected #abcdef or #abcdef01"
        )
    argb = int(digits, 16)
    if len(digits) == 6:
        argb |= 0xFF000000
    return argb


def _clamp(value: float, bounds: tuple[int, int] | None) -> float:
    if bounds is None:
        return value
    low, high = bounds
    return min(max(value, low), high)


@dataclass(frozen=True, slots=True)
class WebpOptions:
    # encoder
    preset: Preset = Preset.DEFAULT
    lossless: bool | None = None
    quality: float | None = None
    method: int | None = None
    image_hint: ImageHint | None = None
    target_size: int | None = None
    target_psnr: float | None = None
    segments: int | None = None
    sns_strength: int | None = None
    filter_strength: int | None = None
    filter_sharpness: int | None = None
    strong_filter: bool | None = None
    autofilter: bool | None = None
    alpha_compression: bool | None = None
    alpha_filtering: AlphaFiltering | None = None
    alpha_quality: int | None = None
    passes: int | None = None
    show_compressed: bool | None = None
    preprocessing: Preprocessing | None = None
    partitions: int | None = None
    partition_limit: int | None = None
    emulate_jpeg_size: bool | None = None
    thread_level: bool | None = None
    low_memory: bool | None = None
    near_lossless: int | None = None
    exact: bool | None = None
    use_delta_palette: bool | None = None
    use_sharp_yuv: bool | None = None
    # animation
    minimize_size: bool | None = None
    keyframe_distance: KeyframeDistance | None = None
    allow_mixed: bool | None = None
    background_color: int | None = None
    loop_count: int | None = None

    @property
    def clamped_quality(self) -> float:
        if self.quality is None:
            return DEFAULT_QUALITY
        return float(_clamp(self.quality, (0, 100)))

    def validate(self) -> None:
        """Reject values libwebp would refuse even after clamping."""
        if self.method is not None and not 0 <= self.method <= MAX_METHOD:
            raise InvalidConfigError(f"method must be within 0..{MAX_METHOD}, got {self.method}")
        if self.passes is not None and not 1 <= _clamp(self.passes, (0, 100)) <= MAX_PASS:
            raise InvalidConfigError(f"pass must be within 1..{MAX_PASS}, got {self.passes}")
        if self.target_size is not None and self.target_size < 0:
            raise InvalidConfigError(f"target size must not be negative, got {self.target_size}")
        if self.target_psnr is not None and self.target_psnr < 0:
            raise InvalidConfigError(f"target PSNR must not be negative, got {self.target_psnr}")
        if self.loop_count is not None and not 0 <= self.loop_count <= MAX_LOOP_COUNT:
            raise InvalidConfigError(
                f"loop count must be within 0..{MAX_LOOP_COUNT}, got {self.loop_count}"
            )
        if self.background_color is not None and not 0 <= self.background_color <= 0xFFFFFFFF:
            raise InvalidConfigError(f"background color {self.background_color:#x} is not ARGB")

    def config_fields(self) -> dict[str, int | float]:
        """WebPConfig fields to set on top of the preset, clamped and as C values."""
        result: dict[str, int | float] = {}
        for name, (field_name, bounds) in _CONFIG_FIELDS.items():
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, (bool, IntEnum)):
                value = int(value)
            result[field_name] = _clamp(value, bounds)
        return result

    def anim_fields(self) -> dict[str, int]:
        """WebPAnimEncoderOptions fields other than the two boolean flags."""
        result: dict[str, int] = {}
        if self.keyframe_distance is not None:
            result["kmin"] = self.keyframe_distance.minimum
            result["kmax"] = self.keyframe_distance.maximum
        if self.background_color is not None:
            result["bgcolor"] = self.background_color
        if self.loop_count is not None:
            result["loop_count"] = self.loop_count
        return result

    def describe(self) -> str:
        parts = [f"preset={self.preset.value}"]
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name == "preset" or value is None:
                continue
            if isinstance(value, Enum):
                value = value.name.lower()
            elif item.name == "background_color":
                value = f"#{value:08x}"
            parts.append(f"{item.name}={value}")
        return ", ".join(parts)
