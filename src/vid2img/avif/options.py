"""AVIF encoder options and their mapping onto FFmpeg AV1 encoders."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

from vid2img.animation import KeyframeDistance
from vid2img.codec import encoder_available
from vid2img.exceptions import CannotCreateEncoderError, InvalidOptionError

MAX_QUANTIZER = 63
MAX_SPEED = 10


class Codec(str, Enum):
    AUTO = "auto"
    AOM = "aom"
    RAV1E = "rav1e"
    SVT = "svt"


ENCODER_NAMES = {
    Codec.AOM: "libaom-av1",
    Codec.SVT: "libsvtav1",
    Codec.RAV1E: "librav1e",
}

# Order tried for Codec.AUTO
AUTO_ORDER = (Codec.AOM, Codec.SVT, Codec.RAV1E)


@dataclass(frozen=True, slots=True)
class AvifOptions:
    codec: Codec = Codec.AUTO
    quantizer: int = 0
    quantizer_alpha: int = 0
    speed: int = MAX_SPEED
    max_threads: int | None = None
    keyframe_distance: KeyframeDistance | None = None
    loop_count: int = 0

    def __post_init__(self) -> None:
        for name in ("quantizer", "quantizer_alpha"):
            value = getattr(self, name)
            if not 0 <= value <= MAX_QUANTIZER:
                raise InvalidOptionError(f"{name} must be within 0..{MAX_QUANTIZER}, got {value}")
        if not 0 <= self.speed <= MAX_SPEED:
            raise InvalidOptionError(f"speed must be within 0..{MAX_SPEED}, got {self.speed}")
        if self.max_threads is not None and self.max_threads < 1:
            raise InvalidOptionError(f"max_threads must be positive, got {self.max_threads}")
        if self.loop_count < 0:
            raise InvalidOptionError(f"loop_count must not be negative, got {self.loop_count}")

    def thread_count(self) -> int:
        return self.max_threads or os.cpu_count() or 1


def resolve_encoder(codec: Codec) -> str:
    """Return the FFmpeg encoder name for a codec choice."""
    if codec is not Codec.AUTO:
        name = ENCODER_NAMES[codec]
        if not encoder_available(name):
            raise CannotCreateEncoderError(f"AV1 encoder '{name}' is not available")
        return name
    for candidate in AUTO_ORDER:
        name = ENCODER_NAMES[candidate]
        if encoder_available(name):
            return name
    raise CannotCreateEncoderError(
        "no AV1 encoder available (tried " + ", ".join(ENCODER_NAMES[c] for c in AUTO_ORDER) + ")"
    )


def encoder_options(
    encoder_name: str,
    quantizer: int,
    speed: int,
    *,
    still: bool,
    keyframe_distance: KeyframeDistance | None = None,
) -> dict[str, str]:
    """Translate quantizer/speed (libavif scale) into options of an FFmpeg AV1 encoder."""
    options: dict[str, str] = {}
    if encoder_name == "libaom-av1":
        options["crf"] = str(quantizer)
        options["b"] = "0"
        options["cpu-used"] = str(min(speed, 8))
        if still:
            options["still-picture"] = "1"
    elif encoder_name == "libsvtav1":
        # SVT-AV1 has no crf 0 and a preset scale of 0..13
        options["crf"] = str(max(quantizer, 1))
        options["preset"] = str(min(speed + 3, 13))
    elif encoder_name == "librav1e":
        options["qp"] = str(quantizer * 255 // MAX_QUANTIZER)
        options["speed"] = str(speed)

    if keyframe_distance is not None and not still:
        if keyframe_distance.is_disabled:
            options["g"] = "0" if encoder_name == "libaom-av1" else "-1"
        else:
            options["g"] = str(keyframe_distance.maximum)
            options["keyint_min"] = str(max(keyframe_distance.minimum, 0))
    return options
