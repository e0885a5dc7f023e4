from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import webp

from vid2img.exceptions import (
    CannotCreateEncoderError,
    EncoderError,
    InvalidConfigError,
    NoCodecParametersError,
)
from vid2img.ffmpeg.formats import is_alpha_format
from vid2img.task import EncoderTask, ProgressCallback
from vid2img.webp.options import WebpOptions

if TYPE_CHECKING:
    from av.video.frame import VideoFrame

    from vid2img.channel import FrameChannel
    from vid2img.ffmpeg.frames import FrameData, StreamInfo

logger = logging.getLogger(__name__)

# WebPAnimEncoderOptions fields that live in the nested mux parameters
_ANIM_PARAM_FIELDS = frozenset({"bgcolor", "loop_count"})


@dataclass(frozen=True, slots=True)
class WebpEncoderConfig:
    options: WebpOptions
    width: int
    height: int
    duration_ms: int


def make_config(options: WebpOptions) -> webp.WebPConfig:
    """Initialise a WebPConfig from the preset, then apply and validate the explicit options."""
    options.validate()
    try:
        config = webp.WebPConfig.new(
            preset=webp.WebPPreset[options.preset.name],
            quality=options.clamped_quality,
            lossless=bool(options.lossless),
        )
    except webp.WebPError as exc:
        raise InvalidConfigError(f"cannot create libwebp config: {exc}") from exc
    for field_name, value in options.config_fields().items():
        setattr(config.ptr, field_name, value)
    if not config.validate():
        raise InvalidConfigError("invalid libwebp config, validation failed")
    return config


def make_anim_options(options: WebpOptions) -> webp.WebPAnimEncoderOptions:
    try:
        anim_options = webp.WebPAnimEncoderOptions.new(
            minimize_size=bool(options.minimize_size),
            allow_mixed=bool(options.allow_mixed),
        )
    except webp.WebPError as exc:
        raise CannotCreateEncoderError(f"cannot create anim encoder options: {exc}") from exc
    for field_name, value in options.anim_fields().items():
        ptr = anim_options.ptr
        target = ptr.anim_params if field_name in _ANIM_PARAM_FIELDS else ptr
        setattr(target, field_name, value)
    return anim_options


def picture_from_frame(frame: VideoFrame) -> webp.WebPPicture:
    """Copy a decoded frame into a libwebp picture, keeping alpha when the frame has it."""
    layout = "rgba" if is_alpha_format(frame.format.name) else "rgb24"
    pixels = np.ascontiguousarray(frame.to_ndarray(format=layout))
    try:
        return webp.WebPPicture.from_numpy(pixels)
    except webp.WebPError as exc:
        raise EncoderError(
            f"couldn't create a libwebp picture from a {frame.format.name} frame: {exc}"
        ) from exc


class WebpEncoderTask(EncoderTask[WebpOptions, WebpEncoderConfig]):
    NAME = "webp"
    EXTENSION = "webp"
    ACCEPTED_FORMATS = ("yuv420p",)
    ACCEPTED_ALPHA_FORMATS = ("yuva420p",)

    def _configure(self, args: WebpOptions, info: StreamInfo) -> WebpEncoderConfig:
        if info.width <= 0 or info.height <= 0:
            raise NoCodecParametersError
        return WebpEncoderConfig(
            options=args,
            width=info.width,
            height=info.height,
            duration_ms=info.duration_ms,
        )

    def _encode_still(self, config: WebpEncoderConfig, frame: VideoFrame) -> tuple[bytes, str]:
        encoder_config = make_config(config.options)
        picture = picture_from_frame(frame)
        try:
            writer = picture.encode(encoder_config)
        except webp.WebPError as exc:
            raise EncoderError(f"libwebp failed to encode the image: {exc}") from exc
        data = bytes(writer.to_webp_data().buffer())
        return data, f"libwebp [{config.options.describe()}]"

    def _encode_animation(
        self,
        config: WebpEncoderConfig,
        frames: FrameChannel[FrameData],
        on_frame: ProgressCallback | None,
    ) -> tuple[bytes, int, str]:
        encoder_config = make_config(config.options)
        encoder = webp.WebPAnimEncoder.new(
            config.width, config.height, make_anim_options(config.options)
        )
        logger.debug(
            "Encoding %dx%d WebP animation: %s",
            config.width,
            config.height,
            config.options.describe(),
        )

        previous_ts: int | None = None
        last_duration = 1
        count = 0
        for frame, timing in frames:
            self.check_frame(frame)
            timestamp = timing.ts_in_ms()
            if previous_ts is not None:
                if timestamp <= previous_ts:
                    raise EncoderError(
                        f"timestamps must increase, got {timestamp} ms after {previous_ts} ms"
                    )
                last_duration = timestamp - previous_ts
            try:
                encoder.encode_frame(picture_from_frame(frame), timestamp, encoder_config)
            except webp.WebPError as exc:
                raise EncoderError(f"libwebp failed at {timestamp} ms: {exc}") from exc
            previous_ts = timestamp
            count += 1
            if on_frame is not None:
                on_frame()

        if previous_ts is None:
            raise EncoderError("cannot finish an animation without frames")
        # the end timestamp sets the display duration of the last frame
        end_ts = config.duration_ms
        if end_ts <= previous_ts:
            end_ts = previous_ts + last_duration
        try:
            data = bytes(encoder.assemble(end_ts).buffer())
        except webp.WebPError as exc:
            raise EncoderError(f"failed to assemble the WebP animation: {exc}") from exc
        return data, count, f"libwebp anim [{config.options.describe()}]"
