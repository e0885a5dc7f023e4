from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING

from vid2img.avif.options import AvifOptions, encoder_options, resolve_encoder
from vid2img.codec import AnimationEncoder, EncoderSettings, StillImageEncoder
from vid2img.task import EncoderTask, ProgressCallback

if TYPE_CHECKING:
    from av.video.frame import VideoFrame

    from vid2img.channel import FrameChannel
    from vid2img.ffmpeg.frames import FrameData, StreamInfo

logger = logging.getLogger(__name__)

DEFAULT_FRAME_RATE = Fraction(30)


@dataclass(frozen=True, slots=True)
class AvifEncoderConfig:
    options: AvifOptions
    encoder_name: str
    timescale: int
    frame_rate: Fraction
    duration_ms: int


class AvifEncoderTask(EncoderTask[AvifOptions, AvifEncoderConfig]):
    """AV1 still images and AVIF image sequences."""

    NAME = "avif"
    EXTENSION = "avif"
    ACCEPTED_FORMATS = ("yuv444p", "yuv420p", "yuv422p")
    ACCEPTED_ALPHA_FORMATS = ("yuva444p",)

    def _configure(self, args: AvifOptions, info: StreamInfo) -> AvifEncoderConfig:
        time_base = info.time_base or Fraction(1, 1000)
        return AvifEncoderConfig(
            options=args,
            encoder_name=resolve_encoder(args.codec),
            timescale=time_base.denominator // time_base.numerator,
            frame_rate=info.average_rate or DEFAULT_FRAME_RATE,
            duration_ms=info.duration_ms,
        )

    def _settings(self, config: AvifEncoderConfig, *, still: bool) -> EncoderSettings:
        args = config.options
        keyframes = None if still else args.keyframe_distance
        container_options = {}
        if not still:
            container_options = {
                "loop": str(args.loop_count),
                "movie_timescale": str(max(config.timescale, 1)),
            }
        return EncoderSettings(
            container_format="avif",
            codec_name=config.encoder_name,
            options=encoder_options(
                config.encoder_name,
                args.quantizer,
                args.speed,
                still=still,
                keyframe_distance=keyframes,
            ),
            container_options=container_options,
            frame_rate=config.frame_rate,
            thread_count=args.thread_count(),
            alpha_options=encoder_options(
                config.encoder_name,
                args.quantizer_alpha,
                args.speed,
                still=still,
                keyframe_distance=keyframes,
            ),
        )

    def _encode_still(self, config: AvifEncoderConfig, frame: VideoFrame) -> tuple[bytes, str]:
        settings = self._settings(config, still=True)
        return StillImageEncoder(settings).encode(frame), settings.describe()

    def _encode_animation(
        self,
        config: AvifEncoderConfig,
        frames: FrameChannel[FrameData],
        on_frame: ProgressCallback | None,
    ) -> tuple[bytes, int, str]:
        settings = self._settings(config, still=False)
        logger.debug(
            "Encoding AVIF sequence with %s, keyframes %s",
            settings.describe(),
            config.options.keyframe_distance or "encoder default",
        )
        with AnimationEncoder(settings) as encoder:
            for frame, timing in frames:
                self.check_frame(frame)
                encoder.add(frame, timing.ts_in_ms())
                if on_frame is not None:
                    on_frame()
            data = encoder.finish(config.duration_ms)
            return data, encoder.frames_added, settings.describe()
