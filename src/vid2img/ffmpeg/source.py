"""Decode the input video into a stream of frames for the encoder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, cast

import av
import av.error
from av.video.reformatter import Interpolation, VideoReformatter

from vid2img.channel import ChannelClosedError
from vid2img.exceptions import (
    DecoderError,
    InputOpenError,
    NoPixelFormatError,
    NoTimingInformationError,
    SendFrameError,
    StreamNotFoundError,
)
from vid2img.ffmpeg.frames import TimingData

if TYPE_CHECKING:
    from collections.abc import Callable

    from av.container import InputContainer
    from av.video.codeccontext import VideoCodecContext
    from av.video.frame import VideoFrame
    from av.video.stream import VideoStream

    from vid2img.channel import FrameChannel
    from vid2img.ffmpeg.formats import AcceptedFormats
    from vid2img.ffmpeg.frames import FrameData

logger = logging.getLogger(__name__)

# Decoders preferred over FFmpeg's default for a codec, e.g. libvpx keeps VP9 alpha
DECODER_OVERRIDES: dict[str, str] = {
    "vp9": "libvpx-vp9",
}


def open_input(path: str | Path) -> tuple[InputContainer, int]:
    """Open a media file and select its best video stream."""
    try:
        container = cast("InputContainer", av.open(str(path)))
    except (av.error.FFmpegError, OSError) as exc:
        raise InputOpenError(str(path), str(exc)) from exc

    stream = container.streams.best("video")
    if stream is None:
        container.close()
        raise StreamNotFoundError(str(path))
    return container, stream.index


def open_decoder(stream: VideoStream) -> VideoCodecContext:
    """Return the decoder for a stream, honouring DECODER_OVERRIDES when available."""
    default = stream.codec_context
    override = DECODER_OVERRIDES.get(default.name)
    if override is None:
        return default
    try:
        decoder = cast("VideoCodecContext", av.CodecContext.create(override, "r"))
        if default.extradata:
            decoder.extradata = default.extradata
        decoder.width = default.width
        decoder.height = default.height
    except (av.error.FFmpegError, ValueError) as exc:
        logger.debug("Decoder %s unavailable (%s), using %s", override, exc, default.name)
        return default
    logger.debug("Decoding %s stream with %s", default.name, override)
    return decoder


class Resampler:
    """Reusable bilinear converter to a fixed pixel format and size."""

    def __init__(self, pixel_format: str, width: int, height: int) -> None:
        self.pixel_format = pixel_format
        self.width = width
        self.height = height
        self._reformatter = VideoReformatter()

    def __call__(self, frame: VideoFrame) -> VideoFrame:
        return self._reformatter.reformat(
            frame,
            width=self.width,
            height=self.height,
            format=self.pixel_format,
            interpolation=Interpolation.BILINEAR,
        )


def make_resampler(frame: VideoFrame, accepted: AcceptedFormats) -> Resampler | None:
    """Return None when the frame format is accepted as is, else a resampler to the target."""
    source_format = frame.format.name
    if accepted.passes(source_format):
        return None
    target = accepted.select(source_format)
    if target is None:
        raise NoPixelFormatError(source_format)
    logger.debug("Resampling frames from %s to %s", source_format, target)
    return Resampler(target, frame.width, frame.height)


def emit_frames(
    container: InputContainer,
    stream_index: int,
    accepted: AcceptedFormats,
    channel: FrameChannel[FrameData],
    on_frame: Callable[[], None] | None = None,
) -> int:
    """Decode the selected stream and send every frame through the channel.

    Blocks whenever the channel is full. Returns the number of frames sent.
    """
    stream = cast("VideoStream", container.streams[stream_index])
    time_base = stream.time_base
    decoder = open_decoder(stream)

    resampler: Resampler | None = None
    negotiated = False
    sent = 0
    try:
        # demux() ends with an empty packet, which flushes the decoder
        for packet in container.demux(stream):
            for decoded in decoder.decode(packet):
                timing = TimingData.from_frame(decoded, time_base)
                if timing is None:
                    raise NoTimingInformationError
                if not negotiated:
                    resampler = make_resampler(decoded, accepted)
                    negotiated = True
                frame = resampler(decoded) if resampler is not None else decoded
                try:
                    channel.send((frame, timing))
                except ChannelClosedError as exc:
                    raise SendFrameError(exc.full) from exc
                sent += 1
                if on_frame is not None:
                    on_frame()
    except av.error.FFmpegError as exc:
        raise DecoderError(f"ffmpeg error: {exc}") from exc
    return sent
