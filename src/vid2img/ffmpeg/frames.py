"""Frame timing and stream metadata helpers."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING, TypeAlias

import av

if TYPE_CHECKING:
    from av.container import InputContainer
    from av.video.frame import VideoFrame
    from av.video.stream import VideoStream


@dataclass(frozen=True, slots=True)
class TimingData:
    """Presentation timestamp of a frame, in units of its stream time base."""

    timestamp: int
    time_base: Fraction

    @classmethod
    def from_frame(cls, frame: VideoFrame, stream_time_base: Fraction | None) -> TimingData | None:
        timestamp = frame.pts if frame.pts is not None else frame.dts
        if timestamp is None or stream_time_base is None:
            return None
        return cls(timestamp=timestamp, time_base=stream_time_base)

    def ts_in_ms(self) -> int:
        # int() truncates toward zero, also for negative timestamps
        scaled = Fraction(1000 * self.timestamp * self.time_base.numerator)
        return int(scaled / self.time_base.denominator)


FrameData: TypeAlias = "tuple[VideoFrame, TimingData]"


def count_frames(stream: VideoStream, container: InputContainer) -> int:
    """Return the number of frames in the stream, estimating from duration if needed.

    Returns 0 when neither the stream nor the container carry enough metadata.
    """
    if stream.frames > 0:
        return stream.frames
    rate = stream.average_rate
    if container.duration and container.duration > 0 and rate:
        return (container.duration * rate.numerator) // (av.time_base * rate.denominator)
    return 0


def extract_duration_ms(stream: VideoStream, container: InputContainer) -> int:
    time_base = stream.time_base
    if stream.duration and stream.duration > 0 and time_base:
        return (1000 * stream.duration * time_base.numerator) // time_base.denominator
    if container.duration and container.duration > 0:
        return (container.duration * 1000) // av.time_base
    return 0


@dataclass(frozen=True, slots=True)
class StreamInfo:
    """Metadata of the selected video stream, handed to encoder tasks."""

    width: int
    height: int
    time_base: Fraction | None
    average_rate: Fraction | None
    frames: int
    duration_ms: int

    @classmethod
    def from_stream(cls, stream: VideoStream, container: InputContainer) -> StreamInfo:
        codec_context = stream.codec_context
        return cls(
            width=codec_context.width or 0,
            height=codec_context.height or 0,
            time_base=stream.time_base,
            average_rate=stream.average_rate,
            frames=stream.frames,
            duration_ms=extract_duration_ms(stream, container),
        )
