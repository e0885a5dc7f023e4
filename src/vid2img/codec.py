"""Native image encoders backed by PyAV.

Each encoder muxes into an in-memory container owned by the encoding call and
returns the finished file as one byte buffer.
"""

from __future__ import annotations

import functools
import io
import logging
from dataclasses import dataclass, field
from fractions import Fraction
from typing import TYPE_CHECKING, cast

import av
import av.error
import numpy as np

from vid2img.exceptions import CannotCreateEncoderError, EncoderError
from vid2img.ffmpeg.formats import is_alpha_format

if TYPE_CHECKING:
    from types import TracebackType

    from av.container import OutputContainer
    from av.video.frame import VideoFrame
    from av.video.stream import VideoStream

logger = logging.getLogger(__name__)

MS_TIME_BASE = Fraction(1, 1000)

# Input layouts of the FFmpeg encoders we drive; the first one is the fallback
CODEC_PIXEL_FORMATS: dict[str, tuple[str, ...]] = {
    "libaom-av1": ("yuv420p", "yuv422p", "yuv444p", "gray"),
    "librav1e": ("yuv420p", "yuv422p", "yuv444p"),
    "libsvtav1": ("yuv420p",),
}

_OPAQUE_EQUIVALENT = {
    "yuva420p": "yuv420p",
    "yuva422p": "yuv422p",
    "yuva444p": "yuv444p",
    "rgba": "rgb24",
    "argb": "rgb24",
    "bgra": "bgr24",
    "abgr": "bgr24",
}


@functools.cache
def encoder_available(codec_name: str) -> bool:
    """Return True if this FFmpeg build can create the named encoder."""
    try:
        av.CodecContext.create(codec_name, "w")
    except (av.error.FFmpegError, ValueError):
        return False
    else:
        return True


@dataclass(frozen=True)
class EncoderSettings:
    """Everything needed to set up one encoder and its output container."""

    container_format: str
    codec_name: str
    options: dict[str, str] = field(default_factory=dict)
    container_options: dict[str, str] = field(default_factory=dict)
    frame_rate: Fraction = Fraction(30)
    thread_count: int = 0
    # When set, alpha is encoded as a second monochrome stream with these options
    alpha_options: dict[str, str] | None = None

    def describe(self) -> str:
        options = ", ".join(f"{key}={value}" for key, value in sorted(self.options.items()))
        return f"{self.codec_name} [{options}]" if options else self.codec_name

    @property
    def supports_alpha_stream(self) -> bool:
        """Whether the encoder can take the single-plane stream alpha is muxed as."""
        supported = CODEC_PIXEL_FORMATS.get(self.codec_name)
        return not supported or "gray" in supported

    def codec_format(self, pixel_format: str) -> str:
        supported = CODEC_PIXEL_FORMATS.get(self.codec_name)
        if not supported or pixel_format in supported:
            return pixel_format
        return supported[0]


def _extract_alpha(frame: VideoFrame) -> VideoFrame:
    """Copy the alpha plane of a planar YUVA frame into a gray frame."""
    if len(frame.planes) != 4:
        frame = frame.reformat(format="yuva444p")
    plane = frame.planes[3]
    rows = np.frombuffer(plane, dtype=np.uint8).reshape(plane.height, plane.line_size)
    alpha = np.ascontiguousarray(rows[:, : plane.width])
    return av.VideoFrame.from_ndarray(alpha, format="gray")


class _ContainerEncoder:
    """Encoder plus muxer writing into a private buffer.

    The container is opened lazily on the first frame, because whether a
    separate alpha stream is needed depends on the frame's pixel format.
    """

    def __init__(self, settings: EncoderSettings) -> None:
        if not encoder_available(settings.codec_name):
            raise CannotCreateEncoderError(
                f"encoder '{settings.codec_name}' is not available in this FFmpeg build"
            )
        self.settings = settings
        self._buffer = io.BytesIO()
        self._container: OutputContainer | None = None
        self._color: VideoStream | None = None
        self._alpha: VideoStream | None = None

    def close(self) -> None:
        """Release the container without producing output."""
        if self._container is None:
            return
        container, self._container = self._container, None
        try:
            container.close()
        except av.error.FFmpegError as exc:
            logger.debug(
                "Ignoring error while closing aborted %s output: %s", self.settings.codec_name, exc
            )

    def _open(self, frame: VideoFrame) -> None:
        settings = self.settings
        has_alpha = settings.alpha_options is not None and is_alpha_format(frame.format.name)
        split_alpha = has_alpha and settings.supports_alpha_stream
        if has_alpha and not split_alpha:
            logger.warning(
                "%s cannot encode a separate alpha stream, alpha is dropped", settings.codec_name
            )
        try:
            self._container = cast(
                "OutputContainer",
                av.open(
                    self._buffer,
                    "w",
                    format=settings.container_format,
                    options=settings.container_options,
                ),
            )
        except (av.error.FFmpegError, ValueError) as exc:
            raise CannotCreateEncoderError(
                f"cannot create {settings.container_format} output: {exc}"
            ) from exc

        color_format = frame.format.name
        if has_alpha:
            color_format = _OPAQUE_EQUIVALENT.get(color_format, color_format)
        try:
            self._color = self._add_stream(
                frame, settings.codec_format(color_format), settings.options
            )
            if split_alpha:
                assert settings.alpha_options is not None
                self._alpha = self._add_stream(
                    frame, settings.codec_format("gray"), settings.alpha_options
                )
        except (av.error.FFmpegError, ValueError) as exc:
            self.close()
            raise CannotCreateEncoderError(
                f"failed to create stream with encoder '{settings.codec_name}': {exc}"
            ) from exc
        logger.debug(
            "Opened %s output: %s %dx%d %s%s",
            settings.container_format,
            settings.codec_name,
            frame.width,
            frame.height,
            self._color.codec_context.pix_fmt,
            " + alpha stream" if self._alpha is not None else "",
        )

    def _add_stream(self, frame: VideoFrame, pix_fmt: str, options: dict[str, str]) -> VideoStream:
        assert self._container is not None
        stream = cast(
            "VideoStream",
            self._container.add_stream(self.settings.codec_name, rate=self.settings.frame_rate),
        )
        stream.width = frame.width
        stream.height = frame.height
        stream.pix_fmt = pix_fmt
        stream.time_base = MS_TIME_BASE
        stream.codec_context.time_base = MS_TIME_BASE
        if self.settings.thread_count > 0:
            stream.codec_context.thread_count = self.settings.thread_count
        stream.codec_context.options = dict(options)
        return stream

    def _submit(self, frame: VideoFrame, pts: int, duration: int | None) -> None:
        if self._container is None:
            self._open(frame)
        assert self._color is not None

        alpha_frame = _extract_alpha(frame) if self._alpha is not None else None
        self._encode(self._color, frame, pts, duration)
        if alpha_frame is not None:
            assert self._alpha is not None
            self._encode(self._alpha, alpha_frame, pts, duration)

    def _encode(
        self, stream: VideoStream, frame: VideoFrame, pts: int, duration: int | None
    ) -> None:
        assert self._container is not None
        target = stream.codec_context.pix_fmt
        if frame.format.name != target:
            frame = frame.reformat(format=target)
        frame.pts = pts
        frame.time_base = MS_TIME_BASE
        if duration is not None:
            frame.duration = duration
        try:
            for packet in stream.encode(frame):
                self._container.mux(packet)
        except (av.error.FFmpegError, ValueError) as exc:
            raise EncoderError(f"{self.settings.codec_name} failed at {pts} ms: {exc}") from exc

    def _flush(self) -> None:
        assert self._container is not None
        for stream in (self._color, self._alpha):
            if stream is None:
                continue
            try:
                for packet in stream.encode(None):
                    self._container.mux(packet)
            except (av.error.FFmpegError, ValueError) as exc:
                raise EncoderError(f"failed to flush {self.settings.codec_name}: {exc}") from exc

    def _assemble(self) -> bytes:
        assert self._container is not None
        container, self._container = self._container, None
        try:
            container.close()
        except av.error.FFmpegError as exc:
            raise EncoderError(
                f"failed to finish {self.settings.container_format} output: {exc}"
            ) from exc
        data = self._buffer.getvalue()
        if not data:
            raise EncoderError(f"{self.settings.codec_name} produced no output")
        return data


class StillImageEncoder(_ContainerEncoder):
    """Single-shot encoder for one image."""

    def encode(self, frame: VideoFrame) -> bytes:
        try:
            self._submit(frame, pts=0, duration=None)
            self._flush()
            return self._assemble()
        finally:
            self.close()


class AnimationEncoder(_ContainerEncoder):
    """Incremental encoder for an image sequence.

    Frames are passed on one step behind, so every frame goes to the encoder
    together with its display duration. ``finish`` submits the last frame,
    using the end timestamp for its duration, and returns the finished file.
    """

    def __init__(self, settings: EncoderSettings) -> None:
        super().__init__(settings)
        self._pending: tuple[VideoFrame, int] | None = None
        self._last_duration = 1
        self.frames_added = 0

    def __enter__(self) -> AnimationEncoder:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._pending = None
        self.close()

    def add(self, frame: VideoFrame, timestamp_ms: int) -> None:
        if self._pending is not None:
            previous, previous_ts = self._pending
            duration = timestamp_ms - previous_ts
            if duration <= 0:
                raise EncoderError(
                    f"timestamps must increase, got {timestamp_ms} ms after {previous_ts} ms"
                )
            self._submit(previous, previous_ts, duration)
            self._last_duration = duration
        self._pending = (frame, timestamp_ms)
        self.frames_added += 1

    def finish(self, end_timestamp_ms: int) -> bytes:
        if self._pending is None:
            raise EncoderError("cannot finish an animation without frames")
        frame, timestamp = self._pending
        self._pending = None
        duration = end_timestamp_ms - timestamp
        if duration <= 0:
            duration = self._last_duration
        self._submit(frame, timestamp, duration)
        self._flush()
        return self._assemble()
