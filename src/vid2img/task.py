"""Encoder task interface shared by all output formats."""

from __future__ import annotations

import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, ClassVar, Generic, TypeVar

from vid2img.channel import ChannelClosedError
from vid2img.exceptions import (
    FrameConversionError,
    NoImageReceivedError,
    OutputWriteError,
    TaskStateError,
)

if TYPE_CHECKING:
    from av.video.frame import VideoFrame

    from vid2img.channel import FrameChannel
    from vid2img.ffmpeg.frames import FrameData, StreamInfo

logger = logging.getLogger(__name__)

ArgsT = TypeVar("ArgsT")
ConfigT = TypeVar("ConfigT")

ProgressCallback = Callable[[], None]


class TaskState(Enum):
    CREATED = auto()
    CONFIGURED = auto()
    RUNNING = auto()
    FINISHED = auto()
    FAILED = auto()


@dataclass(frozen=True, slots=True)
class EncoderStats:
    """Result of a finished encoder run."""

    bytes_written: int
    frames: int
    encoder_data: str = ""

    def __str__(self) -> str:
        text = f"Written {self.bytes_written:,} bytes, {self.frames} frame(s)"
        if self.encoder_data:
            text += f" ({self.encoder_data})"
        return text


class EncoderTask(ABC, Generic[ArgsT, ConfigT]):
    """One output image format.

    Subclasses declare the pixel formats they accept, derive their
    configuration from CLI options plus stream metadata, and implement the
    two terminal run modes: a single still frame or a frame stream.
    """

    NAME: ClassVar[str]
    EXTENSION: ClassVar[str]
    ACCEPTED_FORMATS: ClassVar[tuple[str, ...]]
    ACCEPTED_ALPHA_FORMATS: ClassVar[tuple[str, ...]]

    def __init__(self) -> None:
        self._state = TaskState.CREATED

    @property
    def state(self) -> TaskState:
        return self._state

    @classmethod
    def accepted_formats(cls) -> tuple[str, ...]:
        return cls.ACCEPTED_FORMATS

    @classmethod
    def accepted_alpha_formats(cls) -> tuple[str, ...]:
        return cls.ACCEPTED_ALPHA_FORMATS

    @classmethod
    def make_output_path(cls, output_name: str) -> Path:
        return Path(output_name).with_suffix(f".{cls.EXTENSION}")

    def configure(self, args: ArgsT, info: StreamInfo) -> ConfigT:
        if self._state is not TaskState.CREATED:
            raise TaskStateError(self.NAME, self._state.name, "configure")
        config = self._configure(args, info)
        self._state = TaskState.CONFIGURED
        logger.debug("%s configured: %s", self.NAME, config)
        return config

    def run_still(
        self,
        output: BinaryIO,
        config: ConfigT,
        frames: FrameChannel[FrameData],
        on_frame: ProgressCallback | None = None,
    ) -> EncoderStats:
        """Encode exactly one frame and write the image in a single call."""
        with self._running("run_still"):
            try:
                frame, _timing = frames.recv()
            except ChannelClosedError as exc:
                raise NoImageReceivedError from exc
            self.check_frame(frame)
            data, encoder_data = self._encode_still(config, frame)
            if on_frame is not None:
                on_frame()
            self._write(output, data)
            return EncoderStats(bytes_written=len(data), frames=1, encoder_data=encoder_data)

    def run_animation(
        self,
        output: BinaryIO,
        config: ConfigT,
        frames: FrameChannel[FrameData],
        on_frame: ProgressCallback | None = None,
    ) -> EncoderStats:
        """Encode the whole frame stream and write the animation in a single call."""
        with self._running("run_animation"):
            data, count, encoder_data = self._encode_animation(config, frames, on_frame)
            self._write(output, data)
            return EncoderStats(bytes_written=len(data), frames=count, encoder_data=encoder_data)

    def check_frame(self, frame: VideoFrame) -> None:
        pixel_format = frame.format.name
        if pixel_format not in self.ACCEPTED_FORMATS + self.ACCEPTED_ALPHA_FORMATS:
            raise FrameConversionError(pixel_format)

    @abstractmethod
    def _configure(self, args: ArgsT, info: StreamInfo) -> ConfigT: ...

    @abstractmethod
    def _encode_still(self, config: ConfigT, frame: VideoFrame) -> tuple[bytes, str]:
        """Return the encoded image and a description of the native encoder."""

    @abstractmethod
    def _encode_animation(
        self,
        config: ConfigT,
        frames: FrameChannel[FrameData],
        on_frame: ProgressCallback | None,
    ) -> tuple[bytes, int, str]:
        """Return the encoded animation, the frame count and an encoder description."""

    @contextlib.contextmanager
    def _running(self, operation: str) -> Iterator[None]:
        if self._state is not TaskState.CONFIGURED:
            raise TaskStateError(self.NAME, self._state.name, operation)
        self._state = TaskState.RUNNING
        try:
            yield
        except BaseException:
            self._state = TaskState.FAILED
            raise
        self._state = TaskState.FINISHED

    @staticmethod
    def _write(output: BinaryIO, data: bytes) -> None:
        try:
            output.write(data)
            output.flush()
        except OSError as exc:
            raise OutputWriteError(f"couldn't write output: {exc}") from exc
