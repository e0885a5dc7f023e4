"""Run an encoder task against a video file on a decoder and an encoder thread."""

from __future__ import annotations

import functools
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, cast

import av.logging
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from vid2img.channel import FrameChannel
from vid2img.exceptions import (
    DecodeError,
    InputStreamError,
    NoFramesError,
    OutputFileError,
    SendFrameError,
    TaskConfigurationError,
    Vid2ImgError,
)
from vid2img.ffmpeg.formats import AcceptedFormats
from vid2img.ffmpeg.frames import FrameData, StreamInfo, count_frames
from vid2img.ffmpeg.source import emit_frames, open_input

if TYPE_CHECKING:
    from av.container import InputContainer
    from av.video.stream import VideoStream

    from vid2img.task import EncoderStats, EncoderTask, ProgressCallback

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_CAPACITY = 20


@functools.cache
def init_native() -> None:
    """One-time FFmpeg setup, safe to call from every run."""
    av.logging.set_level(av.logging.WARNING)


@dataclass(frozen=True, slots=True)
class IoOptions:
    input: Path
    output: str = "out"


class WorkerStatus(Enum):
    FINISHED = "finished"
    ERRORED = "errored"
    CRASHED = "crashed"


@dataclass(frozen=True, slots=True)
class WorkerOutcome:
    status: WorkerStatus
    value: Any = None
    error: BaseException | None = None

    @classmethod
    def from_future(cls, future: Future[Any], name: str) -> WorkerOutcome:
        error = future.exception()
        if error is None:
            return cls(WorkerStatus.FINISHED, value=future.result())
        if isinstance(error, Vid2ImgError):
            logger.debug("%s worker failed: %s", name, error)
            return cls(WorkerStatus.ERRORED, error=error)
        logger.error("%s worker crashed", name, exc_info=error)
        return cls(WorkerStatus.CRASHED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is WorkerStatus.FINISHED

    def describe(self) -> str:
        if self.status is WorkerStatus.FINISHED:
            return "Finished without errors"
        if self.status is WorkerStatus.ERRORED:
            return f"Errored: {self.error}"
        return f"Crashed: {self.error!r}"


@dataclass(frozen=True, slots=True)
class PipelineResult:
    decoder: WorkerOutcome
    encoder: WorkerOutcome
    output_path: Path

    @property
    def ok(self) -> bool:
        return self.decoder.ok and self.encoder.ok

    @property
    def stats(self) -> EncoderStats | None:
        return self.encoder.value if self.encoder.ok else None


def _decode_worker(
    container: InputContainer,
    stream_index: int,
    accepted: AcceptedFormats,
    channel: FrameChannel[FrameData],
    on_frame: ProgressCallback,
) -> int | None:
    try:
        return emit_frames(container, stream_index, accepted, channel, on_frame)
    except SendFrameError as exc:
        # the encoder stopped receiving, its own outcome says why
        logger.info("Decoder stopped: %s", exc)
        return None
    finally:
        channel.close()
        container.close()


def _encode_worker(
    task: EncoderTask[Any, Any],
    config: Any,
    output: BinaryIO,
    channel: FrameChannel[FrameData],
    on_frame: ProgressCallback,
    *,
    single_frame: bool,
) -> EncoderStats:
    try:
        with output:
            if single_frame:
                return task.run_still(output, config, channel, on_frame)
            return task.run_animation(output, config, channel, on_frame)
    finally:
        channel.close_receiver()


def _progress(console: Console | None, show_progress: bool) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        disable=not show_progress,
    )


def run_task(
    io: IoOptions,
    task: EncoderTask[Any, Any],
    args: Any,
    *,
    console: Console | None = None,
    show_progress: bool = True,
) -> PipelineResult:
    """Decode ``io.input`` and encode it with ``task`` into ``io.output`` plus the task extension.

    Setup failures raise a ``TaskError``. Failures inside the workers are
    reported through the returned result.
    """
    init_native()

    try:
        container, stream_index = open_input(io.input)
    except DecodeError as exc:
        raise InputStreamError(exc) from exc

    handed_over = False
    try:
        stream = cast("VideoStream", container.streams[stream_index])
        total_frames = count_frames(stream, container)
        if total_frames <= 0:
            raise NoFramesError
        info = StreamInfo.from_stream(stream, container)
        logger.debug("Input %s: %s, %d frame(s)", io.input, info, total_frames)

        try:
            config = task.configure(args, info)
        except Vid2ImgError as exc:
            raise TaskConfigurationError(exc) from exc

        output_path = task.make_output_path(io.output)
        try:
            output = output_path.open("wb")
        except OSError as exc:
            raise OutputFileError(str(output_path), exc) from exc

        single_frame = info.frames == 1
        channel: FrameChannel[FrameData] = FrameChannel(
            1 if single_frame else DEFAULT_CHANNEL_CAPACITY
        )
        accepted = AcceptedFormats.for_task(task)
        logger.debug(
            "Running %s %s into %s (channel capacity %d)",
            task.NAME,
            "still" if single_frame else "animation",
            output_path,
            channel.capacity,
        )

        with _progress(console, show_progress) as progress:
            decode_id = progress.add_task(escape("[Decoder]"), total=total_frames)
            encode_id = progress.add_task(escape("[Encoder]"), total=total_frames)
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="vid2img") as pool:
                handed_over = True
                decoder = pool.submit(
                    _decode_worker,
                    container,
                    stream_index,
                    accepted,
                    channel,
                    lambda: progress.advance(decode_id),
                )
                encoder = pool.submit(
                    _encode_worker,
                    task,
                    config,
                    output,
                    channel,
                    lambda: progress.advance(encode_id),
                    single_frame=single_frame,
                )
            decoder_outcome = WorkerOutcome.from_future(decoder, "Decoder")
            encoder_outcome = WorkerOutcome.from_future(encoder, "Encoder")
    finally:
        if not handed_over:
            container.close()

    return PipelineResult(decoder_outcome, encoder_outcome, output_path)


def report_result(
    result: PipelineResult, console: Console, err_console: Console | None = None
) -> int:
    """Print the outcome of a run and return the process exit code.

    Success goes to ``console``, per-worker diagnostics of a failed run go to
    ``err_console`` (stderr unless given).
    """
    if result.ok:
        console.print(f"[green]Finished:[/green] {escape(str(result.stats))}")
        console.print(f"[cyan]Written to[/cyan] {result.output_path}")
        return 0

    if err_console is None:
        err_console = Console(stderr=True)
    for name, outcome in (("Decoder", result.decoder), ("Encoder", result.encoder)):
        style = "green" if outcome.ok else "red"
        label = escape(f"[{name}]")
        err_console.print(f"[{style}]{label}[/{style}] {escape(outcome.describe())}")
    return 1
