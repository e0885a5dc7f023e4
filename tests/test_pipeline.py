"""Tests for the decoder/encoder pipeline with stand-in encoder tasks."""

import io

import pytest
from rich.console import Console

from vid2img import pipeline
from vid2img.exceptions import (
    EncoderError,
    InputStreamError,
    InvalidOptionError,
    NoPixelFormatError,
    OutputFileError,
    TaskConfigurationError,
)
from vid2img.pipeline import IoOptions, WorkerStatus, report_result, run_task
from vid2img.task import EncoderTask


class CollectingTask(EncoderTask[None, str]):
    """Writes one line per received frame."""

    NAME = "collect"
    EXTENSION = "txt"
    ACCEPTED_FORMATS = ("yuv420p",)
    ACCEPTED_ALPHA_FORMATS = ("yuva420p",)

    def __init__(self):
        super().__init__()
        self.mode = None

    def _configure(self, args, info):
        return f"{info.width}x{info.height}"

    def _encode_still(self, config, frame):
        self.mode = "still"
        return f"still {config}\n".encode(), "collector"

    def _encode_animation(self, config, frames, on_frame):
        self.mode = "animation"
        lines = []
        for frame, timing in frames:
            self.check_frame(frame)
            lines.append(f"{timing.ts_in_ms()} {frame.format.name}")
            if on_frame is not None:
                on_frame()
        if not lines:
            raise EncoderError("cannot finish an animation without frames")
        return "\n".join(lines).encode(), len(lines), "collector"


class FailingTask(CollectingTask):
    def _encode_animation(self, config, frames, on_frame):
        frames.recv()
        raise EncoderError("native encoder gave up")


class CrashingTask(CollectingTask):
    def _encode_animation(self, config, frames, on_frame):
        raise RuntimeError("unexpected")


class NoFormatsTask(CollectingTask):
    ACCEPTED_FORMATS = ()
    ACCEPTED_ALPHA_FORMATS = ()


class BadConfigTask(CollectingTask):
    def _configure(self, args, info):
        raise InvalidOptionError("bad option")


def _run(task, input_path, tmp_path, name="out"):
    return run_task(
        IoOptions(input=input_path, output=str(tmp_path / name)),
        task,
        None,
        show_progress=False,
    )


def _console():
    return Console(file=io.StringIO(), width=200, color_system=None)


class TestRunTask:
    """Test outcomes of full pipeline runs."""

    def test_animation(self, animation_video, tmp_path):
        task = CollectingTask()
        result = _run(task, animation_video, tmp_path)

        assert result.ok
        assert result.output_path == tmp_path / "out.txt"
        assert task.mode == "animation"
        lines = result.output_path.read_text().splitlines()
        assert lines[0] == "0 yuv420p"
        assert lines[-1] == "300 yuv420p"
        assert result.stats.frames == 10

    def test_still(self, still_video, tmp_path):
        task = CollectingTask()
        result = _run(task, still_video, tmp_path)

        assert result.ok
        assert task.mode == "still"
        assert result.output_path.read_text() == "still 64x48\n"
        assert result.stats.frames == 1

    def test_alpha_input(self, alpha_video, tmp_path):
        result = _run(CollectingTask(), alpha_video, tmp_path)
        assert result.ok
        assert result.output_path.read_text().splitlines()[0].endswith("yuva420p")

    def test_encoder_failure(self, animation_video, tmp_path):
        result = _run(FailingTask(), animation_video, tmp_path)

        assert not result.ok
        assert result.decoder.status is WorkerStatus.FINISHED
        assert result.encoder.status is WorkerStatus.ERRORED
        assert isinstance(result.encoder.error, EncoderError)

    def test_encoder_crash(self, animation_video, tmp_path):
        result = _run(CrashingTask(), animation_video, tmp_path)

        assert result.encoder.status is WorkerStatus.CRASHED
        assert isinstance(result.encoder.error, RuntimeError)
        assert result.decoder.status is WorkerStatus.FINISHED

    def test_both_workers_fail(self, animation_video, tmp_path):
        result = _run(NoFormatsTask(), animation_video, tmp_path)

        assert result.decoder.status is WorkerStatus.ERRORED
        assert isinstance(result.decoder.error, NoPixelFormatError)
        assert result.encoder.status is WorkerStatus.ERRORED
        assert isinstance(result.encoder.error, EncoderError)

    def test_missing_input(self, tmp_path):
        with pytest.raises(InputStreamError, match="couldn't open input"):
            _run(CollectingTask(), tmp_path / "missing.mp4", tmp_path)

    def test_configuration_error(self, animation_video, tmp_path):
        with pytest.raises(TaskConfigurationError, match="bad option"):
            _run(BadConfigTask(), animation_video, tmp_path)

    def test_output_not_writable(self, animation_video, tmp_path):
        with pytest.raises(OutputFileError, match="missing-dir"):
            _run(CollectingTask(), animation_video, tmp_path, name="missing-dir/out")

    def test_native_init_runs_once(self, monkeypatch):
        calls = []
        pipeline.init_native.cache_clear()
        monkeypatch.setattr(pipeline.av.logging, "set_level", calls.append)
        pipeline.init_native()
        pipeline.init_native()
        assert calls == [pipeline.av.logging.WARNING]
        pipeline.init_native.cache_clear()


class TestReportResult:
    def test_success(self, animation_video, tmp_path):
        console = _console()
        result = _run(CollectingTask(), animation_video, tmp_path)

        assert report_result(result, console) == 0
        output = console.file.getvalue()
        assert "Finished: Written" in output
        assert "10 frame(s) (collector)" in output
        assert "Written to" in output

    def test_failure(self, animation_video, tmp_path):
        console = _console()
        err_console = _console()
        result = _run(NoFormatsTask(), animation_video, tmp_path)

        assert report_result(result, console, err_console) == 1
        assert console.file.getvalue() == ""
        output = err_console.file.getvalue()
        assert "[Decoder] Errored: cannot select pixel format" in output
        assert "[Encoder] Errored: cannot finish an animation without frames" in output

    def test_crash(self, animation_video, tmp_path):
        err_console = _console()
        result = _run(CrashingTask(), animation_video, tmp_path)

        assert report_result(result, _console(), err_console) == 1
        output = err_console.file.getvalue()
        assert "[Decoder] Finished without errors" in output
        assert "[Encoder] Crashed: RuntimeError('unexpected')" in output

    def test_failure_goes_to_stderr_by_default(self, animation_video, tmp_path, capsys):
        console = _console()
        result = _run(FailingTask(), animation_video, tmp_path)

        assert report_result(result, console) == 1
        captured = capsys.readouterr()
        assert "[Encoder] Errored: native encoder gave up" in captured.err
        assert "Errored" not in captured.out
        assert console.file.getvalue() == ""
