"""Tests for the avif and webp commands that need no native encoder."""

import pytest

from vid2img.animation import KeyframeDistance
from vid2img.cmd import avif_cmd, webp_cmd
from vid2img.webp import AlphaFiltering


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(avif_cmd, "configure_logging", lambda console, verbose: None)
    monkeypatch.setattr(webp_cmd, "configure_logging", lambda console, verbose: None)


class TestInvalidOptions:
    """Invalid option values exit with status 2 before any work is done."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"quantizer": 64},
            {"quantizer_alpha": -1},
            {"speed": 11},
            {"keyframe_distance": "7..2"},
            {"keyframe_distance": "sometimes"},
        ],
    )
    def test_avif(self, tmp_path, kwargs):
        assert avif_cmd.avif(tmp_path / "in.mp4", str(tmp_path / "out"), **kwargs) == 2
        assert not (tmp_path / "out.avif").exists()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"method": 7},
            {"method": -1},
            {"loop_count": -2},
            {"passes": 0},
            {"target_size": -10},
            {"keyframe_distance": "12..3"},
            {"background_color": "red"},
            {"background_color": "#1234"},
        ],
    )
    def test_webp(self, tmp_path, kwargs):
        assert webp_cmd.webp(tmp_path / "in.mp4", str(tmp_path / "out"), **kwargs) == 2
        assert not (tmp_path / "out.webp").exists()


def test_webp_options_reach_the_task(tmp_path, monkeypatch):
    calls = []

    def fake_convert(console, task, args, input_path, output, *, force):
        calls.append(args)
        return 0

    monkeypatch.setattr(webp_cmd, "convert", fake_convert)

    status = webp_cmd.webp(
        tmp_path / "in.mp4",
        str(tmp_path / "out"),
        filter_sharpness=3,
        alpha_filtering=AlphaFiltering.BEST,
        keyframe_distance="all-frames",
        background_color="#80ff0000",
        loop_count=1,
    )

    assert status == 0
    (options,) = calls
    assert options.filter_sharpness == 3
    assert options.alpha_filtering is AlphaFiltering.BEST
    assert options.keyframe_distance == KeyframeDistance.all_frames()
    assert options.background_color == 0x80FF0000
    assert options.loop_count == 1
    assert options.lossless is None


def test_missing_input_exits_with_error(tmp_path):
    assert webp_cmd.webp(tmp_path / "missing.mp4", str(tmp_path / "out")) == 1


def test_declined_overwrite(tmp_path, animation_video, monkeypatch):
    existing = tmp_path / "out.webp"
    existing.write_bytes(b"keep")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    with pytest.raises(SystemExit):
        webp_cmd.webp(animation_video, str(tmp_path / "out"))
    assert existing.read_bytes() == b"keep"
