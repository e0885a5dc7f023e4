"""Tests for AVIF and WebP encoder options."""

import pytest

from vid2img.animation import KeyframeDistance
from vid2img.avif import options as avif_options
from vid2img.avif.options import AvifOptions, Codec, encoder_options, resolve_encoder
from vid2img.exceptions import CannotCreateEncoderError, InvalidConfigError, InvalidOptionError
from vid2img.webp import AlphaFiltering, ImageHint, Preprocessing, Preset, WebpOptions
from vid2img.webp.options import parse_background_color


class TestKeyframeDistance:
    @pytest.mark.parametrize("text", ["disabled", " disabled "])
    def test_disabled(self, text):
        distance = KeyframeDistance.parse(text)
        assert distance.is_disabled
        assert str(distance) == "disabled"

    @pytest.mark.parametrize("text", ["allframes", "all-frames", "allFrames", "all_frames"])
    def test_all_frames(self, text):
        distance = KeyframeDistance.parse(text)
        assert distance.is_all_frames
        assert str(distance) == "all-frames"

    @pytest.mark.parametrize("text", ["3..12", "3,12", "3 .. 12"])
    def test_range(self, text):
        assert KeyframeDistance.parse(text) == KeyframeDistance(3, 12)
        assert str(KeyframeDistance.parse(text)) == "3..12"

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("..", "has no min"),
            ("5..", "has no max"),
            ("9..3", "larger than max"),
            ("often", "invalid keyframe distance"),
        ],
    )
    def test_invalid(self, text, message):
        with pytest.raises(InvalidOptionError, match=message):
            KeyframeDistance.parse(text)


class TestAvifOptions:
    def test_defaults(self):
        options = AvifOptions()
        assert options.codec is Codec.AUTO
        assert options.quantizer == 0
        assert options.speed == 10
        assert options.keyframe_distance is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"quantizer": 64},
            {"quantizer": -1},
            {"quantizer_alpha": 70},
            {"speed": 11},
            {"max_threads": 0},
            {"loop_count": -1},
        ],
    )
    def test_out_of_range(self, kwargs):
        with pytest.raises(InvalidOptionError):
            AvifOptions(**kwargs)

    def test_thread_count(self):
        assert AvifOptions(max_threads=3).thread_count() == 3
        assert AvifOptions().thread_count() >= 1


class TestResolveEncoder:
    """Test AV1 encoder selection."""

    def test_auto_prefers_aom(self, monkeypatch):
        monkeypatch.setattr(avif_options, "encoder_available", lambda name: True)
        assert resolve_encoder(Codec.AUTO) == "libaom-av1"

    def test_auto_falls_back_in_order(self, monkeypatch):
        available = {"libsvtav1", "librav1e"}
        monkeypatch.setattr(avif_options, "encoder_available", lambda name: name in available)
        assert resolve_encoder(Codec.AUTO) == "libsvtav1"
        available.discard("libsvtav1")
        assert resolve_encoder(Codec.AUTO) == "librav1e"

    def test_auto_without_encoders(self, monkeypatch):
        monkeypatch.setattr(avif_options, "encoder_available", lambda name: False)
        with pytest.raises(CannotCreateEncoderError, match="no AV1 encoder"):
            resolve_encoder(Codec.AUTO)

    def test_explicit_codec(self, monkeypatch):
        monkeypatch.setattr(avif_options, "encoder_available", lambda name: name == "librav1e")
        assert resolve_encoder(Codec.RAV1E) == "librav1e"
        with pytest.raises(CannotCreateEncoderError, match="libsvtav1"):
            resolve_encoder(Codec.SVT)


class TestEncoderOptions:
    def test_aom_still(self):
        assert encoder_options("libaom-av1", 20, 10, still=True) == {
            "crf": "20",
            "b": "0",
            "cpu-used": "8",
            "still-picture": "1",
        }

    def test_svt(self):
        options = encoder_options("libsvtav1", 0, 4, still=False)
        assert options == {"crf": "1", "preset": "7"}

    def test_rav1e(self):
        assert encoder_options("librav1e", 63, 6, still=False) == {"qp": "255", "speed": "6"}

    def test_keyframe_range(self):
        options = encoder_options(
            "libaom-av1", 10, 6, still=False, keyframe_distance=KeyframeDistance(2, 30)
        )
        assert options["g"] == "30"
        assert options["keyint_min"] == "2"

    def test_keyframes_all_frames(self):
        options = encoder_options(
            "librav1e", 10, 6, still=False, keyframe_distance=KeyframeDistance.all_frames()
        )
        assert options["g"] == "1"

    def test_keyframes_disabled(self):
        options = encoder_options(
            "librav1e", 10, 6, still=False, keyframe_distance=KeyframeDistance.disabled()
        )
        assert options["g"] == "-1"
        assert "keyint_min" not in options

    def test_keyframes_ignored_for_still(self):
        options = encoder_options(
            "libaom-av1", 10, 6, still=True, keyframe_distance=KeyframeDistance(2, 30)
        )
        assert "g" not in options


class TestWebpOptions:
    """Test WebP option clamping, validation and the libwebp field mapping."""

    @pytest.mark.parametrize(
        ("quality", "expected"), [(None, 75.0), (-5, 0.0), (50.5, 50.5), (300, 100.0)]
    )
    def test_quality_is_clamped(self, quality, expected):
        assert WebpOptions(quality=quality).clamped_quality == expected

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"method": -1}, "method"),
            ({"method": 7}, "method"),
            ({"passes": 0}, "pass"),
            ({"passes": 11}, "pass"),
            ({"target_size": -1}, "target size"),
            ({"target_psnr": -0.5}, "target PSNR"),
            ({"loop_count": -1}, "loop count"),
            ({"loop_count": 70000}, "loop count"),
        ],
    )
    def test_invalid(self, kwargs, message):
        with pytest.raises(InvalidConfigError, match=message):
            WebpOptions(**kwargs).validate()

    def test_unset_fields_are_left_to_the_preset(self):
        assert WebpOptions(preset=Preset.TEXT).config_fields() == {}
        assert WebpOptions().anim_fields() == {}

    def test_config_fields_are_clamped(self):
        options = WebpOptions(
            segments=9,
            sns_strength=-3,
            filter_strength=150,
            filter_sharpness=12,
            alpha_quality=101,
            partitions=5,
            partition_limit=-1,
            near_lossless=200,
            passes=150,
        )
        assert options.config_fields() == {
            "segments": 4,
            "sns_strength": 0,
            "filter_strength": 100,
            "filter_sharpness": 7,
            "alpha_quality": 100,
            "partitions": 3,
            "partition_limit": 0,
            "near_lossless": 100,
            "pass": 100,
        }

    def test_config_fields_as_c_values(self):
        options = WebpOptions(
            method=6,
            image_hint=ImageHint.GRAPH,
            target_psnr=42.5,
            strong_filter=True,
            autofilter=False,
            alpha_filtering=AlphaFiltering.BEST,
            preprocessing=Preprocessing.PSEUDO_RANDOM_DITHERING,
            exact=True,
        )
        assert options.config_fields() == {
            "method": 6,
            "image_hint": 3,
            "target_PSNR": 42.5,
            "filter_type": 1,
            "autofilter": 0,
            "alpha_filtering": 2,
            "preprocessing": 2,
            "exact": 1,
        }

    def test_anim_fields(self):
        options = WebpOptions(
            keyframe_distance=KeyframeDistance.disabled(),
            background_color=0xFF102030,
            loop_count=4,
            minimize_size=True,
        )
        assert options.anim_fields() == {
            "kmin": -1,
            "kmax": 0,
            "bgcolor": 0xFF102030,
            "loop_count": 4,
        }

    def test_describe(self):
        options = WebpOptions(
            preset=Preset.DRAWING,
            lossless=True,
            alpha_filtering=AlphaFiltering.FAST,
            keyframe_distance=KeyframeDistance(2, 8),
            background_color=0xFF000000,
        )
        assert options.describe() == (
            "preset=drawing, lossless=True, alpha_filtering=fast,"
            " keyframe_distance=2..8, background_color=#ff000000"
        )


class TestBackgroundColor:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("#102030", 0xFF102030),
            ("#abcdef", 0xFFABCDEF),
            ("#80102030", 0x80102030),
            (" #00000000 ", 0x00000000),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_background_color(text) == expected

    @pytest.mark.parametrize("text", ["102030", "#12345", "#1234567", "#12 456", "#gg0000", ""])
    def test_invalid(self, text):
        with pytest.raises(InvalidOptionError, match="background color"):
            parse_background_color(text)
