"""Decoding side of the pipeline: input opening, frame emission and format negotiation."""

from vid2img.ffmpeg.formats import ALPHA_FORMATS, AcceptedFormats, is_alpha_format
from vid2img.ffmpeg.frames import (
    FrameData,
    StreamInfo,
    TimingData,
    count_frames,
    extract_duration_ms,
)
from vid2img.ffmpeg.source import (
    DECODER_OVERRIDES,
    Resampler,
    emit_frames,
    make_resampler,
    open_decoder,
    open_input,
)

__all__ = [
    "ALPHA_FORMATS",
    "DECODER_OVERRIDES",
    "AcceptedFormats",
    "FrameData",
    "Resampler",
    "StreamInfo",
    "TimingData",
    "count_frames",
    "emit_frames",
    "extract_duration_ms",
    "is_alpha_format",
    "make_resampler",
    "open_decoder",
    "open_input",
]
