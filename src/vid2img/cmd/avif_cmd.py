"""AVIF command for vid2img."""

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.console import Console
from rich.markup import escape

from vid2img.avif import AvifEncoderTask, AvifOptions, Codec, KeyframeDistance
from vid2img.avif.options import MAX_SPEED
from vid2img.exceptions import InvalidOptionError
from vid2img.types_manual import (
    ANIMATION_GROUP,
    DEFAULT_OUTPUT,
    ENCODING_GROUP,
    ForceOverwriteOption,
    LoopCountOption,
    VerboseOption,
)
from vid2img.utils import configure_logging, convert

console = Console()


def avif(
    input: Path,  # noqa: A002
    output: str = DEFAULT_OUTPUT,
    *,
    codec: Annotated[
        Codec,
        Parameter(
            name=["-c", "--codec"],
            group=ENCODING_GROUP,
        ),
    ] = Codec.AUTO,
    quantizer: Annotated[
        int,
        Parameter(
            name=["-q", "--quantizer"],
            group=ENCODING_GROUP,
        ),
    ] = 0,
    quantizer_alpha: Annotated[
        int,
        Parameter(
            name=["--quantizer-alpha"],
            group=ENCODING_GROUP,
        ),
    ] = 0,
    speed: Annotated[
        int,
        Parameter(
            name=["-s", "--speed"],
            group=ENCODING_GROUP,
        ),
    ] = MAX_SPEED,
    max_threads: Annotated[
        int | None,
        Parameter(
            name=["--max-threads"],
            group=ENCODING_GROUP,
        ),
    ] = None,
    keyframe_distance: Annotated[
        str | None,
        Parameter(
            name=["--keyframe-distance"],
            group=ANIMATION_GROUP,
        ),
    ] = None,
    loop_count: LoopCountOption = 0,
    force: ForceOverwriteOption = False,
    verbose: VerboseOption = False,
) -> int:
    """Convert a video into an AVIF image or image sequence.

    A video with exactly one frame produces a still image, anything else an
    animated AVIF.

    Parameters
    ----------
    input
        Input video file.
    output
        Output name, ".avif" replaces any extension.
    codec
        AV1 encoder: aom, rav1e, svt, or auto (first available).
    quantizer
        Colour quantizer, 0 (lossless) to 63 (worst).
    quantizer_alpha
        Alpha quantizer, 0 (lossless) to 63 (worst).
    speed
        Encoder speed, 0 (slowest) to 10 (fastest).
    max_threads
        Encoder threads. Defaults to the number of CPUs.
    keyframe_distance
        Distance between key frames: "disabled", "all-frames", "<min>..<max>"
        or "<min>,<max>".
    loop_count
        Number of animation loops, 0 loops forever.
    force
        Force overwrite of output file without confirmation.
    verbose
        Enable debug logging.

    Examples
    --------
    ```
    vid2img avif clip.mp4 clip --quantizer 20 --speed 8
    ```
    """
    configure_logging(console, verbose)

    try:
        options = AvifOptions(
            codec=codec,
            quantizer=quantizer,
            quantizer_alpha=quantizer_alpha,
            speed=speed,
            max_threads=max_threads,
            keyframe_distance=(
                KeyframeDistance.parse(keyframe_distance) if keyframe_distance else None
            ),
            loop_count=loop_count,
        )
    except InvalidOptionError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 2

    if options.keyframe_distance is not None:
        console.print(f"[cyan]Keyframe distance:[/cyan] {options.keyframe_distance}")
    return convert(console, AvifEncoderTask(), options, input, output, force=force)
