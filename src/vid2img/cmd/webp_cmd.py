"""WebP command for vid2img."""

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.console import Console
from rich.markup import escape

from vid2img.animation import KeyframeDistance
from vid2img.exceptions import InvalidConfigError, InvalidOptionError
from vid2img.types_manual import (
    ADVANCED_GROUP,
    ANIMATION_GROUP,
    DEFAULT_OUTPUT,
    ENCODING_GROUP,
    ForceOverwriteOption,
    VerboseOption,
)
from vid2img.utils import configure_logging, convert
from vid2img.webp import (
    AlphaFiltering,
    ImageHint,
    Preprocessing,
    Preset,
    WebpEncoderTask,
    WebpOptions,
)
from vid2img.webp.options import parse_background_color

console = Console()


def webp(
    input: Path,  # noqa: A002
    output: str = DEFAULT_OUTPUT,
    *,
    preset: Annotated[
        Preset,
        Parameter(
            name=["-p", "--preset"],
            group=ENCODING_GROUP,
        ),
    ] = Preset.DEFAULT,
    lossless: Annotated[
        bool | None,
        Parameter(
            name=["--lossless"],
            group=ENCODING_GROUP,
        ),
    ] = None,
    quality: Annotated[
        float | None,
        Parameter(
            name=["-q", "--quality"],
            group=ENCODING_GROUP,
        ),
    ] = None,
    method: Annotated[
        int | None,
        Parameter(
            name=["-m", "--method"],
            group=ENCODING_GROUP,
        ),
    ] = None,
    image_hint: Annotated[
        ImageHint | None,
        Parameter(
            name=["--image-hint"],
            group=ENCODING_GROUP,
        ),
    ] = None,
    target_size: Annotated[
        int | None,
        Parameter(name=["--target-size"], group=ADVANCED_GROUP),
    ] = None,
    target_psnr: Annotated[
        float | None,
        Parameter(name=["--target-psnr"], group=ADVANCED_GROUP),
    ] = None,
    segments: Annotated[
        int | None,
        Parameter(name=["--segments"], group=ADVANCED_GROUP),
    ] = None,
    sns_strength: Annotated[
        int | None,
        Parameter(name=["--sns-strength"], group=ADVANCED_GROUP),
    ] = None,
    filter_strength: Annotated[
        int | None,
        Parameter(name=["--filter-strength"], group=ADVANCED_GROUP),
    ] = None,
    filter_sharpness: Annotated[
        int | None,
        Parameter(name=["--filter-sharpness"], group=ADVANCED_GROUP),
    ] = None,
    strong_filter: Annotated[
        bool | None,
        Parameter(name=["--strong-filter"], group=ADVANCED_GROUP),
    ] = None,
    autofilter: Annotated[
        bool | None,
        Parameter(name=["--autofilter"], group=ADVANCED_GROUP),
    ] = None,
    alpha_compression: Annotated[
        bool | None,
        Parameter(name=["--alpha-compression"], group=ADVANCED_GROUP),
    ] = None,
    alpha_filtering: Annotated[
        AlphaFiltering | None,
        Parameter(name=["--alpha-filtering"], group=ADVANCED_GROUP),
    ] = None,
    alpha_quality: Annotated[
        int | None,
        Parameter(name=["--alpha-quality"], group=ADVANCED_GROUP),
    ] = None,
    passes: Annotated[
        int | None,
        Parameter(name=["--pass"], group=ADVANCED_GROUP),
    ] = None,
    show_compressed: Annotated[
        bool | None,
        Parameter(name=["--show-compressed"], group=ADVANCED_GROUP),
    ] = None,
    preprocessing: Annotated[
        Preprocessing | None,
        Parameter(name=["--preprocessing"], group=ADVANCED_GROUP),
    ] = None,
    partitions: Annotated[
        int | None,
        Parameter(name=["--partitions"], group=ADVANCED_GROUP),
    ] = None,
    partition_limit: Annotated[
        int | None,
        Parameter(name=["--partition-limit"], group=ADVANCED_GROUP),
    ] = None,
    emulate_jpeg_size: Annotated[
        bool | None,
        Parameter(name=["--emulate-jpeg-size"], group=ADVANCED_GROUP),
    ] = None,
    thread_level: Annotated[
        bool | None,
        Parameter(name=["--thread-level"], group=ADVANCED_GROUP),
    ] = None,
    low_memory: Annotated[
        bool | None,
        Parameter(name=["--low-memory"], group=ADVANCED_GROUP),
    ] = None,
    near_lossless: Annotated[
        int | None,
        Parameter(name=["--near-lossless"], group=ADVANCED_GROUP),
    ] = None,
    exact: Annotated[
        bool | None,
        Parameter(name=["--exact"], group=ADVANCED_GROUP),
    ] = None,
    use_delta_palette: Annotated[
        bool | None,
        Parameter(name=["--use-delta-palette"], group=ADVANCED_GROUP),
    ] = None,
    use_sharp_yuv: Annotated[
        bool | None,
        Parameter(name=["--use-sharp-yuv"], group=ADVANCED_GROUP),
    ] = None,
    minimize_size: Annotated[
        bool | None,
        Parameter(name=["--minimize-size"], group=ANIMATION_GROUP),
    ] = None,
    keyframe_distance: Annotated[
        str | None,
        Parameter(name=["--keyframe-distance"], group=ANIMATION_GROUP),
    ] = None,
    allow_mixed: Annotated[
        bool | None,
        Parameter(name=["--allow-mixed"], group=ANIMATION_GROUP),
    ] = None,
    background_color: Annotated[
        str | None,
        Parameter(name=["--background-color"], group=ANIMATION_GROUP),
    ] = None,
    loop_count: Annotated[
        int | None,
        Parameter(name=["--loop-count"], group=ANIMATION_GROUP),
    ] = None,
    force: ForceOverwriteOption = False,
    verbose: VerboseOption = False,
) -> int:
    """Convert a video into a WebP image or animation.

    Options left unset keep the value the preset gives them.

    Parameters
    ----------
    input
        Input video file.
    output
        Output name, ".webp" replaces any extension.
    preset
        libwebp preset tuning the encoder for the kind of content.
    lossless
        Encode losslessly.
    quality
        Quality 0-100, values outside are clamped.
    method
        Compression method, 0 (fast) to 6 (slowest, best).
    image_hint
        Hint about the image content (lossless only).
    target_size
        Target size in bytes, overrides quality when set.
    target_psnr
        Target PSNR, overrides target size when set.
    segments
        Number of segments, 1 to 4.
    sns_strength
        Spatial noise shaping, 0 (off) to 100.
    filter_strength
        Deblocking filter strength, 0 (off) to 100.
    filter_sharpness
        Filter sharpness, 0 (sharpest) to 7.
    strong_filter
        Use the strong instead of the simple filter.
    autofilter
        Auto adjust the filter strength.
    alpha_compression
        Compress the alpha channel losslessly.
    alpha_filtering
        Predictive filtering of the alpha plane.
    alpha_quality
        Alpha quality, 0 (smallest) to 100 (lossless).
    passes
        Number of entropy analysis passes, 1 to 10.
    show_compressed
        Export the compressed picture back for inspection.
    preprocessing
        Preprocessing filter.
    partitions
        log2 of the number of token partitions, 0 to 3.
    partition_limit
        Quality degradation allowed to fit the 512k partition limit, 0 to 100.
    emulate_jpeg_size
        Map quality so the output size matches a JPEG of the same quality.
    thread_level
        Use multi-threaded encoding.
    low_memory
        Reduce memory usage at the cost of CPU.
    near_lossless
        Near lossless preprocessing, 0 (max) to 100 (off).
    exact
        Keep the RGB values under fully transparent pixels.
    use_delta_palette
        Use delta palettization (experimental).
    use_sharp_yuv
        Use the sharper and slower RGB to YUV conversion.
    minimize_size
        Minimize the output size (slow), implies no key frame insertion.
    keyframe_distance
        Distance between key frames: "disabled", "all-frames", "<min>..<max>"
        or "<min>,<max>".
    allow_mixed
        Let each frame pick lossy or lossless encoding.
    background_color
        Animation background as "#RRGGBB" or "#AARRGGBB".
    loop_count
        Number of animation loops, 0 loops forever.
    force
        Force overwrite of output file without confirmation.
    verbose
        Enable debug logging.

    Examples
    --------
    ```
    vid2img webp clip.mp4 clip --quality 80 --keyframe-distance 3..12
    ```
    """
    configure_logging(console, verbose)

    try:
        options = WebpOptions(
            preset=preset,
            lossless=lossless,
            quality=quality,
            method=method,
            image_hint=image_hint,
            target_size=target_size,
            target_psnr=target_psnr,
            segments=segments,
            sns_strength=sns_strength,
            filter_strength=filter_strength,
            filter_sharpness=filter_sharpness,
            strong_filter=strong_filter,
            autofilter=autofilter,
            alpha_compression=alpha_compression,
            alpha_filtering=alpha_filtering,
            alpha_quality=alpha_quality,
            passes=passes,
            show_compressed=show_compressed,
            preprocessing=preprocessing,
            partitions=partitions,
            partition_limit=partition_limit,
            emulate_jpeg_size=emulate_jpeg_size,
            thread_level=thread_level,
            low_memory=low_memory,
            near_lossless=near_lossless,
            exact=exact,
            use_delta_palette=use_delta_palette,
            use_sharp_yuv=use_sharp_yuv,
            minimize_size=minimize_size,
            keyframe_distance=(
                KeyframeDistance.parse(keyframe_distance) if keyframe_distance else None
            ),
            allow_mixed=allow_mixed,
            background_color=(
                parse_background_color(background_color) if background_color else None
            ),
            loop_count=loop_count,
        )
        options.validate()
    except (InvalidConfigError, InvalidOptionError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        return 2

    return convert(console, WebpEncoderTask(), options, input, output, force=force)
