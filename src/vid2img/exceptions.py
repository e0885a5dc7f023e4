class Vid2ImgError(Exception):
    pass


class TaskStateError(Vid2ImgError):
    def __init__(self, task: str, state: str, operation: str) -> None:
        super().__init__(f"{task} cannot {operation} while {state}")


# Decoder side


class DecodeError(Vid2ImgError):
    pass


class InputOpenError(DecodeError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot open '{path}': {reason}")


class StreamNotFoundError(DecodeError):
    def __init__(self, path: str) -> None:
        super().__init__(f"no video stream found in '{path}'")


class NoPixelFormatError(DecodeError):
    def __init__(self, source_format: str) -> None:
        self.source_format = source_format
        super().__init__(
            f"cannot select pixel format to convert frames to - got source format {source_format}"
        )


class NoTimingInformationError(DecodeError):
    def __init__(self) -> None:
        super().__init__("stream had no timing information")


class SendFrameError(DecodeError):
    def __init__(self, channel_full: bool) -> None:
        self.channel_full = channel_full
        super().__init__(f"cannot send frame to encoder (channel-full: {channel_full})")


class DecoderError(DecodeError):
    pass


# Configuration


class ConfigurationError(Vid2ImgError):
    pass


class NoCodecParametersError(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("stream has no codec parameters, width and height cannot be read")


class InvalidOptionError(ConfigurationError):
    pass


# Encoder side


class EncodeError(Vid2ImgError):
    pass


class NoImageReceivedError(EncodeError):
    def __init__(self) -> None:
        super().__init__("encoder didn't receive any image")


class FrameConversionError(EncodeError):
    def __init__(self, pixel_format: str) -> None:
        self.pixel_format = pixel_format
        super().__init__(f"frame could not be converted for the encoder (format: {pixel_format})")


class EncoderError(EncodeError):
    pass


class CannotCreateEncoderError(EncodeError):
    pass


class InvalidConfigError(EncodeError):
    pass


class OutputWriteError(EncodeError):
    pass


# Orchestration


class TaskError(Vid2ImgError):
    pass


class InputStreamError(TaskError):
    def __init__(self, cause: Exception) -> None:
        super().__init__(f"couldn't open input: {cause}")


class TaskConfigurationError(TaskError):
    def __init__(self, cause: Exception) -> None:
        super().__init__(f"couldn't configure encoder task: {cause}")


class OutputFileError(TaskError):
    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(f"couldn't open/create output file '{path}': {cause}")


class NoFramesError(TaskError):
    def __init__(self) -> None:
        super().__init__("couldn't calculate the total frames in the input")
