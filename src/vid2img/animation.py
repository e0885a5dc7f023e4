"""Key frame placement shared by the animated output formats."""

from __future__ import annotations

from dataclasses import dataclass

from vid2img.exceptions import InvalidOptionError


@dataclass(frozen=True, slots=True)
class KeyframeDistance:
    """Minimum and maximum distance between key frames of an animation.

    ``maximum <= 0`` disables forced key frames, ``maximum == 1`` makes every
    frame a key frame.
    """

    minimum: int
    maximum: int

    @classmethod
    def disabled(cls) -> KeyframeDistance:
        return cls(-1, 0)

    @classmethod
    def all_frames(cls) -> KeyframeDistance:
        return cls(0, 1)

    @property
    def is_disabled(self) -> bool:
        return self.maximum <= 0

    @property
    def is_all_frames(self) -> bool:
        return self.maximum == 1

    @classmethod
    def parse(cls, value: str) -> KeyframeDistance:
        """Parse ``disabled``, ``all-frames``, ``<min>..<max>`` or ``<min>,<max>``."""
        text = value.strip()
        if text == "disabled":
            return cls.disabled()
        if text in {"allframes", "all-frames", "allFrames", "all_frames"}:
            return cls.all_frames()
        for separator in ("..", ","):
            if separator in text:
                bounds = [part.strip() for part in text.split(separator)]
                numbers = [int(part) for part in bounds if part.isdigit()]
                if not numbers:
                    raise InvalidOptionError(f"keyframe distance '{value}' has no min")
                if len(numbers) < 2:
                    raise InvalidOptionError(f"keyframe distance '{value}' has no max")
                minimum, maximum = numbers[0], numbers[1]
                if minimum > maximum:
                    raise InvalidOptionError(
                        f"keyframe distance min {minimum} is larger than max {maximum}"
                    )
                return cls(minimum, maximum)
        raise InvalidOptionError(
            f"invalid keyframe distance '{value}', try 'disabled', 'all-frames', or '3..5'"
        )

    def __str__(self) -> str:
        if self.is_disabled:
            return "disabled"
        if self.is_all_frames:
            return "all-frames"
        return f"{self.minimum}..{self.maximum}"
