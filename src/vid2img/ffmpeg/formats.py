"""Pixel format negotiation between decoded frames and encoder tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vid2img.task import EncoderTask

ALPHA_FORMATS = frozenset(
    {
        "argb",
        "abgr",
        "bgra",
        "rgba",
        "yuva444p",
        "yuva420p",
        "yuva422p",
    }
)


def is_alpha_format(pixel_format: str) -> bool:
    return pixel_format in ALPHA_FORMATS


@dataclass(frozen=True, slots=True)
class AcceptedFormats:
    """Pixel formats an encoder task consumes without conversion.

    The first entry of each tuple is the target used when a frame has to be
    resampled.
    """

    regular: tuple[str, ...]
    alpha: tuple[str, ...]

    @classmethod
    def for_task(cls, task: EncoderTask | type[EncoderTask]) -> AcceptedFormats:
        return cls(
            regular=tuple(task.accepted_formats()),
            alpha=tuple(task.accepted_alpha_formats()),
        )

    def passes(self, pixel_format: str) -> bool:
        return pixel_format in self.regular or pixel_format in self.alpha

    def select(self, source_format: str) -> str | None:
        candidates = self.alpha if is_alpha_format(source_format) else self.regular
        return candidates[0] if candidates else None
