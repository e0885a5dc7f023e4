"""Shared CLI parameter definitions (groups and annotated options)."""

from __future__ import annotations

from typing import Annotated

from cyclopts import Group, Parameter

DEFAULT_OUTPUT = "out"

# Parameter groups
OUTPUT_OPTIONS_GROUP = Group("Output Options")
ENCODING_GROUP = Group("Encoding Options")
ANIMATION_GROUP = Group("Animation Options")
ADVANCED_GROUP = Group("Advanced Encoding Options")

ForceOverwriteOption = Annotated[
    bool,
    Parameter(
        name=["-f", "--force"],
        group=OUTPUT_OPTIONS_GROUP,
    ),
]

VerboseOption = Annotated[
    bool,
    Parameter(
        name=["-v", "--verbose"],
        group=OUTPUT_OPTIONS_GROUP,
    ),
]

LoopCountOption = Annotated[
    int,
    Parameter(
        name=["--loop-count"],
        group=ANIMATION_GROUP,
    ),
]
