"""Validation of the three positional conversion arguments."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from trajconvert.errors import InvalidArgumentsError
from trajconvert.formats import TrajectoryFormat, resolve_format

USAGE_ARGUMENTS = "<number of atoms> <number of frames> <output format>"

_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ConversionRequest:
    """Validated conversion parameters, fixed for the whole run."""

    atom_count: int
    frame_count: int
    output_format: TrajectoryFormat


def _parse_int(value: str, label: str, *, minimum: int) -> int:
    text = value.strip()
    # int() alone would also accept "1_000".
    if not _INTEGER.fullmatch(text):
        raise InvalidArgumentsError(f"{label} must be an integer, got {value!r}")
    number = int(text)
    if number < minimum:
        bound = "positive" if minimum > 0 else "non-negative"
        raise InvalidArgumentsError(f"{label} must be {bound}, got {number}")
    return number


def parse_arguments(args: Sequence[str]) -> ConversionRequest:
    """Turn ``(atom_count, frame_count, output_format)`` into a request.

    Raises
    ------
    InvalidArgumentsError
        Wrong number of arguments (``wrong_count`` is set), non-integer
        counts, a non-positive atom count or a negative frame count.
    UnsupportedFormatError
        The output format is not registered.
    """
    if len(args) != 3:
        raise InvalidArgumentsError(
            f"Expected 3 arguments, got {len(args)}", wrong_count=True
        )
    atom_arg, frame_arg, format_arg = args
    atom_count = _parse_int(atom_arg, "Number of atoms", minimum=1)
    frame_count = _parse_int(frame_arg, "Number of frames", minimum=0)
    output_format = resolve_format(format_arg)
    return ConversionRequest(
        atom_count=atom_count,
        frame_count=frame_count,
        output_format=output_format,
    )
