"""Exception hierarchy for trajectory conversion.

Every error carries the process exit status the CLI reports for it.
"""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for conversion failures."""

    exit_code = 1


class InvalidArgumentsError(ConversionError):
    """Command-line arguments are missing, extra, or not valid integers."""

    exit_code = 1

    def __init__(self, message: str, *, wrong_count: bool = False) -> None:
        super().__init__(message)
        self.wrong_count = wrong_count


class ConfigError(ConversionError):
    """Configuration file or override could not be applied."""

    exit_code = 1


class UnsupportedFormatError(ConversionError):
    """Output format name is not in the format registry."""

    exit_code = 2


class EndOfStreamError(ConversionError):
    """Input ended on a frame boundary before the requested frame count."""

    exit_code = 3


class MalformedFrameError(ConversionError):
    """Input bytes could not be decoded into a frame."""

    exit_code = 4


class TruncatedFrameError(MalformedFrameError):
    """Input ended part-way through a frame."""


class FrameCountMismatchError(ConversionError):
    """Frames written disagree with the declared frame count."""

    exit_code = 5


class DecoderConfigurationError(ConversionError):
    """Decoder used before configuration, or configured twice."""


class EncoderConfigurationError(ConversionError):
    """Encoder configured with invalid values or used out of order."""


class FrameCountRequiredError(EncoderConfigurationError):
    """Header-declaring format written to without a declared frame count."""
