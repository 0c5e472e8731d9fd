"""Streaming conversion of BIN trajectories into standard trajectory formats."""

from trajconvert.errors import ConversionError
from trajconvert.formats import TrajectoryFormat, available_formats, resolve_format
from trajconvert.frame import Frame

__version__ = "0.1.0"

__all__ = [
    "ConversionError",
    "Frame",
    "TrajectoryFormat",
    "available_formats",
    "resolve_format",
    "__version__",
]
