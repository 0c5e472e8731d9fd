"""Frame codecs: the BIN decoder and per-format encoders."""

from trajconvert.io.base import FrameDecoder, FrameEncoder
from trajconvert.io.decoder import BinFrameDecoder, frame_nbytes
from trajconvert.io.encoders import open_encoder

__all__ = [
    "BinFrameDecoder",
    "FrameDecoder",
    "FrameEncoder",
    "frame_nbytes",
    "open_encoder",
]
