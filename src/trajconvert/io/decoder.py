"""Decoder for the headerless BIN trajectory format.

A BIN stream is a plain sequence of frames. Each frame holds
``atom_count * 3`` little-endian float32 values (x, y, z per atom) in
angstrom. Nothing in the stream records the atom count, so it must be
supplied through :meth:`BinFrameDecoder.configure`.
"""

from __future__ import annotations

import logging

import numpy as np

from trajconvert.errors import (
    DecoderConfigurationError,
    EndOfStreamError,
    TruncatedFrameError,
)
from trajconvert.frame import Frame
from trajconvert.io.base import FrameDecoder

logger = logging.getLogger(__name__)

BIN_DTYPE = np.dtype("<f4")
VALUES_PER_ATOM = 3


def frame_nbytes(atom_count: int) -> int:
    """Size in bytes of one BIN frame."""
    return atom_count * VALUES_PER_ATOM * BIN_DTYPE.itemsize


class BinFrameDecoder(FrameDecoder):
    """Pass-through BIN reader over a binary stream.

    Only one frame is buffered at a time; the stream is never seeked.
    """

    def __init__(self, stream) -> None:
        self.stream = stream
        self.atom_count: int | None = None
        self.frames_read = 0
        self._buffer: bytearray | None = None

    def configure(self, atom_count: int) -> None:
        if self.atom_count is not None:
            raise DecoderConfigurationError("BIN decoder is already configured")
        if atom_count <= 0:
            raise DecoderConfigurationError(
                f"Atom count must be positive, got {atom_count}"
            )
        self.atom_count = atom_count
        self._buffer = bytearray(frame_nbytes(atom_count))
        logger.debug(
            "BIN decoder configured: %d atoms, %d bytes per frame",
            atom_count,
            len(self._buffer),
        )

    def _fill(self, view: memoryview) -> int:
        """Read into ``view`` until it is full or the stream ends."""
        filled = 0
        while filled < len(view):
            chunk = self.stream.read(len(view) - filled)
            if not chunk:
                break
            view[filled:filled + len(chunk)] = chunk
            filled += len(chunk)
        return filled

    def read_next(self) -> Frame:
        if self.atom_count is None or self._buffer is None:
            raise DecoderConfigurationError(
                "BIN decoder needs an atom count before reading"
            )
        expected = len(self._buffer)
        received = self._fill(memoryview(self._buffer))
        if received == 0:
            raise EndOfStreamError(
                f"Input ended after {self.frames_read} frames"
            )
        if received < expected:
            raise TruncatedFrameError(
                f"Frame {self.frames_read} is truncated: got {received} of "
                f"{expected} bytes"
            )

        xyz = (
            np.frombuffer(self._buffer, dtype=BIN_DTYPE)
            .reshape(self.atom_count, VALUES_PER_ATOM)
            .astype(np.float32)
        )
        frame = Frame(index=self.frames_read, xyz=xyz)
        self.frames_read += 1
        return frame

    def close(self) -> None:
        self._buffer = None
