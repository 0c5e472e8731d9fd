"""Decoder and encoder interfaces shared by all codec variants."""

from __future__ import annotations

from abc import ABC, abstractmethod

from trajconvert.errors import (
    EncoderConfigurationError,
    FrameCountMismatchError,
    FrameCountRequiredError,
)
from trajconvert.formats import TrajectoryFormat
from trajconvert.frame import Frame


class FrameDecoder(ABC):
    """Reads frames one at a time from an input byte stream."""

    @abstractmethod
    def configure(self, atom_count: int) -> None:
        """Fix the atom count; must be called once before any read."""

    @abstractmethod
    def read_next(self) -> Frame:
        """Return the next frame, blocking until it is complete."""

    def close(self) -> None:
        """Release decoder state. The input stream is owned by the caller."""


class FrameEncoder(ABC):
    """Writes frames one at a time to an output byte stream.

    Subclasses implement ``_write_frame``, ``_finish`` and ``_discard``.
    Frame-count bookkeeping for header-declaring formats lives here so every
    variant enforces it the same way.
    """

    format: TrajectoryFormat

    def __init__(self, stream, *, verify_frame_count: bool = True) -> None:
        self.stream = stream
        self.verify_frame_count = verify_frame_count
        self.expected_frame_count: int | None = None
        self.atom_count: int | None = None
        self.frames_written = 0
        self.closed = False

    def configure(
        self,
        expected_frame_count: int | None = None,
        atom_count: int | None = None,
    ) -> None:
        """Declare the total frame count and atom count ahead of the first frame."""
        if self.frames_written:
            raise EncoderConfigurationError(
                "Encoder must be configured before the first frame is written"
            )
        if expected_frame_count is not None and expected_frame_count < 0:
            raise EncoderConfigurationError(
                f"Expected frame count must be >= 0, got {expected_frame_count}"
            )
        if atom_count is not None and atom_count <= 0:
            raise EncoderConfigurationError(
                f"Atom count must be positive, got {atom_count}"
            )
        self.expected_frame_count = expected_frame_count
        self.atom_count = atom_count

    @property
    def declares_frame_count(self) -> bool:
        return self.format.requires_frame_count_header

    def write(self, frame: Frame) -> None:
        """Append one frame to the output."""
        if self.closed:
            raise EncoderConfigurationError(f"{self.format.name} encoder is closed")
        if self.declares_frame_count:
            if self.expected_frame_count is None:
                raise FrameCountRequiredError(
                    f"{self.format.name} stores the frame count in its header; "
                    "configure expected_frame_count before writing"
                )
            if self.frames_written >= self.expected_frame_count:
                raise FrameCountMismatchError(
                    f"{self.format.name} header declares {self.expected_frame_count} "
                    "frames; refusing to write more"
                )
        if self.atom_count is None:
            self.atom_count = frame.n_atoms
        self._write_frame(frame)
        self.frames_written += 1

    def close(self) -> None:
        """Finish the trajectory and flush all pending bytes to the stream."""
        if self.closed:
            return
        self.closed = True
        if (
            self.declares_frame_count
            and self.verify_frame_count
            and self.expected_frame_count is not None
            and self.frames_written != self.expected_frame_count
        ):
            self._discard()
            raise FrameCountMismatchError(
                f"{self.format.name} header declares {self.expected_frame_count} "
                f"frames but {self.frames_written} were written"
            )
        self._finish()

    def abort(self) -> None:
        """Release resources without emitting pending output."""
        if self.closed:
            return
        self.closed = True
        self._discard()

    @abstractmethod
    def _write_frame(self, frame: Frame) -> None: ...

    @abstractmethod
    def _finish(self) -> None: ...

    @abstractmethod
    def _discard(self) -> None: ...

    def __enter__(self) -> "FrameEncoder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()
