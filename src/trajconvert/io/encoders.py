"""Frame encoders, one variant per supported output format.

BIN is written directly with numpy. The other formats go through
``mdtraj.formats``, whose trajectory files only write to paths: those
encoders spool into a private temporary directory and forward the bytes to
the output stream, after each frame for streamable formats and on close for
the rest.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from abc import abstractmethod
from pathlib import Path

import numpy as np

from trajconvert.formats import (
    BIN,
    DCD,
    MDCRD,
    NANOMETER,
    NETCDF,
    TRR,
    XTC,
    TrajectoryFormat,
)
from trajconvert.frame import Frame
from trajconvert.io.base import FrameEncoder
from trajconvert.io.decoder import BIN_DTYPE

logger = logging.getLogger(__name__)

ANGSTROM_TO_NM = 0.1


class BinFrameEncoder(FrameEncoder):
    """Writes frames as raw little-endian float32 coordinates."""

    format = BIN

    def __init__(self, stream, *, spool_dir=None, verify_frame_count: bool = True) -> None:
        super().__init__(stream, verify_frame_count=verify_frame_count)

    def _write_frame(self, frame: Frame) -> None:
        self.stream.write(frame.xyz.astype(BIN_DTYPE).tobytes())

    def _finish(self) -> None:
        self.stream.flush()

    def _discard(self) -> None:
        pass


class SpooledFrameEncoder(FrameEncoder):
    """Base for encoders backed by an ``mdtraj.formats`` trajectory file."""

    # Write a zero-frame block on close so an empty trajectory still has a header.
    writes_empty_header = False

    def __init__(
        self,
        stream,
        *,
        spool_dir: str | Path | None = None,
        verify_frame_count: bool = True,
    ) -> None:
        super().__init__(stream, verify_frame_count=verify_frame_count)
        self._spool = tempfile.TemporaryDirectory(prefix="trajconvert-", dir=spool_dir)
        self.spool_path = Path(self._spool.name) / f"trajectory{self.format.suffix}"
        self._handle = None
        self._forwarded = 0

    @property
    def scale(self) -> float:
        """Factor from angstrom to the format's distance unit."""
        return ANGSTROM_TO_NM if self.format.distance_unit == NANOMETER else 1.0

    @abstractmethod
    def _open_handle(self, path: str): ...

    @abstractmethod
    def _write_block(self, handle, xyz, times, steps, cell_lengths, cell_angles) -> None: ...

    def _handle_or_open(self):
        if self._handle is None:
            self._handle = self._open_handle(str(self.spool_path))
            logger.debug("Opened %s spool at %s", self.format.name, self.spool_path)
        return self._handle

    def _write_frame(self, frame: Frame) -> None:
        handle = self._handle_or_open()
        times = np.array(
            [frame.index if frame.time is None else frame.time], dtype=np.float32
        )
        steps = np.array([frame.index], dtype=np.int32)
        cell_lengths = cell_angles = None
        if frame.has_cell:
            cell_lengths = np.asarray(frame.cell_lengths, dtype=np.float32)[None] * self.scale
            cell_angles = np.asarray(frame.cell_angles, dtype=np.float32)[None]
        self._write_block(
            handle, frame.xyz[None] * self.scale, times, steps, cell_lengths, cell_angles
        )
        if self.format.streamable:
            handle.flush()
            self._forward()

    def _forward(self) -> None:
        """Copy spool bytes not yet sent to the output stream."""
        if not self.spool_path.exists():
            return
        with open(self.spool_path, "rb") as spool:
            spool.seek(self._forwarded)
            shutil.copyfileobj(spool, self.stream)
            self._forwarded = spool.tell()
        self.stream.flush()

    def _close_handle(self) -> None:
        if self._handle is not None:
            handle, self._handle = self._handle, None
            handle.close()

    def _finish(self) -> None:
        try:
            handle = self._handle_or_open()
            if self.frames_written == 0 and self.writes_empty_header and self.atom_count:
                empty = np.zeros((0, self.atom_count, 3), dtype=np.float32)
                self._write_block(
                    handle,
                    empty,
                    np.zeros(0, dtype=np.float32),
                    np.zeros(0, dtype=np.int32),
                    None,
                    None,
                )
            self._close_handle()
            self._forward()
            logger.debug(
                "Emitted %d bytes of %s", self._forwarded, self.format.name
            )
        finally:
            self._spool.cleanup()

    def _discard(self) -> None:
        try:
            self._close_handle()
        finally:
            self._spool.cleanup()


def _box_vectors(cell_lengths, cell_angles):
    """Convert (n, 3) lengths and angles to (n, 3, 3) box vectors."""
    if cell_lengths is None or cell_angles is None:
        return None
    from mdtraj.utils import lengths_and_angles_to_box_vectors

    a, b, c = lengths_and_angles_to_box_vectors(*cell_lengths.T, *cell_angles.T)
    return np.stack([a, b, c], axis=1)


class XTCFrameEncoder(SpooledFrameEncoder):
    format = XTC

    def _open_handle(self, path: str):
        from mdtraj.formats import XTCTrajectoryFile

        return XTCTrajectoryFile(path, mode="w", force_overwrite=True)

    def _write_block(self, handle, xyz, times, steps, cell_lengths, cell_angles) -> None:
        handle.write(xyz, time=times, step=steps, box=_box_vectors(cell_lengths, cell_angles))


class TRRFrameEncoder(SpooledFrameEncoder):
    format = TRR

    def _open_handle(self, path: str):
        from mdtraj.formats import TRRTrajectoryFile

        return TRRTrajectoryFile(path, mode="w", force_overwrite=True)

    def _write_block(self, handle, xyz, times, steps, cell_lengths, cell_angles) -> None:
        handle.write(xyz, time=times, step=steps, box=_box_vectors(cell_lengths, cell_angles))


class NetCDFFrameEncoder(SpooledFrameEncoder):
    """Amber NetCDF. The frame dimension is only final once the file is closed."""

    format = NETCDF
    writes_empty_header = True

    def _open_handle(self, path: str):
        from mdtraj.formats import NetCDFTrajectoryFile

        return NetCDFTrajectoryFile(path, mode="w", force_overwrite=True)

    def _write_block(self, handle, xyz, times, steps, cell_lengths, cell_angles) -> None:
        handle.write(
            xyz, time=times, cell_lengths=cell_lengths, cell_angles=cell_angles
        )


class DCDFrameEncoder(SpooledFrameEncoder):
    """DCD rewrites its frame count header after every frame."""

    format = DCD
    writes_empty_header = True

    def _open_handle(self, path: str):
        from mdtraj.formats import DCDTrajectoryFile

        return DCDTrajectoryFile(path, mode="w", force_overwrite=True)

    def _write_block(self, handle, xyz, times, steps, cell_lengths, cell_angles) -> None:
        handle.write(xyz, cell_lengths=cell_lengths, cell_angles=cell_angles)


class MDCRDFrameEncoder(SpooledFrameEncoder):
    format = MDCRD

    def _open_handle(self, path: str):
        from mdtraj.formats import MDCRDTrajectoryFile

        return MDCRDTrajectoryFile(
            path, n_atoms=self.atom_count, mode="w", force_overwrite=True
        )

    def _write_block(self, handle, xyz, times, steps, cell_lengths, cell_angles) -> None:
        handle.write(xyz, cell_lengths=cell_lengths)


_ENCODERS: dict[str, type[FrameEncoder]] = {
    cls.format.key: cls
    for cls in (
        BinFrameEncoder,
        XTCFrameEncoder,
        TRRFrameEncoder,
        NetCDFFrameEncoder,
        DCDFrameEncoder,
        MDCRDFrameEncoder,
    )
}


def open_encoder(
    fmt: TrajectoryFormat,
    stream,
    *,
    spool_dir: str | Path | None = None,
    verify_frame_count: bool = True,
) -> FrameEncoder:
    """Create the encoder registered for ``fmt``, bound to ``stream``."""
    cls = _ENCODERS[fmt.key]
    return cls(stream, spool_dir=spool_dir, verify_frame_count=verify_frame_count)
