"""Driver loop tests with in-memory codecs."""

from __future__ import annotations

import io

import numpy as np
import pytest

from trajconvert.arguments import ConversionRequest
from trajconvert.config import ConvertConfig
from trajconvert.errors import EndOfStreamError, FrameCountMismatchError
from trajconvert.formats import resolve_format
from trajconvert.frame import Frame
from trajconvert.io.base import FrameDecoder, FrameEncoder
from trajconvert.pipeline import ConversionState, TrajectoryConverter, convert_stream


class _ListDecoder(FrameDecoder):
    def __init__(self, frames: list[Frame]) -> None:
        self.frames = list(frames)
        self.atom_count = None
        self.closed = False

    def configure(self, atom_count: int) -> None:
        self.atom_count = atom_count

    def read_next(self) -> Frame:
        if not self.frames:
            raise EndOfStreamError("no more frames")
        return self.frames.pop(0)

    def close(self) -> None:
        self.closed = True


class _RecordingEncoder(FrameEncoder):
    def __init__(self, fmt, stream, **kwargs) -> None:
        super().__init__(stream, verify_frame_count=kwargs.get("verify_frame_count", True))
        self.format = fmt
        self.kwargs = kwargs
        self.written: list[int] = []
        self.finished = False
        self.discarded = False

    def _write_frame(self, frame: Frame) -> None:
        self.written.append(frame.index)

    def _finish(self) -> None:
        self.finished = True

    def _discard(self) -> None:
        self.discarded = True


def _frames(n: int, n_atoms: int = 2) -> list[Frame]:
    return [Frame(index=i, xyz=np.full((n_atoms, 3), i, dtype=np.float32)) for i in range(n)]


def _converter(frames, frame_count, fmt="xtc", config=None):
    decoders: list[_ListDecoder] = []
    encoders: list[_RecordingEncoder] = []

    def decoder_factory(stream):
        decoders.append(_ListDecoder(frames))
        return decoders[-1]

    def encoder_factory(fmt, stream, **kwargs):
        encoders.append(_RecordingEncoder(fmt, stream, **kwargs))
        return encoders[-1]

    request = ConversionRequest(
        atom_count=2, frame_count=frame_count, output_format=resolve_format(fmt)
    )
    converter = TrajectoryConverter(
        request,
        config,
        decoder_factory=decoder_factory,
        encoder_factory=encoder_factory,
    )
    return converter, decoders, encoders


def test_converts_requested_frames_in_order() -> None:
    converter, decoders, encoders = _converter(_frames(5), frame_count=3)
    assert converter.state is ConversionState.INIT

    assert converter.run(io.BytesIO(), io.BytesIO()) == 3

    assert converter.state is ConversionState.DONE
    assert encoders[0].written == [0, 1, 2]
    assert encoders[0].finished
    assert decoders[0].atom_count == 2
    assert decoders[0].closed


def test_frame_count_is_always_declared() -> None:
    converter, _, encoders = _converter(_frames(2), frame_count=2, fmt="nc")
    converter.run(io.BytesIO(), io.BytesIO())
    assert encoders[0].expected_frame_count == 2
    assert encoders[0].atom_count == 2


def test_config_reaches_encoder_factory(tmp_path) -> None:
    config = ConvertConfig(spool_dir=str(tmp_path), verify_frame_count=False)
    converter, _, encoders = _converter(_frames(1), frame_count=1, config=config)
    converter.run(io.BytesIO(), io.BytesIO())
    assert encoders[0].kwargs == {"spool_dir": str(tmp_path), "verify_frame_count": False}


def test_zero_frames_finishes_without_reading() -> None:
    converter, decoders, encoders = _converter([], frame_count=0, fmt="nc")
    assert converter.run(io.BytesIO(), io.BytesIO()) == 0
    assert converter.state is ConversionState.DONE
    assert encoders[0].finished
    assert encoders[0].written == []


def test_short_input_fails_and_aborts_encoder() -> None:
    converter, decoders, encoders = _converter(_frames(2), frame_count=4)
    with pytest.raises(EndOfStreamError):
        converter.run(io.BytesIO(), io.BytesIO())
    assert converter.state is ConversionState.FAILED
    assert converter.frames_converted == 2
    assert encoders[0].written == [0, 1]
    assert encoders[0].discarded
    assert not encoders[0].finished
    assert decoders[0].closed


def test_encoder_close_failure_marks_conversion_failed(monkeypatch) -> None:
    converter, _, encoders = _converter(_frames(1), frame_count=1)

    def failing_finish(self):
        raise FrameCountMismatchError("header mismatch")

    monkeypatch.setattr(_RecordingEncoder, "_finish", failing_finish)
    with pytest.raises(FrameCountMismatchError):
        converter.run(io.BytesIO(), io.BytesIO())
    assert converter.state is ConversionState.FAILED


def test_converter_runs_once() -> None:
    converter, _, _ = _converter(_frames(1), frame_count=1)
    converter.run(io.BytesIO(), io.BytesIO())
    with pytest.raises(RuntimeError, match="already ran"):
        converter.run(io.BytesIO(), io.BytesIO())


def test_progress_logging(caplog) -> None:
    config = ConvertConfig(log_every=2)
    converter, _, _ = _converter(_frames(4), frame_count=4, config=config)
    with caplog.at_level("INFO", logger="trajconvert"):
        converter.run(io.BytesIO(), io.BytesIO())
    assert "Converted 2/4 frames" in caplog.text
    assert "Converted 4/4 frames" in caplog.text


def test_convert_stream_bin_round_trip() -> None:
    coords = np.arange(2 * 3 * 3, dtype="<f4").reshape(2, 3, 3)
    out = io.BytesIO()
    request = ConversionRequest(atom_count=3, frame_count=2, output_format=resolve_format("bin"))
    assert convert_stream(request, io.BytesIO(coords.tobytes()), out) == 2
    assert out.getvalue() == coords.tobytes()


def test_convert_stream_netcdf_then_back_to_bin(tmp_path) -> None:
    """BIN -> NetCDF -> BIN reproduces the coordinates."""
    formats = pytest.importorskip("mdtraj.formats")
    rng = np.random.default_rng(1)
    coords = rng.uniform(-50.0, 50.0, size=(3, 4, 3)).astype("<f4")
    nc_bytes = io.BytesIO()
    request = ConversionRequest(atom_count=4, frame_count=3, output_format=resolve_format("nc"))
    convert_stream(
        request,
        io.BytesIO(coords.tobytes()),
        nc_bytes,
        ConvertConfig(spool_dir=str(tmp_path)),
    )

    path = tmp_path / "round_trip.nc"
    path.write_bytes(nc_bytes.getvalue())
    with formats.NetCDFTrajectoryFile(str(path)) as f:
        coordinates = f.read()[0]

    back = io.BytesIO()
    request = ConversionRequest(atom_count=4, frame_count=3, output_format=resolve_format("bin"))
    convert_stream(request, io.BytesIO(coordinates.astype("<f4").tobytes()), back)
    np.testing.assert_allclose(
        np.frombuffer(back.getvalue(), dtype="<f4").reshape(3, 4, 3), coords, rtol=1e-6
    )
