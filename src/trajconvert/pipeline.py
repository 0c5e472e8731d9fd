"""Conversion driver: decode one frame, encode one frame, repeat."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable

from trajconvert.arguments import ConversionRequest
from trajconvert.config import ConvertConfig
from trajconvert.io.base import FrameDecoder, FrameEncoder
from trajconvert.io.decoder import BinFrameDecoder
from trajconvert.io.encoders import open_encoder

logger = logging.getLogger(__name__)


class ConversionState(enum.Enum):
    INIT = "init"
    CONFIGURING = "configuring"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


DecoderFactory = Callable[..., FrameDecoder]
EncoderFactory = Callable[..., FrameEncoder]


class TrajectoryConverter:
    """Runs a single conversion from an input stream to an output stream.

    Parameters
    ----------
    request : ConversionRequest
        Validated atom count, frame count and output format.
    config : ConvertConfig
        Runtime settings (spool directory, frame count checks, progress).
    decoder_factory : callable
        ``decoder_factory(input_stream)`` returning a :class:`FrameDecoder`.
    encoder_factory : callable
        ``encoder_factory(fmt, output_stream, spool_dir=..., verify_frame_count=...)``
        returning a :class:`FrameEncoder`.
    """

    def __init__(
        self,
        request: ConversionRequest,
        config: ConvertConfig | None = None,
        *,
        decoder_factory: DecoderFactory = BinFrameDecoder,
        encoder_factory: EncoderFactory = open_encoder,
    ) -> None:
        self.request = request
        self.config = config or ConvertConfig()
        self.decoder_factory = decoder_factory
        self.encoder_factory = encoder_factory
        self.state = ConversionState.INIT
        self.frames_converted = 0

    def run(self, input_stream, output_stream) -> int:
        """Convert ``frame_count`` frames and return how many were written."""
        if self.state is not ConversionState.INIT:
            raise RuntimeError(f"Converter already ran (state={self.state.value})")

        request = self.request
        fmt = request.output_format
        decoder: FrameDecoder | None = None
        encoder: FrameEncoder | None = None
        self.state = ConversionState.CONFIGURING
        try:
            decoder = self.decoder_factory(input_stream)
            decoder.configure(request.atom_count)
            encoder = self.encoder_factory(
                fmt,
                output_stream,
                spool_dir=self.config.spool_dir,
                verify_frame_count=self.config.verify_frame_count,
            )
            # Formats without a count header ignore the declaration.
            encoder.configure(
                expected_frame_count=request.frame_count,
                atom_count=request.atom_count,
            )

            self.state = ConversionState.STREAMING
            logger.info(
                "Converting %d frames of %d atoms to %s",
                request.frame_count,
                request.atom_count,
                fmt.name,
            )
            for _ in range(request.frame_count):
                frame = decoder.read_next()
                encoder.write(frame)
                self.frames_converted += 1
                if self.config.log_every and self.frames_converted % self.config.log_every == 0:
                    logger.info(
                        "Converted %d/%d frames", self.frames_converted, request.frame_count
                    )
            encoder.close()
        except BaseException:
            self.state = ConversionState.FAILED
            if encoder is not None:
                encoder.abort()
            logger.debug(
                "Conversion failed after %d frames", self.frames_converted, exc_info=True
            )
            raise
        finally:
            if decoder is not None:
                decoder.close()

        self.state = ConversionState.DONE
        logger.info("Converted %d frames to %s", self.frames_converted, fmt.name)
        return self.frames_converted


def convert_stream(
    request: ConversionRequest,
    input_stream,
    output_stream,
    config: ConvertConfig | None = None,
) -> int:
    """Convert with the default BIN decoder and the registered encoder."""
    return TrajectoryConverter(request, config).run(input_stream, output_stream)
