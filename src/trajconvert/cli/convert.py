"""``trajconvert ATOM_COUNT FRAME_COUNT OUTPUT_FORMAT`` command.

Reads a BIN trajectory from stdin and writes the converted trajectory to
stdout (or ``--output``):

    cat traj.bin | trajconvert 1500 200 xtc > traj.xtc
    cat traj.bin | trajconvert 1500 200 "Amber NetCDF" -o traj.nc
"""

from __future__ import annotations

import contextlib
import logging
import sys
from pathlib import Path

import click

from trajconvert import __version__

logger = logging.getLogger(__name__)


def _print_formats(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    from trajconvert.formats import available_formats

    for fmt in available_formats():
        notes = []
        if fmt.requires_frame_count_header:
            notes.append("frame count in header")
        if not fmt.streamable:
            notes.append("written on completion")
        suffix = f" ({'; '.join(notes)})" if notes else ""
        click.echo(
            f"{fmt.key:<8} {fmt.name:<14} aliases: {', '.join(fmt.aliases)}{suffix}"
        )
    ctx.exit()


def _fail_usage(ctx: click.Context, message: str) -> None:
    """Print usage and the error to stderr and exit with status 1."""
    click.echo(ctx.get_usage(), err=True)
    click.echo(f"Error: {message}", err=True)
    ctx.exit(1)


@click.command(
    "trajconvert",
    context_settings={
        "help_option_names": ["-h", "--help"],
        # Lets negative counts such as "-5" reach validation instead of the option parser.
        "ignore_unknown_options": True,
    },
)
@click.argument("arguments", nargs=-1, metavar="ATOM_COUNT FRAME_COUNT OUTPUT_FORMAT")
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the converted trajectory here instead of stdout.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with converter settings.",
)
@click.option(
    "--set",
    "overrides",
    multiple=True,
    metavar="KEY=VALUE",
    help="Override a config value, e.g. --set log_level=INFO. Repeatable.",
)
@click.option(
    "--list-formats",
    is_flag=True,
    is_eager=True,
    expose_value=False,
    callback=_print_formats,
    help="List supported output formats and exit.",
)
@click.version_option(__version__, prog_name="trajconvert")
@click.pass_context
def convert(
    ctx: click.Context,
    arguments: tuple[str, ...],
    output: Path | None,
    config_path: Path | None,
    overrides: tuple[str, ...],
) -> None:
    """Convert a BIN trajectory on stdin into OUTPUT_FORMAT.

    ATOM_COUNT and FRAME_COUNT must be supplied because the BIN format
    records neither. OUTPUT_FORMAT is a format key, name or alias (see
    --list-formats), e.g. xtc, trr, nc, dcd, mdcrd.
    """
    from trajconvert.arguments import parse_arguments
    from trajconvert.config import load_config
    from trajconvert.errors import ConversionError, InvalidArgumentsError
    from trajconvert.pipeline import TrajectoryConverter

    # No stream is touched until the arguments are known to be valid.
    try:
        request = parse_arguments(arguments)
    except InvalidArgumentsError as exc:
        _fail_usage(ctx, str(exc))
    except ConversionError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(exc.exit_code)

    try:
        config = load_config(config_path, overrides)
    except ConversionError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(exc.exit_code)

    logging.basicConfig(level=config.logging_level, format="%(levelname)s: %(message)s")
    logging.getLogger("trajconvert").setLevel(config.logging_level)

    target = output if output is not None else config.output
    with contextlib.ExitStack() as stack:
        input_stream = sys.stdin.buffer
        if target is None:
            output_stream = sys.stdout.buffer
        else:
            output_stream = stack.enter_context(open(target, "wb"))
            logger.info("Writing %s to %s", request.output_format.name, target)

        converter = TrajectoryConverter(request, config)
        try:
            converter.run(input_stream, output_stream)
        except ConversionError as exc:
            logger.debug("Conversion failed in state %s", converter.state.value)
            click.echo(f"Error: {exc}", err=True)
            ctx.exit(exc.exit_code)
