"""
swlog - Shearwater Dive Log Command-Line Interface
==================================================

This module implements the command-line interface for the dive log
decoder. It reads a raw dive dump (as downloaded from the dive computer)
and prints the decoded dive.

Commands
--------
- **info**: Show the dive summary
- **strings**: Show the descriptive strings (serial, firmware, battery...)
- **samples**: Dump the sample stream as a table, JSON or CSV
- **validate**: Run both decoding passes and report any failure

Usage Examples
--------------
Show a dive summary:
    $ swlog -m perdix info dive.bin

Dump the profile as CSV:
    $ swlog samples --format csv dive.bin > profile.csv

Validate a dump with debug logging:
    $ swlog -v validate dive.bin

The model and serial default to the SHEARWATER_MODEL and
SHEARWATER_SERIAL environment variables.
"""

import csv
import dataclasses
import io
import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import click

from shearwater_log import __version__
from shearwater_log.config import get_default_config
from shearwater_log.cli.errors import ExitCode, handle_cli_exception
from shearwater_log.errors import ShearwaterError
from shearwater_log.parser import (
    DecoType,
    Sample,
    SampleType,
    ShearwaterModel,
    ShearwaterParser,
)

logger = logging.getLogger(__name__)

# Columns of the table and CSV sample formats
SAMPLE_COLUMNS = (
    "time", "depth", "temperature", "ppo2", "setpoint", "cns", "gasmix",
    "deco", "deco_time", "tank0", "tank1", "rbt", "event",
)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the decoder options given to the main group.
    """

    def __init__(self) -> None:
        config = get_default_config()
        self.model: ShearwaterModel = config.model
        self.serial: int = config.serial
        self.verbose: bool = config.verbose

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(name)s: %(message)s" if self.verbose else "%(levelname)s: %(message)s",
        )

    def open(self, dive_file: Path) -> ShearwaterParser:
        """Create a parser for a dive dump using the context options."""
        logger.debug(f"Decoding {dive_file} as {self.model.name} (serial {self.serial:08x})")
        return ShearwaterParser.from_file(dive_file, model=self.model, serial=self.serial)


pass_context = click.make_pass_decorator(Context, ensure=True)


class ModelChoice(click.ParamType):
    """
    Click parameter type for model selection.

    Accepts a model name (case-insensitive, e.g. "perdix-ai") or number.
    """
    name = "model"

    def convert(self, value: Any, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> ShearwaterModel:
        """Convert string to ShearwaterModel."""
        if isinstance(value, ShearwaterModel):
            return value
        try:
            return ShearwaterModel.from_name(str(value))
        except ValueError:
            names = ", ".join(m.name.lower() for m in ShearwaterModel)
            self.fail(f"Invalid model '{value}'. Choose from: {names}", param, ctx)


class SerialNumber(click.ParamType):
    """Serial number in decimal or 0x-prefixed hex."""
    name = "serial"

    def convert(self, value: Any, param: Optional[click.Parameter],
                ctx: Optional[click.Context]) -> int:
        if isinstance(value, int):
            return value
        try:
            return int(value, 0)
        except ValueError:
            self.fail(f"Invalid serial number '{value}'", param, ctx)


MODEL = ModelChoice()
SERIAL = SerialNumber()

DIVE_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, list):
        return "/".join(_format_value(v) for v in value)
    return str(value)


def _jsonable(value: Any) -> Any:
    """Convert sample values (dataclasses, enums) to JSON-friendly data."""
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value):
        return {f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    return value


def sample_rows(samples: list[Sample]) -> list[dict[str, Any]]:
    """
    Group a sample stream into one row per tick.

    Every TIME sample starts a new row; the values that follow belong to
    it. Bookmarks get a row of their own.
    """
    rows: list[dict[str, Any]] = []
    row: Optional[dict[str, Any]] = None

    for sample in samples:
        value = sample.value
        if sample.type is SampleType.TIME:
            row = {"time": value}
            rows.append(row)
        elif sample.type is SampleType.EVENT:
            rows.append({
                "time": value.time,
                "event": f"bookmark type={value.tag_type} heading={value.value}",
            })
        elif row is None:
            continue
        elif sample.type is SampleType.PPO2:
            row.setdefault("ppo2", []).append(value)
        elif sample.type is SampleType.PRESSURE:
            row[f"tank{value.tank}"] = value.value
        elif sample.type is SampleType.DECO:
            row["deco"] = "ndl" if value.type is DecoType.NDL else value.depth
            row["deco_time"] = value.time
        else:
            row[sample.type.value] = value

    return rows


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-m", "--model",
    type=MODEL,
    default=None,
    help="Dive computer model, by name or number (default: $SHEARWATER_MODEL or petrel)",
)
@click.option(
    "-s", "--serial",
    type=SERIAL,
    default=None,
    help="Device serial number (default: $SHEARWATER_SERIAL or 0)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    default=False,
    help="Enable debug logging",
)
@click.version_option(__version__, "--version", "-V", prog_name="swlog")
@pass_context
def main(ctx: Context, model: Optional[ShearwaterModel], serial: Optional[int], verbose: bool) -> None:
    """
    Decode Shearwater dive computer logs.

    \b
    Commands:
      info      Show the dive summary
      strings   Show the descriptive strings
      samples   Dump the sample stream
      validate  Check that a dump decodes

    \b
    Examples:
      swlog -m perdix info dive.bin
      swlog samples --format csv dive.bin
      swlog -v validate dive.bin
    """
    if model is not None:
        ctx.model = model
    if serial is not None:
        ctx.serial = serial
    ctx.verbose = ctx.verbose or verbose
    ctx.setup_logging()


# =============================================================================
# Info Command
# =============================================================================

@main.command("info")
@click.argument("dive_file", type=DIVE_FILE)
@pass_context
def cmd_info(ctx: Context, dive_file: Path) -> None:
    """
    Show a summary of a dive.

    \b
    Example:
      swlog -m teric info dive.bin
    """
    try:
        parser = ctx.open(dive_file)
        info = parser.get_info()

        click.echo(f"Dive Information: {dive_file}")
        click.echo("=" * 40)
        click.echo(f"Model:       {info['model']} ({info['family']} family)")
        click.echo(f"Format:      {info['format']} (log version {info['log_version']})")
        click.echo(f"Date:        {info['datetime']:%Y-%m-%d %H:%M:%S}")
        minutes, seconds = divmod(info['divetime'], 60)
        click.echo(f"Dive time:   {minutes}:{seconds:02d}")
        click.echo(f"Max depth:   {info['maxdepth']:.1f} m")
        click.echo(f"Dive mode:   {info['divemode'].value}")
        click.echo(f"Units:       {info['units']}")
        click.echo()
        click.echo("Gas mixes:")
        if not info['gasmixes']:
            click.echo("  (none)")
        for index, mix in enumerate(info['gasmixes']):
            click.echo(f"  {index}: {mix} (O2 {mix.oxygen}%, He {mix.helium}%)")
        click.echo()
        click.echo("Environment:")
        click.echo(f"  Water:       {info['water'].value} ({info['density']:.0f} kg/m³)")
        click.echo(f"  Surface:     {info['atmospheric']:.3f} bar")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Decode")


# =============================================================================
# Strings Command
# =============================================================================

@main.command("strings")
@click.argument("dive_file", type=DIVE_FILE)
@pass_context
def cmd_strings(ctx: Context, dive_file: Path) -> None:
    """
    Show the descriptive strings of a dive.

    \b
    Example:
      swlog strings dive.bin

    \b
    Output format:
      Serial          0012abcd
      FW Version      5b
      Deco model      GF 30/70
    """
    try:
        parser = ctx.open(dive_file)
        for entry in parser.get_strings():
            click.echo(f"{entry.desc:<24} {entry.value}")

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Decode")


# =============================================================================
# Samples Command
# =============================================================================

@main.command("samples")
@click.argument("dive_file", type=DIVE_FILE)
@click.option(
    "-f", "--format",
    "output_format",
    type=click.Choice(["table", "json", "csv"]),
    default="table",
    help="Output format (default: table)",
)
@pass_context
def cmd_samples(ctx: Context, dive_file: Path, output_format: str) -> None:
    """
    Dump the sample stream of a dive.

    The table and CSV formats show one row per sample tick. The JSON
    format is the raw stream, one object per decoded value.

    \b
    Examples:
      swlog samples dive.bin
      swlog samples -f json dive.bin
      swlog samples -f csv dive.bin > profile.csv
    """
    try:
        parser = ctx.open(dive_file)
        samples = parser.samples()

        if output_format == "json":
            stream = [
                {"type": sample.type.value, "value": _jsonable(sample.value)}
                for sample in samples
            ]
            click.echo(json.dumps(stream, indent=2))
            return

        rows = sample_rows(samples)
        if output_format == "csv":
            output = io.StringIO()
            writer = csv.DictWriter(output, fieldnames=SAMPLE_COLUMNS, lineterminator="\n")
            writer.writeheader()
            for row in rows:
                writer.writerow({key: _format_value(row.get(key)) for key in SAMPLE_COLUMNS})
            click.echo(output.getvalue(), nl=False)
            return

        columns = [c for c in SAMPLE_COLUMNS if any(c in row for row in rows)] or ["time"]
        click.echo("  ".join(f"{c:>10}" for c in columns))
        click.echo("-" * (12 * len(columns)))
        for row in rows:
            click.echo("  ".join(f"{_format_value(row.get(c)):>10}" for c in columns))

    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose, error_type="Decode")


# =============================================================================
# Validate Command
# =============================================================================

@main.command("validate")
@click.argument("dive_file", type=DIVE_FILE)
@pass_context
def cmd_validate(ctx: Context, dive_file: Path) -> None:
    """
    Check that a dive dump decodes.

    Runs the layout pass and the sample replay, and reports the first
    failure.

    \b
    Example:
      swlog validate dive.bin
    """
    try:
        parser = ctx.open(dive_file)
        layout = parser.layout
        samples = parser.samples()
    except ShearwaterError as e:
        click.echo("Validation FAILED:")
        click.echo(f"  ERROR: {e}")
        sys.exit(ExitCode.DECODE_ERROR)
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)

    ticks = sum(1 for sample in samples if sample.type is SampleType.TIME)
    click.echo(f"Validation PASSED: {dive_file}")
    click.echo(
        f"  {layout.format.value} log version {layout.log_version}, "
        f"{ticks} samples, {len(layout.gas_mixes)} gas mix(es)"
    )


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
