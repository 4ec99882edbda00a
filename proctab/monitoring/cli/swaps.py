# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from pathlib import Path

import click

from proctab.monitoring.cli.output import (
    echo_errors,
    ErrorCounter,
    Format,
    format_record,
)
from proctab.monitoring.click import format_option, table_path_option
from proctab.swaps import PROC_SWAPS, SwapIter
from typeguard import typechecked


@click.command()
@table_path_option(PROC_SWAPS)
@format_option
@click.pass_context
@typechecked
def main(ctx: click.Context, path: Path, fmt: Format) -> None:
    """Print the active swaps. The first line of the table is a header."""
    try:
        swaps = SwapIter.from_file(path)
    except OSError as e:
        raise click.FileError(str(path), hint=str(e)) from e

    errors = ErrorCounter()
    with swaps:
        for swap in echo_errors(swaps, "swap", errors):
            click.echo(format_record(swap, fmt))

    if errors.count:
        ctx.exit(1)
