# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from pathlib import Path
from typing import Optional

import click

from proctab.monitoring.cli.output import (
    echo_errors,
    ErrorCounter,
    Format,
    format_record,
)
from proctab.monitoring.click import format_option, table_path_option
from proctab.mounts import has_prefix, MountIter, PROC_MOUNTS
from typeguard import typechecked


@click.command()
@table_path_option(PROC_MOUNTS)
@format_option
@click.option(
    "--source-prefix",
    help="Only print mounts whose source starts with the given bytes.",
)
@click.option(
    "--dest-prefix",
    help="Only print mounts whose destination starts with the given bytes.",
)
@click.pass_context
@typechecked
def main(
    ctx: click.Context,
    path: Path,
    fmt: Format,
    source_prefix: Optional[str],
    dest_prefix: Optional[str],
) -> None:
    """Print the entries of a mount table.

    Malformed lines are reported on stderr and make the command exit with 1 once
    the whole table has been read.
    """
    try:
        mounts = MountIter.from_file(path)
    except OSError as e:
        raise click.FileError(str(path), hint=str(e)) from e

    errors = ErrorCounter()
    with mounts:
        for mount in echo_errors(mounts, "mount", errors):
            if source_prefix is not None and not has_prefix(
                mount.source, source_prefix
            ):
                continue
            if dest_prefix is not None and not has_prefix(mount.dest, dest_prefix):
                continue
            click.echo(format_record(mount, fmt))

    if errors.count:
        ctx.exit(1)
