# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from pathlib import Path

import click

from proctab.errors import ProcTabError
from proctab.monitoring.click import table_path_option
from proctab.tab import FSTAB, MountTab
from typeguard import typechecked


@click.command()
@table_path_option(FSTAB)
@click.option(
    "--mounts-only",
    is_flag=True,
    default=False,
    help="Drop comments and blank lines.",
)
@typechecked
def main(path: Path, mounts_only: bool) -> None:
    """Re-serialize an fstab-like file in canonical form.

    Comments and blank lines are kept as they are; each mount line is rewritten
    as `source dest fstype options dump pass`.
    """
    try:
        tab = MountTab.from_file(path)
    except OSError as e:
        raise click.FileError(str(path), hint=str(e)) from e
    except ProcTabError as e:
        raise click.ClickException(f"{path}: {e}") from e

    if mounts_only:
        for mount in tab.iter_mounts():
            click.echo(str(mount))
    else:
        click.echo(str(tab), nl=False)
