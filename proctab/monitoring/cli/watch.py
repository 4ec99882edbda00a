# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
from dataclasses import dataclass, field
from typing import Collection, Literal, Optional, Union

import click
from omegaconf.errors import OmegaConfBaseException

from proctab.errors import ProcTabError
from proctab.monitoring.cli.output import Format, format_record
from proctab.monitoring.click import (
    format_option,
    get_docs_for_references,
    log_folder_option,
    log_level_option,
    once_option,
    stdout_option,
    watch_opts_option,
)
from proctab.monitoring.clock import Clock, ClockImpl
from proctab.monitoring.registry import SnapshotRegistry, WatchConfig
from proctab.monitoring.utils.monitor import init_logger, run_watch_loop
from proctab.mounts import MountList
from proctab.swaps import SwapList
from typeguard import typechecked

LOGGER_NAME = "proctab"


@dataclass
class CliObject:
    clock: Clock = field(default_factory=ClockImpl)


@click.command(
    context_settings={"obj": CliObject()},
    epilog=get_docs_for_references(
        [
            "https://omegaconf.readthedocs.io/en/2.3_branch/usage.html#from-a-dot-list",
        ]
    ),
)
@watch_opts_option
@once_option
@click.option(
    "--count",
    type=click.IntRange(min=1),
    default=None,
    help="Exit after printing this many tables.",
)
@format_option
@log_level_option
@log_folder_option
@stdout_option
@click.pass_obj
@typechecked
def main(
    obj: CliObject,
    watch_opts: Collection[str],
    once: bool,
    count: Optional[int],
    fmt: Format,
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    log_folder: str,
    stdout: bool,
) -> None:
    """Print the mount and swap tables, and again whenever either changes."""
    logger, _ = init_logger(
        logger_name=LOGGER_NAME,
        log_dir=log_folder,
        log_name=LOGGER_NAME + ".log",
        log_stdout=stdout,
        log_level=getattr(logging, log_level),
    )
    try:
        config = WatchConfig.from_dotlist(watch_opts)
    except (OmegaConfBaseException, ValueError) as e:
        raise click.UsageError(f"Invalid watcher option: {e}") from e
    logger.debug("watching with %s", config)

    def emit(kind: str, table: Union[MountList, SwapList]) -> None:
        click.echo(f"# {kind} ({len(table)})")
        for record in table:
            click.echo(format_record(record, fmt))

    with SnapshotRegistry.open(config, clock=obj.clock) as registry:
        try:
            run_watch_loop(
                registry,
                obj.clock,
                config.interval,
                emit,
                once=once,
                count=count,
                logger=logger,
            )
        except OSError as e:
            raise click.ClickException(f"could not read table: {e}") from e
        except ProcTabError as e:
            raise click.ClickException(f"could not parse table: {e}") from e
        except KeyboardInterrupt:
            logger.info("interrupted")
