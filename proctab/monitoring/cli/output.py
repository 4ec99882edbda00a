# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Formatting of records for the command line."""
import json
from dataclasses import asdict
from functools import partial
from typing import Generator, Iterator, Literal, TypeVar, Union

import click

from proctab.errors import ProcTabError
from proctab.schemas.mount import MountRecord
from proctab.schemas.swap import SwapRecord

TRecord = TypeVar("TRecord")
Format = Literal["text", "json"]

json_dumps_compact = partial(json.dumps, separators=(",", ":"))


def format_record(record: Union[MountRecord, SwapRecord], fmt: Format) -> str:
    if fmt == "json":
        return json_dumps_compact(asdict(record))
    return str(record)


class ErrorCounter:
    def __init__(self) -> None:
        self.count = 0


def echo_errors(
    records: Iterator[TRecord], what: str, errors: ErrorCounter
) -> Generator[TRecord, None, None]:
    """Yield from `records`, reporting malformed lines on stderr instead of
    stopping at them.
    """
    while True:
        try:
            record = next(records)
        except StopIteration:
            return
        except ProcTabError as e:
            errors.count += 1
            click.echo(f"error reading {what}: {e}", err=True)
            continue
        except OSError as e:
            raise click.ClickException(f"error reading {what}s: {e}") from e
        yield record
