# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Parsing and querying of `/proc/swaps`."""
import logging
import os
from dataclasses import dataclass
from typing import IO, Iterable, Iterator, Optional, overload, Sequence, Tuple, Union

from proctab.errors import ProcTabError, with_lineno
from proctab.parsing.records import parse_swap_line
from proctab.parsing.rows import LineReader, RowIter, StrPath
from proctab.parsing.values import Field
from proctab.schemas.swap import SwapRecord

logger = logging.getLogger(__name__)

PROC_SWAPS = "/proc/swaps"


class SwapIter(RowIter[SwapRecord]):
    """Iteratively parse a swap table.

    The header line is discarded once, on construction. Every following line is
    parsed, so a blank line surfaces as a `MissingFieldError`.
    """

    def __init__(self, reader: LineReader, *, owned: Optional[IO] = None) -> None:
        super().__init__(reader, owned=owned)
        header = self._readline()
        logger.debug("discarding swap table header %r", header)

    @classmethod
    def from_file(cls, path: StrPath = PROC_SWAPS) -> "SwapIter":
        f = cls._open(path)
        try:
            return cls(f, owned=f)
        except BaseException:
            f.close()
            raise

    def _accept(self, line: bytes) -> bool:
        return True

    def _parse(self, line: bytes) -> SwapRecord:
        return parse_swap_line(line)


@dataclass(frozen=True)
class SwapList(Sequence[SwapRecord]):
    """A list of parsed swap entries, in file order."""

    swaps: Tuple[SwapRecord, ...] = ()

    @classmethod
    def parse_from(cls, lines: Iterable[Field]) -> "SwapList":
        """Parse swaps from an iterable of data lines, without the header."""
        swaps = []
        for lineno, line in enumerate(lines, start=1):
            try:
                swaps.append(parse_swap_line(line))
            except ProcTabError as e:
                with_lineno(e, lineno)
                raise
        return cls(tuple(swaps))

    @classmethod
    def new(cls) -> "SwapList":
        """Read the active swaps from `/proc/swaps`."""
        return cls.from_file(PROC_SWAPS)

    @classmethod
    def from_file(cls, path: StrPath) -> "SwapList":
        with SwapIter.from_file(path) as it:
            swaps = cls(tuple(it))
        logger.debug("parsed %d swaps from %s", len(swaps), os.fspath(path))
        return swaps

    @classmethod
    def from_reader(cls, reader: LineReader) -> "SwapList":
        return cls(tuple(SwapIter(reader)))

    def get_swapped(self, path: StrPath) -> bool:
        """Returns true if `path` is the source of an active swap."""
        path = os.fspath(path)
        return any(swap.source == path for swap in self.swaps)

    @overload
    def __getitem__(self, index: int) -> SwapRecord: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[SwapRecord]: ...

    def __getitem__(
        self, index: Union[int, slice]
    ) -> Union[SwapRecord, Sequence[SwapRecord]]:
        return self.swaps[index]

    def __len__(self) -> int:
        return len(self.swaps)

    def __iter__(self) -> Iterator[SwapRecord]:
        return iter(self.swaps)
