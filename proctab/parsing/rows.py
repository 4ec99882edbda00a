# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Line-by-line iteration over a table source."""
import logging
import os
from abc import ABC, abstractmethod
from types import TracebackType
from typing import (
    AnyStr,
    BinaryIO,
    Generic,
    IO,
    Iterator,
    Optional,
    Protocol,
    Type,
    TypeVar,
    Union,
)

from proctab.errors import ProcTabError, with_lineno
from proctab.parsing.values import as_bytes

logger = logging.getLogger(__name__)

TRecord = TypeVar("TRecord")
_Self = TypeVar("_Self", bound="RowIter")

StrPath = Union[str, "os.PathLike[str]"]


class LineReader(Protocol[AnyStr]):
    def readline(self) -> AnyStr: ...


class RowIter(ABC, Generic[TRecord]):
    """A lazy, single-pass iterator of records read from a line-buffered source.

    A line that fails to parse raises its error from `__next__`, annotated with
    the line number; iteration can resume with the following line. An
    `OSError` from the source is raised once and ends the iteration.
    """

    def __init__(self, reader: LineReader, *, owned: Optional[IO] = None) -> None:
        self._reader = reader
        self._owned = owned
        self._lineno = 0
        self._done = False

    @classmethod
    def _open(cls, path: StrPath) -> BinaryIO:
        logger.debug("opening %s", os.fspath(path))
        return open(path, "rb")

    def _readline(self) -> Optional[bytes]:
        try:
            line = self._reader.readline()
        except OSError:
            self._done = True
            raise
        if not line:
            self._done = True
            return None
        self._lineno += 1
        return as_bytes(line)

    def __iter__(self) -> Iterator[TRecord]:
        return self

    def __next__(self) -> TRecord:
        while not self._done:
            line = self._readline()
            if line is None:
                break
            if not self._accept(line):
                continue
            try:
                return self._parse(line)
            except ProcTabError as e:
                with_lineno(e, self._lineno)
                raise
        raise StopIteration

    @property
    def lineno(self) -> int:
        """Number of lines consumed so far, including skipped ones."""
        return self._lineno

    @abstractmethod
    def _accept(self, line: bytes) -> bool:
        """Whether `line` holds a record, as opposed to being skipped."""

    @abstractmethod
    def _parse(self, line: bytes) -> TRecord: ...

    def close(self) -> None:
        self._done = True
        if self._owned is not None:
            self._owned.close()

    def __enter__(self: _Self) -> _Self:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()
