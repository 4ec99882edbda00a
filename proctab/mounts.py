# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Parsing and querying of `/proc/mounts` and other mount-tab-like files."""
import logging
import os
from dataclasses import dataclass
from typing import (
    Callable,
    Generator,
    IO,
    Iterable,
    Iterator,
    Optional,
    overload,
    Sequence,
    Tuple,
    Union,
)

from proctab.alias import DeviceAliasResolver
from proctab.errors import ProcTabError, with_lineno
from proctab.parsing.records import parse_mount_line
from proctab.parsing.rows import LineReader, RowIter, StrPath
from proctab.parsing.values import Field
from proctab.schemas.mount import MountRecord

logger = logging.getLogger(__name__)

PROC_MOUNTS = "/proc/mounts"


def is_mount_line(line: bytes) -> bool:
    stripped = line.lstrip()
    return bool(stripped) and not stripped.startswith(b"#")


class MountIter(RowIter[MountRecord]):
    """Iteratively parse a mount table, skipping comments and blank lines."""

    def __init__(
        self,
        reader: LineReader,
        resolver: Optional[DeviceAliasResolver] = None,
        *,
        owned: Optional[IO] = None,
    ) -> None:
        super().__init__(reader, owned=owned)
        self.resolver = resolver

    @classmethod
    def from_file(
        cls,
        path: StrPath = PROC_MOUNTS,
        resolver: Optional[DeviceAliasResolver] = None,
    ) -> "MountIter":
        f = cls._open(path)
        return cls(f, resolver, owned=f)

    def _accept(self, line: bytes) -> bool:
        return is_mount_line(line)

    def _parse(self, line: bytes) -> MountRecord:
        return parse_mount_line(line.lstrip(), self.resolver)


def source_mounted_at(
    source: StrPath,
    dest: StrPath,
    path: StrPath = PROC_MOUNTS,
    resolver: Optional[DeviceAliasResolver] = None,
) -> bool:
    """Streaming variant of `MountList.source_mounted_at`.

    Stops reading at the first mount of `source`. A malformed line before it
    is raised to the caller.
    """
    source, dest = os.fspath(source), os.fspath(dest)
    with MountIter.from_file(path, resolver) as mounts:
        for mount in mounts:
            if mount.source == source:
                return mount.dest == dest
    return False


def has_prefix(path: StrPath, prefix: StrPath) -> bool:
    # byte-wise, not path-segment aware: "/foo" matches "/foobar"
    return os.fsencode(path).startswith(os.fsencode(prefix))


def _starts_with(
    records: Iterable[MountRecord],
    prefix: StrPath,
    key: Callable[[MountRecord], str],
) -> Generator[MountRecord, None, None]:
    for record in records:
        if has_prefix(key(record), prefix):
            yield record


@dataclass(frozen=True)
class MountList(Sequence[MountRecord]):
    """A list of parsed mount entries, in file order."""

    mounts: Tuple[MountRecord, ...] = ()

    @classmethod
    def parse_from(
        cls,
        lines: Iterable[Field],
        resolver: Optional[DeviceAliasResolver] = None,
    ) -> "MountList":
        """Parse mounts from an iterable of mount entry lines.

        Every line must be a mount entry; comments are not skipped.
        """
        mounts = []
        for lineno, line in enumerate(lines, start=1):
            try:
                mounts.append(parse_mount_line(line, resolver))
            except ProcTabError as e:
                with_lineno(e, lineno)
                raise
        return cls(tuple(mounts))

    @classmethod
    def new(cls, resolver: Optional[DeviceAliasResolver] = None) -> "MountList":
        """Read the active mounts from `/proc/mounts`."""
        return cls.from_file(PROC_MOUNTS, resolver)

    @classmethod
    def from_file(
        cls,
        path: StrPath,
        resolver: Optional[DeviceAliasResolver] = None,
    ) -> "MountList":
        with MountIter.from_file(path, resolver) as it:
            mounts = cls(tuple(it))
        logger.debug("parsed %d mounts from %s", len(mounts), os.fspath(path))
        return mounts

    @classmethod
    def from_reader(
        cls,
        reader: LineReader,
        resolver: Optional[DeviceAliasResolver] = None,
    ) -> "MountList":
        return cls(tuple(MountIter(reader, resolver)))

    def source_mounted_at(self, source: StrPath, dest: StrPath) -> bool:
        """Returns true if the first mount of `source` is at `dest`."""
        mount = self.get_mount_by_source(source)
        return mount is not None and mount.dest == os.fspath(dest)

    def get_mount_by_dest(self, path: StrPath) -> Optional[MountRecord]:
        path = os.fspath(path)
        return next((m for m in self.mounts if m.dest == path), None)

    def get_mount_by_source(self, path: StrPath) -> Optional[MountRecord]:
        path = os.fspath(path)
        return next((m for m in self.mounts if m.source == path), None)

    def source_starts_with(
        self, prefix: StrPath
    ) -> Generator[MountRecord, None, None]:
        return _starts_with(self.mounts, prefix, lambda m: m.source)

    def destination_starts_with(
        self, prefix: StrPath
    ) -> Generator[MountRecord, None, None]:
        return _starts_with(self.mounts, prefix, lambda m: m.dest)

    @overload
    def __getitem__(self, index: int) -> MountRecord: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[MountRecord]: ...

    def __getitem__(
        self, index: Union[int, slice]
    ) -> Union[MountRecord, Sequence[MountRecord]]:
        return self.mounts[index]

    def __len__(self) -> int:
        return len(self.mounts)

    def __iter__(self) -> Iterator[MountRecord]:
        return iter(self.mounts)
