# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""An editable, lossless representation of an fstab-like file."""
import os
from typing import Iterator, List, Optional, Tuple, Union

from proctab.alias import DeviceAliasResolver
from proctab.errors import ProcTabError, with_lineno
from proctab.parsing.records import parse_mount_line
from proctab.parsing.rows import StrPath
from proctab.schemas.mount import MountRecord
from proctab.schemas.tab import Blank, Comment, MountElement

FSTAB = "/etc/fstab"

# str -> Comment, None -> Blank
ElementLike = Union[MountElement, str, None]


def as_element(element: ElementLike) -> MountElement:
    if element is None:
        return Blank()
    if isinstance(element, str):
        return Comment(element)
    return element


def _split_lines(text: str) -> List[str]:
    # only "\n" ends a line; form feeds and other breaks belong to the line
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class MountTab:
    """The elements of a mount tab, one per line of the original file.

    Comments and blank lines are kept so that the table can be edited and
    written back. Mount records are re-emitted in canonical form, e.g. an
    empty options list becomes `defaults`.
    """

    def __init__(self, elements: Optional[List[MountElement]] = None) -> None:
        self._elements: List[MountElement] = list(elements or [])

    @classmethod
    def parse(
        cls, text: str, resolver: Optional[DeviceAliasResolver] = None
    ) -> "MountTab":
        elements: List[MountElement] = []
        for lineno, line in enumerate(_split_lines(text), start=1):
            stripped = line.lstrip()
            if not stripped:
                elements.append(Blank())
            elif stripped.startswith("#"):
                elements.append(Comment(line))
            else:
                try:
                    elements.append(parse_mount_line(stripped, resolver))
                except ProcTabError as e:
                    with_lineno(e, lineno)
                    raise
        return cls(elements)

    @classmethod
    def from_file(
        cls,
        path: StrPath = FSTAB,
        resolver: Optional[DeviceAliasResolver] = None,
    ) -> "MountTab":
        with open(path, "rb") as f:
            return cls.parse(os.fsdecode(f.read()), resolver)

    def elements(self) -> Tuple[MountElement, ...]:
        return tuple(self._elements)

    def elements_mut(self) -> List[MountElement]:
        return self._elements

    def iter_mounts(self) -> Iterator[MountRecord]:
        for element in self._elements:
            if isinstance(element, MountRecord):
                yield element

    def iter_mounts_mut(self) -> Iterator[Tuple[int, MountRecord]]:
        """Yield `(index, record)` for each mount, for use with `replace`, e.g.

            for i, mount in tab.iter_mounts_mut():
                tab.replace(i, dataclasses.replace(mount, passno=2))
        """
        for index, element in enumerate(self._elements):
            if isinstance(element, MountRecord):
                yield index, element

    def push(self, element: ElementLike) -> None:
        self._elements.append(as_element(element))

    def insert(self, index: int, element: ElementLike) -> None:
        self._elements.insert(index, as_element(element))

    def remove(self, index: int) -> MountElement:
        return self._elements.pop(index)

    def replace(self, index: int, element: ElementLike) -> MountElement:
        old = self._elements[index]
        self._elements[index] = as_element(element)
        return old

    def __getitem__(self, index: int) -> MountElement:
        return self._elements[index]

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[MountElement]:
        return iter(self._elements)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MountTab):
            return NotImplemented
        return self._elements == other._elements

    def __repr__(self) -> str:
        return f"MountTab({self._elements!r})"

    def __str__(self) -> str:
        return "".join(f"{element}\n" for element in self._elements)
