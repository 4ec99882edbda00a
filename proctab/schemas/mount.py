# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from dataclasses import dataclass
from typing import Tuple


DEFAULT_OPTIONS = "defaults"


@dataclass(frozen=True)
class MountRecord:
    """A single line of a mount table, see fstab(5)."""

    source: str
    dest: str
    fstype: str
    options: Tuple[str, ...]
    dump: int = 0
    # fs_passno; `pass` is reserved
    passno: int = 0

    def __str__(self) -> str:
        options = ",".join(self.options) if self.options else DEFAULT_OPTIONS
        return (
            f"{self.source} {self.dest} {self.fstype} "
            f"{options} {self.dump} {self.passno}"
        )
