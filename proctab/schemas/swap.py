# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SwapRecord:
    """A single data line of /proc/swaps."""

    source: str
    # raw OS string, undecodable bytes are surrogate-escaped
    kind: str
    size: int
    used: int
    priority: int

    @property
    def kind_bytes(self) -> bytes:
        return os.fsencode(self.kind)

    def __str__(self) -> str:
        kind = self.kind_bytes.decode("utf-8", errors="replace")
        return f"{self.source} {kind} {self.size} {self.used} {self.priority}"
