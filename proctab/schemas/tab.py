# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from dataclasses import dataclass
from typing import Union

from proctab.schemas.mount import MountRecord


@dataclass(frozen=True)
class Comment:
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Blank:
    def __str__(self) -> str:
        return ""


MountElement = Union[Comment, Blank, MountRecord]
