# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Parsers turning a single table line into a typed record."""
import os
import re
from typing import Iterator, Optional, Tuple

from proctab.alias import DeviceAliasResolver, DiskByAliasResolver, is_device_alias
from proctab.errors import DecodeError, InvalidNumberError, MissingFieldError
from proctab.parsing.values import (
    as_bytes,
    decode_os_string,
    decode_path,
    decode_value,
    Field,
)
from proctab.schemas.mount import MountRecord
from proctab.schemas.swap import SwapRecord

_UNSIGNED = re.compile(rb"[0-9]+")
_SIGNED = re.compile(rb"[+-]?[0-9]+")

INT32_RANGE = (-(2**31), 2**31 - 1)
INT64_RANGE = (-(2**63), 2**63 - 1)
UINT64_RANGE = (0, 2**64 - 1)

_default_resolver: Optional[DeviceAliasResolver] = None


def default_resolver() -> DeviceAliasResolver:
    global _default_resolver
    if _default_resolver is None:
        _default_resolver = DiskByAliasResolver()
    return _default_resolver


def parse_int(
    field: str,
    value: bytes,
    *,
    signed: bool = True,
    bounds: Tuple[int, int] = INT64_RANGE,
) -> int:
    """Strictly parse a decimal integer column.

    Unlike `int()`, surrounding whitespace, underscores and non-ASCII digits are
    rejected.
    """
    pattern = _SIGNED if signed else _UNSIGNED
    if pattern.fullmatch(value) is None:
        raise InvalidNumberError(field, os.fsdecode(value))
    n = int(value)
    lo, hi = bounds
    if not lo <= n <= hi:
        raise InvalidNumberError(field, os.fsdecode(value))
    return n


def _next_field(parts: Iterator[bytes], name: str) -> bytes:
    try:
        return next(parts)
    except StopIteration:
        raise MissingFieldError(name) from None


def parse_mount_line(
    line: Field, resolver: Optional[DeviceAliasResolver] = None
) -> MountRecord:
    """Parse a `/proc/mounts` or fstab line.

    The `dump` and `pass` columns are optional and default to 0. A source
    which is a `/dev/disk/by-*` alias is replaced by the device it resolves to.

    >>> str(parse_mount_line("tmpfs /tmp/x\\\\040b tmpfs rw,relatime"))
    'tmpfs /tmp/x b tmpfs rw,relatime 0 0'
    """
    parts = iter(as_bytes(line).split())
    source = _next_field(parts, "source")
    dest = _next_field(parts, "dest")
    fstype = _next_field(parts, "type")
    options = _next_field(parts, "options")

    dump_value = next(parts, None)
    dump = 0
    if dump_value is not None:
        dump = parse_int("dump", dump_value, bounds=INT32_RANGE)
    pass_value = next(parts, None)
    passno = 0
    if pass_value is not None:
        passno = parse_int("pass", pass_value, bounds=INT32_RANGE)

    source_path = decode_path(source, "source")
    if is_device_alias(source_path):
        source_path = (resolver or default_resolver()).resolve(source_path)

    return MountRecord(
        source=source_path,
        dest=decode_path(dest, "dest"),
        fstype=os.fsdecode(fstype),
        options=tuple(os.fsdecode(options).split(",")),
        dump=dump,
        passno=passno,
    )


def _parse_swap_number(
    field: str, value: bytes, signed: bool, bounds: Tuple[int, int]
) -> int:
    try:
        decoded = decode_value(value)
    except DecodeError as e:
        raise InvalidNumberError(field, os.fsdecode(value)) from e
    return parse_int(field, decoded, signed=signed, bounds=bounds)


def parse_swap_line(line: Field) -> SwapRecord:
    """Parse a data line of `/proc/swaps`. All five columns are required.

    >>> parse_swap_line("/dev/sda5 partition 8388600 0 -2").priority
    -2
    """
    parts = iter(as_bytes(line).split())
    source = _next_field(parts, "source")
    kind = _next_field(parts, "kind")
    size = _next_field(parts, "size")
    used = _next_field(parts, "used")
    priority = _next_field(parts, "priority")

    return SwapRecord(
        source=decode_path(source, "source"),
        kind=decode_os_string(kind),
        size=_parse_swap_number("size", size, False, UINT64_RANGE),
        used=_parse_swap_number("used", used, False, UINT64_RANGE),
        priority=_parse_swap_number("priority", priority, True, INT64_RANGE),
    )
