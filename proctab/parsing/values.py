# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Decoding of single whitespace-delimited table fields.

The kernel escapes bytes which would otherwise break the whitespace-separated
layout (space, tab, newline, backslash) as a backslash followed by exactly three
octal digits, e.g. `/mnt/my\\040disk`.
"""
import os
from typing import Union

from proctab.errors import (
    InvalidEscapeDigitError,
    NonUtf8PathError,
    TruncatedEscapeError,
)

Field = Union[str, bytes]

_BACKSLASH = ord("\\")
_OCTAL_DIGITS = frozenset(b"01234567")


def as_bytes(field: Field) -> bytes:
    return os.fsencode(field) if isinstance(field, str) else field


def decode_value(field: Field) -> bytes:
    """Resolve backslash-octal escapes in `field` into raw bytes.

    Raises:
        InvalidEscapeDigitError: A digit following a backslash is not in 0-7.
        TruncatedEscapeError: The field ends before three digits follow a
            backslash.

    Examples:
    >>> decode_value(r"/tmp/x\\040b")
    b'/tmp/x b'
    >>> decode_value(b"plain")
    b'plain'
    """
    raw = as_bytes(field)
    if _BACKSLASH not in raw:
        return raw

    out = bytearray()
    it = iter(raw)
    for b in it:
        if b != _BACKSLASH:
            out.append(b)
            continue
        code = 0
        for _ in range(3):
            digit = next(it, None)
            if digit is None:
                raise TruncatedEscapeError(os.fsdecode(raw))
            if digit not in _OCTAL_DIGITS:
                raise InvalidEscapeDigitError(os.fsdecode(raw), chr(digit))
            code = code * 8 + (digit - ord("0"))
        # \4NN..\7NN do not fit a byte; keep the low eight bits
        out.append(code & 0xFF)
    return bytes(out)


def decode_path(field: Field, name: str) -> str:
    """Decode `field` and require the result to be UTF-8 text."""
    try:
        return decode_value(field).decode("utf-8")
    except UnicodeDecodeError as e:
        raise NonUtf8PathError(name) from e


def decode_os_string(field: Field) -> str:
    """Decode `field` without a UTF-8 requirement.

    Undecodable bytes are kept as surrogate escapes, so `os.fsencode` gives the
    original bytes back.
    """
    return os.fsdecode(decode_value(field))
