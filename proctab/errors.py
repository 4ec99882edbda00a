# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Errors raised while reading mount and swap tables.

I/O failures are not wrapped: an `OSError` from the underlying reader
propagates unchanged.
"""
from typing import Optional, TypeVar


class ProcTabError(Exception):
    """Base class for every table parsing error.

    `lineno` is the 1-based line of the table the error came from, when known.
    """

    lineno: Optional[int] = None

    def __str__(self) -> str:
        msg = super().__str__()
        if self.lineno is None:
            return msg
        return f"line {self.lineno}: {msg}"


_E = TypeVar("_E", bound=ProcTabError)


def with_lineno(err: _E, lineno: int) -> _E:
    err.lineno = lineno
    return err


class DecodeError(ProcTabError):
    """A field contains a malformed backslash-octal escape."""


class TruncatedEscapeError(DecodeError):
    def __init__(self, value: str) -> None:
        super().__init__(f"truncated octal code in {value!r}")
        self.value = value


class InvalidEscapeDigitError(DecodeError):
    def __init__(self, value: str, digit: str) -> None:
        super().__init__(f"invalid octal digit {digit!r} in {value!r}")
        self.value = value
        self.digit = digit


class ParseError(ProcTabError):
    """A line does not have the shape of a table record."""


class MissingFieldError(ParseError):
    def __init__(self, field: str) -> None:
        super().__init__(f"missing {field}")
        self.field = field


class InvalidNumberError(ParseError):
    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"{field} value is not a number: {value!r}")
        self.field = field
        self.value = value


class DataError(ProcTabError):
    """A field decoded correctly but holds data that cannot be represented."""


class NonUtf8PathError(DataError):
    def __init__(self, field: str) -> None:
        super().__init__(f"non-utf8 paths are unsupported ({field})")
        self.field = field


class AliasError(ProcTabError):
    """A stable device alias could not be resolved to a device path."""

    def __init__(self, alias: str, msg: str) -> None:
        super().__init__(msg)
        self.alias = alias


class AliasNotFoundError(AliasError):
    def __init__(self, alias: str) -> None:
        super().__init__(alias, f"device path for {alias} was not found")


class AliasReadError(AliasError):
    def __init__(self, alias: str, reason: str) -> None:
        super().__init__(alias, f"{alias}: {reason}")
        self.reason = reason
