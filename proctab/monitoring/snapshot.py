# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""A shared, atomically replaceable value for many concurrent readers."""
import threading
from contextlib import contextmanager
from typing import Generator, Generic, Tuple, TypeVar

T = TypeVar("T")


class ReadWriteLock:
    """Many readers or a single writer.

    Writers are preferred: once a writer waits, new readers block until it is
    done, so a steady stream of readers cannot starve a refresh. A thread which
    already holds the read lock takes it again without waiting for queued
    writers. The write lock is not reentrant.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0
        self._local = threading.local()

    def _held(self) -> int:
        return getattr(self._local, "depth", 0)

    def acquire_read(self) -> None:
        depth = self._held()
        if depth:
            self._local.depth = depth + 1
            return
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        self._local.depth = 1

    def release_read(self) -> None:
        depth = self._held()
        if depth > 1:
            self._local.depth = depth - 1
            return
        self._local.depth = 0
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read(self) -> Generator[None, None, None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Generator[None, None, None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class SharedSnapshot(Generic[T]):
    """Holds the latest parsed value of a watched table.

    Values are expected to be immutable; `replace` swaps the whole value under
    the write lock, so a reader sees either the previous value or the new one.
    """

    def __init__(self, value: T) -> None:
        self._lock = ReadWriteLock()
        self._value = value
        self._version = 0

    def get(self) -> T:
        with self._lock.read():
            return self._value

    @contextmanager
    def read(self) -> Generator[T, None, None]:
        """Hold the read lock while using the current value."""
        with self._lock.read():
            yield self._value

    def replace(self, value: T) -> None:
        with self._lock.write():
            self._value = value
            self._version += 1

    def versioned(self) -> Tuple[int, T]:
        """The current version and value, read together."""
        with self._lock.read():
            return self._version, self._value

    @property
    def version(self) -> int:
        """Number of times the value was replaced."""
        with self._lock.read():
            return self._version
