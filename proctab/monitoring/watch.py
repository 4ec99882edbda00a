# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Polling watcher which republishes a parsed file whenever its content changes."""
import hashlib
import logging
import os
import threading
from types import TracebackType
from typing import Callable, Generic, Optional, Type, TypeVar

from proctab.monitoring.clock import Clock, ClockImpl
from proctab.monitoring.snapshot import SharedSnapshot
from proctab.monitoring.utils.error import log_error
from proctab.parsing.rows import StrPath

LOGGER_NAME = __name__
logger = logging.getLogger(LOGGER_NAME)

T = TypeVar("T")
_Self = TypeVar("_Self", bound="FileWatcher")

DEFAULT_INTERVAL = 1.0
DEFAULT_BUFFER_SIZE = 8192


def content_hash(path: StrPath, buffer_size: int = DEFAULT_BUFFER_SIZE) -> bytes:
    """SHA-256 digest of the file at `path`, read `buffer_size` bytes at a time."""
    h = hashlib.sha256()
    buf = bytearray(buffer_size)
    view = memoryview(buf)
    with open(path, "rb", buffering=0) as f:
        while True:
            n = f.readinto(buf)
            if not n:
                break
            h.update(view[:n])
    return h.digest()


class FileWatcher(Generic[T]):
    """Keeps `snapshot` equal to `loader(path)` as the file at `path` changes.

    Each tick hashes the file and, if the hash differs from the last one that was
    loaded, re-parses it and replaces the snapshot. A file which cannot be hashed
    counts as unchanged. A failed parse is logged and leaves the previous value
    in place; the next tick tries again.
    """

    def __init__(
        self,
        path: StrPath,
        loader: Callable[[str], T],
        snapshot: SharedSnapshot[T],
        *,
        interval: float = DEFAULT_INTERVAL,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        clock: Optional[Clock] = None,
        initial_hash: Optional[bytes] = None,
    ) -> None:
        self.path = os.fspath(path)
        self.snapshot = snapshot
        self.interval = interval
        self.buffer_size = buffer_size
        self.clock: Clock = clock if clock is not None else ClockImpl()
        self.last_hash = initial_hash
        self.last_refresh: Optional[int] = None
        self._loader = loader
        self._reload = log_error(LOGGER_NAME, level=logging.WARNING)(self._load)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _load(self) -> T:
        return self._loader(self.path)

    def _hash(self) -> Optional[bytes]:
        try:
            return content_hash(self.path, self.buffer_size)
        except OSError:
            logger.debug(
                "could not hash %s, assuming no change", self.path, exc_info=True
            )
            return None

    def poll_once(self) -> bool:
        """Run a single tick. Returns whether the snapshot was replaced."""
        digest = self._hash()
        if digest is None or digest == self.last_hash:
            return False

        logger.info("content of %s changed, reloading", self.path)
        start = self.clock.monotonic()
        value = self._reload()
        if value is None:
            return False
        self.snapshot.replace(value)
        self.last_hash = digest
        self.last_refresh = self.clock.unixtime()
        logger.debug(
            "reloading %s took %.3f seconds", self.path, self.clock.monotonic() - start
        )
        return True

    def _run(self) -> None:
        logger.debug("watching %s every %s seconds", self.path, self.interval)
        while not self.clock.wait(self._stop, self.interval):
            self.poll_once()
        logger.debug("stopped watching %s", self.path)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        thread = threading.Thread(
            target=self._run, name=f"FileWatcher({self.path})", daemon=True
        )
        thread.start()
        self._thread = thread

    def stop(self, timeout: Optional[float] = None) -> None:
        """Ask the thread to finish and wait up to `timeout` seconds for it.

        A thread still busy after `timeout` stays registered, so `start` does
        not spawn a second one next to it.
        """
        self._stop.set()
        thread = self._thread
        if thread is None:
            return
        thread.join(timeout)
        if not thread.is_alive():
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def __enter__(self: _Self) -> _Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.stop()
