# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Process-wide, self-refreshing snapshots of the mount and swap tables.

A `SnapshotRegistry` is created once by the application and handed to whatever
needs to read the tables. Each table is parsed and its watcher started the first
time it is requested; `close()` stops every watcher.
"""
import logging
import threading
from dataclasses import dataclass
from functools import partial
from types import TracebackType
from typing import Callable, Collection, Dict, List, Optional, Type, TypeVar

from omegaconf import OmegaConf as oc

from proctab.alias import DeviceAliasResolver
from proctab.monitoring.clock import Clock, ClockImpl
from proctab.monitoring.snapshot import SharedSnapshot
from proctab.monitoring.watch import (
    content_hash,
    DEFAULT_BUFFER_SIZE,
    DEFAULT_INTERVAL,
    FileWatcher,
)
from proctab.mounts import MountList, PROC_MOUNTS
from proctab.swaps import PROC_SWAPS, SwapList

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class WatchConfig:
    mounts_path: str = PROC_MOUNTS
    swaps_path: str = PROC_SWAPS
    # seconds between content checks
    interval: float = DEFAULT_INTERVAL
    buffer_size: int = DEFAULT_BUFFER_SIZE

    def __post_init__(self) -> None:
        if not self.interval > 0:
            raise ValueError(f"interval must be positive, but got {self.interval}")
        if self.buffer_size <= 0:
            raise ValueError(
                f"buffer_size must be positive, but got {self.buffer_size}"
            )

    @classmethod
    def from_dotlist(cls, opts: Collection[str]) -> "WatchConfig":
        """Build a config from OmegaConf dot-list overrides, e.g. `interval=0.5`.

        Unknown keys and values of the wrong type raise an
        `omegaconf.errors.OmegaConfBaseException`.
        """
        merged = oc.merge(oc.structured(cls), oc.from_dotlist(list(opts)))
        config = oc.to_object(merged)
        assert isinstance(config, cls)
        return config


class SnapshotRegistry:
    """Owns one shared snapshot and watcher per table kind."""

    def __init__(
        self,
        config: Optional[WatchConfig] = None,
        *,
        clock: Optional[Clock] = None,
        resolver: Optional[DeviceAliasResolver] = None,
    ) -> None:
        self.config = config if config is not None else WatchConfig()
        self.clock: Clock = clock if clock is not None else ClockImpl()
        self.resolver = resolver
        self._lock = threading.Lock()
        self._watchers: Dict[str, FileWatcher] = {}
        self._closed = False

    @classmethod
    def open(
        cls,
        config: Optional[WatchConfig] = None,
        *,
        clock: Optional[Clock] = None,
        resolver: Optional[DeviceAliasResolver] = None,
    ) -> "SnapshotRegistry":
        return cls(config, clock=clock, resolver=resolver)

    def _watch(
        self, kind: str, path: str, loader: Callable[[str], T]
    ) -> SharedSnapshot[T]:
        with self._lock:
            if self._closed:
                raise RuntimeError("snapshot registry is closed")
            watcher = self._watchers.get(kind)
            if watcher is not None:
                return watcher.snapshot

            try:
                digest: Optional[bytes] = content_hash(path, self.config.buffer_size)
            except OSError:
                digest = None
            # the initial parse is not swallowed: there is no stale value to keep
            snapshot = SharedSnapshot(loader(path))
            watcher = FileWatcher(
                path,
                loader,
                snapshot,
                interval=self.config.interval,
                buffer_size=self.config.buffer_size,
                clock=self.clock,
                initial_hash=digest,
            )
            watcher.start()
            self._watchers[kind] = watcher
            logger.info("started watching %s table at %s", kind, path)
            return snapshot

    def mounts(self) -> SharedSnapshot[MountList]:
        loader = partial(MountList.from_file, resolver=self.resolver)
        return self._watch("mounts", self.config.mounts_path, loader)

    def swaps(self) -> SharedSnapshot[SwapList]:
        return self._watch("swaps", self.config.swaps_path, SwapList.from_file)

    def watchers(self) -> List[FileWatcher]:
        with self._lock:
            return list(self._watchers.values())

    def close(self) -> None:
        with self._lock:
            self._closed = True
            watchers, self._watchers = self._watchers, {}
        for watcher in watchers.values():
            watcher.stop()

    def __enter__(self) -> "SnapshotRegistry":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.close()
