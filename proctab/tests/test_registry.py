# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import time
from pathlib import Path
from typing import List

import pytest
from omegaconf.errors import OmegaConfBaseException

from proctab.errors import MissingFieldError
from proctab.monitoring.registry import SnapshotRegistry, WatchConfig
from proctab.mounts import PROC_MOUNTS
from proctab.swaps import PROC_SWAPS
from proctab.tests.fakes import FakeAliasResolver, wait_for

SWAPS_HEADER = "Filename\tType\tSize\tUsed\tPriority\n"


@pytest.fixture
def config(tmp_path: Path) -> WatchConfig:
    mounts = tmp_path / "mounts"
    mounts.write_text("tmpfs /tmp tmpfs rw 0 0\n")
    swaps = tmp_path / "swaps"
    swaps.write_text(SWAPS_HEADER + "/swapfile file 1024 0 -2\n")
    return WatchConfig(mounts_path=str(mounts), swaps_path=str(swaps), interval=0.05)


class TestWatchConfig:
    @staticmethod
    def test_defaults() -> None:
        config = WatchConfig.from_dotlist([])
        assert config == WatchConfig()
        assert config.mounts_path == PROC_MOUNTS
        assert config.swaps_path == PROC_SWAPS

    @staticmethod
    def test_overrides() -> None:
        config = WatchConfig.from_dotlist(["interval=0.5", "mounts_path=/etc/fstab"])
        assert config.interval == 0.5
        assert config.mounts_path == "/etc/fstab"
        assert config.buffer_size == 8192

    @staticmethod
    @pytest.mark.parametrize(
        "opts", [["bogus=1"], ["interval=often"], ["buffer_size=1.5"]]
    )
    def test_invalid_options(opts: List[str]) -> None:
        with pytest.raises(OmegaConfBaseException):
            WatchConfig.from_dotlist(opts)

    @staticmethod
    @pytest.mark.parametrize("opts", [["interval=0"], ["buffer_size=-1"]])
    def test_invalid_values(opts: List[str]) -> None:
        with pytest.raises((ValueError, OmegaConfBaseException)):
            WatchConfig.from_dotlist(opts)


class TestSnapshotRegistry:
    @staticmethod
    def test_lazy_and_shared(config: WatchConfig) -> None:
        with SnapshotRegistry.open(config) as registry:
            assert registry.watchers() == []
            mounts = registry.mounts()
            assert registry.mounts() is mounts
            assert len(registry.watchers()) == 1
            swaps = registry.swaps()
            assert swaps.get().get_swapped("/swapfile")
            assert all(w.running for w in registry.watchers())

    @staticmethod
    def test_close_stops_watchers(config: WatchConfig) -> None:
        registry = SnapshotRegistry(config)
        registry.mounts()
        watchers = registry.watchers()
        registry.close()
        assert not any(w.running for w in watchers)
        assert registry.watchers() == []
        with pytest.raises(RuntimeError):
            registry.swaps()

    @staticmethod
    @pytest.mark.slow
    def test_refreshes_on_change(config: WatchConfig) -> None:
        with SnapshotRegistry(config) as registry:
            mounts = registry.mounts()
            start = time.monotonic()
            Path(config.mounts_path).write_text("tmpfs /run tmpfs rw 0 0\n")
            assert wait_for(lambda: mounts.get().source_mounted_at("tmpfs", "/run"))
            elapsed = time.monotonic() - start
            assert mounts.version >= 1
            # visible within two poll intervals, plus scheduling slack
            assert elapsed <= 2 * config.interval + 0.25

    @staticmethod
    def test_initial_parse_error(config: WatchConfig) -> None:
        Path(config.mounts_path).write_text("broken\n")
        with SnapshotRegistry(config) as registry:
            with pytest.raises(MissingFieldError):
                registry.mounts()
            assert registry.watchers() == []
            # the other table is unaffected
            assert len(registry.swaps().get()) == 1

    @staticmethod
    def test_missing_file(tmp_path: Path) -> None:
        config = WatchConfig(mounts_path=str(tmp_path / "gone"))
        with SnapshotRegistry(config) as registry:
            with pytest.raises(FileNotFoundError):
                registry.mounts()

    @staticmethod
    def test_uses_resolver(
        config: WatchConfig, fake_resolver: FakeAliasResolver
    ) -> None:
        Path(config.mounts_path).write_text(
            "/dev/disk/by-label/DATA /data ext4 rw 0 2\n"
        )
        with SnapshotRegistry(config, resolver=fake_resolver) as registry:
            assert registry.mounts().get().source_mounted_at("/dev/sdb1", "/data")
