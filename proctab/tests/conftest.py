# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner
from pytest_mock import MockerFixture

from proctab.monitoring.cli import watch
from proctab.tests.fakes import FakeAliasResolver, FakeClock

DATA_DIR = Path(__file__).parent / "data"


def pytest_configure(config: "pytest.Config") -> None:
    config.addinivalue_line("markers", "slow: the test takes some time to run")


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_resolver() -> FakeAliasResolver:
    return FakeAliasResolver(
        {
            "/dev/disk/by-uuid/0a1b2c3d": "/dev/nvme0n1p2",
            "/dev/disk/by-label/DATA": "/dev/sdb1",
        }
    )


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def quiet_logger(mocker: MockerFixture) -> None:
    """Keep `proctab watch` from attaching log handlers to the global loggers."""
    mocker.patch.object(
        watch,
        "init_logger",
        return_value=(logging.getLogger("proctab"), logging.NullHandler()),
    )
