#!/usr/bin/env python3
# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Logging setup and the reporting loop used by `proctab watch`."""
from __future__ import annotations

import logging
import os
import sys
import threading
from logging.handlers import RotatingFileHandler
from typing import Any, Callable, Dict, Optional, Tuple

from proctab.monitoring.clock import Clock
from proctab.monitoring.registry import SnapshotRegistry
from proctab.monitoring.snapshot import SharedSnapshot
from proctab.mounts import MountList
from proctab.swaps import SwapList


def init_logger(
    logger_name: str,
    log_dir: str,
    log_name: str,
    log_formatter: Optional[logging.Formatter] = logging.Formatter(
        "[%(asctime)s] - [%(levelname)s] - [%(name)s] - %(message)s"
    ),
    log_level: int = logging.INFO,
    max_bytes: int = 1024 * 1024,
    backup_count: int = 2,
    log_stdout: bool = False,
) -> Tuple[logging.Logger, logging.Handler]:
    """Set up logging for a command.

    Logs are stored at: {log_dir}/{log_name}, or written to stdout if
    `log_stdout` is set.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    handler: logging.Handler
    if log_stdout:
        handler = logging.StreamHandler(sys.stdout)
    else:
        file_path = os.path.join(log_dir, log_name)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        handler = RotatingFileHandler(
            file_path, mode="a", maxBytes=max_bytes, backupCount=backup_count
        )

    if log_formatter:
        handler.setFormatter(log_formatter)
    logger.addHandler(handler)

    return logger, handler


def run_watch_loop(
    registry: SnapshotRegistry,
    clock: Clock,
    interval: float,
    emit: Callable[[str, MountList | SwapList], None],
    once: bool = False,
    count: Optional[int] = None,
    stop: Optional[threading.Event] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Report every new snapshot of the mount and swap tables.

    The current tables are emitted first. Afterwards, the snapshots are checked
    every `interval` seconds and emitted whenever their version moved. Returns
    the number of emitted tables once `once` is set, `count` tables have been
    emitted or `stop` is set.
    """
    logger = logger or logging.getLogger(__name__)
    stop = stop if stop is not None else threading.Event()
    snapshots: Dict[str, SharedSnapshot[Any]] = {
        "mounts": registry.mounts(),
        "swaps": registry.swaps(),
    }
    seen = {kind: -1 for kind in snapshots}
    emitted = 0

    while True:
        for kind, snapshot in snapshots.items():
            version, value = snapshot.versioned()
            if version == seen[kind]:
                continue
            logger.debug("%s snapshot moved to version %d", kind, version)
            seen[kind] = version
            emit(kind, value)
            emitted += 1
            if count is not None and emitted >= count:
                return emitted

        if once:
            logger.debug("stopping due to `--once`")
            return emitted

        if clock.wait(stop, interval):
            logger.debug("stop requested")
            return emitted
