# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
import threading
import time
from typing import Protocol


class Clock(Protocol):
    """An object that can tell and pass time."""

    def unixtime(self) -> int:
        """Get the current unixtime."""

    def monotonic(self) -> float:
        """Get the current time. The absolute time need not be meaningful. Only relative
        times are well-defined so that the difference between calls represents the
        amount of time that passed, in seconds, e.g.

        >>> clock: Clock = ...
        >>> start = clock.monotonic()
        >>> end = clock.monotonic()
        >>> end - start  # elapsed time in seconds

        Invariants:
        1. The sequence obtained from successive calls must be monotonically increasing
        """

    def wait(self, stop: threading.Event, duration_sec: float) -> bool:
        """Block until the given duration has passed or `stop` is set, whichever
        comes first. Returns whether `stop` is set.
        """


class ClockImpl:
    def unixtime(self) -> int:
        return int(time.time())

    def monotonic(self) -> float:
        return time.monotonic()

    def wait(self, stop: threading.Event, duration_sec: float) -> bool:
        return stop.wait(max(0.0, duration_sec))
