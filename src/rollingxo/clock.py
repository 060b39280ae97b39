"""Wall-clock source shared by the engine, swappable in tests."""

from __future__ import annotations

import time
from typing import Callable

# Returns POSIX seconds.
Clock = Callable[[], float]


def system_clock() -> float:
    return time.time()
