"""Wall-clock timing of code sections."""

from __future__ import annotations

import time
from datetime import datetime


class Timer:
    """Measures elapsed real time in seconds between start and stop."""

    def __init__(self) -> None:
        self._start = 0.0
        self._stop = 0.0

    def start(self) -> None:
        """Record the start time."""
        self._start = time.perf_counter()

    def stop(self) -> None:
        """Record the stop time."""
        self._stop = time.perf_counter()

    def runtime(self) -> float:
        """Seconds between the recorded start and stop."""
        return self._stop - self._start

    def __enter__(self) -> Timer:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()


def local_time_string(moment: datetime | None = None) -> str:
    """Format a moment (now by default) as ``YYYY-MM-DD hh:mm:ss``."""
    t = moment if moment is not None else datetime.now()
    return f"{t.year:04d}-{t.month:02d}-{t.day:02d} {t.hour:02d}:{t.minute:02d}:{t.second:02d}"