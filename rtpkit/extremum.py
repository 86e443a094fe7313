"""Tracking of a sliding minimum or maximum over a time period."""

from __future__ import annotations

from typing import Optional

_U64 = 1 << 64


class Extremum:
    """Keeps the extremum of recent values; a value older than ``period`` is replaced."""

    def __init__(self, period: int) -> None:
        self.period = period
        self.reset()

    def reset(self) -> None:
        self._current = 0.0
        self._time: Optional[int] = None
        self._last_stable = 0.0

    def _check_init(self, curtime: int, value: float) -> None:
        if self._time is not None:
            # Times are unsigned 64-bit: going backwards counts as very old.
            if (curtime - self._time) % _U64 > self.period:
                self._last_stable = self._current
                self._current = value
                self._time = curtime
        else:
            self._current = value
            self._time = curtime

    def record_min(self, curtime: int, value: float) -> None:
        self._check_init(curtime, value)
        if value < self._current:
            self._current = value
            self._time = curtime

    def record_max(self, curtime: int, value: float) -> None:
        self._check_init(curtime, value)
        if value > self._current:
            self._current = value
            self._time = curtime

    def current(self) -> float:
        """The extremum of the current period."""
        return self._current

    def previous(self) -> float:
        """The extremum of the last completed period."""
        return self._last_stable