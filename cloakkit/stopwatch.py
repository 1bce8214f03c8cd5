"""Elapsed-time measurement and human readable formatting."""

from __future__ import annotations

import time

_US_PER_MS = 1_000
_US_PER_SEC = 1_000_000
_US_PER_MIN = 60 * _US_PER_SEC
_US_PER_HOUR = 60 * _US_PER_MIN


class ElapsedTime:
    """A duration split into hours, minutes, seconds, milliseconds and leftover microseconds."""

    def __init__(self, microseconds: int) -> None:
        remaining = int(microseconds)
        self.hours, remaining = divmod(remaining, _US_PER_HOUR)
        self.minutes, remaining = divmod(remaining, _US_PER_MIN)
        self.seconds, remaining = divmod(remaining, _US_PER_SEC)
        self.milliseconds, remaining = divmod(remaining, _US_PER_MS)
        self.microseconds = remaining

    def __str__(self) -> str:
        parts = [
            f"{value} {unit}"
            for value, unit in (
                (self.hours, "hr"),
                (self.minutes, "min"),
                (self.seconds, "sec"),
                (self.milliseconds, "ms"),
            )
            if value
        ]
        if not parts:
            parts.append(f"{self.microseconds} microseconds")
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"ElapsedTime({self})"


class Stopwatch:
    """Measures time elapsed since creation or the last reset."""

    def __init__(self) -> None:
        self._started = 0
        self.reset()

    def reset(self) -> None:
        self._started = time.perf_counter_ns()

    def elapsed(self) -> ElapsedTime:
        return ElapsedTime((time.perf_counter_ns() - self._started) // 1_000)