"""Sending a batch of requests at a rate that ramps up over time."""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

Request = Callable[[], object]


class RampUpCancelled(Exception):
    """Sending was stopped before every request had been started."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


def _seconds(duration: float | timedelta) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


class _Ticker:
    def __init__(self, period: float, cancel: threading.Event) -> None:
        if period <= 0:
            raise ValueError("non-positive interval for ticker")
        self._period = period
        self._cancel = cancel
        self._next = time.monotonic() + period

    def wait(self) -> None:
        remaining = max(self._next - time.monotonic(), 0.0)
        if self._cancel.wait(remaining):
            raise RampUpCancelled()
        now = time.monotonic()
        self._next += self._period
        if self._next <= now:
            missed = int((now - self._next) // self._period) + 1
            self._next += missed * self._period


class _Limiter:
    """A token bucket holding at most one token, refilled at ``limit`` per second."""

    def __init__(self, limit: float, cancel: threading.Event) -> None:
        self.limit = float(limit)
        self._cancel = cancel
        self._ready_at = time.monotonic()

    def wait(self) -> None:
        now = time.monotonic()
        if self.limit <= 0:
            if self._ready_at > now:
                raise ValueError("rate: Wait(n=1) cannot be satisfied with a limit of zero")
            self._ready_at = math.inf
            return
        at = now if math.isinf(self._ready_at) else max(now, self._ready_at)
        if self._cancel.wait(at - now):
            raise RampUpCancelled()
        self._ready_at = at + 1.0 / self.limit


def _run(request: Request | None, slots: threading.BoundedSemaphore) -> None:
    try:
        if request is not None:
            request()
    except Exception:  # noqa: BLE001 - request failures are the caller's to record
        pass
    finally:
        slots.release()


def ramp_up_api_requests(
    min_rps: int,
    max_rps: int,
    ramp_up_period: int,
    period_duration: float | timedelta,
    max_in_flight: int,
    requests: Sequence[Request | None],
    stop_event: threading.Event | None = None,
) -> None:
    """Run ``requests`` at a rate rising from ``min_rps`` to ``max_rps``.

    The rate grows once per ``period_duration`` over ``ramp_up_period`` periods
    and then stays at ``max_rps`` until every request has been started.  At most
    ``max_in_flight`` requests run at once.  Failures of single requests are
    ignored.  Setting ``stop_event`` stops sending and raises ``RampUpCancelled``
    once the running requests have finished.
    """
    if max_in_flight < 1:
        raise ValueError("max_in_flight must be at least 1")

    cancel = stop_event if stop_event is not None else threading.Event()
    period = _seconds(period_duration)
    increment = (max_rps - min_rps) / ramp_up_period if ramp_up_period else 0.0
    limiter = _Limiter(min_rps, cancel)
    ticker = _Ticker(period, cancel)
    if ramp_up_period == 0:
        min_rps = max_rps

    pending = iter(requests)
    exhausted = object()
    slots = threading.BoundedSemaphore(max_in_flight)

    with ThreadPoolExecutor(max_workers=max_in_flight) as pool:

        def dispatch(count: int) -> bool:
            for _ in range(count):
                request = next(pending, exhausted)
                if request is exhausted:
                    return False
                slots.acquire()
                pool.submit(_run, request, slots)
            return True

        for step in range(ramp_up_period + 1):
            ticker.wait()
            limiter.wait()
            if not dispatch(int(limiter.limit)):
                return
            limiter.limit = min_rps + increment * step

        limiter.limit = float(max_rps)

        while True:
            ticker.wait()
            limiter.wait()
            if not dispatch(int(limiter.limit)):
                return