import threading
import time

import pytest

from fgakit.rampup import RampUpCancelled, ramp_up_api_requests


class Counter:
    def __init__(self, delay=0.0, fail_on=None):
        self.count = 0
        self.delay = delay
        self.fail_on = fail_on
        self.lock = threading.Lock()
        self.active = 0
        self.max_active = 0

    def __call__(self):
        with self.lock:
            self.count += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            current = self.count
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_on is not None and current == self.fail_on:
                raise RuntimeError("request error")
        finally:
            with self.lock:
                self.active -= 1


def test_success():
    counter = Counter()
    ramp_up_api_requests(10, 20, 2, 1.0, 5, [counter] * 5)
    assert counter.count == 5


def test_ramp_up_rate():
    counter = Counter()
    start = time.monotonic()
    ramp_up_api_requests(1, 10, 3, 1.0, 5, [counter] * 10)
    duration = time.monotonic() - start
    assert duration >= 10 / 10.0
    assert counter.count == 10


def test_context_cancelled():
    counter = Counter(delay=0.1)
    stop = threading.Event()
    timer = threading.Timer(1.0, stop.set)
    timer.start()
    try:
        with pytest.raises(RampUpCancelled):
            ramp_up_api_requests(1, 10, 5, 1.0, 5, [counter] * 100, stop)
    finally:
        timer.cancel()
    assert counter.count < 100


def test_request_error_does_not_stop_sending():
    counter = Counter(fail_on=2)
    ramp_up_api_requests(1, 10, 5, 1.0, 5, [counter] * 5)
    assert counter.count == 5


def test_already_stopped_sends_nothing():
    counter = Counter()
    stop = threading.Event()
    stop.set()
    with pytest.raises(RampUpCancelled):
        ramp_up_api_requests(1, 10, 2, 0.05, 2, [counter] * 3, stop)
    assert counter.count == 0


def test_zero_ramp_up_period_completes():
    counter = Counter()
    ramp_up_api_requests(5, 5, 0, 0.05, 2, [counter] * 3)
    assert counter.count == 3


def test_in_flight_requests_are_bounded():
    counter = Counter(delay=0.1)
    ramp_up_api_requests(10, 10, 0, 0.05, 2, [counter] * 6)
    assert counter.count == 6
    assert counter.max_active <= 2


def test_none_entries_are_skipped():
    counter = Counter()
    ramp_up_api_requests(10, 10, 0, 0.05, 2, [counter, None, counter])
    assert counter.count == 2


def test_max_in_flight_must_be_positive():
    with pytest.raises(ValueError, match="max_in_flight"):
        ramp_up_api_requests(1, 10, 2, 0.05, 0, [Counter()])