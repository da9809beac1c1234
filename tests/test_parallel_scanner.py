import threading
import time

import pytest

from photowall.application.services.parallel_scanner import ParallelScanner, resolve_worker_count


def test_results_keep_input_order() -> None:
    def slow_square(value: int) -> int:
        time.sleep(0.01 * (5 - value))
        return value * value

    assert ParallelScanner(max_workers=4).map(slow_square, [1, 2, 3, 4]) == [1, 4, 9, 16]


def test_worker_bound_is_respected() -> None:
    lock = threading.Lock()
    active = 0
    peak = 0

    def work(_item):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1

    ParallelScanner(max_workers=2).map(work, range(8))
    assert peak <= 2


def test_exceptions_propagate() -> None:
    def fail(item):
        if item == 2:
            raise RuntimeError("boom")
        return item

    with pytest.raises(RuntimeError):
        ParallelScanner(max_workers=3).map(fail, [1, 2, 3])


def test_worker_count_resolution(monkeypatch) -> None:
    monkeypatch.setattr("os.cpu_count", lambda: 6)
    assert resolve_worker_count(0) == 6
    assert resolve_worker_count(3) == 3
    monkeypatch.setattr("os.cpu_count", lambda: None)
    assert resolve_worker_count(0) == 1
