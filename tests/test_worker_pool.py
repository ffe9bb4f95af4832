"""Tests for WorkerPool."""

import threading
import time

import pytest

from donor_ledger.utils.worker_pool import WorkerPool


def _square(x):
    if x == 3:
        raise ValueError("no threes")
    return x * x


def test_invalid_worker_count():
    with pytest.raises(ValueError):
        WorkerPool(max_workers=0)


class TestMapWithDeadline:
    def test_submission_order(self):
        def work(delay):
            time.sleep(delay)
            return delay

        pool = WorkerPool(max_workers=3)
        results = pool.map_with_deadline(work, [("a", 0.2), ("b", 0.0), ("c", 0.1)], timeout=2, fallback=None)

        assert list(results) == ["a", "b", "c"]
        assert results == {"a": 0.2, "b": 0.0, "c": 0.1}

    def test_error_uses_fallback(self):
        seen = []

        def fallback(key, error):
            seen.append((key, type(error)))
            return -1

        pool = WorkerPool(max_workers=2)
        results = pool.map_with_deadline(_square, [("two", 2), ("three", 3)], timeout=2, fallback=fallback)

        assert results == {"two": 4, "three": -1}
        assert seen == [("three", ValueError)]

    def test_timeout_uses_fallback_with_no_error(self):
        release = threading.Event()
        seen = []

        def work(payload):
            if payload == "slow":
                release.wait(2)
            return payload

        def fallback(key, error):
            seen.append((key, error))
            return "late"

        pool = WorkerPool(max_workers=2)
        try:
            results = pool.map_with_deadline(work, [("x", "fast"), ("y", "slow")], timeout=0.2, fallback=fallback)
        finally:
            release.set()

        assert results == {"x": "fast", "y": "late"}
        assert seen == [("y", None)]
        stats = pool.get_stats()
        assert stats["total_timed_out"] == 1
        assert stats["total_successful"] == 1
        assert stats["total_submitted"] == 2

    def test_queued_item_gets_its_own_deadline(self):
        """With one worker, the item queued behind a slow one still runs to completion."""

        def work(payload):
            if payload == "slow":
                time.sleep(0.5)
            return payload

        pool = WorkerPool(max_workers=1)
        results = pool.map_with_deadline(
            work, [("a", "slow"), ("b", "fast")], timeout=0.3, fallback=lambda key, error: "late"
        )

        assert results == {"a": "late", "b": "fast"}
        assert pool.get_stats()["total_timed_out"] == 1

    def test_max_wait_caps_the_batch(self):
        release = threading.Event()

        def work(payload):
            release.wait(2)
            return payload

        pool = WorkerPool(max_workers=1)
        start = time.monotonic()
        try:
            results = pool.map_with_deadline(
                work, [("a", 1), ("b", 2)], timeout=1.0, fallback=lambda key, error: None, max_wait=0.2
            )
        finally:
            release.set()

        assert time.monotonic() - start < 0.9
        assert results == {"a": None, "b": None}

    def test_empty(self):
        assert WorkerPool().map_with_deadline(_square, [], timeout=1, fallback=None) == {}
