"""Tests for the bounded worker pool."""
import threading
import time

import pytest
from pathlib import Path

from imagemanager.core.errors import ReadError
from imagemanager.services.pool import StopToken, WorkerPool, WorkResult


class TestWorkerPool:
    """Tests for WorkerPool."""

    def test_all_items_processed(self):
        """Test every item yields exactly one result."""
        results = list(WorkerPool(workers=4).run(range(20), lambda x: x * 2))

        assert sorted(r.value for r in results) == [x * 2 for x in range(20)]
        assert all(r.ok for r in results)

    def test_expected_errors_captured(self):
        """Test per-item errors are isolated into the result."""
        def work(x):
            if x == 3:
                raise ReadError(Path(f"/{x}.jpg"), "gone")
            if x == 5:
                raise PermissionError("denied")
            return x

        results = {r.item: r for r in WorkerPool(workers=2).run(range(8), work)}

        assert isinstance(results[3].error, ReadError)
        assert isinstance(results[5].error, PermissionError)
        assert results[3].value is None
        assert sum(1 for r in results.values() if r.ok) == 6

    def test_unexpected_errors_propagate(self):
        """Test programming errors are not swallowed."""
        def work(x):
            raise ValueError("bug")

        with pytest.raises(ValueError):
            list(WorkerPool(workers=2).run([1, 2], work))

    def test_concurrency_is_bounded(self):
        """Test no more than `workers` calls run at once."""
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}

        def work(x):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.01)
            with lock:
                state["active"] -= 1
            return x

        list(WorkerPool(workers=3).run(range(15), work))

        assert 1 <= state["peak"] <= 3

    def test_stop_halts_dispatch(self):
        """Test a stop lets in-flight work finish and dispatches nothing new."""
        stop = StopToken()
        pool = WorkerPool(workers=2, stop=stop)

        def work(x):
            if x == 0:
                stop.stop()
            return x

        results = list(pool.run(range(100), work))

        assert stop.stopped
        assert 1 <= len(results) <= 2
        assert 0 in [r.item for r in results]

    def test_lazy_input(self):
        """Test items are pulled from a generator as slots free up."""
        pulled = []

        def items():
            for i in range(10):
                pulled.append(i)
                yield i

        results = list(WorkerPool(workers=2).run(items(), lambda x: x))

        assert len(results) == 10
        assert pulled == list(range(10))

    def test_empty_input(self):
        """Test no items give no results."""
        assert list(WorkerPool(workers=2).run([], lambda x: x)) == []

    def test_default_workers(self):
        """Test non-positive workers resolve to at least one."""
        assert WorkerPool(workers=0).workers >= 1


class TestStopToken:
    """Tests for StopToken."""

    def test_initially_clear(self):
        assert StopToken().stopped is False

    def test_stop(self):
        token = StopToken()
        token.stop()
        assert token.stopped is True


class TestWorkResult:
    """Tests for WorkResult."""

    def test_ok(self):
        assert WorkResult(item=1, value=2).ok
        assert not WorkResult(item=1, error=OSError("x")).ok
