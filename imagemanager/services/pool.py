"""Bounded worker pool with per-item failure isolation."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Iterator, Optional, TypeVar

from ..core.config import resolve_worker_count
from ..core.errors import ImageManagerError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class StopToken:
    """Caller-initiated stop signal shared with a running pool.

    Setting it lets in-flight calls finish; nothing new is dispatched.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def stop(self) -> None:
        self._event.set()

    @property
    def stopped(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True, slots=True)
class WorkResult(Generic[T, R]):
    """Result of one call: either a value or the error it raised."""
    item: T
    value: Optional[R] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class WorkerPool:
    """Fans per-item work out over a fixed number of threads.

    Per-file work here is I/O bound (hashing, EXIF reads), so threads are
    enough. Results are yielded in completion order on the calling thread,
    which is the single place results are aggregated.
    """

    # Errors a per-file call may legitimately raise. Anything else is a bug.
    expected_errors: tuple[type[BaseException], ...] = (ImageManagerError, OSError)

    def __init__(self, workers: int = 0, stop: Optional[StopToken] = None):
        """Initialize the pool.

        Args:
            workers: Concurrent calls; non-positive means one per CPU.
            stop: Token the caller may set to stop dispatching.
        """
        self._workers = resolve_worker_count(workers)
        self._stop = stop or StopToken()

    @property
    def workers(self) -> int:
        return self._workers

    def run(self, items: Iterable[T], fn: Callable[[T], R]) -> Iterator[WorkResult[T, R]]:
        """Apply fn to every item.

        At most ``workers`` calls are in flight. The next item is dispatched
        only when a slot frees up, so a slow file holds one slot and never
        stalls the others.

        Yields:
            WorkResult for each dispatched item, in completion order.
        """
        source = iter(items)
        pending: dict[Future, T] = {}

        with ThreadPoolExecutor(
            max_workers=self._workers,
            thread_name_prefix="imagemanager-worker",
        ) as executor:

            def fill() -> None:
                while len(pending) < self._workers and not self._stop.stopped:
                    try:
                        item = next(source)
                    except StopIteration:
                        return
                    pending[executor.submit(self._call, fn, item)] = item

            fill()
            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    pending.pop(future)
                    # _call only returns; an unexpected exception re-raises here.
                    yield future.result()
                fill()

        if self._stop.stopped:
            logger.debug("Worker pool stopped before all items were dispatched")

    def _call(self, fn: Callable[[T], R], item: T) -> WorkResult[T, R]:
        try:
            return WorkResult(item=item, value=fn(item))
        except self.expected_errors as e:
            return WorkResult(item=item, error=e)
