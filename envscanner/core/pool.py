"""Bounded worker pool — K threads draining one shared task list."""

import threading
from typing import Any, Callable, List, Sequence, Tuple, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class WorkerPool:
    """
    Fixed-concurrency executor.

    Each worker claims the next unclaimed item through a lock-guarded cursor,
    runs it to completion, then claims again. ``run`` returns once every item
    has been processed. A failing task is logged and recorded in ``errors``;
    it never stops the other workers. Results come back in completion order,
    and ``None`` results are dropped.

    Usage:
        pool = WorkerPool(5, name="probe", logger=log)
        hits = pool.run(engine.probe_env, urls)
    """

    def __init__(self, concurrency: int, name: str = "worker", logger=None):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.concurrency = concurrency
        self.name = name
        self.logger = logger
        self.errors: List[Tuple[Any, Exception]] = []

    def run(self, func: Callable[[T], R], items: Sequence[T]) -> List[R]:
        items = list(items)
        results: List[R] = []
        self.errors = []
        cursor = 0
        lock = threading.Lock()

        def claim():
            nonlocal cursor
            with lock:
                if cursor >= len(items):
                    return None, False
                item = items[cursor]
                cursor += 1
                return item, True

        def worker():
            while True:
                item, ok = claim()
                if not ok:
                    return
                try:
                    result = func(item)
                except Exception as exc:
                    with lock:
                        self.errors.append((item, exc))
                    if self.logger:
                        self.logger.warn(
                            f"[{threading.current_thread().name}] task {item!r} failed: {exc}")
                    continue
                if result is not None:
                    with lock:
                        results.append(result)

        n_workers = min(self.concurrency, len(items))
        threads = [
            threading.Thread(target=worker, name=f"{self.name}-{i + 1}", daemon=True)
            for i in range(n_workers)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results
