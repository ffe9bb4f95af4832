"""Worker pool with exception handling and deadlines for parallel calls.

Wraps ThreadPoolExecutor so a batch of independent provider calls (one per
donor) can run concurrently while one slow or failing item never blocks
or fails the rest.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Any, Callable, Hashable, Iterable, Optional

# How often the pool re-checks running items against their deadlines
POLL_INTERVAL_SECONDS = 0.05


class WorkerPool:
    """ThreadPoolExecutor wrapper with per-item error isolation."""

    def __init__(self, max_workers: int = 10, logger=None):
        """
        Initialize worker pool.

        Args:
            max_workers: Maximum number of concurrent worker threads (default: 10)
            logger: Optional logger instance
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers
        self.logger = logger or logging.getLogger(__name__)
        self._stats_lock = threading.Lock()
        self.stats = {
            "max_workers": max_workers,
            "total_submitted": 0,
            "total_successful": 0,
            "total_failed": 0,
            "total_timed_out": 0,
        }

    def _bump(self, key: str, amount: int = 1) -> None:
        with self._stats_lock:
            self.stats[key] += amount

    def map_with_deadline(
        self,
        func: Callable[[Any], Any],
        items: Iterable[tuple[Hashable, Any]],
        timeout: float,
        fallback: Callable[[Hashable, Exception | None], Any],
        desc: str = "Processing",
        max_wait: Optional[float] = None,
    ) -> dict:
        """
        Run ``func(payload)`` for every ``(key, payload)`` pair and join the
        results into a dict keyed by ``key``.

        Every key gets a slot. Items that raise get ``fallback(key, error)``.
        Each item's ``timeout`` starts when a worker picks it up, so items
        queued behind slow ones keep their full allowance; an item still
        running past its own deadline gets ``fallback(key, None)`` and is
        abandoned.

        Args:
            func: Worker function taking the payload
            items: (key, payload) pairs; keys must be unique
            timeout: Per-item deadline in seconds, counted from the item's start
            fallback: Builds the value for a failed or timed-out key
            desc: Description used in log lines
            max_wait: Optional ceiling for the whole batch; anything still
                queued or running then is treated as timed out
        """
        pairs = list(items)
        results: dict = {}
        if not pairs:
            return results

        started: dict = {}
        started_lock = threading.Lock()

        def run(key: Hashable, payload: Any) -> Any:
            with started_lock:
                started[key] = time.monotonic()
            return func(payload)

        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(pairs)))
        future_to_key = {executor.submit(run, key, payload): key for key, payload in pairs}
        self._bump("total_submitted", len(pairs))

        batch_start = time.monotonic()
        pending = set(future_to_key)
        timed_out: list = []

        try:
            while pending:
                now = time.monotonic()
                with started_lock:
                    running = {f: started[future_to_key[f]] for f in pending if future_to_key[f] in started}

                if max_wait is not None and now - batch_start >= max_wait:
                    expired = [f for f in pending if not f.done()]
                else:
                    expired = [f for f, start in running.items() if not f.done() and now - start >= timeout]
                for future in expired:
                    future.cancel()
                    pending.discard(future)
                    timed_out.append(future_to_key[future])
                if not pending:
                    break

                # Sleep until the next deadline, a completion, or the next poll
                wake = [POLL_INTERVAL_SECONDS]
                wake += [start + timeout - now for f, start in running.items() if f in pending]
                if max_wait is not None:
                    wake.append(batch_start + max_wait - now)
                done, _ = wait(pending, timeout=max(min(wake), 0.0), return_when=FIRST_COMPLETED)

                for future in done:
                    pending.discard(future)
                    key = future_to_key[future]
                    try:
                        results[key] = future.result()
                        self._bump("total_successful")
                    except Exception as e:
                        self._bump("total_failed")
                        self.logger.warning(f"{desc}: failed for {key}: {e}")
                        results[key] = fallback(key, e)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        if timed_out:
            self.logger.warning(f"{desc}: {len(timed_out)} item(s) exceeded {timeout}s deadline: {timed_out}")
        for key in timed_out:
            self._bump("total_timed_out")
            results[key] = fallback(key, None)

        # Submission order, not completion order
        results = {key: results[key] for key, _ in pairs}

        self.logger.debug(
            f"{desc} complete: {self.stats['total_successful']} successful, "
            f"{self.stats['total_failed']} failed, {self.stats['total_timed_out']} timed out"
        )
        return results

    def get_stats(self) -> dict:
        """Get worker pool statistics."""
        with self._stats_lock:
            return dict(self.stats)
