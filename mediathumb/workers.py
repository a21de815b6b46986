"""
WorkerPool - Bounded thread pools for decode/encode work.

Video jobs run on their own pool so a few expensive decodes cannot occupy
every worker that raster requests need. Both pools queue when saturated.
"""

import concurrent.futures
import logging
import threading
from typing import Any, Callable, Optional

from .errors import PipelineCancelled, PipelineTimeout


class CancelToken:
    """
    Cooperative cancellation flag passed into a running pipeline.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise PipelineCancelled once cancel() has been called."""
        if self._event.is_set():
            raise PipelineCancelled("Request cancelled")


class Job:
    """
    Handle for a submitted pipeline invocation.
    """

    def __init__(self, future: concurrent.futures.Future, token: CancelToken, heavy: bool):
        self.future = future
        self.token = token
        self.heavy = heavy

    def cancel(self) -> None:
        """Drop the job if still queued, otherwise ask it to stop."""
        self.token.cancel()
        self.future.cancel()

    @property
    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> Any:
        """
        Wait for the job.

        Args:
            timeout: Seconds to wait; the job is cancelled when it expires

        Raises:
            PipelineTimeout: If the timeout expired
            PipelineError: Whatever the pipeline raised
        """
        try:
            return self.future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            self.cancel()
            raise PipelineTimeout(f"No result after {timeout:.1f}s")
        except concurrent.futures.CancelledError:
            raise PipelineCancelled("Request cancelled before it started")


class WorkerPool:
    """
    Two bounded executors: ``light`` for raster/layered, ``heavy`` for video.
    """

    def __init__(
        self,
        light_workers: int = 4,
        heavy_workers: int = 2,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize worker pools.

        Args:
            light_workers: Concurrent raster/layered jobs
            heavy_workers: Concurrent video jobs
            logger: Optional logger instance
        """
        self.light_workers = light_workers
        self.heavy_workers = heavy_workers
        self.logger = logger or logging.getLogger(__name__)
        self._light = concurrent.futures.ThreadPoolExecutor(
            max_workers=light_workers, thread_name_prefix='mediathumb-light'
        )
        self._heavy = concurrent.futures.ThreadPoolExecutor(
            max_workers=heavy_workers, thread_name_prefix='mediathumb-heavy'
        )
        self._pending = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        """Jobs submitted and not yet finished."""
        with self._lock:
            return self._pending

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        heavy: bool = False,
        token: Optional[CancelToken] = None
    ) -> Job:
        """
        Submit ``fn(*args, cancel=token)`` to the matching pool.

        Args:
            fn: Callable accepting a ``cancel`` keyword
            heavy: Route to the video pool
            token: Token to use; a fresh one is created if omitted

        Returns:
            Job handle
        """
        token = token or CancelToken()
        executor = self._heavy if heavy else self._light

        with self._lock:
            self._pending += 1
        future = executor.submit(self._run, fn, args, token)
        future.add_done_callback(self._on_done)
        return Job(future, token, heavy)

    def _run(self, fn: Callable[..., Any], args: tuple, token: CancelToken) -> Any:
        token.raise_if_cancelled()
        return fn(*args, cancel=token)

    def _on_done(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            self._pending -= 1

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; queued jobs are cancelled."""
        self.logger.info("Shutting down worker pools")
        self._light.shutdown(wait=wait, cancel_futures=True)
        self._heavy.shutdown(wait=wait, cancel_futures=True)
