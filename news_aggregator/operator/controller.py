"""Work queue driving a reconciler.

Keys are de-duplicated while queued, a key is never reconciled twice at the
same time, and distinct keys are reconciled in parallel by a pool of workers.
"""

import asyncio
from typing import Protocol

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from news_aggregator.constants import RECONCILE_TIMEOUT_SECONDS
from news_aggregator.models.config import RetryConfig
from news_aggregator.operator.store import ObjectKey
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)


class Reconciler(Protocol):
    async def reconcile(self, key: ObjectKey) -> None: ...


def is_transient(error: BaseException) -> bool:
    """Deadline expiry and errors flagged transient are retried."""
    if isinstance(error, TimeoutError):
        return True
    return bool(getattr(error, "transient", False))


class Controller:
    def __init__(
        self,
        name: str,
        reconciler: Reconciler,
        timeout: float = RECONCILE_TIMEOUT_SECONDS,
        retry: RetryConfig | None = None,
        workers: int = 4,
    ) -> None:
        self.name = name
        self.reconciler = reconciler
        self.timeout = timeout
        self.retry = retry or RetryConfig()
        self.workers = workers
        self._queue: asyncio.Queue[ObjectKey] = asyncio.Queue()
        self._queued: set[ObjectKey] = set()
        self._processing: set[ObjectKey] = set()
        self._dirty: set[ObjectKey] = set()
        self.succeeded = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        """Keys waiting, running or due for another pass."""
        return len(self._queued | self._processing | self._dirty)

    def enqueue(self, key: ObjectKey) -> None:
        """Queue a key once; a key being reconciled is queued again when it finishes."""
        if key in self._processing:
            # Picked up again once the running reconcile finishes
            self._dirty.add(key)
            return
        if key in self._queued:
            return
        self._queued.add(key)
        self._queue.put_nowait(key)

    async def _reconcile_with_retry(self, key: ObjectKey) -> None:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential(
                multiplier=self.retry.min_wait_seconds,
                min=self.retry.min_wait_seconds,
                max=self.retry.max_wait_seconds,
            ),
            retry=retry_if_exception(is_transient),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                async with asyncio.timeout(self.timeout):
                    await self.reconciler.reconcile(key)

    async def process(self, key: ObjectKey) -> None:
        """Reconcile one key, logging and dropping it when every attempt failed."""
        try:
            await self._reconcile_with_retry(key)
        except Exception as e:
            self.failed += 1
            logger.error(
                "Reconcile failed",
                controller=self.name,
                key=str(key),
                error=str(e) or type(e).__name__,
                transient=is_transient(e),
            )
        else:
            self.succeeded += 1
            logger.debug("Reconcile succeeded", controller=self.name, key=str(key))

    async def _worker(self) -> None:
        while True:
            key = await self._queue.get()
            self._queued.discard(key)
            self._processing.add(key)
            try:
                await self.process(key)
            finally:
                self._processing.discard(key)
                if key in self._dirty:
                    self._dirty.discard(key)
                    self.enqueue(key)
                self._queue.task_done()

    async def run_until_idle(self) -> None:
        """Process keys until the queue is empty and nothing is running."""
        tasks = [asyncio.create_task(self._worker(), name=f"{self.name}-worker-{i}") for i in range(self.workers)]
        try:
            await self._queue.join()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
