"""
Background deploys.

The webhook handler only enqueues; a fixed pool of asyncio worker tasks
drains a bounded queue and runs fetch → extract. A full queue rejects
new jobs instead of growing without limit. Extraction into the same
target directory is serialized with one lock per target; deploys to
different targets run concurrently. Failures end that deploy and are
logged; nothing is retried.
"""

import asyncio
import logging
import os
from dataclasses import dataclass

import httpx

from lanchanto.config import Config, Deploy
from lanchanto.errors import DeployError
from lanchanto.fetcher import extract_in_thread, fetch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeployJob:
    deploy: Deploy
    artifacts_url: str


class DeployQueue:
    """Bounded job queue consumed by `workers` tasks."""

    def __init__(self, config: Config, *,
                 workers: int | None = None,
                 maxsize: int | None = None,
                 http_timeout: float | None = None,
                 client: httpx.AsyncClient | None = None):
        self.config = config
        self.workers = workers or config.server.workers
        self.http_timeout = http_timeout or config.server.http_timeout
        self._queue: asyncio.Queue[DeployJob] = asyncio.Queue(
            maxsize or config.server.queue_size)
        self._client = client            # injected in tests; else per-fetch
        self._tasks: list[asyncio.Task] = []
        self._locks: dict[str, asyncio.Lock] = {}
        self._active = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._worker(), name=f"deploy-worker-{i}")
            for i in range(self.workers)
        ]
        logger.info("started %d deploy workers (queue size %d)",
                    self.workers, self._queue.maxsize)

    async def stop(self) -> None:
        """Cancel workers. Queued and in-flight deploys are abandoned."""
        if not self._tasks:
            return
        if self._active or self.pending:
            logger.warning("shutting down with %d deploys in flight and %d "
                           "queued; they are abandoned",
                           self._active, self.pending)
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    def submit(self, job: DeployJob) -> bool:
        """Enqueue without waiting. False when the queue is full."""
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            logger.warning("deploy queue full, dropping deploy of %s (url=%s)",
                           job.deploy.repository, job.artifacts_url)
            return False
        return True

    async def join(self) -> None:
        """Wait until every submitted job has been processed."""
        await self._queue.join()

    # -- internals --

    def _lock_for(self, target: str) -> asyncio.Lock:
        key = os.path.abspath(target)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def _extract(self, archive: bytes, target: str) -> None:
        async with self._lock_for(target):
            await extract_in_thread(archive, target)

    async def _worker(self) -> None:
        while True:
            job = await self._queue.get()
            self._active += 1
            try:
                await self.run(job)
            except Exception:
                logger.exception("unexpected error deploying %s (url=%s)",
                                 job.deploy.repository, job.artifacts_url)
            finally:
                self._active -= 1
                self._queue.task_done()

    async def run(self, job: DeployJob) -> list[str]:
        """Run one deploy. DeployErrors are logged, not raised."""
        repo = job.deploy.repository
        try:
            names = await fetch(
                self.config.credential.github_token,
                repo,
                job.artifacts_url,
                job.deploy.artifact,
                client=self._client,
                extract=self._extract,
                timeout=self.http_timeout,
            )
        except DeployError as e:
            url = getattr(e, "url", "") or job.artifacts_url
            logger.error("deploy of %s failed (url=%s): %s", repo, url, e)
            return []
        if names:
            logger.info("deployed %s: %s", repo, ", ".join(names))
        else:
            logger.info("deployed %s: no configured artifact in listing", repo)
        return names
