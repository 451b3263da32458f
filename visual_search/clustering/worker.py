"""One-shot worker for the cut + keyword stage.

The caller sends a ClusterJobRequest over a channel, awaits the
ClusterJobResponse and closes the channel. Payloads cross the boundary as
plain dicts so nothing is shared with the caller.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from typing import Any, Callable, Dict, Optional, Protocol

from ..config import DEFAULT_KEYWORDS
from ..models.cluster import ClusterJobRequest, ClusterJobResponse
from .labeler import extract_keywords_tfidf
from .tree import ClusterTree

logger = logging.getLogger(__name__)

Job = Callable[[Dict[str, Any]], Dict[str, Any]]


def run_cluster_job(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Cut the tree into k clusters and extract keywords for each."""
    request = ClusterJobRequest.model_validate(payload)
    tree = ClusterTree.from_list(request.tree, n_leaves=len(request.projection))
    assignment = tree.cut(request.k)
    keywords = extract_keywords_tfidf(request.tokens, assignment, n_keywords=DEFAULT_KEYWORDS)
    return ClusterJobResponse(assignment=assignment, keywords=keywords).model_dump()


class WorkerChannel(Protocol):
    async def send(self, request: ClusterJobRequest) -> ClusterJobResponse:
        ...

    async def close(self) -> None:
        ...


class _OneShotChannel(ABC):
    def __init__(self, job: Job = run_cluster_job):
        self._job = job
        self._used = False
        self._closed = False

    @abstractmethod
    async def _run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Run the job on one payload and return its result dict."""

    async def send(self, request: ClusterJobRequest) -> ClusterJobResponse:
        if self._closed or self._used:
            raise RuntimeError("Worker channel accepts a single request")
        self._used = True
        result = await self._run(request.model_dump())
        return ClusterJobResponse.model_validate(result)

    async def close(self) -> None:
        self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class ProcessWorkerChannel(_OneShotChannel):
    """Runs the job in a fresh single-process pool that is torn down on close."""

    def __init__(self, job: Job = run_cluster_job):
        super().__init__(job)
        self._executor: Optional[ProcessPoolExecutor] = None

    async def _run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._executor = ProcessPoolExecutor(max_workers=1)
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(self._executor, self._job, payload)

    async def close(self) -> None:
        await super().close()
        if self._executor is not None:
            executor, self._executor = self._executor, None
            # Waiting for the pool to exit blocks, so keep it off the event loop
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, partial(executor.shutdown, wait=True))


class InlineWorkerChannel(_OneShotChannel):
    """Runs the job on a thread of the default executor; for tests and tiny inputs."""

    async def _run(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self._job, payload)


async def run_in_worker(
    request: ClusterJobRequest,
    channel_factory: Callable[[], WorkerChannel] = ProcessWorkerChannel,
) -> ClusterJobResponse:
    """Send one request over a fresh channel and dispose of it afterwards."""
    channel = channel_factory()
    try:
        logger.debug("Sending cluster job: k=%d, %d documents", request.k, len(request.projection))
        return await channel.send(request)
    finally:
        await channel.close()
