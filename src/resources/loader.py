"""Resource Loader

Fetches remote images referenced by a render tree in background asyncio
tasks. Each task is tagged with the render generation that requested it so
fetches for superseded passes can be cancelled.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Iterable

import httpx

from core import get_logger
from schema import ResourceState

logger = get_logger(__name__)

MAX_RESOURCE_SIZE = 5 * 1024 * 1024  # 5MB


@dataclass(frozen=True)
class ResourceResult:
    """Outcome of one fetch."""

    url: str
    state: ResourceState
    content_type: str | None = None
    size: int = 0
    error: str | None = None


ResultCallback = Callable[[int, ResourceResult], None]


class ResourceLoader:
    """
    Async fetcher for remote resources.

    Results are remembered per URL, so a URL is fetched at most once
    successfully; failed URLs are retried when requested again.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        max_size: int = MAX_RESOURCE_SIZE,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self.max_size = max_size
        self._tasks: dict[asyncio.Task, int] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self._results: dict[str, ResourceResult] = {}

    def states(self) -> dict[str, ResourceState]:
        """Known state per URL (to feed back into the interpreter)."""
        return {url: result.state for url, result in self._results.items()}

    def result(self, url: str) -> ResourceResult | None:
        return self._results.get(url)

    @property
    def pending(self) -> int:
        """Number of fetches in flight."""
        return len(self._tasks)

    async def fetch(self, url: str) -> ResourceResult:
        """Fetch one resource and record the outcome."""
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("resource_fetch_failed", url=url, error=str(e))
            result = ResourceResult(url=url, state=ResourceState.FAILED, error=str(e))
        else:
            size = len(response.content)
            if size > self.max_size:
                logger.warning("resource_too_large", url=url, size=size, max_size=self.max_size)
                result = ResourceResult(url=url, state=ResourceState.FAILED, size=size, error="too large")
            else:
                result = ResourceResult(
                    url=url,
                    state=ResourceState.LOADED,
                    content_type=response.headers.get("content-type"),
                    size=size,
                )
                logger.debug("resource_loaded", url=url, size=size)

        self._results[url] = result
        return result

    def request(
        self,
        urls: Iterable[str],
        generation: int,
        on_complete: ResultCallback | None = None,
    ) -> list[asyncio.Task]:
        """
        Start background fetches for URLs not yet loaded.

        Must be called from a running event loop.

        Args:
            urls: Resource URLs
            generation: Render generation requesting them
            on_complete: Called with (generation, result) when a fetch finishes

        Returns:
            The started tasks
        """
        started = []
        for url in dict.fromkeys(urls):
            known = self._results.get(url)
            if (known is not None and known.state is ResourceState.LOADED) or url in self._inflight:
                continue

            task = asyncio.create_task(self.fetch(url), name=f"resource:{url}")
            self._tasks[task] = generation
            self._inflight[url] = task
            task.add_done_callback(lambda t, u=url: self._finished(t, u, generation, on_complete))
            started.append(task)

        if started:
            logger.debug("resources_requested", generation=generation, count=len(started))
        return started

    def _finished(
        self,
        task: asyncio.Task,
        url: str,
        generation: int,
        on_complete: ResultCallback | None,
    ) -> None:
        self._tasks.pop(task, None)
        if self._inflight.get(url) is task:
            del self._inflight[url]

        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("resource_task_failed", url=url, error=str(error))
            return
        if on_complete is not None:
            on_complete(generation, task.result())

    def cancel_before(self, generation: int) -> int:
        """Cancel fetches requested by generations older than the given one."""
        cancelled = 0
        for url, task in list(self._inflight.items()):
            if self._tasks.get(task, generation) < generation and not task.done():
                task.cancel()
                # Free the URL so the newer pass can request it again
                del self._inflight[url]
                cancelled += 1
        if cancelled:
            logger.debug("resources_cancelled", before=generation, count=cancelled)
        return cancelled

    async def aclose(self) -> None:
        """Cancel outstanding fetches and close the HTTP client."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self._client.aclose()
