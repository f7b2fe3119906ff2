"""
HTTP transport for the build.

Provides:
- ``create_client``: an ``httpx.AsyncClient`` configured from settings
  (timeout, User-Agent, CA bundle, connection-level retries)
- ``ResponseHandler``: callback interface for multi-request processing
- ``MultiRequestClient``: runs many requests with bounded concurrency and
  hands every completed response to a single handler, one at a time

The handler decides what happens to a response. Returning a request from
``handle_response`` puts it back on the queue; the client alone decides
when a request has been retried often enough.
"""

import asyncio
import logging
import ssl
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from core.config import settings

logger = logging.getLogger(__name__)


def create_client(
    timeout: Optional[float] = None,
    user_agent: Optional[str] = None,
    ca_bundle: Optional[str] = None,
    retries: Optional[int] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build the async client shared by the extractors.

    Args:
        timeout: Request timeout in seconds (default: settings.REQUEST_TIMEOUT)
        user_agent: User-Agent header (default: settings.USER_AGENT)
        ca_bundle: Path to a CA certificate bundle (default: settings.CA_BUNDLE)
        retries: Connection retries of the transport (default: settings.TRANSPORT_RETRIES)
        transport: Replaces the default transport entirely (used in tests)
    """
    if transport is None:
        cafile = ca_bundle or settings.CA_BUNDLE
        verify = ssl.create_default_context(cafile=cafile) if cafile else True

        transport = httpx.AsyncHTTPTransport(
            retries=settings.TRANSPORT_RETRIES if retries is None else retries,
            verify=verify,
        )

    return httpx.AsyncClient(
        transport=transport,
        timeout=timeout or settings.REQUEST_TIMEOUT,
        headers={"User-Agent": user_agent or settings.USER_AGENT},
    )


class ResponseHandler(ABC):
    """Receives every completed response of a ``MultiRequestClient`` run."""

    @abstractmethod
    def handle_response(
        self,
        response: httpx.Response,
        request: httpx.Request,
        request_id: int,
    ) -> Optional[httpx.Request]:
        """
        Process a completed response.

        Returns:
            A request to put back on the queue, or None when the request
            reached its final outcome
        """
        pass


class MultiRequestClient:
    """
    Queue-driven concurrent request runner.

    A pool of worker tasks pulls requests from a shared queue and pushes
    completions onto a response queue. A single dispatcher task consumes
    that queue and calls the handler, so handler code never runs
    concurrently with itself and may mutate its own state freely.

    Attributes:
        concurrency: Number of worker tasks (requests in flight)
        request_delay: Seconds a worker waits after each request
        max_retries: Resubmissions allowed per request before it is abandoned
    """

    def __init__(
        self,
        handler: ResponseHandler,
        client: httpx.AsyncClient,
        concurrency: Optional[int] = None,
        request_delay: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        self.handler = handler
        self.client = client
        self.concurrency = max(1, concurrency or settings.MAX_CONCURRENT_REQUESTS)
        self.request_delay = settings.REQUEST_DELAY if request_delay is None else request_delay
        self.max_retries = settings.MAX_RETRIES if max_retries is None else max_retries

        self._pending: List[httpx.Request] = []
        self._attempts: Dict[int, int] = {}
        self._next_id = 0
        self._queue: Optional[asyncio.Queue] = None
        self._responses: Optional[asyncio.Queue] = None

        self.stats: Dict[str, int] = {
            "requests": 0,
            "resubmitted": 0,
            "abandoned": 0,
            "request_errors": 0,
        }

    def add_request(self, request: httpx.Request) -> "MultiRequestClient":
        """Queue a request for the next ``process()`` call."""
        self._pending.append(request)
        return self

    def add_requests(self, requests: Iterable[httpx.Request]) -> "MultiRequestClient":
        for request in requests:
            self.add_request(request)
        return self

    async def process(self) -> Dict[str, int]:
        """
        Run all queued requests until every one reached a final outcome.

        Returns:
            Counters: requests, resubmitted, abandoned, request_errors

        Raises:
            Any exception raised by the handler, after the workers stopped
        """
        if not self._pending:
            return dict(self.stats)

        self._queue = asyncio.Queue()
        self._responses = asyncio.Queue()

        for request in self._pending:
            request_id = self._next_id
            self._next_id += 1
            self._attempts[request_id] = 0
            self._queue.put_nowait((request_id, request))

        self.stats["requests"] += len(self._pending)
        worker_count = min(self.concurrency, len(self._pending))
        self._pending = []

        logger.info(f"Processing {self._queue.qsize()} requests with {worker_count} workers")

        workers = [asyncio.create_task(self._worker()) for _ in range(worker_count)]
        dispatcher = asyncio.create_task(self._dispatch())
        drained = asyncio.create_task(self._queue.join())
        tasks = [drained, dispatcher, *workers]

        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        # workers and dispatcher only finish early by raising
        for task in done:
            if task is not drained:
                task.result()

        logger.info(
            f"Processing complete: {self.stats['requests']} requests, "
            f"{self.stats['resubmitted']} resubmitted, {self.stats['abandoned']} abandoned"
        )
        return dict(self.stats)

    async def _worker(self):
        while True:
            request_id, request = await self._queue.get()
            response: Optional[httpx.Response] = None
            error: Optional[Exception] = None

            try:
                response = await self.client.send(request)
            except httpx.RequestError as e:
                error = e

            await self._responses.put((request_id, request, response, error))

            if self.request_delay > 0:
                await asyncio.sleep(self.request_delay)

    async def _dispatch(self):
        while True:
            completion: Tuple[int, httpx.Request, Any, Any] = await self._responses.get()
            request_id, request, response, error = completion

            try:
                if error is not None:
                    self.stats["request_errors"] += 1
                    logger.warning(f"request error [{request.url}]: {type(error).__name__}: {error}")
                    retry = request
                else:
                    retry = self.handler.handle_response(response, request, request_id)

                if retry is not None:
                    self._resubmit(request_id, retry)
            finally:
                # the re-queued item is counted before the original is released
                self._responses.task_done()
                self._queue.task_done()

    def _resubmit(self, request_id: int, request: httpx.Request):
        attempts = self._attempts[request_id] + 1

        if attempts > self.max_retries:
            self.stats["abandoned"] += 1
            logger.warning(f"giving up after {self.max_retries} retries [{request.url}]")
            return

        self._attempts[request_id] = attempts
        self.stats["resubmitted"] += 1
        self._queue.put_nowait((request_id, request))
