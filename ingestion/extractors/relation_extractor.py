"""
Concurrent relation fetcher for the OSM API.

One GET per relation id, run through the MultiRequestClient. Each
completed response is classified by RelationResponseHandler:

1. non-200 status          -> returned to the queue
2. 200 with empty body     -> dropped
3. no relation id / code   -> dropped
4. success                 -> indexed and stored verbatim
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from core.config import settings
from core.exceptions import (
    EmptyResponseError,
    InvalidResponseError,
    NonRetryableError,
    ResponseStatusError,
    RetryableError,
)
from core.http import MultiRequestClient, ResponseHandler
from ingestion.base import DataSource
from ingestion.store import RelationStore
from schemas.country import RelationIndex

logger = logging.getLogger(__name__)

ALPHA3_TAG = "ISO3166-1:alpha3"


class RelationResponseHandler(ResponseHandler):
    """
    Classify relation responses and build the code -> relation id index.

    Called by a single dispatcher task, so the index is never mutated
    concurrently.
    """

    def __init__(self, store: RelationStore):
        self.store = store
        self._relations: Dict[str, int] = {}
        self.stats = {"indexed": 0, "retried": 0, "empty": 0, "invalid": 0}

    def get_relations(self) -> RelationIndex:
        """Return the index sorted by country code"""
        return dict(sorted(self._relations.items()))

    def handle_response(
        self,
        response: httpx.Response,
        request: httpx.Request,
        request_id: int,
    ) -> Optional[httpx.Request]:
        try:
            self._process(response, request)

        except RetryableError as e:
            self.stats["retried"] += 1
            logger.warning(f"response error [{request.url}] (returned to queue): {e.message}")
            return request

        except EmptyResponseError:
            self.stats["empty"] += 1
            logger.warning(f"empty response [{request.url}]")

        except NonRetryableError as e:
            self.stats["invalid"] += 1
            logger.warning(f"invalid response [{request.url}]: {e.message}")

        return None

    def _process(self, response: httpx.Response, request: httpx.Request):
        url = str(request.url)

        if response.status_code != 200:
            raise ResponseStatusError(
                f"HTTP {response.status_code}",
                context={"api_url": url, "status_code": response.status_code}
            )

        content = response.content

        if not content:
            raise EmptyResponseError("empty response body", context={"api_url": url})

        try:
            payload = json.loads(content)
        except ValueError as e:
            raise InvalidResponseError(
                "response is not valid JSON",
                context={"api_url": url, "response_body": response.text[:500]},
                original_exception=e
            )

        element = self._first_element(payload)
        relation_id = element.get("id")

        if not isinstance(relation_id, int) or relation_id <= 0:
            raise InvalidResponseError("missing relation id", context={"api_url": url})

        tags = element.get("tags") or {}

        if not isinstance(tags, dict):
            raise InvalidResponseError(
                "tags is not an object",
                context={"api_url": url, "relation_id": relation_id}
            )

        code = tags.get(ALPHA3_TAG)

        if not isinstance(code, str) or not code:
            raise InvalidResponseError(
                f"missing {ALPHA3_TAG} tag",
                context={"api_url": url, "relation_id": relation_id}
            )

        logger.info(f"received data for ID {relation_id}")

        self.store.put(relation_id, content)
        self._relations[code.upper()] = relation_id
        self.stats["indexed"] += 1

    @staticmethod
    def _first_element(payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            return {}

        elements = payload.get("elements")

        if not isinstance(elements, list) or not elements or not isinstance(elements[0], dict):
            return {}

        return elements[0]


class RelationExtractor(DataSource):
    """
    Fetch all relations concurrently and index them by alpha-3 code.

    Attributes:
        relation_ids: Ids to fetch
        api_url: URL template with a ``{relation_id}`` placeholder
        store: Relation store receiving the raw responses
    """

    def __init__(
        self,
        relation_ids: Iterable[int],
        store: RelationStore,
        api_url: Optional[str] = None,
        concurrency: Optional[int] = None,
        request_delay: Optional[float] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(source_name="osm_relations", transport=transport)
        self.relation_ids: List[int] = list(relation_ids)
        self.store = store
        self.api_url = api_url or settings.RELATION_API_URL
        self.concurrency = concurrency
        self.request_delay = request_delay
        self.max_retries = max_retries
        self.handler = RelationResponseHandler(store)
        self.client_stats: Dict[str, int] = {}

    def relation_url(self, relation_id: int) -> str:
        return self.api_url.format(relation_id=relation_id)

    async def fetch_data(self) -> RelationIndex:
        """
        Fetch every relation and build the index.

        Returns:
            Country code -> relation id, sorted by code
        """
        async with self.client() as client:
            multi = MultiRequestClient(
                self.handler,
                client,
                concurrency=self.concurrency,
                request_delay=self.request_delay,
                max_retries=self.max_retries,
            )

            for relation_id in self.relation_ids:
                multi.add_request(client.build_request("GET", self.relation_url(relation_id)))

            self.client_stats = await multi.process()

        relations = self.handler.get_relations()

        logger.info(
            f"Indexed {len(relations)} of {len(self.relation_ids)} relations "
            f"(empty: {self.handler.stats['empty']}, invalid: {self.handler.stats['invalid']}, "
            f"abandoned: {self.client_stats.get('abandoned', 0)})"
        )

        return relations
