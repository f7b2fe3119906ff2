"""
Relation ID discovery via the Overpass API.

Sends a single Overpass QL query and returns the ids of all country
boundary relations, followed by the manually maintained extra ids.
Any failure here is fatal: without the seed ids there is nothing to build.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from core.config import settings
from core.exceptions import DiscoveryError
from ingestion.base import DataSource

logger = logging.getLogger(__name__)


class OverpassExtractor(DataSource):
    """
    Discover country relation ids.

    Attributes:
        api_url: Overpass interpreter endpoint
        query: Overpass QL query body
        extra_ids: Ids appended after discovery
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        query: Optional[str] = None,
        extra_ids: Optional[List[int]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(source_name="overpass", transport=transport)
        self.api_url = api_url or settings.OVERPASS_API_URL
        self.query = query or settings.ID_QUERY
        self.extra_ids = list(settings.EXTRA_RELATION_IDS if extra_ids is None else extra_ids)

    async def fetch_data(self) -> List[int]:
        """
        Fetch relation ids from the Overpass API.

        Returns:
            Discovered ids followed by the extra ids

        Raises:
            DiscoveryError: Non-200 status, transport failure or malformed body
        """
        logger.info(f"Fetching relation IDs from {self.api_url}")

        try:
            async with self.client() as client:
                response = await client.post(self.api_url, content=self.query.encode("utf-8"))
        except httpx.HTTPError as e:
            raise DiscoveryError(
                "error while fetching from the Overpass API",
                context={"api_url": self.api_url},
                original_exception=e
            )

        if response.status_code != 200:
            raise DiscoveryError(
                "error while fetching from the Overpass API",
                context={
                    "api_url": self.api_url,
                    "status_code": response.status_code,
                    "response_body": response.text[:500]
                }
            )

        ids = self.parse_ids(self._decode(response))
        logger.info(f"Discovered {len(ids)} relation IDs, adding {len(self.extra_ids)} extra IDs")

        return ids + self.extra_ids

    def _decode(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise DiscoveryError(
                "Failed to parse Overpass response",
                context={"api_url": self.api_url, "response_body": response.text[:500]},
                original_exception=e
            )

    def parse_ids(self, payload: Dict[str, Any]) -> List[int]:
        """Collect the ``id`` of every element, in response order"""
        elements = payload.get("elements") if isinstance(payload, dict) else None

        if not isinstance(elements, list):
            raise DiscoveryError(
                "Overpass response has no elements array",
                context={"api_url": self.api_url}
            )

        return [element["id"] for element in elements if "id" in element]
