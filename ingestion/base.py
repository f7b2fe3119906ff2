"""
Abstract base class for data sources with run tracking
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging

import httpx

from core.exceptions import BuildException, ExtractionError
from core.http import create_client

logger = logging.getLogger(__name__)


class DataSource(ABC):
    """
    Abstract base class for all data sources.

    Responsibilities:
    - HTTP client construction
    - Run timing and logging
    - Wrapping unexpected failures in ExtractionError
    """

    def __init__(
        self,
        source_name: str,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.source_name = source_name
        self.transport = transport

    @abstractmethod
    async def fetch_data(self) -> Any:
        """
        Fetch data from the source.

        Returns:
            Source specific payload
        """
        pass

    @staticmethod
    def count_records(data: Any) -> int:
        """Number of records in a fetch result"""
        try:
            return len(data)
        except TypeError:
            return 0

    def client(self) -> httpx.AsyncClient:
        """Create an HTTP client, honouring an injected transport"""
        return create_client(transport=self.transport)

    async def run(self) -> Dict[str, Any]:
        """
        Execute the fetch with timing and error wrapping.

        Returns:
            Dictionary with run statistics and the fetched data
        """
        started_at = datetime.now(timezone.utc)
        logger.info(f"Starting extraction for {self.source_name}")

        try:
            data = await self.fetch_data()

        except BuildException as e:
            logger.error(f"Extraction failed for {self.source_name}: {e.message}")
            raise

        except Exception as e:
            logger.error(f"Extraction failed for {self.source_name}: {str(e)}")
            raise ExtractionError(
                "Unexpected error during extraction",
                context={"source_name": self.source_name},
                original_exception=e
            )

        duration = (datetime.now(timezone.utc) - started_at).total_seconds()
        records_extracted = self.count_records(data)

        logger.info(
            f"Extraction completed for {self.source_name}. "
            f"Records: {records_extracted}, Duration: {duration:.2f}s"
        )

        return {
            "status": "success",
            "source_name": self.source_name,
            "records_extracted": records_extracted,
            "duration_seconds": duration,
            "data": data,
        }
