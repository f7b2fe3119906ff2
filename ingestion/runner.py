# ============================================================================
# File: ingestion/runner.py
# Description: Build orchestrator for the OSM country data artifacts
# ============================================================================
"""
Build Runner - discovery, fetch, reshape, write.

Phases:
1. Discovery - relation ids from the Overpass API (fatal on failure)
2. Fetch - concurrent relation requests, raw responses cached on disk
3. Reshape - tag classification of every indexed relation
4. Write - relation index and metadata JSON files

Per-relation request failures are absorbed in phase 2. Any other error
stops the build before anything is written.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

import httpx

from core.config import settings
from core.exceptions import BuildException
from ingestion.extractors.overpass_extractor import OverpassExtractor
from ingestion.extractors.relation_extractor import RelationExtractor
from ingestion.loaders.json_loader import JSONArtifactWriter
from ingestion.store import RelationStore
from ingestion.transformers.tag_classifier import TagClassifier
from schemas.country import CountryMetadata, RelationIndex

logger = logging.getLogger(__name__)


class BuildRunner:
    """
    Build orchestrator

    Responsibilities:
    - Run the phases in order
    - Keep the metadata in step with the index (one record per code)
    - Report run statistics
    """

    def __init__(
        self,
        build_dir: Optional[Path] = None,
        output_dir: Optional[Path] = None,
        extra_ids: Optional[List[int]] = None,
        concurrency: Optional[int] = None,
        request_delay: Optional[float] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        relations_dir = Path(build_dir) / "relations" if build_dir else settings.relations_dir

        self.store = RelationStore(relations_dir)
        self.writer = JSONArtifactWriter(output_dir)
        self.classifier = TagClassifier()
        self.extra_ids = extra_ids
        self.concurrency = concurrency
        self.request_delay = request_delay
        self.max_retries = max_retries
        self.transport = transport

    async def discover(self) -> List[int]:
        extractor = OverpassExtractor(extra_ids=self.extra_ids, transport=self.transport)
        result = await extractor.run()
        return result["data"]

    async def fetch(self, relation_ids: List[int]) -> RelationIndex:
        extractor = RelationExtractor(
            relation_ids,
            self.store,
            concurrency=self.concurrency,
            request_delay=self.request_delay,
            max_retries=self.max_retries,
            transport=self.transport,
        )
        result = await extractor.run()
        return result["data"]

    def reshape(self, relations: RelationIndex) -> Dict[str, CountryMetadata]:
        """Classify the cached document of every indexed relation"""
        metadata: Dict[str, CountryMetadata] = {}

        for code, relation_id in relations.items():
            document = self.store.get(relation_id)
            metadata[code] = self.classifier.classify(code, document, relation_id=relation_id)

        return dict(sorted(metadata.items()))

    async def run(self) -> Dict[str, Any]:
        """
        Run the full build.

        Returns:
            Dictionary with run statistics:
            - status: "success"
            - relations_discovered: Ids requested (discovered + extra)
            - relations_indexed: Entries in the relation index
            - countries_processed: Metadata records written
            - relations_file / metadata_file: Output paths

        Raises:
            BuildException: Any fatal build error
        """
        started_at = datetime.now(timezone.utc)

        try:
            # --------------------------------------------------
            # PHASE 1: DISCOVERY
            # --------------------------------------------------
            relation_ids = await self.discover()

            # --------------------------------------------------
            # PHASE 2: FETCH
            # --------------------------------------------------
            relations = await self.fetch(relation_ids)

            # --------------------------------------------------
            # PHASE 3: RESHAPE
            # --------------------------------------------------
            logger.info(f"Starting reshape for {len(relations)} relations")
            metadata = self.reshape(relations)

            # --------------------------------------------------
            # PHASE 4: WRITE
            # --------------------------------------------------
            relations_file = self.writer.write_relations(relations)
            metadata_file = self.writer.write_metadata(metadata)

        except BuildException as e:
            logger.error(
                f"Build failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            raise

        result = {
            "status": "success",
            "relations_discovered": len(relation_ids),
            "relations_indexed": len(relations),
            "countries_processed": len(metadata),
            "relations_file": str(relations_file),
            "metadata_file": str(metadata_file),
            "duration_seconds": (datetime.now(timezone.utc) - started_at).total_seconds(),
        }

        logger.info(
            f"Build completed - Requested: {result['relations_discovered']}, "
            f"Indexed: {result['relations_indexed']}, Processed: {result['countries_processed']}"
        )

        return result
