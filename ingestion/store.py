"""
On-disk cache of raw relation documents, one JSON file per relation id
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from core.config import ensure_directory, settings
from core.exceptions import RelationNotFoundError, StoreError

logger = logging.getLogger(__name__)


class RelationStore:
    """
    Write-once key/blob store for relation API responses.

    Documents are stored byte-for-byte as received under
    ``<directory>/<relation_id>.json``.
    """

    def __init__(self, directory: Optional[Path] = None):
        self.directory = ensure_directory(directory or settings.relations_dir)

    def path_for(self, relation_id: int) -> Path:
        return self.directory / f"{relation_id}.json"

    def exists(self, relation_id: int) -> bool:
        return self.path_for(relation_id).is_file()

    def put(self, relation_id: int, content: bytes) -> Path:
        """Write the raw response body for ``relation_id``."""
        path = self.path_for(relation_id)

        try:
            path.write_bytes(content)
        except OSError as e:
            raise StoreError(
                "Failed to write relation document",
                context={"relation_id": relation_id, "path": str(path)},
                original_exception=e
            )

        logger.debug(f"Stored relation {relation_id} ({len(content)} bytes)")
        return path

    def get(self, relation_id: int) -> Dict[str, Any]:
        """Read and decode the document stored for ``relation_id``."""
        path = self.path_for(relation_id)

        if not path.is_file():
            raise RelationNotFoundError(
                f"No cached document for relation {relation_id}",
                context={"relation_id": relation_id, "path": str(path)}
            )

        try:
            with path.open("rb") as fh:
                return json.load(fh)
        except (OSError, ValueError) as e:
            raise StoreError(
                "Failed to read relation document",
                context={"relation_id": relation_id, "path": str(path)},
                original_exception=e
            )
