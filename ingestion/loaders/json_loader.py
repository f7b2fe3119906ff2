"""
Write the relation index and country metadata as JSON artifacts
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from core.config import ensure_directory, settings
from core.exceptions import ArtifactWriteError
from schemas.country import CountryMetadata, RelationIndex

logger = logging.getLogger(__name__)


class JSONArtifactWriter:
    """
    Serialize build output to two fixed files.

    Ensures:
    - Keys sorted at every mapping level
    - Tab indentation
    - Literal unicode and slashes
    - One write call per file
    """

    def __init__(
        self,
        output_dir: Optional[Path] = None,
        relations_filename: Optional[str] = None,
        metadata_filename: Optional[str] = None
    ):
        self.output_dir = ensure_directory(output_dir or settings.OUTPUT_DIR)
        self.relations_path = self.output_dir / (relations_filename or settings.RELATIONS_FILENAME)
        self.metadata_path = self.output_dir / (metadata_filename or settings.METADATA_FILENAME)

    @staticmethod
    def dumps(data: Any) -> str:
        return json.dumps(data, indent="\t", sort_keys=True, ensure_ascii=False)

    def write_relations(self, relations: RelationIndex) -> Path:
        """Write the code -> relation id map"""
        return self._write(self.relations_path, dict(relations))

    def write_metadata(self, metadata: Mapping[str, CountryMetadata]) -> Path:
        """Write the code -> CountryMetadata map"""
        data: Dict[str, Any] = {code: item.to_dict() for code, item in metadata.items()}
        return self._write(self.metadata_path, data)

    def _write(self, path: Path, data: Any) -> Path:
        content = self.dumps(data)

        try:
            with path.open("w", encoding="utf-8") as fh:
                fh.write(content)
        except OSError as e:
            raise ArtifactWriteError(
                "Failed to write output file",
                context={"path": str(path)},
                original_exception=e
            )

        logger.info(f"Wrote {len(data)} entries to {path}")
        return path
