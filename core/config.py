"""
Application configuration using Pydantic Settings
"""

from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Build settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Endpoints
    # https://wiki.openstreetmap.org/wiki/Overpass_API
    OVERPASS_API_URL: str = "https://overpass-api.de/api/interpreter"
    # https://wiki.openstreetmap.org/wiki/API_v0.6#Read:_GET_/api/0.6/[node|way|relation]/#id
    RELATION_API_URL: str = "https://api.openstreetmap.org/api/0.6/relation/{relation_id}.json"
    ID_QUERY: str = (
        '[out:json];(relation["type"="boundary"]["boundary"="administrative"]["ISO3166-1"];);out ids;'
    )

    # Relations the query above does not return: ATA, PSE
    EXTRA_RELATION_IDS: List[int] = [2186646, 1703814]

    # Paths
    BUILD_DIR: Path = Path(".build")
    OUTPUT_DIR: Path = Path("src")
    RELATIONS_FILENAME: str = "osm-country-relation-ids.json"
    METADATA_FILENAME: str = "osm-country-metadata.json"

    # HTTP
    MAX_CONCURRENT_REQUESTS: int = 10
    REQUEST_DELAY: float = 0.25
    MAX_RETRIES: int = 3
    TRANSPORT_RETRIES: int = 3
    REQUEST_TIMEOUT: float = 30.0
    USER_AGENT: str = "osm-country-metadata/1.0"
    CA_BUNDLE: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    @property
    def relations_dir(self) -> Path:
        return self.BUILD_DIR / "relations"


def ensure_directory(path: Path) -> Path:
    """Create ``path`` (and parents) if missing and return it resolved."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path.resolve()


settings = Settings()
