"""
Pydantic schemas for the relation index and per-country metadata
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ISO3166-1 alpha-3 code -> OSM relation id
RelationIndex = Dict[str, int]


class CountryMetadata(BaseModel):
    """
    Normalized metadata for one country relation.

    Root fields come straight from the relation tags (None when absent).
    The mapping fields hold whatever the tag classifier routed to them and
    are always present, empty when nothing matched.
    """

    model_config = ConfigDict(populate_by_name=True)

    relation_id: int = Field(..., gt=0)

    # Root fields
    name: Optional[str] = None
    official_name: Optional[str] = None
    default_language: Optional[str] = None
    flag: Optional[str] = None
    iso3166_2: Optional[str] = Field(None, alias="ISO3166-2")
    timezone: Optional[str] = None
    currency: Optional[str] = None
    wikidata: Optional[str] = None
    wikipedia: Optional[str] = None
    capital: Optional[str] = None
    website: Optional[str] = None

    # Classified tags
    iso3166_1: Dict[str, str] = Field(default_factory=dict, alias="ISO3166-1")
    lang: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator("iso3166_1", "tags", mode="before")
    @classmethod
    def sort_mapping(cls, v):
        """Order tag mappings by key"""
        if v is None:
            return {}
        return dict(sorted(v.items()))

    @field_validator("lang", mode="before")
    @classmethod
    def sort_translations(cls, v):
        """Order translation groups and their language keys"""
        if v is None:
            return {}
        return {field: dict(sorted(values.items())) for field, values in sorted(v.items())}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the OSM tag names as keys, sorted at every level."""
        return _sorted(self.model_dump(by_alias=True))


def _sorted(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _sorted(value[k]) for k in sorted(value)}
    return value
