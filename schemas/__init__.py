"""
Pydantic schemas for data validation and serialization.

Schemas:
    country: Relation index type and the normalized per-country metadata

Usage:
    from schemas import CountryMetadata, RelationIndex

Example:
    metadata = CountryMetadata(relation_id=51477, name="France")
    metadata.to_dict()["ISO3166-1"]  # {}
"""

from schemas.country import CountryMetadata, RelationIndex

__all__ = [
    "CountryMetadata",
    "RelationIndex",
]
