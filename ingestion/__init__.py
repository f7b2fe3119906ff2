"""
Build pipeline components for the OSM country data artifacts.

Modules:
    base: Abstract base class for data sources with run tracking
    store: On-disk cache of raw relation documents
    runner: Build orchestrator (discovery, fetch, reshape, write)

Subpackages:
    extractors: Overpass id discovery and the concurrent relation fetcher
    transformers: Tag classification into country metadata
    loaders: JSON artifact writer

Architecture:
    1. Discover - one Overpass query for all country relation ids
    2. Fetch - concurrent OSM API requests, failed requests re-queued
    3. Reshape - tags split into root fields, translations and leftovers
    4. Write - sorted, tab-indented JSON files

Usage:
    from ingestion.runner import BuildRunner

Example:
    runner = BuildRunner()
    result = await runner.run()

    print(f"Processed {result['countries_processed']} countries")

Error Handling:
    All components raise exceptions from core.exceptions. Only the
    fetch phase absorbs errors, per relation.
"""

__all__ = [
    "DataSource",
    "BuildRunner",
    "RelationStore",
    "OverpassExtractor",
    "RelationExtractor",
    "RelationResponseHandler",
    "TagClassifier",
    "JSONArtifactWriter",
]
