"""
Core utilities and configuration for the OSM country data build.

This package provides foundational components used throughout the build:

Modules:
    config: Build configuration and environment variable management
    exceptions: Custom exception hierarchy for error handling
    http: httpx client factory and the multi-request client
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.exceptions import DiscoveryError, InvalidResponseError
    from core.http import MultiRequestClient, create_client
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "setup_logging",
    "create_client",
    "MultiRequestClient",
    "ResponseHandler",
    # Exceptions
    "BuildException",
    "ExtractionError",
    "APIExtractionError",
    "DiscoveryError",
    "ResponseStatusError",
    "EmptyResponseError",
    "InvalidResponseError",
    "TransformationError",
    "TagClassificationError",
    "StoreError",
    "RelationNotFoundError",
    "LoadError",
    "ArtifactWriteError",
    "RetryableError",
    "NonRetryableError",
]
