"""
Custom exceptions for the country data build with structured error context.

Every exception carries a context dictionary so failures can be logged
with the endpoint, relation id or file path involved.

Exception Hierarchy:
    BuildException (base)
    ├── ExtractionError
    │   └── APIExtractionError
    │       ├── DiscoveryError
    │       ├── ResponseStatusError   (retryable)
    │       ├── EmptyResponseError    (non-retryable)
    │       └── InvalidResponseError  (non-retryable)
    ├── TransformationError
    │   └── TagClassificationError
    ├── StoreError
    │   └── RelationNotFoundError
    ├── LoadError
    │   └── ArtifactWriteError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class BuildException(Exception):
    """
    Base exception for all build errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (url, relation id, path, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(BuildException):
    """
    Mixin for response errors that send the request back to the queue.

    The number of resubmissions is bounded by the multi-request client,
    not by the code raising the error.
    """
    pass


class NonRetryableError(BuildException):
    """
    Mixin for response errors that drop the request permanently.

    Use this for anomalies where asking again will not help:
    - Empty response body
    - Missing relation id or country code
    - Undecodable JSON
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(BuildException):
    """Base exception for data extraction failures."""
    pass


class APIExtractionError(ExtractionError):
    """
    Exception raised when an API request fails.

    Context should include:
        - api_url: The endpoint that failed
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated if large)
    """
    pass


class DiscoveryError(APIExtractionError):
    """Raised when the Overpass relation ID query fails. Aborts the build."""
    pass


class ResponseStatusError(RetryableError, APIExtractionError):
    """Relation request answered with a non-200 status."""
    pass


class EmptyResponseError(NonRetryableError, APIExtractionError):
    """Relation request answered 200 with an empty body."""
    pass


class InvalidResponseError(NonRetryableError, APIExtractionError):
    """
    Relation response that cannot be indexed.

    Context should include:
        - api_url: The relation URL
        - reason: What was missing or malformed
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(BuildException):
    """Base exception for data transformation failures."""
    pass


class TagClassificationError(TransformationError):
    """
    Raised when a cached relation document cannot be reshaped.

    Context should include:
        - code: ISO3166-1 alpha-3 code
        - relation_id: OSM relation id
    """
    pass


# ============================================================================
# Store Errors
# ============================================================================

class StoreError(BuildException):
    """
    Raised when the relation store cannot read or write a document.

    Context should include:
        - relation_id: OSM relation id
        - path: File path involved
    """
    pass


class RelationNotFoundError(StoreError):
    """No cached document exists for the requested relation id."""
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(BuildException):
    """Base exception for output failures."""
    pass


class ArtifactWriteError(LoadError):
    """
    Raised when an output JSON file cannot be written.

    Context should include:
        - path: Target file path
    """
    pass
