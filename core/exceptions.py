"""
Custom exceptions for the feed sync pipeline with structured error context.

Every exception carries a context dictionary so that a failure can be
logged, aggregated into the run summary and traced back to the feed or
item that caused it.

Exception Hierarchy:
    FeedSyncException (base)
    ├── CatalogError            fatal to the run
    ├── FeedError               fatal to one feed
    │   ├── FetchError
    │   │   └── FetchTimeoutError
    │   └── FormatError
    ├── DeactivationError       reported per feed, processing continues
    └── ReconciliationError     fatal to one item
"""

from typing import Optional, Dict, Any
from datetime import datetime


class FeedSyncException(Exception):
    """
    Base exception for all feed sync errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (feed_id, url, etc.)
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
        self.timestamp = datetime.utcnow()

        # Add timestamp to context
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
# Catalog Errors
# ============================================================================

class CatalogError(FeedSyncException):
    """
    Raised when the feed catalog cannot be loaded from the store.

    Fatal: the run is aborted before any feed is fetched.
    """
    pass


# ============================================================================
# Per-feed Errors
# ============================================================================

class FeedError(FeedSyncException):
    """Base exception for failures that skip a single feed."""
    pass


class FetchError(FeedError):
    """
    Raised when a feed document cannot be retrieved.

    Context should include:
        - feed_id: Identifier of the feed
        - feed_url: URL that was requested
        - status_code: HTTP status code (if a response was received)
    """
    pass


class FetchTimeoutError(FetchError):
    """Raised when a feed request exceeds the configured deadline."""
    pass


class FormatError(FeedError):
    """
    Raised when a fetched document is not a decodable RSS 2.0 document.

    Context should include:
        - feed_id / feed_url (when known)
        - version: The declared version attribute (if present)
    """
    pass


# ============================================================================
# Store Write Errors
# ============================================================================

class DeactivationError(FeedSyncException):
    """
    Raised when retiring a feed's stored items fails.

    Recoverable: the feed's items are still reconciled.

    Context should include:
        - feed_id: Identifier of the feed
    """
    pass


class ReconciliationError(FeedSyncException):
    """
    Raised when a single item cannot be matched or written.

    Context should include:
        - feed_id: Owning feed
        - external_id: External identifier of the item
        - title: Item title (identifies items without external id)
    """
    pass
