"""
Core utilities and configuration for the feed sync pipeline.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session factory construction
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import create_engine, create_session_factory
    from core.exceptions import FetchError, ReconciliationError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Build the session factory shared by all sync tasks
    engine = create_engine()
    session_factory = create_session_factory(engine)
"""

__all__ = [
    "settings",
    "create_engine",
    "create_session_factory",
    "setup_logging",
    # Exceptions
    "FeedSyncException",
    "CatalogError",
    "FeedError",
    "FetchError",
    "FetchTimeoutError",
    "FormatError",
    "DeactivationError",
    "ReconciliationError",
]
