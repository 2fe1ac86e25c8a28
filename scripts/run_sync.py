"""
Script to run one feed sync over the active catalog
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_engine, create_session_factory
from core.exceptions import CatalogError
from core.logging import setup_logging
from ingestion.runner import FeedSyncRunner, PipelineContext

logger = logging.getLogger(__name__)


async def run_sync() -> int:
    """Run one sync; returns the process exit code"""
    engine = create_engine(settings.DATABASE_URL)
    session_factory = create_session_factory(engine)
    
    try:
        context = PipelineContext.from_settings(session_factory, settings)
        summary = await FeedSyncRunner(context).run()
        
        for skipped in summary.feeds_skipped:
            logger.warning(f"Skipped feed {skipped.feed_id} ({skipped.url}): {skipped.error_type}: {skipped.reason}")
        for failure in summary.deactivation_failures:
            logger.warning(f"Deactivation failed for feed {failure.feed_id}: {failure.reason}")
        
        logger.info(
            f"Feeds attempted={summary.feeds_attempted}, "
            f"synced={summary.feeds_synced}, "
            f"skipped={len(summary.feeds_skipped)}, "
            f"items reconciled={summary.items_reconciled}, "
            f"items failed={summary.items_failed}"
        )
        return 0
    
    except CatalogError as e:
        logger.error(f"Feed sync aborted: {e}")
        return 1
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(run_sync()))
