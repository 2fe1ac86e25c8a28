"""
Script to run feed syncs periodically
"""

import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.logging import setup_logging
from ingestion.scheduler import FeedSyncScheduler

logger = logging.getLogger(__name__)


async def main():
    scheduler = FeedSyncScheduler()
    scheduler.start()
    
    # Run once immediately, then on the interval
    await scheduler.run_sync_job()
    
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted")
