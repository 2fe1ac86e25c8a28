import logging
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from core.config import Settings, settings as default_settings
from core.database import create_engine, create_session_factory
from core.exceptions import CatalogError
from ingestion.runner import FeedSyncRunner, PipelineContext

logger = logging.getLogger(__name__)


class FeedSyncScheduler:
    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.scheduler = AsyncIOScheduler()
        self.engine = create_engine(self.config.DATABASE_URL)
        self.SessionLocal = create_session_factory(self.engine)

    async def run_sync_job(self):
        """Job to run one feed sync"""
        logger.info("Scheduler: Starting feed sync")
        try:
            context = PipelineContext.from_settings(self.SessionLocal, self.config)
            summary = await FeedSyncRunner(context).run()
            logger.info(
                f"Scheduler: Feed sync finished - "
                f"{summary.feeds_synced}/{summary.feeds_attempted} feeds synced"
            )
            return summary
        except CatalogError as e:
            logger.error(
                f"Scheduler: Feed sync aborted - {e.message}",
                extra={"error_context": e.to_dict()}
            )
        except Exception as e:
            logger.exception(f"Scheduler: Feed sync failed - {e}")

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_sync_job,
            trigger=IntervalTrigger(minutes=self.config.SYNC_INTERVAL_MINUTES),
            id="feed_sync_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"Feed sync scheduler started (every {self.config.SYNC_INTERVAL_MINUTES} minutes)")

    async def stop(self):
        self.scheduler.shutdown()
        await self.engine.dispose()
        logger.info("Feed sync scheduler stopped")
