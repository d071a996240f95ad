"""
Sync Scheduler using APScheduler.

Runs the cron sync for each configured shop every N minutes.
"""

from typing import Iterable, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from shopee_sync.core.errors import ShopeeSyncError
from shopee_sync.core.logger import setup_logger
from shopee_sync.services.sync_service import SyncService

logger = setup_logger(__name__)

JOB_ID = "scheduled_stock_sync"


class SyncScheduler:
    """Manages the scheduled stock sync job."""

    def __init__(
        self,
        sync_service: SyncService,
        shop_ids: Iterable[int],
        interval_minutes: int = 30,
        max_products: Optional[int] = None,
    ):
        self.service = sync_service
        self.shop_ids: List[int] = list(shop_ids)
        self.interval_minutes = interval_minutes
        self.max_products = max_products
        self.scheduler = BackgroundScheduler()
        self._started = False

    def start(self) -> None:
        """Start scheduler with the interval sync job."""
        if self._started:
            logger.warning("Scheduler already started")
            return

        self.scheduler.add_job(
            self.run_once,
            IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            name="Scheduled Stock Sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        self._started = True
        logger.info(
            f"Sync scheduler started: shops={self.shop_ids}, every {self.interval_minutes} minute(s)"
        )

    def stop(self) -> None:
        """Gracefully stop scheduler."""
        if not self._started:
            return

        self.scheduler.shutdown(wait=True)
        self._started = False
        logger.info("Sync scheduler stopped")

    def run_once(self) -> dict:
        """Run the cron sync for every configured shop; one shop failing does not stop the rest."""
        results = {}
        for shop_id in self.shop_ids:
            try:
                results[shop_id] = self.service.cron(shop_id, self.max_products)
            except ShopeeSyncError as e:
                logger.error(f"Scheduled sync failed for shop {shop_id}: {e.message}")
                results[shop_id] = {"success": False, **e.to_dict()}
            except Exception as e:
                logger.error(f"Scheduled sync failed for shop {shop_id}: {e}", exc_info=True)
                results[shop_id] = {"success": False, "error": "internal_error", "message": str(e)}
        return results

    def get_next_run_time(self) -> Optional[str]:
        job = self.scheduler.get_job(JOB_ID)
        if job and job.next_run_time:
            return job.next_run_time.strftime("%Y-%m-%d %H:%M:%S")
        return None

    @property
    def is_running(self) -> bool:
        return self._started and self.scheduler.running
