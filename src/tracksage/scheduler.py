"""Background scheduler for nightly generation and streak upkeep."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger

from .services import recurrence, streaks

if TYPE_CHECKING:
    from .context import AppContext

logger = logging.getLogger("tracksage.scheduler")


class BackgroundScheduler:
    """Runs the nightly occurrence generation pass."""

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.scheduler = None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = APScheduler(timezone=self.ctx.config.timezone())

        # Nightly just after midnight in the configured zone
        self.scheduler.add_job(
            func=self.run_nightly,
            trigger=CronTrigger(hour=0, minute=5),
            id="nightly_generation",
            name="Nightly Occurrence Generation",
            replace_existing=True,
        )
        logger.info("Scheduled nightly generation at 00:05")

        self.scheduler.start()
        logger.info("Background scheduler started")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def run_nightly(self) -> dict[int, int]:
        """Generate over the configured horizon and refresh streaks for every user.

        Returns inserted occurrence counts keyed by user id.
        """
        config = self.ctx.config
        tz = config.timezone()
        now = datetime.now(tz)
        user_ids = sorted({task.user_id for task in self.ctx.task_repo.list_all()})

        inserted: dict[int, int] = {}
        for user_id in user_ids:
            try:
                counts = recurrence.generate_for_user(
                    user_id,
                    horizon_days=config.GENERATION_HORIZON_DAYS,
                    tasks=self.ctx.task_repo,
                    occurrences=self.ctx.occurrence_repo,
                    today=now.date(),
                )
                streaks.recompute_for_user(
                    user_id,
                    tz=tz,
                    threshold=self.ctx.threshold,
                    tasks=self.ctx.task_repo,
                    occurrences=self.ctx.occurrence_repo,
                    progress=self.ctx.progress_repo,
                    streaks=self.ctx.streak_repo,
                    now=now,
                )
            except Exception as exc:
                logger.error(f"Nightly run failed for user {user_id}: {exc}", exc_info=True)
                continue
            inserted[user_id] = sum(counts.values())

        logger.info("Nightly generation completed", extra={"users": len(user_ids), "inserted": inserted})
        return inserted


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> BackgroundScheduler:
    """Create and optionally start a background scheduler."""
    scheduler = BackgroundScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler
