"""
Occurrence Sweeper

Periodic background pass that keeps every rule's rolling window materialized
and prunes occurrences past the retention window.
"""

import asyncio
from typing import Dict, Optional

from sqlmodel import Session

from occurrence_engine import settings
from occurrence_engine.services.recurring_task_service import RecurringTaskService
from occurrence_engine.utils.clock import Clock, SystemClock
from occurrence_engine.utils.logger import get_logger
from occurrence_engine.utils.metrics import MetricsCollector, metrics_collector

logger = get_logger("occurrence-sweeper")


class OccurrenceSweeper:
    """Regenerates occurrence windows for all rules."""

    def __init__(self, engine, clock: Optional[Clock] = None,
                 horizon_weeks: int = settings.HORIZON_WEEKS,
                 retention_days: Optional[int] = settings.RETENTION_DAYS,
                 metrics: MetricsCollector = metrics_collector):
        self.engine = engine
        self.clock = clock or SystemClock(settings.APP_TIMEZONE)
        self.horizon_weeks = horizon_weeks
        self.retention_days = retention_days
        self.metrics = metrics

    def run_once(self) -> Dict[str, int]:
        """One sweep over every rule. A failing task is logged and the sweep continues."""
        summary = {"rules": 0, "generated": 0, "errors": 0, "cleaned": 0}

        with Session(self.engine) as session:
            service = RecurringTaskService(
                session, clock=self.clock, horizon_weeks=self.horizon_weeks, metrics=self.metrics
            )
            for task_id in service.rule_task_ids():
                summary["rules"] += 1
                try:
                    created = service.generate(task_id)
                except Exception as e:
                    session.rollback()
                    summary["errors"] += 1
                    self.metrics.sweep_error()
                    logger.exception("Generation failed", task_id=task_id, error=str(e))
                    continue
                summary["generated"] += len(created)
                self.metrics.rule_swept()

            if self.retention_days is not None:
                summary["cleaned"] = service.cleanup_old_occurrences(self.retention_days)

        logger.info("Sweep complete", **summary)
        return summary

    async def run_forever(self, interval_seconds: int = settings.SWEEP_INTERVAL_SECONDS):
        """Sweep, sleep, repeat."""
        logger.info("Starting occurrence sweeper", interval_seconds=interval_seconds)
        while True:
            try:
                self.run_once()
            except Exception as e:
                logger.exception("Sweep failed", error=str(e))
                self.metrics.sweep_error()
            await asyncio.sleep(interval_seconds)


def main():
    """Console entry point for the background sweeper."""
    from occurrence_engine.db.config import engine
    from occurrence_engine.db.init import init_db

    init_db()
    sweeper = OccurrenceSweeper(engine)

    if settings.ENVIRONMENT == "development":
        logger.info("Running a single sweep in development mode...")
        sweeper.run_once()
    else:
        asyncio.run(sweeper.run_forever())


if __name__ == "__main__":
    main()
