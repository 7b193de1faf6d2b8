"""Scheduler service for the periodic sync, URL health and QA jobs."""

import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from market_signals.logging import get_logger

logger = get_logger(__name__, component="scheduler")

SYNC_JOB_ID = "market-sync"
URL_HEALTH_JOB_ID = "url-health"
QA_JOB_ID = "qa-sample"


class SchedulerService:
    """
    Wraps APScheduler to run the pipeline jobs at their configured intervals.

    Uses BackgroundScheduler so the main thread stays free to handle signals
    and coordinate shutdown. Every job runs with max_instances=1 and
    coalesce=True: a job never overlaps itself, and a backlog of missed runs
    collapses into one.
    """

    def __init__(self, shutdown_event: Optional[threading.Event] = None):
        """
        Initialize the scheduler service.

        Args:
            shutdown_event: Optional event set on shutdown for coordination
        """
        self.shutdown_event = shutdown_event
        self._jobs: Dict[str, Callable[[], object]] = {}
        self.scheduler = BackgroundScheduler(
            job_defaults={"max_instances": 1, "coalesce": True},
            timezone=timezone.utc,
        )

    def add_job(
        self,
        job_id: str,
        func: Callable[[], object],
        interval_seconds: int,
        name: Optional[str] = None,
        run_immediately: bool = True,
    ) -> None:
        """
        Register a job. Can be called before or after start().

        Args:
            job_id: Stable job identifier
            func: Zero-argument callable (e.g. pipeline.run_once)
            interval_seconds: Seconds between runs
            name: Human-readable job name
            run_immediately: Whether the first run fires right away
        """
        trigger = IntervalTrigger(seconds=interval_seconds, timezone=timezone.utc)
        kwargs = {"next_run_time": datetime.now(timezone.utc)} if run_immediately else {}
        self.scheduler.add_job(
            func=func,
            trigger=trigger,
            id=job_id,
            name=name or job_id,
            replace_existing=True,
            misfire_grace_time=interval_seconds,
            **kwargs,
        )
        self._jobs[job_id] = func

        logger.info(
            f"Scheduled {job_id} every {interval_seconds} seconds",
            extra={
                "event": "scheduler.job.added",
                "job_id": job_id,
                "interval_seconds": interval_seconds,
                "run_immediately": run_immediately,
            },
        )

    def start(self) -> None:
        """Start the scheduler thread."""
        self.scheduler.start()
        logger.info(
            f"Scheduler started with {len(self._jobs)} jobs",
            extra={"event": "scheduler.started", "jobs": self.job_ids()},
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler.

        Args:
            wait: If True, wait for running jobs to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self, job_id: str) -> object:
        """
        Run a registered job synchronously in the current thread.

        Raises:
            KeyError: If no job with ``job_id`` was added
        """
        func = self._jobs[job_id]
        logger.info(
            f"Triggering immediate run of {job_id}",
            extra={"event": "scheduler.trigger_now", "job_id": job_id},
        )
        return func()

    def job_ids(self) -> List[str]:
        return list(self._jobs)

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self, job_id: str = SYNC_JOB_ID) -> Optional[datetime]:
        """Next scheduled run of ``job_id``, or None if it is not scheduled."""
        job = self.scheduler.get_job(job_id)
        return job.next_run_time if job else None
