"""Scheduling of the periodic sync, URL health and QA jobs."""

from .service import QA_JOB_ID, SYNC_JOB_ID, URL_HEALTH_JOB_ID, SchedulerService

__all__ = [
    "SchedulerService",
    "SYNC_JOB_ID",
    "URL_HEALTH_JOB_ID",
    "QA_JOB_ID",
]
