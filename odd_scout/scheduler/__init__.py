"""
Pipeline scheduling module.

Provides a one-shot pipeline (fetch, detect, persist, purge) and an
APScheduler-based orchestrator that repeats it.

Example:
    >>> from odd_scout.scheduler import SchedulerOrchestrator, ValueBetPipeline
    >>>
    >>> pipeline = ValueBetPipeline.from_settings(settings)
    >>> scheduler = SchedulerOrchestrator(pipeline, interval_minutes=5)
    >>> scheduler.start()
    >>>
    >>> # Check job status
    >>> print(scheduler.get_job_status())
    >>>
    >>> # Graceful shutdown
    >>> scheduler.stop()
"""

from .orchestrator import PIPELINE_JOB_ID, SchedulerOrchestrator
from .pipeline import PipelineRun, ValueBetPipeline

__all__ = [
    "PIPELINE_JOB_ID",
    "PipelineRun",
    "SchedulerOrchestrator",
    "ValueBetPipeline",
]
