"""
APScheduler orchestrator for periodic pipeline runs.

Handles:
- Value bet pipeline runs at a configurable interval
- Job status tracking
- Manual triggers and graceful shutdown
"""
import threading
from datetime import datetime, timezone
from typing import Any, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from .pipeline import PipelineRun, ValueBetPipeline

PIPELINE_JOB_ID = "value_bet_pipeline"


class SchedulerOrchestrator:
    """
    Manages APScheduler lifecycle and the pipeline job.

    max_instances=1 keeps runs of the same source pair from overlapping;
    missed runs are coalesced into one.

    Example:
        >>> scheduler = SchedulerOrchestrator(pipeline, interval_minutes=5)
        >>> scheduler.start()
        >>> # ... application runs ...
        >>> scheduler.stop()
    """

    def __init__(
        self,
        pipeline: ValueBetPipeline,
        interval_minutes: int = 5,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """
        Args:
            pipeline: Pipeline to run
            interval_minutes: Minutes between runs
            scheduler: Optional pre-built APScheduler instance
        """
        self.pipeline = pipeline
        self.interval_minutes = interval_minutes

        self.scheduler = scheduler or BackgroundScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,  # Only one instance of each job
                "misfire_grace_time": 60,
            },
        )

        self._job_status: dict[str, dict[str, Any]] = {}
        self._last_run: Optional[PipelineRun] = None
        self._cancel = threading.Event()
        self._is_running = False

        self.scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)

    def start(self, run_immediately: bool = True) -> None:
        """Start the scheduler with the pipeline job."""
        if self._is_running:
            logger.warning("Scheduler already running")
            return

        self._cancel.clear()
        self._register_jobs(run_immediately)
        self.scheduler.start()
        self._is_running = True

        logger.info("Scheduler started with jobs:")
        for job in self.scheduler.get_jobs():
            next_run = job.next_run_time
            next_str = next_run.strftime("%H:%M:%S") if next_run else "paused"
            logger.info(f"  - {job.id}: next run at {next_str}")

    def stop(self) -> None:
        """Cancel any run in progress between events and shut down."""
        if not self._is_running:
            return

        logger.info("Stopping scheduler...")
        self._cancel.set()
        self.scheduler.shutdown(wait=True)
        self._is_running = False
        logger.info("Scheduler stopped")

    def _register_jobs(self, run_immediately: bool) -> None:
        kwargs: dict[str, Any] = {}
        if run_immediately:
            kwargs["next_run_time"] = datetime.now(timezone.utc)

        self.scheduler.add_job(
            self._pipeline_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=PIPELINE_JOB_ID,
            name="Value Bet Pipeline",
            replace_existing=True,
            **kwargs,
        )

        for job in self.scheduler.get_jobs():
            self._job_status[job.id] = {
                "last_run": None,
                "last_status": "pending",
                "last_error": None,
                "run_count": 0,
            }

    def _pipeline_job(self) -> None:
        """Run the pipeline once; errors propagate to the job listener."""
        run = self.pipeline.run_once(cancel=self._cancel)
        self._last_run = run

        for bet in run.scan.value_bets:
            logger.info(f"  {bet.description}: EV={bet.expected_value:+.2%} @ {bet.payout_odd}")

    def _on_job_executed(self, event: JobExecutionEvent) -> None:
        """Handle successful job execution."""
        status = self._job_status.get(event.job_id)
        if status is not None:
            status["last_run"] = datetime.now(timezone.utc)
            status["last_status"] = "success"
            status["last_error"] = None
            status["run_count"] += 1

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        """Handle job execution error."""
        status = self._job_status.get(event.job_id)
        if status is not None:
            status["last_run"] = datetime.now(timezone.utc)
            status["last_status"] = "error"
            status["last_error"] = str(event.exception)
            status["run_count"] += 1

        logger.error(f"Job {event.job_id} failed: {event.exception}")

    def get_job_status(self) -> dict[str, dict[str, Any]]:
        """Get status of all jobs."""
        status = {}
        for job in self.scheduler.get_jobs():
            job_info = self._job_status.get(job.id, {})
            status[job.id] = {
                "name": job.name,
                "next_run": job.next_run_time,
                "last_run": job_info.get("last_run"),
                "last_status": job_info.get("last_status", "pending"),
                "last_error": job_info.get("last_error"),
                "run_count": job_info.get("run_count", 0),
            }
        return status

    def get_last_run(self) -> Optional[PipelineRun]:
        """Result of the most recent successful run."""
        return self._last_run

    def trigger_job(self, job_id: str = PIPELINE_JOB_ID) -> bool:
        """
        Manually trigger a job to run immediately.

        Returns:
            True if job was triggered
        """
        job = self.scheduler.get_job(job_id)
        if job:
            if job.next_run_time is None:
                self.scheduler.resume_job(job_id)
            self.scheduler.modify_job(job_id, next_run_time=datetime.now(timezone.utc))
            logger.info(f"Triggered job: {job_id}")
            return True
        return False

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._is_running
