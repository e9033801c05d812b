from datetime import datetime, timezone

import pytest
from apscheduler.events import EVENT_JOB_ERROR, JobExecutionEvent

from odd_scout.data.sources.base import (
    DataNotAvailableError,
    DataSourceError,
    EventSource,
    InMemoryEventSource,
)
from odd_scout.scheduler import PIPELINE_JOB_ID, SchedulerOrchestrator, ValueBetPipeline


class UnavailableSource(EventSource):
    """Feed that never has data."""

    def _fetch_impl(self):
        raise DataNotAvailableError(self.source_name, "feed offline")


@pytest.fixture
def pipeline(porto_benfica, repository):
    betby, pinnacle = porto_benfica
    return ValueBetPipeline(
        InMemoryEventSource("betby", [betby]),
        InMemoryEventSource("pinnacle", [pinnacle]),
        repository=repository,
    )


def test_run_once_persists(pipeline, repository):
    run = pipeline.run_once()

    assert run.reference_count == 1
    assert run.candidate_count == 1
    assert len(run.scan.value_bets) == 1
    assert run.persisted == 1
    assert run.purged == 0
    assert run.duration_seconds is not None
    assert pipeline.last_run is run
    assert repository.count() == 1


def test_repeated_runs_do_not_duplicate(pipeline, repository):
    pipeline.run_once()
    pipeline.run_once()

    assert repository.count() == 1


def test_without_repository(porto_benfica):
    betby, pinnacle = porto_benfica
    pipeline = ValueBetPipeline(
        InMemoryEventSource("betby", [betby]),
        InMemoryEventSource("pinnacle", [pinnacle]),
    )

    run = pipeline.run_once()

    assert len(run.scan.value_bets) == 1
    assert run.persisted == 0


def test_feed_failure_aborts_run(porto_benfica, repository):
    betby, _ = porto_benfica
    pipeline = ValueBetPipeline(
        InMemoryEventSource("betby", [betby]),
        UnavailableSource("pinnacle"),
        repository=repository,
    )

    with pytest.raises(DataSourceError):
        pipeline.run_once()

    assert pipeline.last_run is None
    assert repository.count() == 0


def test_from_settings_requires_paths():
    from odd_scout.config.settings import Settings

    with pytest.raises(ValueError):
        ValueBetPipeline.from_settings(Settings())


class TestOrchestrator:
    def test_job_runs_pipeline(self, pipeline):
        orchestrator = SchedulerOrchestrator(pipeline, interval_minutes=5)

        orchestrator._pipeline_job()

        assert orchestrator.get_last_run() is pipeline.last_run
        assert len(orchestrator.get_last_run().scan.value_bets) == 1

    def test_lifecycle_and_status(self, pipeline):
        orchestrator = SchedulerOrchestrator(pipeline, interval_minutes=5)
        orchestrator.start(run_immediately=False)
        try:
            assert orchestrator.is_running
            status = orchestrator.get_job_status()
            assert status[PIPELINE_JOB_ID]["last_status"] == "pending"
            assert status[PIPELINE_JOB_ID]["run_count"] == 0

            orchestrator._on_job_error(
                JobExecutionEvent(
                    EVENT_JOB_ERROR,
                    PIPELINE_JOB_ID,
                    "default",
                    datetime.now(timezone.utc),
                    exception=RuntimeError("feed offline"),
                )
            )

            status = orchestrator.get_job_status()[PIPELINE_JOB_ID]
            assert status["last_status"] == "error"
            assert status["last_error"] == "feed offline"
            assert status["run_count"] == 1
        finally:
            orchestrator.stop()

        assert not orchestrator.is_running

    def test_trigger_unknown_job(self, pipeline):
        orchestrator = SchedulerOrchestrator(pipeline)
        assert orchestrator.trigger_job("missing") is False
