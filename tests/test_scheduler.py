import asyncio

import pytest

from pattern_analytics.clinical_data_reader import InMemoryClinicalDataReader
from pattern_analytics.exceptions import AnalysisCancelled, DataUnavailable
from pattern_analytics.models import AnalysisSummary
from pattern_analytics.pattern_analyzer import PatternAnalyzer
from pattern_analytics.scheduler import AnalysisScheduler
from tests.fixtures import NOW, recent_visits


def _summary():
    return AnalysisSummary(
        total_patterns=0,
        total_alerts=0,
        total_high_risk_patients=0,
        analysis_completed_at=NOW,
    )


class _ScriptedAnalyzer:
    """Returns or raises the scripted outcomes in order, then keeps succeeding."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0
        self.cancel_events = []
        self.risk_scoring_service = None

    async def run_complete_analysis(self, cancel_event=None):
        self.calls += 1
        self.cancel_events.append(cancel_event)
        outcome = self.outcomes.pop(0) if self.outcomes else _summary()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class _BlockingAnalyzer:
    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0
        self.risk_scoring_service = None

    async def run_complete_analysis(self, cancel_event=None):
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return _summary()


async def _wait_until(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.mark.anyio
async def test_run_once_returns_and_remembers_summary(factory, make_reader, clock):
    patients = [factory.create(patient_id=f"p-{i}", age=85, visit_dates=recent_visits(7)) for i in range(11)]
    analyzer = PatternAnalyzer(make_reader(patients), clock=clock)
    scheduler = AnalysisScheduler(analyzer, interval_seconds=3600)

    summary = await scheduler.run_once()

    assert summary is not None
    assert summary.total_alerts == 1
    assert summary.total_high_risk_patients == 11
    assert scheduler.last_summary is summary


@pytest.mark.anyio
async def test_overlapping_trigger_is_skipped():
    analyzer = _BlockingAnalyzer()
    scheduler = AnalysisScheduler(analyzer, interval_seconds=3600)

    first = asyncio.create_task(scheduler.run_once())
    await analyzer.started.wait()

    assert scheduler.run_in_progress
    assert await scheduler.run_once() is None

    analyzer.release.set()
    assert await first is not None
    assert analyzer.calls == 1
    assert not scheduler.run_in_progress


@pytest.mark.anyio
async def test_loop_backs_off_after_failure_then_recovers():
    analyzer = _ScriptedAnalyzer(DataUnavailable("database down"))
    scheduler = AnalysisScheduler(
        analyzer, interval_seconds=3600, warmup_seconds=0, error_backoff_seconds=0.01
    )

    scheduler.start()
    await _wait_until(lambda: analyzer.calls >= 2)
    await scheduler.stop()

    assert analyzer.calls == 2
    assert scheduler.last_summary is not None
    assert not scheduler.is_running


@pytest.mark.anyio
async def test_stop_interrupts_warmup():
    analyzer = _ScriptedAnalyzer()
    scheduler = AnalysisScheduler(analyzer, interval_seconds=3600, warmup_seconds=3600)

    scheduler.start()
    assert scheduler.is_running
    await asyncio.wait_for(scheduler.stop(), timeout=2.0)

    assert analyzer.calls == 0
    assert not scheduler.is_running


@pytest.mark.anyio
async def test_loop_exits_when_analysis_is_cancelled():
    analyzer = _ScriptedAnalyzer(AnalysisCancelled("shutdown"))
    scheduler = AnalysisScheduler(analyzer, interval_seconds=0.01, warmup_seconds=0)

    scheduler.start()
    await _wait_until(lambda: not scheduler.is_running)

    assert analyzer.calls == 1
    await scheduler.stop()


@pytest.mark.anyio
async def test_stop_event_is_passed_as_cancel_token():
    analyzer = _ScriptedAnalyzer()
    scheduler = AnalysisScheduler(analyzer, interval_seconds=3600)

    await scheduler.run_once()

    token = analyzer.cancel_events[0]
    assert isinstance(token, asyncio.Event)
    assert not token.is_set()
    await scheduler.stop()
    assert token.is_set()


class _OutageAfterRunReader(InMemoryClinicalDataReader):
    def __init__(self, patients):
        super().__init__(patients)
        self.down = False

    async def get_patient(self, patient_id):
        if self.down:
            raise DataUnavailable("Clinical data store is unavailable")
        return await super().get_patient(patient_id)


class _OutageAfterRunAnalyzer(PatternAnalyzer):
    async def run_complete_analysis(self, cancel_event=None):
        summary = await super().run_complete_analysis(cancel_event=cancel_event)
        self.reader.down = True
        return summary


@pytest.mark.anyio
async def test_outage_while_logging_does_not_fail_finished_run(factory, clock, caplog):
    patients = [factory.create(patient_id=f"p-{i}", age=85, visit_dates=recent_visits(7)) for i in range(11)]
    analyzer = _OutageAfterRunAnalyzer(_OutageAfterRunReader(patients), clock=clock)
    scheduler = AnalysisScheduler(analyzer, interval_seconds=3600)

    with caplog.at_level("WARNING"):
        summary = await scheduler.run_once()

    assert summary is not None
    assert summary.total_high_risk_patients == 11
    assert scheduler.last_summary is summary
    assert "Skipping high-risk patient details" in caplog.text
