import asyncio

import pytest

from pattern_analytics.detectors import PatternDetector
from pattern_analytics.exceptions import AnalysisCancelled, DataUnavailable
from pattern_analytics.models import (
    PatternFinding,
    PatternType,
    Severity,
    VaccinationGapMetadata,
)
from pattern_analytics.pattern_analyzer import PatternAnalyzer, generate_recommendations
from tests.fixtures import NOW, recent_visits


def _finding(severity=Severity.MEDIUM, affected=None):
    return PatternFinding(
        pattern_name="Vaccination Gap Pattern",
        pattern_type=PatternType.VACCINATION_GAP,
        description="stub finding",
        severity=severity,
        confidence_score=0.5,
        affected_patients=affected,
        recommendation="stub",
        detected_at=NOW,
        metadata=VaccinationGapMetadata(unvaccinated_count=10),
    )


class _StaticDetector(PatternDetector):
    name = "static"
    pattern_type = PatternType.VACCINATION_GAP

    def __init__(self, findings):
        super().__init__(reader=None)
        self.findings = findings

    async def detect(self):
        return list(self.findings)


class _ExplodingDetector(PatternDetector):
    name = "exploding"
    pattern_type = PatternType.LAB_ANOMALY

    def __init__(self, error):
        super().__init__(reader=None)
        self.error = error
        self.calls = 0

    async def detect(self):
        self.calls += 1
        raise self.error


def _population(factory):
    """Eleven frequent visitors, three of them elderly enough to be high risk."""
    elderly = [
        factory.create(patient_id=f"elder-{i}", age=85, visit_dates=recent_visits(7))
        for i in range(3)
    ]
    younger = [
        factory.create(patient_id=f"young-{i}", age=30, visit_dates=recent_visits(7))
        for i in range(8)
    ]
    return elderly + younger


@pytest.mark.anyio
@pytest.mark.parametrize("parallel", [True, False])
async def test_complete_analysis_over_real_detectors(factory, make_reader, clock, parallel):
    analyzer = PatternAnalyzer(make_reader(_population(factory)), clock=clock, parallel=parallel)

    summary = await analyzer.run_complete_analysis()

    types = [p.pattern_type for p in summary.patterns]
    assert types == [PatternType.VISIT_FREQUENCY, PatternType.VACCINATION_GAP]
    assert summary.total_patterns == 2
    assert summary.total_alerts == sum(1 for p in summary.patterns if p.severity == Severity.HIGH)
    assert summary.total_alerts == 1
    # 0.30 age + 0.25 visits + 0.10 no vaccinations for each elderly patient
    assert summary.high_risk_patients == ["elder-0", "elder-1", "elder-2"]
    assert summary.total_high_risk_patients == 3
    assert summary.recommendations == [
        "Consider implementing telemedicine options for frequent visitors",
        "Launch vaccination awareness campaign",
    ]
    assert summary.failed_detectors == []
    assert summary.analysis_completed_at == NOW


@pytest.mark.anyio
@pytest.mark.parametrize("parallel", [True, False])
async def test_failing_detector_is_isolated(make_reader, clock, parallel, caplog):
    detectors = [
        _StaticDetector([_finding(Severity.HIGH)]),
        _ExplodingDetector(ValueError("bad threshold")),
        _StaticDetector([_finding()]),
    ]
    analyzer = PatternAnalyzer(make_reader([]), detectors=detectors, clock=clock, parallel=parallel)

    with caplog.at_level("ERROR"):
        summary = await analyzer.run_complete_analysis()

    assert summary.total_patterns == 2
    assert summary.total_alerts == 1
    assert summary.failed_detectors == ["exploding"]
    assert "Pattern detector exploding failed" in caplog.text


@pytest.mark.anyio
@pytest.mark.parametrize("parallel", [True, False])
async def test_data_unavailable_propagates(make_reader, clock, parallel):
    detectors = [
        _StaticDetector([_finding()]),
        _ExplodingDetector(DataUnavailable("Clinical data store is unavailable")),
    ]
    analyzer = PatternAnalyzer(make_reader([]), detectors=detectors, clock=clock, parallel=parallel)

    with pytest.raises(DataUnavailable):
        await analyzer.run_complete_analysis()


@pytest.mark.anyio
@pytest.mark.parametrize("parallel", [True, False])
async def test_cancel_event_stops_the_run(make_reader, clock, parallel):
    exploding = _ExplodingDetector(ValueError("never reached"))
    analyzer = PatternAnalyzer(make_reader([]), detectors=[exploding], clock=clock, parallel=parallel)
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(AnalysisCancelled):
        await analyzer.run_complete_analysis(cancel_event=cancel_event)

    assert exploding.calls == 0


@pytest.mark.anyio
async def test_missing_patients_in_alerts_are_skipped(factory, make_reader, clock):
    elder = factory.create(patient_id="elder", age=85, visit_dates=recent_visits(7))
    detectors = [_StaticDetector([_finding(Severity.HIGH, affected=["ghost", "elder", "elder"])])]
    analyzer = PatternAnalyzer(make_reader([elder]), detectors=detectors, clock=clock)

    summary = await analyzer.run_complete_analysis()

    assert summary.high_risk_patients == ["elder"]


@pytest.mark.anyio
async def test_detect_patterns_returns_findings_only(make_reader, clock):
    detectors = [_StaticDetector([_finding(), _finding(Severity.HIGH)])]
    analyzer = PatternAnalyzer(make_reader([]), detectors=detectors, clock=clock)

    patterns = await analyzer.detect_patterns()

    assert [p.severity for p in patterns] == [Severity.MEDIUM, Severity.HIGH]


def test_recommendations_only_for_fired_pattern_types():
    assert generate_recommendations([]) == []
    assert generate_recommendations([_finding(), _finding()]) == [
        "Launch vaccination awareness campaign"
    ]


class _ShutdownDuringDetectDetector(_StaticDetector):
    """Requests shutdown while its own detection is running."""

    def __init__(self, cancel_event):
        super().__init__([_finding()])
        self.cancel_event = cancel_event

    async def detect(self):
        self.cancel_event.set()
        return list(self.findings)


@pytest.mark.anyio
@pytest.mark.parametrize("parallel", [True, False])
async def test_shutdown_requested_mid_run_cancels_analysis(make_reader, clock, parallel):
    cancel_event = asyncio.Event()
    detectors = [_ShutdownDuringDetectDetector(cancel_event), _StaticDetector([_finding(Severity.HIGH)])]
    analyzer = PatternAnalyzer(make_reader([]), detectors=detectors, clock=clock, parallel=parallel)

    with pytest.raises(AnalysisCancelled):
        await analyzer.detect_patterns(cancel_event=cancel_event)
