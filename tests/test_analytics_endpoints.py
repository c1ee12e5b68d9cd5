from contextlib import asynccontextmanager
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from pattern_analytics.clinical_data_reader import InMemoryClinicalDataReader
from pattern_analytics.correlation_service import CorrelationService
from pattern_analytics.di import (
    get_container,
    get_correlation_service,
    get_patient_analytics_service,
    get_pattern_analyzer,
    get_predictive_insights_service,
    get_risk_scoring_service,
    get_scheduler,
    get_seasonal_trends_service,
)
from pattern_analytics.exceptions import DataUnavailable
from pattern_analytics.main import app
from pattern_analytics.patient_analytics_service import PatientAnalyticsService
from pattern_analytics.pattern_analyzer import PatternAnalyzer
from pattern_analytics.predictive_insights_service import PredictiveInsightsService
from pattern_analytics.risk_scoring_service import RiskScoringService
from pattern_analytics.scheduler import AnalysisScheduler
from pattern_analytics.seasonal_trends_service import SeasonalTrendsService
from tests.fixtures import SnapshotFactory, frozen_clock, recent_visits


def _noop_lifespan(_app):
    @asynccontextmanager
    async def _lifespan(_):
        yield

    return _lifespan


class _UnavailableReader(InMemoryClinicalDataReader):
    async def list_patients(self):
        raise DataUnavailable("Clinical data store is unavailable", detail="connection refused")


@pytest.fixture
def population():
    SnapshotFactory.reset()
    frequent = [
        SnapshotFactory.create(patient_id=f"p-{i}", age=85, visit_dates=recent_visits(7))
        for i in range(11)
    ]
    return InMemoryClinicalDataReader(frequent)


@pytest.fixture
def client(dependency_overrides_guard, population):
    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _noop_lifespan(app)

    risk_scoring_service = RiskScoringService(population, frozen_clock)
    analyzer = PatternAnalyzer(
        population, risk_scoring_service=risk_scoring_service, clock=frozen_clock
    )
    dependency_overrides_guard.update(
        {
            get_risk_scoring_service: lambda: risk_scoring_service,
            get_pattern_analyzer: lambda: analyzer,
            get_scheduler: lambda: AnalysisScheduler(analyzer, interval_seconds=3600),
            get_correlation_service: lambda: CorrelationService(population, frozen_clock),
            get_seasonal_trends_service: lambda: SeasonalTrendsService(population, frozen_clock),
            get_predictive_insights_service: lambda: PredictiveInsightsService(
                population, frozen_clock
            ),
            get_patient_analytics_service: lambda: PatientAnalyticsService(
                population, risk_scoring_service, frozen_clock
            ),
        }
    )

    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.router.lifespan_context = original_lifespan


def test_run_analysis_returns_summary(client):
    response = client.post("/api/v1/analytics/run")

    assert response.status_code == 200
    body = response.json()
    assert body["total_alerts"] == 1
    assert body["total_high_risk_patients"] == 11
    assert body["patterns"][0]["pattern_type"] == "VISIT_FREQUENCY"
    assert body["patterns"][0]["metadata"]["patient_count"] == 11
    assert body["failed_detectors"] == []


def test_patterns_endpoint_lists_findings(client):
    response = client.get("/api/v1/analytics/patterns")

    assert response.status_code == 200
    assert [p["pattern_type"] for p in response.json()] == ["VISIT_FREQUENCY", "VACCINATION_GAP"]


def test_risk_score_endpoint(client):
    response = client.get("/api/v1/analytics/patients/p-0/risk-score")

    assert response.status_code == 200
    body = response.json()
    assert body["patient_id"] == "p-0"
    assert body["risk_score"] == pytest.approx(0.65)
    assert body["risk_level"] == "HIGH"


def test_unknown_patient_returns_standard_404(client):
    response = client.get(
        "/api/v1/analytics/patients/missing/risk-score",
        headers={"X-Correlation-ID": "corr-123"},
    )

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "Patient missing not found"
    assert body["error_type"] == "NotFoundError"
    assert body["correlation_id"] == "corr-123"
    assert "hint" in body
    assert response.headers["X-Correlation-ID"] == "corr-123"


def test_patient_analytics_endpoint(client):
    response = client.get("/api/v1/analytics/patients/p-3")

    assert response.status_code == 200
    body = response.json()
    assert body["patient_info"]["id"] == "p-3"
    assert body["medical_history"]["recent_visits"] == 7
    assert "Update vaccination status" in body["predictions"]["recommended_actions"]


def test_list_endpoints_respond(client):
    assert client.get("/api/v1/analytics/correlations").status_code == 200
    assert client.get("/api/v1/analytics/seasonal-trends").status_code == 200

    insights = client.get("/api/v1/analytics/predictive-insights")
    assert insights.status_code == 200
    assert {i["prediction_type"] for i in insights.json()} == {
        "Chronic Condition Risk",
        "Vaccination Gap",
    }


def test_data_outage_maps_to_503_without_leaking_detail(client, dependency_overrides_guard):
    dependency_overrides_guard[get_correlation_service] = lambda: CorrelationService(
        _UnavailableReader(), frozen_clock
    )

    response = client.get("/api/v1/analytics/correlations")

    assert response.status_code == 503
    body = response.json()
    assert body["error_type"] == "DataUnavailable"
    assert "connection refused" not in response.text


def test_health_reports_scheduler_state(client, dependency_overrides_guard):
    dependency_overrides_guard[get_container] = lambda: SimpleNamespace(scheduler=None)

    response = client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["components"]["scheduler"]["status"] == "stopped"
    assert body["components"]["scheduler"]["last_completed_at"] is None


def test_root_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
