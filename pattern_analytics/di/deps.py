from fastapi import Depends, Request

from ..correlation_service import CorrelationService
from ..patient_analytics_service import PatientAnalyticsService
from ..pattern_analyzer import PatternAnalyzer
from ..predictive_insights_service import PredictiveInsightsService
from ..risk_scoring_service import RiskScoringService
from ..scheduler import AnalysisScheduler
from ..seasonal_trends_service import SeasonalTrendsService
from .container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Service container not initialized")
    return container


def get_pattern_analyzer(
    container: ServiceContainer = Depends(get_container),
) -> PatternAnalyzer:
    analyzer = container.pattern_analyzer
    if analyzer is None:
        raise RuntimeError("Pattern analyzer not initialized")
    return analyzer


def get_risk_scoring_service(
    container: ServiceContainer = Depends(get_container),
) -> RiskScoringService:
    service = container.risk_scoring_service
    if service is None:
        raise RuntimeError("Risk scoring service not initialized")
    return service


def get_correlation_service(
    container: ServiceContainer = Depends(get_container),
) -> CorrelationService:
    service = container.correlation_service
    if service is None:
        raise RuntimeError("Correlation service not initialized")
    return service


def get_seasonal_trends_service(
    container: ServiceContainer = Depends(get_container),
) -> SeasonalTrendsService:
    service = container.seasonal_trends_service
    if service is None:
        raise RuntimeError("Seasonal trends service not initialized")
    return service


def get_predictive_insights_service(
    container: ServiceContainer = Depends(get_container),
) -> PredictiveInsightsService:
    service = container.predictive_insights_service
    if service is None:
        raise RuntimeError("Predictive insights service not initialized")
    return service


def get_patient_analytics_service(
    container: ServiceContainer = Depends(get_container),
) -> PatientAnalyticsService:
    service = container.patient_analytics_service
    if service is None:
        raise RuntimeError("Patient analytics service not initialized")
    return service


def get_scheduler(
    container: ServiceContainer = Depends(get_container),
) -> AnalysisScheduler:
    scheduler = container.scheduler
    if scheduler is None:
        raise RuntimeError("Analysis scheduler not initialized")
    return scheduler
