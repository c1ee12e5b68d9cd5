from fastapi import APIRouter, Depends, HTTPException, Request
from typing import List
import logging

from pattern_analytics.correlation_service import CorrelationService
from pattern_analytics.di import (
    get_correlation_service,
    get_patient_analytics_service,
    get_pattern_analyzer,
    get_predictive_insights_service,
    get_risk_scoring_service,
    get_scheduler,
    get_seasonal_trends_service,
)
from pattern_analytics.models import (
    AnalysisSummary,
    CorrelationResult,
    PatientAnalytics,
    PatternFinding,
    PredictiveInsight,
    RiskAssessment,
    SeasonalTrend,
)
from pattern_analytics.patient_analytics_service import PatientAnalyticsService
from pattern_analytics.pattern_analyzer import PatternAnalyzer
from pattern_analytics.predictive_insights_service import PredictiveInsightsService
from pattern_analytics.risk_scoring_service import RiskScoringService
from pattern_analytics.scheduler import AnalysisScheduler
from pattern_analytics.seasonal_trends_service import SeasonalTrendsService
from pattern_analytics.utils.error_responses import create_http_exception, get_correlation_id
from pattern_analytics.utils.logging_utils import log_info
from pattern_analytics.utils.service_error_handler import ServiceErrorHandler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/run", response_model=AnalysisSummary)
async def run_analysis(
    request: Request,
    scheduler: AnalysisScheduler = Depends(get_scheduler),
):
    """
    Trigger a complete pattern analysis on demand.

    Shares the scheduler's run guard, so a manual trigger never overlaps a
    scheduled run.
    """
    correlation_id = get_correlation_id(request)
    log_info("Manual pattern analysis requested", correlation_id)

    summary = await ServiceErrorHandler.handle_async_service_call(
        scheduler.run_once,
        {"operation": "run_complete_analysis"},
        correlation_id,
        request,
    )
    if summary is None:
        raise create_http_exception(
            message="Analysis already in progress",
            status_code=409,
            error_type="AnalysisInProgress",
        )
    return summary


@router.get("/patterns", response_model=List[PatternFinding])
async def detect_patterns(
    request: Request,
    analyzer: PatternAnalyzer = Depends(get_pattern_analyzer),
):
    """Run the pattern detectors and return their findings without risk scoring."""
    return await ServiceErrorHandler.handle_async_service_call(
        analyzer.detect_patterns,
        {"operation": "detect_patterns"},
        None,
        request,
    )


@router.get("/patients/{patient_id}/risk-score", response_model=RiskAssessment)
async def get_patient_risk_score(
    patient_id: str,
    request: Request,
    risk_scoring_service: RiskScoringService = Depends(get_risk_scoring_service),
):
    try:
        return await risk_scoring_service.score(patient_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceErrorHandler.handle_service_error(
            e,
            {"operation": "risk_score", "patient_id": patient_id},
            None,
            request,
        )


@router.get("/patients/{patient_id}", response_model=PatientAnalytics)
async def get_patient_analytics(
    patient_id: str,
    request: Request,
    patient_analytics_service: PatientAnalyticsService = Depends(get_patient_analytics_service),
):
    """Risk, history counts and predictions for one patient."""
    try:
        return await patient_analytics_service.get_patient_analytics(patient_id)
    except HTTPException:
        raise
    except Exception as e:
        raise ServiceErrorHandler.handle_service_error(
            e,
            {"operation": "patient_analytics", "patient_id": patient_id},
            None,
            request,
        )


@router.get("/correlations", response_model=List[CorrelationResult])
async def get_correlations(
    request: Request,
    correlation_service: CorrelationService = Depends(get_correlation_service),
):
    return await ServiceErrorHandler.handle_async_service_call(
        correlation_service.analyze_correlations,
        {"operation": "analyze_correlations"},
        None,
        request,
    )


@router.get("/seasonal-trends", response_model=List[SeasonalTrend])
async def get_seasonal_trends(
    request: Request,
    seasonal_trends_service: SeasonalTrendsService = Depends(get_seasonal_trends_service),
):
    return await ServiceErrorHandler.handle_async_service_call(
        seasonal_trends_service.analyze_seasonal_trends,
        {"operation": "analyze_seasonal_trends"},
        None,
        request,
    )


@router.get("/predictive-insights", response_model=List[PredictiveInsight])
async def get_predictive_insights(
    request: Request,
    predictive_insights_service: PredictiveInsightsService = Depends(get_predictive_insights_service),
):
    return await ServiceErrorHandler.handle_async_service_call(
        predictive_insights_service.predictive_insights,
        {"operation": "predictive_insights"},
        None,
        request,
    )
