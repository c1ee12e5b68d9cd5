from .container import ServiceContainer
from .deps import (
    get_container,
    get_correlation_service,
    get_patient_analytics_service,
    get_pattern_analyzer,
    get_predictive_insights_service,
    get_risk_scoring_service,
    get_scheduler,
    get_seasonal_trends_service,
)

__all__ = [
    "ServiceContainer",
    "get_container",
    "get_pattern_analyzer",
    "get_risk_scoring_service",
    "get_correlation_service",
    "get_seasonal_trends_service",
    "get_predictive_insights_service",
    "get_patient_analytics_service",
    "get_scheduler",
]
