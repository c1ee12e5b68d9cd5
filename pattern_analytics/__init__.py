"""Package marker for the medical pattern analytics engine.

Exposes the analytic services so tests and the API layer can import
pattern_analytics.* modules.
"""

__all__ = [
    "correlation_service",
    "pattern_analyzer",
    "patient_analytics_service",
    "predictive_insights_service",
    "risk_scoring_service",
    "scheduler",
    "seasonal_trends_service",
]
