"""
Custom Domain Exceptions for the Pattern Analytics engine.
"""

from typing import Optional


class PatternAnalyticsError(Exception):
    """Base exception for all pattern analytics errors."""
    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFoundError(PatternAnalyticsError):
    """Raised when a per-patient call references an unknown patient id."""

    def __init__(self, patient_id: str):
        super().__init__(
            message=f"Patient {patient_id} not found",
            detail=f"patient_id={patient_id}",
        )
        self.patient_id = patient_id


class DataUnavailable(PatternAnalyticsError):
    """Raised when the clinical data store cannot be reached."""
    pass


class DetectorFailure(PatternAnalyticsError):
    """Wraps an exception raised inside a single pattern detector."""

    def __init__(self, detector_name: str, cause: BaseException):
        super().__init__(
            message=f"Pattern detector {detector_name} failed",
            detail=f"{type(cause).__name__}: {cause}",
        )
        self.detector_name = detector_name
        self.cause = cause


class AnalysisCancelled(PatternAnalyticsError):
    """Raised when a shutdown was requested while an analysis was running."""
    pass


class ConfigurationError(PatternAnalyticsError):
    """Raised when service configuration is missing or invalid."""
    pass
