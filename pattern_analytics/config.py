import os
import logging

from .exceptions import ConfigurationError

# Configure baseline logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    PROJECT_NAME: str = "Medical Pattern Analytics"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    DEBUG: bool = _env_flag("DEBUG", "False")

    # Periodic analysis
    SCHEDULER_ENABLED: bool = _env_flag("ANALYSIS_SCHEDULER_ENABLED", "true")
    ANALYSIS_INTERVAL_HOURS: float = float(os.getenv("ANALYSIS_INTERVAL_HOURS", "6"))
    ANALYSIS_WARMUP_MINUTES: float = float(os.getenv("ANALYSIS_WARMUP_MINUTES", "2"))
    ANALYSIS_ERROR_BACKOFF_MINUTES: float = float(
        os.getenv("ANALYSIS_ERROR_BACKOFF_MINUTES", "60")
    )

    # Run detectors as concurrent tasks instead of one after another
    PARALLEL_DETECTORS: bool = _env_flag("ANALYSIS_PARALLEL_DETECTORS", "true")

    @property
    def interval_seconds(self) -> float:
        return self.ANALYSIS_INTERVAL_HOURS * 60 * 60

    @property
    def warmup_seconds(self) -> float:
        return self.ANALYSIS_WARMUP_MINUTES * 60

    @property
    def error_backoff_seconds(self) -> float:
        return self.ANALYSIS_ERROR_BACKOFF_MINUTES * 60

    def validate(self) -> None:
        """Reject scheduler timings that would spin or never fire."""
        if self.ANALYSIS_INTERVAL_HOURS <= 0:
            raise ConfigurationError(
                message="ANALYSIS_INTERVAL_HOURS must be positive",
                detail=f"got {self.ANALYSIS_INTERVAL_HOURS}",
            )
        if self.ANALYSIS_ERROR_BACKOFF_MINUTES <= 0:
            raise ConfigurationError(
                message="ANALYSIS_ERROR_BACKOFF_MINUTES must be positive",
                detail=f"got {self.ANALYSIS_ERROR_BACKOFF_MINUTES}",
            )
        if self.ANALYSIS_WARMUP_MINUTES < 0:
            raise ConfigurationError(
                message="ANALYSIS_WARMUP_MINUTES cannot be negative",
                detail=f"got {self.ANALYSIS_WARMUP_MINUTES}",
            )


settings = Settings()
