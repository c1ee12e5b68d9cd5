import logging
from datetime import datetime
from typing import Callable, Optional

from ..clinical_data_reader import ClinicalDataReader
from ..config import Settings
from ..correlation_service import CorrelationService
from ..database import SqlClinicalDataReader, close_database, init_database
from ..patient_analytics_service import PatientAnalyticsService
from ..pattern_analyzer import PatternAnalyzer
from ..predictive_insights_service import PredictiveInsightsService
from ..risk_scoring_service import RiskScoringService
from ..scheduler import AnalysisScheduler
from ..seasonal_trends_service import SeasonalTrendsService
from ..utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Centralized application service container for shared singletons."""

    def __init__(
        self,
        *,
        settings: Settings,
        reader: Optional[ClinicalDataReader] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.settings = settings
        self.reader = reader
        self.clock = clock or utcnow
        self._owns_database = False

        self.risk_scoring_service: Optional[RiskScoringService] = None
        self.pattern_analyzer: Optional[PatternAnalyzer] = None
        self.correlation_service: Optional[CorrelationService] = None
        self.seasonal_trends_service: Optional[SeasonalTrendsService] = None
        self.predictive_insights_service: Optional[PredictiveInsightsService] = None
        self.patient_analytics_service: Optional[PatientAnalyticsService] = None
        self.scheduler: Optional[AnalysisScheduler] = None

    async def startup(self) -> None:
        self.settings.validate()

        if self.reader is None:
            logger.info("Initializing clinical database reader...")
            await init_database()
            self._owns_database = True
            self.reader = SqlClinicalDataReader()

        logger.info("Initializing analytics services...")
        self.risk_scoring_service = RiskScoringService(self.reader, self.clock)
        self.pattern_analyzer = PatternAnalyzer(
            self.reader,
            risk_scoring_service=self.risk_scoring_service,
            clock=self.clock,
            parallel=self.settings.PARALLEL_DETECTORS,
        )
        self.correlation_service = CorrelationService(self.reader, self.clock)
        self.seasonal_trends_service = SeasonalTrendsService(self.reader, self.clock)
        self.predictive_insights_service = PredictiveInsightsService(self.reader, self.clock)
        self.patient_analytics_service = PatientAnalyticsService(
            self.reader, risk_scoring_service=self.risk_scoring_service, clock=self.clock
        )

        self.scheduler = AnalysisScheduler(
            self.pattern_analyzer,
            interval_seconds=self.settings.interval_seconds,
            warmup_seconds=self.settings.warmup_seconds,
            error_backoff_seconds=self.settings.error_backoff_seconds,
        )
        if self.settings.SCHEDULER_ENABLED:
            self.scheduler.start()
        else:
            logger.info("Periodic analysis disabled (ANALYSIS_SCHEDULER_ENABLED=false)")

        logger.info("Service container initialized successfully")

    async def shutdown(self) -> None:
        if self.scheduler:
            await self.scheduler.stop()

        if self._owns_database:
            await close_database()
            self._owns_database = False
