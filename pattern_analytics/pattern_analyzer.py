"""
Pattern Analyzer Module
Central orchestration of the pattern detectors and risk scoring
Runs every detector behind its own failure boundary and assembles the analysis summary
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple

from .clinical_data_reader import ClinicalDataReader
from .detectors import PatternDetector, default_detectors
from .exceptions import AnalysisCancelled, DataUnavailable, DetectorFailure, NotFoundError
from .models import AnalysisSummary, PatternFinding, PatternType, Severity
from .risk_scoring_service import RiskScoringService
from .utils.time_utils import utcnow

logger = logging.getLogger(__name__)


HIGH_RISK_THRESHOLD = 0.6

SYSTEM_RECOMMENDATIONS = (
    (
        PatternType.VISIT_FREQUENCY,
        "Consider implementing telemedicine options for frequent visitors",
    ),
    (PatternType.VACCINATION_GAP, "Launch vaccination awareness campaign"),
    (PatternType.SEASONAL_PATTERN, "Adjust staffing levels based on seasonal trends"),
)

# Outcome of one detector: its findings, or the failure that replaced them
DetectorOutcome = Tuple[List[PatternFinding], Optional[DetectorFailure]]


def generate_recommendations(patterns: Sequence[PatternFinding]) -> List[str]:
    """System-level recommendations keyed on which pattern types fired."""

    fired = {pattern.pattern_type for pattern in patterns}
    return [text for pattern_type, text in SYSTEM_RECOMMENDATIONS if pattern_type in fired]


class PatternAnalyzer:
    """
    Central analysis engine for population pattern detection
    Single entry point for both the on-demand trigger and the periodic scheduler
    """

    def __init__(
        self,
        reader: ClinicalDataReader,
        risk_scoring_service: Optional[RiskScoringService] = None,
        detectors: Optional[Sequence[PatternDetector]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        parallel: bool = True,
    ):
        """
        Initialize PatternAnalyzer with its collaborators

        Args:
            reader: Clinical data reader shared by every detector
            risk_scoring_service: Scorer used for patients named in HIGH alerts
            detectors: Detector suite; defaults to the seven standard detectors
            clock: Source of "now" for windows and timestamps
            parallel: Run detectors as concurrent tasks instead of one after another
        """
        self.reader = reader
        self.clock = clock or utcnow
        self.risk_scoring_service = risk_scoring_service or RiskScoringService(reader, self.clock)
        self.detectors = list(detectors) if detectors is not None else default_detectors(
            reader, self.clock
        )
        self.parallel = parallel

        logger.info(
            "PatternAnalyzer initialized with %s detectors (%s)",
            len(self.detectors),
            "parallel" if parallel else "sequential",
        )

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise AnalysisCancelled("Analysis cancelled by shutdown request")

    async def _run_detector(
        self,
        detector: PatternDetector,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> DetectorOutcome:
        """Failure boundary around one detector.

        Data-store outages and cancellation propagate; anything else is logged
        and the detector contributes no findings.
        """
        self._check_cancelled(cancel_event)
        try:
            findings = await detector.detect()
        except (DataUnavailable, AnalysisCancelled, asyncio.CancelledError):
            raise
        except Exception as exc:
            failure = DetectorFailure(detector.name, exc)
            logger.error(
                "%s; skipping its findings (%s)", failure.message, failure.detail, exc_info=True
            )
            return [], failure

        # Shutdown may have been requested while this detector ran
        self._check_cancelled(cancel_event)
        logger.debug("Detector %s produced %s findings", detector.name, len(findings))
        return findings, None

    async def _run_detectors(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> List[DetectorOutcome]:
        if not self.parallel:
            return [await self._run_detector(d, cancel_event) for d in self.detectors]

        tasks = [
            asyncio.create_task(self._run_detector(d, cancel_event)) for d in self.detectors
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        outcomes: List[DetectorOutcome] = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            outcomes.append(result)
        return outcomes

    async def _detect(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> Tuple[List[PatternFinding], List[str]]:
        outcomes = await self._run_detectors(cancel_event)

        patterns: List[PatternFinding] = []
        failed: List[str] = []
        for findings, failure in outcomes:
            patterns.extend(findings)
            if failure is not None:
                failed.append(failure.detector_name)

        logger.info(
            "Pattern detection completed. Found %s patterns (%s detectors failed)",
            len(patterns),
            len(failed),
        )
        return patterns, failed

    async def detect_patterns(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> List[PatternFinding]:
        """Run every detector and return the combined findings."""

        patterns, _ = await self._detect(cancel_event)
        return patterns

    async def _high_risk_patients(
        self,
        alerts: Sequence[PatternFinding],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[str]:
        high_risk: List[str] = []
        seen = set()
        for alert in alerts:
            for patient_id in alert.affected_patients or []:
                if patient_id in seen:
                    continue
                seen.add(patient_id)
                self._check_cancelled(cancel_event)
                try:
                    assessment = await self.risk_scoring_service.score(patient_id)
                except NotFoundError:
                    logger.warning(
                        "Patient %s named in %s alert no longer exists",
                        patient_id,
                        alert.pattern_type.value,
                    )
                    continue
                if assessment.risk_score > HIGH_RISK_THRESHOLD:
                    high_risk.append(patient_id)
        return high_risk

    async def run_complete_analysis(
        self, cancel_event: Optional[asyncio.Event] = None
    ) -> AnalysisSummary:
        """
        Full analysis run: detect patterns, score patients named in HIGH
        alerts, and derive system-wide recommendations.

        Raises:
            DataUnavailable: The clinical data store could not be reached
            AnalysisCancelled: Shutdown was requested mid-run
        """
        logger.info("Starting complete pattern analysis")
        analysis_start = self.clock()

        patterns, failed = await self._detect(cancel_event)
        alerts = [pattern for pattern in patterns if pattern.severity == Severity.HIGH]

        self._check_cancelled(cancel_event)
        high_risk_patients = await self._high_risk_patients(alerts, cancel_event)

        completed_at = self.clock()
        logger.info(
            "Analysis complete in %.2fs: %s patterns, %s alerts, %s high-risk patients",
            (completed_at - analysis_start).total_seconds(),
            len(patterns),
            len(alerts),
            len(high_risk_patients),
        )

        return AnalysisSummary(
            total_patterns=len(patterns),
            total_alerts=len(alerts),
            total_high_risk_patients=len(high_risk_patients),
            analysis_completed_at=completed_at,
            patterns=patterns,
            high_risk_patients=high_risk_patients,
            recommendations=generate_recommendations(patterns),
            failed_detectors=failed,
        )
