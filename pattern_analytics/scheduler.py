"""
Periodic analysis scheduler.

Runs the pattern analyzer on a fixed interval in a background asyncio task.
Runs never overlap: a trigger that arrives while one is in flight is skipped.
"""

import asyncio
import logging
from typing import Optional

from .exceptions import AnalysisCancelled, NotFoundError, PatternAnalyticsError
from .models import AnalysisSummary, Severity
from .pattern_analyzer import PatternAnalyzer

logger = logging.getLogger(__name__)


class AnalysisScheduler:
    """Background loop around ``PatternAnalyzer.run_complete_analysis``."""

    def __init__(
        self,
        analyzer: PatternAnalyzer,
        interval_seconds: float,
        warmup_seconds: float = 0.0,
        error_backoff_seconds: Optional[float] = None,
    ):
        self.analyzer = analyzer
        self.interval_seconds = interval_seconds
        self.warmup_seconds = warmup_seconds
        self.error_backoff_seconds = (
            error_backoff_seconds if error_backoff_seconds is not None else interval_seconds
        )
        self.last_summary: Optional[AnalysisSummary] = None
        self._stop_event = asyncio.Event()
        self._run_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def run_in_progress(self) -> bool:
        return self._run_lock.locked()

    def start(self) -> None:
        if self.is_running:
            logger.warning("Analysis scheduler already started")
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._loop())
        logger.info(
            "Analysis scheduler started (warm-up %.0fs, interval %.0fs)",
            self.warmup_seconds,
            self.interval_seconds,
        )

    async def stop(self) -> None:
        """Signal shutdown and wait for the loop to finish its current step."""
        self._stop_event.set()
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None
        logger.info("Analysis scheduler stopped")

    async def run_once(self) -> Optional[AnalysisSummary]:
        """Run one analysis now, or return None if one is already in flight."""

        if self._run_lock.locked():
            logger.warning("Analysis run already in progress; skipping this trigger")
            return None

        async with self._run_lock:
            logger.info("Starting scheduled pattern analysis")
            summary = await self.analyzer.run_complete_analysis(cancel_event=self._stop_event)
            self.last_summary = summary
            await self._log_summary(summary)
            return summary

    async def _log_summary(self, summary: AnalysisSummary) -> None:
        logger.info(
            "Pattern analysis completed. Patterns: %s, Alerts: %s, High-risk patients: %s",
            summary.total_patterns,
            summary.total_alerts,
            summary.total_high_risk_patients,
        )

        high_patterns = [p for p in summary.patterns if p.severity == Severity.HIGH]
        for pattern in high_patterns[:5]:
            logger.warning("HIGH severity pattern: %s - %s", pattern.pattern_name, pattern.description)

        for patient_id in summary.high_risk_patients[:5]:
            try:
                assessment = await self.analyzer.risk_scoring_service.score(patient_id)
            except NotFoundError:
                continue
            except PatternAnalyticsError as exc:
                # The run already finished; a lookup failure here only shortens the log
                logger.warning("Skipping high-risk patient details: %s", exc.message)
                break
            logger.warning(
                "High-risk patient %s: risk score %.2f", patient_id, assessment.risk_score
            )

        for recommendation in summary.recommendations[:3]:
            logger.info("System recommendation: %s", recommendation)

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True when stop was requested meanwhile."""
        if self._stop_event.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=max(seconds, 0.0))
        except asyncio.TimeoutError:
            return False
        return True

    async def _loop(self) -> None:
        if await self._wait(self.warmup_seconds):
            return

        while True:
            try:
                await self.run_once()
                delay = self.interval_seconds
            except AnalysisCancelled:
                logger.info("Scheduled analysis cancelled by shutdown")
                return
            except Exception as exc:
                logger.error(
                    "Scheduled analysis failed: %s; retrying in %.0fs",
                    exc,
                    self.error_backoff_seconds,
                    exc_info=True,
                )
                delay = self.error_backoff_seconds

            if await self._wait(delay):
                return
