from typing import List

from ..models import PatternFinding, PatternType, Severity, VisitFrequencyMetadata
from ..utils.time_utils import in_window, months_ago
from .base import PatternDetector, confidence_from_count, mean


class VisitFrequencyDetector(PatternDetector):
    """Flags a group of patients visiting unusually often in the last six months."""

    name = "visit_frequency"
    pattern_type = PatternType.VISIT_FREQUENCY
    pattern_name = "High Visit Frequency Pattern"
    recommendation = (
        "Investigate underlying health conditions, consider comprehensive health assessments"
    )

    WINDOW_MONTHS = 6
    MIN_VISITS = 5
    MIN_PATIENTS = 3
    HIGH_SEVERITY_PATIENTS = 10
    NORMALIZATION = 20.0

    async def detect(self) -> List[PatternFinding]:
        now = self.clock()
        since = months_ago(now, self.WINDOW_MONTHS)
        today = now.date()

        frequent = []
        for patient in await self.reader.list_patients():
            recent_visits = sum(1 for v in patient.visits if in_window(v.visit_date, since))
            if recent_visits >= self.MIN_VISITS:
                frequent.append((patient, recent_visits))

        if len(frequent) < self.MIN_PATIENTS:
            return []

        count = len(frequent)
        return [
            PatternFinding(
                pattern_name=self.pattern_name,
                pattern_type=self.pattern_type,
                description=(
                    f"Found {count} patients with unusually high visit frequency "
                    f"({self.MIN_VISITS}+ visits in {self.WINDOW_MONTHS} months)"
                ),
                severity=Severity.HIGH if count > self.HIGH_SEVERITY_PATIENTS else Severity.MEDIUM,
                confidence_score=confidence_from_count(count, self.NORMALIZATION),
                affected_patients=[patient.id for patient, _ in frequent],
                recommendation=self.recommendation,
                detected_at=now,
                metadata=VisitFrequencyMetadata(
                    average_age=self._average_snapshot_age((p for p, _ in frequent), today),
                    average_visits=round(mean(visits for _, visits in frequent), 1),
                    patient_count=count,
                ),
            )
        ]
