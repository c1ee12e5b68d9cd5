from collections import defaultdict
from typing import Dict, List

from ..models import (
    BloodTypeCorrelationMetadata,
    BloodTypeVisitRate,
    PatientSnapshot,
    PatternFinding,
    PatternType,
    Severity,
)
from .base import PatternDetector, mean


def group_by_blood_type(patients: List[PatientSnapshot]) -> Dict[str, List[PatientSnapshot]]:
    groups: Dict[str, List[PatientSnapshot]] = defaultdict(list)
    for patient in patients:
        if patient.blood_type:
            groups[patient.blood_type].append(patient)
    return dict(groups)


class BloodTypeCorrelationDetector(PatternDetector):
    """Flags blood types whose members visit far more often than the other groups."""

    name = "blood_type_correlation"
    pattern_type = PatternType.BLOOD_TYPE_CORRELATION
    pattern_name = "Blood Type Visit Correlation"
    recommendation = "Monitor patients with these blood types more closely"

    MIN_GROUP_SIZE = 10
    MIN_GROUPS = 2
    VISIT_RATIO = 1.5
    CONFIDENCE = 0.7

    async def detect(self) -> List[PatternFinding]:
        now = self.clock()
        groups = group_by_blood_type(await self.reader.list_patients())

        avg_visits_by_type = {
            blood_type: mean(len(p.visits) for p in members)
            for blood_type, members in groups.items()
            if len(members) >= self.MIN_GROUP_SIZE
        }
        if len(avg_visits_by_type) < self.MIN_GROUPS:
            return []

        overall_average = mean(avg_visits_by_type.values())
        high_visit_types = [
            BloodTypeVisitRate(blood_type=blood_type, avg_visits=round(avg, 2))
            for blood_type, avg in avg_visits_by_type.items()
            if avg > overall_average * self.VISIT_RATIO
        ]
        if not high_visit_types:
            return []

        labels = ", ".join(rate.blood_type for rate in high_visit_types)
        return [
            PatternFinding(
                pattern_name=self.pattern_name,
                pattern_type=self.pattern_type,
                description=f"Blood type(s) {labels} show higher visit frequency",
                severity=Severity.MEDIUM,
                confidence_score=self.CONFIDENCE,
                recommendation=self.recommendation,
                detected_at=now,
                metadata=BloodTypeCorrelationMetadata(
                    high_visit_blood_types=high_visit_types,
                    overall_average=round(overall_average, 2),
                ),
            )
        ]
