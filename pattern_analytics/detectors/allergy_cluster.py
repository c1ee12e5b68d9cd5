from collections import defaultdict
from typing import Dict, List

from ..models import (
    AllergyClusterMetadata,
    AllergyRecord,
    AllergySeverity,
    PatternFinding,
    PatternType,
    Severity,
)
from .base import PatternDetector, confidence_from_count


class AllergyClusterDetector(PatternDetector):
    """Looks for one allergen shared by an unusually large part of the population."""

    name = "allergy_cluster"
    pattern_type = PatternType.ALLERGY_CLUSTER
    pattern_name = "Allergy Cluster Pattern"
    recommendation = "Investigate environmental factors, consider allergy prevention measures"

    MIN_GROUP_SIZE = 5
    MIN_CLUSTER_SIZE = 20
    HIGH_SEVERITY_SEVERE_CASES = 5
    NORMALIZATION = 50.0

    async def detect(self) -> List[PatternFinding]:
        now = self.clock()

        by_allergen: Dict[str, List[AllergyRecord]] = defaultdict(list)
        for allergy in await self.reader.list_allergies():
            if allergy.allergen_name:
                by_allergen[allergy.allergen_name].append(allergy)

        ranked = sorted(
            (records for records in by_allergen.values() if len(records) >= self.MIN_GROUP_SIZE),
            key=len,
            reverse=True,
        )
        if not ranked or len(ranked[0]) < self.MIN_CLUSTER_SIZE:
            return []

        top = ranked[0]
        allergen = top[0].allergen_name
        count = len(top)
        severe_cases = sum(1 for record in top if record.severity == AllergySeverity.SEVERE)
        ages = await self._patient_ages(now.date())

        return [
            PatternFinding(
                pattern_name=self.pattern_name,
                pattern_type=self.pattern_type,
                description=f"High concentration of {allergen} allergies ({count} patients)",
                severity=(
                    Severity.HIGH
                    if severe_cases > self.HIGH_SEVERITY_SEVERE_CASES
                    else Severity.MEDIUM
                ),
                confidence_score=confidence_from_count(count, self.NORMALIZATION),
                recommendation=self.recommendation,
                detected_at=now,
                metadata=AllergyClusterMetadata(
                    top_allergen=allergen,
                    affected_patients=count,
                    severe_cases=severe_cases,
                    average_age=self._average_age((r.patient_id for r in top), ages),
                ),
            )
        ]
