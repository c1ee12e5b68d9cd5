from typing import List

from ..models import PatternFinding, PatternType, Severity, VaccinationGapMetadata
from .base import PatternDetector, confidence_from_count


class VaccinationGapDetector(PatternDetector):
    """Counts adults whose vaccination records look incomplete."""

    name = "vaccination_gap"
    pattern_type = PatternType.VACCINATION_GAP
    pattern_name = "Vaccination Gap Pattern"
    recommendation = "Implement vaccination outreach programs, send reminders to patients"

    ADULT_AGE = 18
    MIN_VACCINATIONS = 2
    MIN_PATIENTS = 10
    HIGH_SEVERITY_PATIENTS = 50
    NORMALIZATION = 100.0

    async def detect(self) -> List[PatternFinding]:
        now = self.clock()
        today = now.date()

        under_vaccinated = sum(
            1
            for patient in await self.reader.list_patients()
            if len(patient.vaccinations) < self.MIN_VACCINATIONS
            and patient.age_or_zero(today) >= self.ADULT_AGE
        )
        if under_vaccinated < self.MIN_PATIENTS:
            return []

        return [
            PatternFinding(
                pattern_name=self.pattern_name,
                pattern_type=self.pattern_type,
                description=(
                    f"Found {under_vaccinated} adult patients with incomplete vaccination records"
                ),
                severity=(
                    Severity.HIGH
                    if under_vaccinated > self.HIGH_SEVERITY_PATIENTS
                    else Severity.MEDIUM
                ),
                confidence_score=confidence_from_count(under_vaccinated, self.NORMALIZATION),
                recommendation=self.recommendation,
                detected_at=now,
                metadata=VaccinationGapMetadata(unvaccinated_count=under_vaccinated),
            )
        ]
