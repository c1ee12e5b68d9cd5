from collections import defaultdict
from typing import Dict, List

from ..models import (
    DiagnosisRecord,
    DiagnosisTrendMetadata,
    PatternFinding,
    PatternType,
    Severity,
)
from ..utils.time_utils import in_window, months_ago
from .base import PatternDetector, confidence_from_count


class DiagnosisTrendDetector(PatternDetector):
    """Reports the most frequent diagnoses of the last six months."""

    name = "diagnosis_trend"
    pattern_type = PatternType.DIAGNOSIS_TREND
    pattern_name = "Diagnosis Trend Pattern"
    recommendation = "Monitor disease prevalence, consider preventive measures"

    WINDOW_MONTHS = 6
    RECENT_MONTHS = 1
    MIN_CASES = 5
    HIGH_SEVERITY_CASES = 20
    TOP_N = 3
    NORMALIZATION = 25.0

    async def detect(self) -> List[PatternFinding]:
        now = self.clock()
        recent_since = months_ago(now, self.RECENT_MONTHS)

        by_name: Dict[str, List[DiagnosisRecord]] = defaultdict(list)
        for diagnosis in await self.reader.list_diagnoses(since=months_ago(now, self.WINDOW_MONTHS)):
            if diagnosis.diagnosis_name:
                by_name[diagnosis.diagnosis_name].append(diagnosis)

        ranked = sorted(
            (cases for cases in by_name.values() if len(cases) >= self.MIN_CASES),
            key=len,
            reverse=True,
        )[: self.TOP_N]
        if not ranked:
            return []

        ages = await self._patient_ages(now.date())
        findings = []
        for cases in ranked:
            diagnosis_name = cases[0].diagnosis_name
            total_cases = len(cases)
            findings.append(
                PatternFinding(
                    pattern_name=self.pattern_name,
                    pattern_type=self.pattern_type,
                    description=(
                        f"Increasing trend in {diagnosis_name} diagnoses "
                        f"({total_cases} cases in {self.WINDOW_MONTHS} months)"
                    ),
                    severity=(
                        Severity.HIGH if total_cases > self.HIGH_SEVERITY_CASES else Severity.MEDIUM
                    ),
                    confidence_score=confidence_from_count(total_cases, self.NORMALIZATION),
                    recommendation=self.recommendation,
                    detected_at=now,
                    metadata=DiagnosisTrendMetadata(
                        diagnosis_name=diagnosis_name,
                        total_cases=total_cases,
                        recent_cases=sum(
                            1 for d in cases if in_window(d.diagnosed_date, recent_since)
                        ),
                        average_patient_age=self._average_age((d.patient_id for d in cases), ages),
                    ),
                )
            )
        return findings
