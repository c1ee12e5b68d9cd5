from collections import defaultdict
from typing import Dict, List

from ..models import (
    LabAnomalyMetadata,
    LabResultRecord,
    LabStatus,
    PatternFinding,
    PatternType,
    Severity,
)
from ..utils.time_utils import months_ago
from .base import PatternDetector, confidence_from_count


class LabAnomalyDetector(PatternDetector):
    """Reports the lab tests with the most abnormal results in the last three months."""

    name = "lab_anomaly"
    pattern_type = PatternType.LAB_ANOMALY
    pattern_name = "Lab Result Anomaly Pattern"
    recommendation = (
        "Review lab procedures, investigate potential causes, consider additional testing"
    )

    WINDOW_MONTHS = 3
    MIN_ABNORMAL_RESULTS = 10
    HIGH_SEVERITY_CRITICAL_RESULTS = 5
    TOP_N = 3
    NORMALIZATION = 30.0

    async def detect(self) -> List[PatternFinding]:
        now = self.clock()
        since = months_ago(now, self.WINDOW_MONTHS)

        by_test: Dict[str, List[LabResultRecord]] = defaultdict(list)
        for lab in await self.reader.list_lab_results(since=since):
            if lab.is_abnormal and lab.test_name:
                by_test[lab.test_name].append(lab)

        ranked = sorted(
            (labs for labs in by_test.values() if len(labs) >= self.MIN_ABNORMAL_RESULTS),
            key=len,
            reverse=True,
        )[: self.TOP_N]
        if not ranked:
            return []

        ages = await self._patient_ages(now.date())
        findings = []
        for labs in ranked:
            test_name = labs[0].test_name
            abnormal_count = len(labs)
            critical_count = sum(1 for lab in labs if lab.status == LabStatus.CRITICAL)
            findings.append(
                PatternFinding(
                    pattern_name=self.pattern_name,
                    pattern_type=self.pattern_type,
                    description=(
                        f"High rate of abnormal {test_name} results "
                        f"({abnormal_count} cases in {self.WINDOW_MONTHS} months)"
                    ),
                    severity=(
                        Severity.HIGH
                        if critical_count >= self.HIGH_SEVERITY_CRITICAL_RESULTS
                        else Severity.MEDIUM
                    ),
                    confidence_score=confidence_from_count(abnormal_count, self.NORMALIZATION),
                    recommendation=self.recommendation,
                    detected_at=now,
                    metadata=LabAnomalyMetadata(
                        test_name=test_name,
                        abnormal_count=abnormal_count,
                        critical_count=critical_count,
                        average_patient_age=self._average_age((lab.patient_id for lab in labs), ages),
                    ),
                )
            )
        return findings
