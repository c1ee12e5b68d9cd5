import logging
from datetime import datetime
from typing import Callable, List, Optional

from .clinical_data_reader import ClinicalDataReader
from .exceptions import NotFoundError
from .models import AllergySeverity, PatientSnapshot, RiskAssessment, RiskLevel
from .utils.time_utils import in_window, months_ago, utcnow

logger = logging.getLogger(__name__)

RECENT_VISIT_MONTHS = 6
RECENT_LAB_MONTHS = 3

# (exclusive lower bound, weight) pairs, checked top-down; first match wins
AGE_WEIGHTS = ((80, 0.3), (70, 0.2), (60, 0.1))
RECENT_VISIT_WEIGHTS = ((6, 0.25), (4, 0.15), (2, 0.10))
SEVERE_ALLERGY_WEIGHTS = ((3, 0.15), (1, 0.10))
ABNORMAL_LAB_WEIGHTS = ((5, 0.20), (3, 0.15), (1, 0.10))

ANY_ALLERGY_WEIGHT = 0.05
NO_VACCINATION_WEIGHT = 0.10
SINGLE_VACCINATION_WEIGHT = 0.05

RISK_LEVEL_BREAKPOINTS = (
    (0.8, RiskLevel.CRITICAL),
    (0.6, RiskLevel.HIGH),
    (0.4, RiskLevel.MEDIUM),
    (0.2, RiskLevel.LOW),
)


def _tiered_weight(value: int, tiers) -> float:
    for threshold, weight in tiers:
        if value > threshold:
            return weight
    return 0.0


def recent_visit_count(patient: PatientSnapshot, now: datetime) -> int:
    since = months_ago(now, RECENT_VISIT_MONTHS)
    return sum(1 for visit in patient.visits if in_window(visit.visit_date, since))


def recent_abnormal_lab_count(patient: PatientSnapshot, now: datetime) -> int:
    since = months_ago(now, RECENT_LAB_MONTHS)
    return sum(
        1
        for lab in patient.lab_results
        if lab.is_abnormal and in_window(lab.test_date, since)
    )


def severe_allergy_count(patient: PatientSnapshot) -> int:
    return sum(1 for allergy in patient.allergies if allergy.severity == AllergySeverity.SEVERE)


def score_snapshot(patient: PatientSnapshot, now: datetime) -> float:
    """Compute the bounded [0, 1] heuristic risk score for a loaded patient."""

    if not patient.has_clinical_history():
        return 0.0

    age = patient.age_or_zero(now.date())
    risk_score = _tiered_weight(age, AGE_WEIGHTS)
    risk_score += _tiered_weight(recent_visit_count(patient, now), RECENT_VISIT_WEIGHTS)

    severe_allergies = severe_allergy_count(patient)
    allergy_weight = _tiered_weight(severe_allergies, SEVERE_ALLERGY_WEIGHTS)
    if not allergy_weight and patient.allergies:
        allergy_weight = ANY_ALLERGY_WEIGHT
    risk_score += allergy_weight

    vaccination_count = len(patient.vaccinations)
    if vaccination_count == 0:
        risk_score += NO_VACCINATION_WEIGHT
    elif vaccination_count == 1:
        risk_score += SINGLE_VACCINATION_WEIGHT

    risk_score += _tiered_weight(recent_abnormal_lab_count(patient, now), ABNORMAL_LAB_WEIGHTS)

    # Weights are multiples of 0.05; rounding removes float drift at the breakpoints
    return round(min(risk_score, 1.0), 4)


def risk_level_for(risk_score: float) -> RiskLevel:
    for breakpoint, level in RISK_LEVEL_BREAKPOINTS:
        if risk_score >= breakpoint:
            return level
    return RiskLevel.MINIMAL


def risk_factors_for(patient: PatientSnapshot, now: datetime) -> List[str]:
    """Human-readable reasons behind a patient's score."""

    if not patient.has_clinical_history():
        return []

    factors: List[str] = []
    if patient.age_or_zero(now.date()) > 70:
        factors.append("Advanced age")
    if recent_visit_count(patient, now) > 4:
        factors.append("Frequent medical visits")
    if severe_allergy_count(patient) > 0:
        factors.append("Severe allergies")
    if len(patient.vaccinations) < 2:
        factors.append("Incomplete vaccinations")
    if recent_abnormal_lab_count(patient, now) > 1:
        factors.append("Recent abnormal lab results")
    return factors


class RiskScoringService:
    """Service for computing per-patient risk assessments."""

    def __init__(
        self,
        reader: ClinicalDataReader,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reader = reader
        self.clock = clock or utcnow

    async def score(self, patient_id: str) -> RiskAssessment:
        """Load a patient and assess their risk; raises NotFoundError if unknown."""

        patient = await self.reader.get_patient(patient_id)
        if patient is None:
            raise NotFoundError(patient_id)
        return self.assess(patient)

    def assess(self, patient: PatientSnapshot) -> RiskAssessment:
        now = self.clock()
        risk_score = score_snapshot(patient, now)
        logger.debug("Risk score for patient %s: %.3f", patient.id, risk_score)
        return RiskAssessment(
            patient_id=patient.id,
            risk_score=risk_score,
            risk_level=risk_level_for(risk_score),
            risk_factors=risk_factors_for(patient, now),
        )
