import logging
from datetime import datetime
from typing import Callable, List, Optional

from .clinical_data_reader import ClinicalDataReader
from .models import PatientSnapshot, PredictiveInsight, VisitRecord
from .risk_scoring_service import score_snapshot
from .utils.time_utils import in_window, months_ago, utcnow, years_ago

logger = logging.getLogger(__name__)

CHRONIC_MIN_VISITS = 5
CHRONIC_CANDIDATE_LIMIT = 20
CHRONIC_RISK_THRESHOLD = 0.5
CHRONIC_ACTIONS = [
    "Schedule comprehensive health assessment",
    "Monitor vital signs more frequently",
    "Review medication adherence",
    "Lifestyle counseling recommended",
]

VACCINATION_GAP_MAX_VACCINATIONS = 3
VACCINATION_GAP_LIMIT = 10
VACCINATION_GAP_ACTIONS = [
    "Review vaccination history",
    "Schedule missing vaccinations",
    "Educate about vaccine importance",
]


def predict_next_year_visits(visits: List[VisitRecord], now: datetime) -> int:
    """Linear heuristic: the larger of last year's count and twice the last half-year's."""

    if not visits:
        return 0

    last_year = sum(1 for v in visits if in_window(v.visit_date, years_ago(now, 1)))
    half_year_trend = sum(1 for v in visits if in_window(v.visit_date, months_ago(now, 6))) * 2
    return max(last_year, half_year_trend)


class PredictiveInsightsService:
    """Forward-looking, patient-level recommendations."""

    def __init__(
        self,
        reader: ClinicalDataReader,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reader = reader
        self.clock = clock or utcnow

    async def predictive_insights(self) -> List[PredictiveInsight]:
        now = self.clock()
        patients = await self.reader.list_patients()

        insights = self._chronic_condition_insights(patients, now)
        insights.extend(self._vaccination_gap_insights(patients))

        logger.info("Generated %s predictive insights", len(insights))
        return insights

    def _chronic_condition_insights(
        self, patients: List[PatientSnapshot], now: datetime
    ) -> List[PredictiveInsight]:
        candidates = [
            patient
            for patient in patients
            if patient.date_of_birth is not None and len(patient.visits) >= CHRONIC_MIN_VISITS
        ][:CHRONIC_CANDIDATE_LIMIT]

        insights = []
        for patient in candidates:
            risk_score = score_snapshot(patient, now)
            if risk_score <= CHRONIC_RISK_THRESHOLD:
                continue
            insights.append(
                PredictiveInsight(
                    patient_id=patient.id,
                    patient_name=patient.full_name,
                    prediction_type="Chronic Condition Risk",
                    risk_score=round(risk_score, 3),
                    probability=round(risk_score * 100, 1),
                    time_frame="6-12 months",
                    recommended_actions=list(CHRONIC_ACTIONS),
                    confidence=round(0.7 + risk_score * 0.2, 2),
                )
            )
        return insights

    @staticmethod
    def _vaccination_gap_insights(patients: List[PatientSnapshot]) -> List[PredictiveInsight]:
        under_vaccinated = [
            patient
            for patient in patients
            if len(patient.vaccinations) < VACCINATION_GAP_MAX_VACCINATIONS
        ][:VACCINATION_GAP_LIMIT]

        return [
            PredictiveInsight(
                patient_id=patient.id,
                patient_name=patient.full_name,
                prediction_type="Vaccination Gap",
                risk_score=0.3,
                probability=85.0,
                time_frame="Next 3 months",
                recommended_actions=list(VACCINATION_GAP_ACTIONS),
                confidence=0.9,
            )
            for patient in under_vaccinated
        ]
