import logging
from datetime import datetime
from typing import Callable, List, Optional

from .clinical_data_reader import ClinicalDataReader
from .exceptions import NotFoundError
from .models import (
    MedicalHistory,
    PatientAnalytics,
    PatientInfo,
    PatientSnapshot,
    Predictions,
)
from .predictive_insights_service import predict_next_year_visits
from .risk_scoring_service import RiskScoringService, recent_visit_count, severe_allergy_count
from .utils.time_utils import in_window, months_ago, utcnow, years_ago

logger = logging.getLogger(__name__)


def recommended_actions(patient: PatientSnapshot, risk_score: float) -> List[str]:
    actions = []
    if risk_score > 0.6:
        actions.append("Schedule comprehensive health assessment")
    if len(patient.vaccinations) < 3:
        actions.append("Update vaccination status")
    if severe_allergy_count(patient) > 0:
        actions.append("Allergy management review")
    return actions


def health_trend_score(patient: PatientSnapshot, now: datetime) -> float:
    """Compare the last six months of visits with the six months before them.

    0.5 is neutral (no earlier visits to compare against); fewer recent visits
    push the score toward 1, more push it toward 0.
    """

    half_year = months_ago(now, 6)
    recent = sum(1 for v in patient.visits if in_window(v.visit_date, half_year))
    older = sum(
        1
        for v in patient.visits
        if in_window(v.visit_date, years_ago(now, 1)) and v.visit_date < half_year
    )
    if older == 0:
        return 0.5
    return max(0.0, 1 - recent / older)


class PatientAnalyticsService:
    """Service responsible for the per-patient analytics view."""

    def __init__(
        self,
        reader: ClinicalDataReader,
        risk_scoring_service: Optional[RiskScoringService] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reader = reader
        self.clock = clock or utcnow
        self.risk_scoring_service = risk_scoring_service or RiskScoringService(reader, self.clock)

    async def get_patient_analytics(self, patient_id: str) -> PatientAnalytics:
        """Combine risk, history counts and predictions for one patient."""

        logger.info("Building analytics for patient %s", patient_id)
        patient = await self.reader.get_patient(patient_id)
        if patient is None:
            raise NotFoundError(patient_id)

        now = self.clock()
        assessment = self.risk_scoring_service.assess(patient)
        dated_visits = [v.visit_date for v in patient.visits if v.visit_date is not None]

        return PatientAnalytics(
            patient_info=PatientInfo(
                id=patient.id,
                first_name=patient.first_name,
                last_name=patient.last_name,
                age=patient.age(now.date()),
                blood_type=patient.blood_type,
                gender=patient.gender,
            ),
            risk_assessment=assessment,
            medical_history=MedicalHistory(
                total_visits=len(patient.visits),
                recent_visits=recent_visit_count(patient, now),
                last_visit=max(dated_visits) if dated_visits else None,
                allergies_count=len(patient.allergies),
                vaccinations_count=len(patient.vaccinations),
                diagnoses_count=len(patient.diagnoses),
                lab_results_count=len(patient.lab_results),
            ),
            predictions=Predictions(
                predicted_next_year_visits=predict_next_year_visits(patient.visits, now),
                recommended_actions=recommended_actions(patient, assessment.risk_score),
                health_trend_score=health_trend_score(patient, now),
            ),
            generated_at=now,
        )
