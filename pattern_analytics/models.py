"""
Domain models for the pattern analytics engine.

Every model is frozen: an analysis run produces an immutable snapshot of
results and nothing downstream edits it in place.
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from .utils.time_utils import calculate_age, ensure_utc

UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RiskLevel(str, Enum):
    MINIMAL = "MINIMAL"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class LabStatus(str, Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    LOW = "LOW"
    CRITICAL = "CRITICAL"


ABNORMAL_LAB_STATUSES = frozenset({LabStatus.HIGH, LabStatus.LOW, LabStatus.CRITICAL})


class AllergySeverity(str, Enum):
    MILD = "MILD"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"
    LIFE_THREATENING = "LIFE_THREATENING"


class PatternType(str, Enum):
    VISIT_FREQUENCY = "VISIT_FREQUENCY"
    BLOOD_TYPE_CORRELATION = "BLOOD_TYPE_CORRELATION"
    VACCINATION_GAP = "VACCINATION_GAP"
    SEASONAL_PATTERN = "SEASONAL_PATTERN"
    ALLERGY_CLUSTER = "ALLERGY_CLUSTER"
    LAB_ANOMALY = "LAB_ANOMALY"
    DIAGNOSIS_TREND = "DIAGNOSIS_TREND"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ==================== Clinical records ====================


class VisitRecord(_Frozen):
    patient_id: str
    visit_date: Optional[UtcDatetime] = None
    symptoms: Optional[str] = None
    visit_type: Optional[str] = None


class AllergyRecord(_Frozen):
    patient_id: str
    allergen_name: Optional[str] = None
    severity: Optional[AllergySeverity] = None
    diagnosed_date: Optional[UtcDatetime] = None


class VaccinationRecord(_Frozen):
    patient_id: str
    vaccine_name: Optional[str] = None
    date_administered: Optional[UtcDatetime] = None


class LabResultRecord(_Frozen):
    patient_id: str
    test_name: Optional[str] = None
    value: Optional[float] = None
    status: Optional[LabStatus] = None
    test_date: Optional[UtcDatetime] = None

    @property
    def is_abnormal(self) -> bool:
        return self.status in ABNORMAL_LAB_STATUSES


class DiagnosisRecord(_Frozen):
    patient_id: str
    diagnosis_name: Optional[str] = None
    category: Optional[str] = None
    diagnosed_date: Optional[UtcDatetime] = None
    resolved_date: Optional[UtcDatetime] = None
    is_active: bool = True


class PatientSnapshot(_Frozen):
    """Read-only projection of one patient and their clinical history."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    blood_type: Optional[str] = None
    gender: Optional[str] = None
    visits: List[VisitRecord] = Field(default_factory=list)
    allergies: List[AllergyRecord] = Field(default_factory=list)
    vaccinations: List[VaccinationRecord] = Field(default_factory=list)
    lab_results: List[LabResultRecord] = Field(default_factory=list)
    diagnoses: List[DiagnosisRecord] = Field(default_factory=list)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def age(self, today: date) -> Optional[int]:
        return calculate_age(self.date_of_birth, today)

    def age_or_zero(self, today: date) -> int:
        return self.age(today) or 0

    def has_clinical_history(self) -> bool:
        return bool(self.visits or self.allergies or self.vaccinations or self.lab_results)


# ==================== Pattern metadata ====================


class VisitFrequencyMetadata(_Frozen):
    pattern_type: Literal[PatternType.VISIT_FREQUENCY] = PatternType.VISIT_FREQUENCY
    average_age: float
    average_visits: float
    patient_count: int


class BloodTypeVisitRate(_Frozen):
    blood_type: str
    avg_visits: float


class BloodTypeCorrelationMetadata(_Frozen):
    pattern_type: Literal[PatternType.BLOOD_TYPE_CORRELATION] = PatternType.BLOOD_TYPE_CORRELATION
    high_visit_blood_types: List[BloodTypeVisitRate]
    overall_average: float


class VaccinationGapMetadata(_Frozen):
    pattern_type: Literal[PatternType.VACCINATION_GAP] = PatternType.VACCINATION_GAP
    unvaccinated_count: int
    recommended_action: str = "Vaccination Campaign"


class SeasonalPatternMetadata(_Frozen):
    pattern_type: Literal[PatternType.SEASONAL_PATTERN] = PatternType.SEASONAL_PATTERN
    current_month_visits: int
    average_monthly_visits: float
    percentage_increase: float


class AllergyClusterMetadata(_Frozen):
    pattern_type: Literal[PatternType.ALLERGY_CLUSTER] = PatternType.ALLERGY_CLUSTER
    top_allergen: str
    affected_patients: int
    severe_cases: int
    average_age: float


class LabAnomalyMetadata(_Frozen):
    pattern_type: Literal[PatternType.LAB_ANOMALY] = PatternType.LAB_ANOMALY
    test_name: str
    abnormal_count: int
    critical_count: int
    average_patient_age: float


class DiagnosisTrendMetadata(_Frozen):
    pattern_type: Literal[PatternType.DIAGNOSIS_TREND] = PatternType.DIAGNOSIS_TREND
    diagnosis_name: str
    total_cases: int
    recent_cases: int
    average_patient_age: float


PatternMetadata = Annotated[
    Union[
        VisitFrequencyMetadata,
        BloodTypeCorrelationMetadata,
        VaccinationGapMetadata,
        SeasonalPatternMetadata,
        AllergyClusterMetadata,
        LabAnomalyMetadata,
        DiagnosisTrendMetadata,
    ],
    Field(discriminator="pattern_type"),
]


# ==================== Analysis results ====================


class PatternFinding(_Frozen):
    pattern_name: str
    pattern_type: PatternType
    description: str
    severity: Severity
    confidence_score: float = Field(ge=0.0, le=1.0)
    affected_patients: Optional[List[str]] = None
    recommendation: str
    detected_at: UtcDatetime
    metadata: PatternMetadata

    @model_validator(mode="after")
    def check_metadata_type(self) -> "PatternFinding":
        if self.metadata.pattern_type != self.pattern_type:
            raise ValueError(
                f"metadata for {self.metadata.pattern_type.value} attached to "
                f"{self.pattern_type.value} finding"
            )
        return self


class RiskAssessment(_Frozen):
    patient_id: str
    risk_score: float = Field(ge=0.0, le=1.0)
    risk_level: RiskLevel
    risk_factors: List[str] = Field(default_factory=list)


class CorrelationResult(_Frozen):
    factor1: str
    factor2: str
    correlation_strength: float = Field(ge=-1.0, le=1.0)
    significance: str
    sample_size: int
    insight: str


class SeasonalTrend(_Frozen):
    month: int = Field(ge=1, le=12)
    month_name: str
    season: str
    total_visits: int
    respiratory_issues: int
    allergic_reactions: int
    average_age_of_patients: float
    common_symptoms: List[str] = Field(default_factory=list)
    trend_strength: float


class PredictiveInsight(_Frozen):
    patient_id: str
    patient_name: str
    prediction_type: str
    risk_score: float
    probability: float
    time_frame: str
    recommended_actions: List[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)


class AnalysisSummary(_Frozen):
    total_patterns: int
    total_alerts: int
    total_high_risk_patients: int
    analysis_completed_at: UtcDatetime
    patterns: List[PatternFinding] = Field(default_factory=list)
    high_risk_patients: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    failed_detectors: List[str] = Field(default_factory=list)


# ==================== Patient analytics ====================


class PatientInfo(_Frozen):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    age: Optional[int] = None
    blood_type: Optional[str] = None
    gender: Optional[str] = None


class MedicalHistory(_Frozen):
    total_visits: int
    recent_visits: int
    last_visit: Optional[UtcDatetime] = None
    allergies_count: int
    vaccinations_count: int
    diagnoses_count: int
    lab_results_count: int


class Predictions(_Frozen):
    predicted_next_year_visits: int
    recommended_actions: List[str] = Field(default_factory=list)
    health_trend_score: float


class PatientAnalytics(_Frozen):
    patient_info: PatientInfo
    risk_assessment: RiskAssessment
    medical_history: MedicalHistory
    predictions: Predictions
    generated_at: UtcDatetime
