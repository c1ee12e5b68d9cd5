"""
Population pattern detectors.

Each detector is independent: it queries the clinical data reader on its
own and knows nothing about the other six.
"""

from datetime import datetime
from typing import Callable, List, Optional

from ..clinical_data_reader import ClinicalDataReader
from .allergy_cluster import AllergyClusterDetector
from .base import PatternDetector
from .blood_type import BloodTypeCorrelationDetector, group_by_blood_type
from .diagnosis_trend import DiagnosisTrendDetector
from .lab_anomaly import LabAnomalyDetector
from .seasonal_spike import SeasonalSpikeDetector
from .vaccination_gap import VaccinationGapDetector
from .visit_frequency import VisitFrequencyDetector

DETECTOR_CLASSES = (
    VisitFrequencyDetector,
    BloodTypeCorrelationDetector,
    VaccinationGapDetector,
    SeasonalSpikeDetector,
    AllergyClusterDetector,
    LabAnomalyDetector,
    DiagnosisTrendDetector,
)


def default_detectors(
    reader: ClinicalDataReader,
    clock: Optional[Callable[[], datetime]] = None,
) -> List[PatternDetector]:
    """Instantiate the standard detector suite in reporting order."""
    return [detector_class(reader, clock) for detector_class in DETECTOR_CLASSES]


__all__ = [
    "AllergyClusterDetector",
    "BloodTypeCorrelationDetector",
    "DETECTOR_CLASSES",
    "DiagnosisTrendDetector",
    "LabAnomalyDetector",
    "PatternDetector",
    "SeasonalSpikeDetector",
    "VaccinationGapDetector",
    "VisitFrequencyDetector",
    "default_detectors",
    "group_by_blood_type",
]
