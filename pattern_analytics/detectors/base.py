"""
Shared scaffolding for population-level pattern detectors.

A detector scans the population (or a windowed slice of it) through the
clinical data reader and emits zero or more findings. Detectors never catch
their own errors; the orchestrator owns the failure boundary.
"""

import logging
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from ..clinical_data_reader import ClinicalDataReader
from ..models import PatientSnapshot, PatternFinding, PatternType
from ..utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def confidence_from_count(count: int, normalization: float) -> float:
    return min(count / normalization, 1.0)


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean that treats an empty input as 0."""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


class PatternDetector:
    """Base class for one category of population anomaly."""

    name: str = "pattern"
    pattern_type: PatternType
    pattern_name: str
    recommendation: str

    def __init__(
        self,
        reader: ClinicalDataReader,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reader = reader
        self.clock = clock or utcnow

    async def detect(self) -> List[PatternFinding]:
        raise NotImplementedError

    async def _patient_ages(self, today: date) -> Dict[str, int]:
        """Map patient id to age for patients with a known birth date."""
        patients = await self.reader.list_patients()
        return {
            patient.id: patient.age(today)
            for patient in patients
            if patient.date_of_birth is not None
        }

    @staticmethod
    def _average_age(patient_ids: Iterable[str], ages: Dict[str, int]) -> float:
        return round(mean(ages[pid] for pid in patient_ids if pid in ages), 1)

    @staticmethod
    def _average_snapshot_age(patients: Iterable[PatientSnapshot], today: date) -> float:
        return round(mean(p.age(today) for p in patients if p.date_of_birth is not None), 1)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.pattern_type.value}>"
