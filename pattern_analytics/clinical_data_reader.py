import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol

from .models import (
    AllergyRecord,
    DiagnosisRecord,
    LabResultRecord,
    PatientSnapshot,
    VaccinationRecord,
    VisitRecord,
)
from .utils.time_utils import in_window

logger = logging.getLogger(__name__)


class ClinicalDataReader(Protocol):
    """Read-only access to patients and their clinical history.

    Implementations raise ``DataUnavailable`` when the backing store cannot
    be reached. Every call is an independent query; two calls in the same
    analysis run may observe different data.
    """

    async def get_patient(self, patient_id: str) -> Optional[PatientSnapshot]:
        ...

    async def list_patients(self) -> List[PatientSnapshot]:
        ...

    async def list_visits(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> List[VisitRecord]:
        ...

    async def list_allergies(self) -> List[AllergyRecord]:
        ...

    async def list_vaccinations(self) -> List[VaccinationRecord]:
        ...

    async def list_lab_results(self, since: Optional[datetime] = None) -> List[LabResultRecord]:
        ...

    async def list_diagnoses(self, since: Optional[datetime] = None) -> List[DiagnosisRecord]:
        ...


class InMemoryClinicalDataReader:
    """Clinical data reader over an in-process population of snapshots."""

    def __init__(self, patients: Optional[Iterable[PatientSnapshot]] = None):
        self._patients: Dict[str, PatientSnapshot] = {}
        for patient in patients or []:
            self._patients[patient.id] = patient
        logger.info("In-memory clinical reader loaded with %s patients", len(self._patients))

    def add_patient(self, patient: PatientSnapshot) -> None:
        self._patients[patient.id] = patient

    async def get_patient(self, patient_id: str) -> Optional[PatientSnapshot]:
        return self._patients.get(patient_id)

    async def list_patients(self) -> List[PatientSnapshot]:
        return list(self._patients.values())

    async def list_visits(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> List[VisitRecord]:
        return [
            visit
            for patient in self._patients.values()
            for visit in patient.visits
            if in_window(visit.visit_date, since, until)
        ]

    async def list_allergies(self) -> List[AllergyRecord]:
        return [allergy for patient in self._patients.values() for allergy in patient.allergies]

    async def list_vaccinations(self) -> List[VaccinationRecord]:
        return [
            vaccination
            for patient in self._patients.values()
            for vaccination in patient.vaccinations
        ]

    async def list_lab_results(self, since: Optional[datetime] = None) -> List[LabResultRecord]:
        return [
            lab
            for patient in self._patients.values()
            for lab in patient.lab_results
            if in_window(lab.test_date, since)
        ]

    async def list_diagnoses(self, since: Optional[datetime] = None) -> List[DiagnosisRecord]:
        return [
            diagnosis
            for patient in self._patients.values()
            for diagnosis in patient.diagnoses
            if in_window(diagnosis.diagnosed_date, since)
        ]
