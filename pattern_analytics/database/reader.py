"""
SQL-backed clinical data reader.

Maps ORM rows from the clinical read model onto the immutable snapshot and
record models used by the analytics services.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import AsyncGenerator, Callable, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import DataUnavailable
from ..models import (
    AllergyRecord,
    AllergySeverity,
    DiagnosisRecord,
    LabResultRecord,
    LabStatus,
    PatientSnapshot,
    VaccinationRecord,
    VisitRecord,
)
from . import models as db
from .connection import get_db_session

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def _enum_or_none(enum_cls: Type[E], raw: Optional[str]) -> Optional[E]:
    if raw is None:
        return None
    try:
        return enum_cls(raw.strip().upper())
    except ValueError:
        logger.debug("Ignoring unknown %s value %r", enum_cls.__name__, raw)
        return None


def visit_from_row(row: db.VisitRecord) -> VisitRecord:
    return VisitRecord(
        patient_id=row.patient_id,
        visit_date=row.visit_date,
        symptoms=row.symptoms,
        visit_type=row.visit_type,
    )


def allergy_from_row(row: db.Allergy) -> AllergyRecord:
    return AllergyRecord(
        patient_id=row.patient_id,
        allergen_name=row.allergen_name,
        severity=_enum_or_none(AllergySeverity, row.severity),
        diagnosed_date=row.diagnosed_date,
    )


def vaccination_from_row(row: db.Vaccination) -> VaccinationRecord:
    return VaccinationRecord(
        patient_id=row.patient_id,
        vaccine_name=row.vaccine_name,
        date_administered=row.date_administered,
    )


def lab_result_from_row(row: db.LabResult) -> LabResultRecord:
    return LabResultRecord(
        patient_id=row.patient_id,
        test_name=row.test_name,
        value=row.value,
        status=_enum_or_none(LabStatus, row.status),
        test_date=row.test_date,
    )


def diagnosis_from_row(row: db.Diagnosis) -> DiagnosisRecord:
    return DiagnosisRecord(
        patient_id=row.patient_id,
        diagnosis_name=row.diagnosis_name,
        category=row.category,
        diagnosed_date=row.diagnosed_date,
        resolved_date=row.resolved_date,
        is_active=bool(row.is_active) if row.is_active is not None else True,
    )


def snapshot_from_row(row: db.Patient) -> PatientSnapshot:
    return PatientSnapshot(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        date_of_birth=row.date_of_birth,
        blood_type=row.blood_type,
        gender=row.gender,
        visits=[visit_from_row(v) for v in row.visits],
        allergies=[allergy_from_row(a) for a in row.allergies],
        vaccinations=[vaccination_from_row(v) for v in row.vaccinations],
        lab_results=[lab_result_from_row(lab) for lab in row.lab_results],
        diagnoses=[diagnosis_from_row(d) for d in row.diagnoses],
    )


class SqlClinicalDataReader:
    """Clinical data reader over the SQLAlchemy read model.

    Every call opens its own session, so two calls in the same analysis run
    may observe different data.
    """

    def __init__(self, session_provider: Callable = get_db_session):
        self._session_provider = session_provider

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self._session_provider() as session:
                yield session
        except (SQLAlchemyError, OSError, RuntimeError) as exc:
            logger.error("Clinical data store unavailable during %s: %s", operation, exc)
            raise DataUnavailable(
                message="Clinical data store is unavailable",
                detail=f"{operation}: {type(exc).__name__}: {exc}",
            ) from exc

    async def get_patient(self, patient_id: str) -> Optional[PatientSnapshot]:
        async with self._session("get_patient") as session:
            row = await session.get(db.Patient, patient_id)
            return snapshot_from_row(row) if row is not None else None

    async def list_patients(self) -> List[PatientSnapshot]:
        async with self._session("list_patients") as session:
            result = await session.execute(select(db.Patient).order_by(db.Patient.id))
            return [snapshot_from_row(row) for row in result.scalars().all()]

    async def list_visits(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> List[VisitRecord]:
        query = select(db.VisitRecord)
        if since is not None:
            query = query.where(db.VisitRecord.visit_date >= since)
        if until is not None:
            query = query.where(db.VisitRecord.visit_date <= until)

        async with self._session("list_visits") as session:
            result = await session.execute(query.order_by(db.VisitRecord.visit_date))
            return [visit_from_row(row) for row in result.scalars().all()]

    async def list_allergies(self) -> List[AllergyRecord]:
        async with self._session("list_allergies") as session:
            result = await session.execute(select(db.Allergy))
            return [allergy_from_row(row) for row in result.scalars().all()]

    async def list_vaccinations(self) -> List[VaccinationRecord]:
        async with self._session("list_vaccinations") as session:
            result = await session.execute(select(db.Vaccination))
            return [vaccination_from_row(row) for row in result.scalars().all()]

    async def list_lab_results(self, since: Optional[datetime] = None) -> List[LabResultRecord]:
        query = select(db.LabResult)
        if since is not None:
            query = query.where(db.LabResult.test_date >= since)

        async with self._session("list_lab_results") as session:
            result = await session.execute(query)
            return [lab_result_from_row(row) for row in result.scalars().all()]

    async def list_diagnoses(self, since: Optional[datetime] = None) -> List[DiagnosisRecord]:
        query = select(db.Diagnosis)
        if since is not None:
            query = query.where(db.Diagnosis.diagnosed_date >= since)

        async with self._session("list_diagnoses") as session:
            result = await session.execute(query)
            return [diagnosis_from_row(row) for row in result.scalars().all()]
