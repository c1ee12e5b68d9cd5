"""
SQLAlchemy models for the clinical read model.

The analytics engine only reads these tables; the clinical system that owns
them writes patients and their history.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Patient(Base):
    """Patient demographics."""

    __tablename__ = "patients"

    id = Column(String(36), primary_key=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    date_of_birth = Column(Date)
    blood_type = Column(String(5), index=True)
    gender = Column(String(20))
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    # Relationships
    visits = relationship(
        "VisitRecord", back_populates="patient", cascade="all, delete-orphan", lazy="selectin"
    )
    allergies = relationship(
        "Allergy", back_populates="patient", cascade="all, delete-orphan", lazy="selectin"
    )
    vaccinations = relationship(
        "Vaccination", back_populates="patient", cascade="all, delete-orphan", lazy="selectin"
    )
    lab_results = relationship(
        "LabResult", back_populates="patient", cascade="all, delete-orphan", lazy="selectin"
    )
    diagnoses = relationship(
        "Diagnosis", back_populates="patient", cascade="all, delete-orphan", lazy="selectin"
    )


class VisitRecord(Base):
    """One clinical encounter."""

    __tablename__ = "visit_records"

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    visit_date = Column(DateTime(timezone=True), index=True)
    symptoms = Column(Text)  # free text, keyword-matched by the seasonal analyzer
    visit_type = Column(String(50))

    patient = relationship("Patient", back_populates="visits")

    __table_args__ = (
        Index("idx_visit_patient_date", "patient_id", "visit_date"),
    )


class Allergy(Base):
    """Recorded allergy."""

    __tablename__ = "allergies"

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    allergen_name = Column(String(255), index=True)
    severity = Column(String(20))  # MILD, MODERATE, SEVERE, LIFE_THREATENING
    diagnosed_date = Column(DateTime(timezone=True))

    patient = relationship("Patient", back_populates="allergies")


class Vaccination(Base):
    """Administered vaccine."""

    __tablename__ = "vaccinations"

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    vaccine_name = Column(String(255))
    date_administered = Column(DateTime(timezone=True))

    patient = relationship("Patient", back_populates="vaccinations")


class LabResult(Base):
    """Lab test result."""

    __tablename__ = "lab_results"

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    test_name = Column(String(255), index=True)
    value = Column(Float)
    status = Column(String(20))  # NORMAL, HIGH, LOW, CRITICAL
    test_date = Column(DateTime(timezone=True), index=True)

    patient = relationship("Patient", back_populates="lab_results")


class Diagnosis(Base):
    """Diagnosis with its active/resolved state."""

    __tablename__ = "diagnoses"

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    diagnosis_name = Column(String(255), index=True)
    category = Column(String(100))
    diagnosed_date = Column(DateTime(timezone=True), index=True)
    resolved_date = Column(DateTime(timezone=True))
    is_active = Column(Boolean, default=True)

    patient = relationship("Patient", back_populates="diagnoses")
