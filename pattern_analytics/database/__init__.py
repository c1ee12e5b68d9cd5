"""
Database module for the pattern analytics engine.

Provides connection management, the clinical read-model tables and the
SQL-backed clinical data reader.
"""

from .connection import get_db_session, init_database, close_database, is_initialized
from .models import Base, Patient, VisitRecord, Allergy, Vaccination, LabResult, Diagnosis
from .reader import SqlClinicalDataReader

__all__ = [
    "get_db_session",
    "init_database",
    "close_database",
    "is_initialized",
    "SqlClinicalDataReader",
    "Base",
    "Patient",
    "VisitRecord",
    "Allergy",
    "Vaccination",
    "LabResult",
    "Diagnosis",
]
