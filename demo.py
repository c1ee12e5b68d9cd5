#!/usr/bin/env python3
"""
Medical Pattern Analytics - Quick Demo Script

Seeds a synthetic patient population in memory and runs the complete
pattern analysis, correlations, seasonal trends and predictive insights.

Usage:
    python demo.py
"""

import asyncio
import random
from datetime import date, timedelta

from pattern_analytics.clinical_data_reader import InMemoryClinicalDataReader
from pattern_analytics.correlation_service import CorrelationService
from pattern_analytics.models import (
    AllergyRecord,
    AllergySeverity,
    DiagnosisRecord,
    LabResultRecord,
    LabStatus,
    PatientSnapshot,
    VaccinationRecord,
    VisitRecord,
)
from pattern_analytics.pattern_analyzer import PatternAnalyzer
from pattern_analytics.predictive_insights_service import PredictiveInsightsService
from pattern_analytics.seasonal_trends_service import SeasonalTrendsService
from pattern_analytics.utils.time_utils import utcnow

BLOOD_TYPES = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
SYMPTOMS = ["cough", "fever", "skin rash", "headache", "back pain", "itchy eyes", "fatigue"]
ALLERGENS = ["Penicillin", "Peanuts", "Pollen", "Latex", "Shellfish"]
LAB_TESTS = ["Glucose", "Hemoglobin", "Cholesterol", "Sodium"]
DIAGNOSES = ["Influenza", "Hypertension", "Asthma", "Type 2 Diabetes"]


def build_population(size: int = 150, seed: int = 7):
    """Generate a reproducible synthetic population."""
    rng = random.Random(seed)
    now = utcnow()
    patients = []

    for index in range(size):
        patient_id = f"demo-{index:04d}"
        age = rng.randint(5, 92)
        visit_count = rng.choice([0, 1, 2, 3, 5, 8])

        patients.append(
            PatientSnapshot(
                id=patient_id,
                first_name=f"Patient{index}",
                last_name="Demo",
                date_of_birth=date(now.year - age, rng.randint(1, 12), 1),
                blood_type=rng.choice(BLOOD_TYPES),
                gender=rng.choice(["male", "female"]),
                visits=[
                    VisitRecord(
                        patient_id=patient_id,
                        visit_date=now - timedelta(days=rng.randint(0, 700)),
                        symptoms=rng.choice(SYMPTOMS),
                    )
                    for _ in range(visit_count)
                ],
                allergies=[
                    AllergyRecord(
                        patient_id=patient_id,
                        allergen_name=rng.choice(ALLERGENS),
                        severity=rng.choice(list(AllergySeverity)),
                    )
                    for _ in range(rng.choice([0, 0, 1, 2]))
                ],
                vaccinations=[
                    VaccinationRecord(patient_id=patient_id, vaccine_name=f"Vaccine {v}")
                    for v in range(rng.choice([0, 1, 2, 3]))
                ],
                lab_results=[
                    LabResultRecord(
                        patient_id=patient_id,
                        test_name=rng.choice(LAB_TESTS),
                        value=rng.uniform(1, 300),
                        status=rng.choice(list(LabStatus)),
                        test_date=now - timedelta(days=rng.randint(0, 180)),
                    )
                    for _ in range(rng.choice([0, 1, 3]))
                ],
                diagnoses=[
                    DiagnosisRecord(
                        patient_id=patient_id,
                        diagnosis_name=rng.choice(DIAGNOSES),
                        diagnosed_date=now - timedelta(days=rng.randint(0, 200)),
                    )
                    for _ in range(rng.choice([0, 1]))
                ],
            )
        )
    return patients


async def main():
    """Run the full analytics suite over the demo population"""

    print("Medical Pattern Analytics - Demo")
    print("=" * 60)

    reader = InMemoryClinicalDataReader(build_population())
    analyzer = PatternAnalyzer(reader)

    summary = await analyzer.run_complete_analysis()
    print(f"\nPatterns: {summary.total_patterns}  Alerts: {summary.total_alerts}  "
          f"High-risk patients: {summary.total_high_risk_patients}")
    for pattern in summary.patterns:
        print(f"  [{pattern.severity.value}] {pattern.pattern_name}: {pattern.description}")
    for recommendation in summary.recommendations:
        print(f"  -> {recommendation}")

    print("\nCorrelations:")
    for correlation in await CorrelationService(reader).analyze_correlations():
        print(f"  {correlation.insight} (r={correlation.correlation_strength})")

    print("\nSeasonal trends:")
    for trend in await SeasonalTrendsService(reader).analyze_seasonal_trends():
        print(f"  {trend.month_name:<10} {trend.season:<7} visits={trend.total_visits}")

    insights = await PredictiveInsightsService(reader).predictive_insights()
    print(f"\nPredictive insights: {len(insights)}")
    for insight in insights[:5]:
        print(f"  {insight.patient_name}: {insight.prediction_type} ({insight.probability}%)")


if __name__ == "__main__":
    asyncio.run(main())
