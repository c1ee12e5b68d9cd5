"""
Seasonal visit trends.

Visits from the trailing 24 months are bucketed by calendar month regardless
of year, so January 2025 and January 2026 share a bucket.
"""

import calendar
import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .clinical_data_reader import ClinicalDataReader
from .detectors.base import mean
from .models import SeasonalTrend, VisitRecord
from .utils.time_utils import utcnow, years_ago

logger = logging.getLogger(__name__)

LOOKBACK_YEARS = 2
RESPIRATORY_KEYWORDS = ("cough", "fever", "cold")
ALLERGY_KEYWORDS = ("allerg", "rash", "itch")

SEASONS = {
    12: "Winter", 1: "Winter", 2: "Winter",
    3: "Spring", 4: "Spring", 5: "Spring",
    6: "Summer", 7: "Summer", 8: "Summer",
    9: "Fall", 10: "Fall", 11: "Fall",
}

COMMON_SYMPTOMS = {
    "Winter": ["Cough", "Fever", "Cold symptoms"],
    "Spring": ["Allergies", "Respiratory issues", "Skin problems"],
    "Summer": ["Heat exhaustion", "Dehydration", "Skin conditions"],
    "Fall": ["Flu symptoms", "Respiratory infections", "Joint pain"],
}


def season_for_month(month: int) -> str:
    return SEASONS.get(month, "Unknown")


def common_symptoms_for_month(month: int) -> List[str]:
    return list(COMMON_SYMPTOMS.get(season_for_month(month), []))


def trend_strength(current_value: int, average: float) -> float:
    if average == 0:
        return 0.0
    return abs(current_value - average) / average


def _mentions(symptoms: Optional[str], keywords) -> bool:
    text = (symptoms or "").lower()
    return any(keyword in text for keyword in keywords)


class SeasonalTrendsService:
    """Buckets recent visit history by calendar month."""

    def __init__(
        self,
        reader: ClinicalDataReader,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reader = reader
        self.clock = clock or utcnow

    async def analyze_seasonal_trends(self) -> List[SeasonalTrend]:
        now = self.clock()
        today = now.date()
        visits = await self.reader.list_visits(since=years_ago(now, LOOKBACK_YEARS))
        ages = {
            patient.id: patient.age(today)
            for patient in await self.reader.list_patients()
            if patient.date_of_birth is not None
        }

        by_month: Dict[int, List[VisitRecord]] = defaultdict(list)
        for visit in visits:
            if visit.visit_date is not None:
                by_month[visit.visit_date.month].append(visit)

        if not by_month:
            return []

        average_visits = mean(len(month_visits) for month_visits in by_month.values())
        trends = []
        for month in sorted(by_month):
            month_visits = by_month[month]
            trends.append(
                SeasonalTrend(
                    month=month,
                    month_name=calendar.month_name[month],
                    season=season_for_month(month),
                    total_visits=len(month_visits),
                    respiratory_issues=sum(
                        1 for v in month_visits if _mentions(v.symptoms, RESPIRATORY_KEYWORDS)
                    ),
                    allergic_reactions=sum(
                        1 for v in month_visits if _mentions(v.symptoms, ALLERGY_KEYWORDS)
                    ),
                    average_age_of_patients=round(
                        mean(ages[v.patient_id] for v in month_visits if v.patient_id in ages), 1
                    ),
                    common_symptoms=common_symptoms_for_month(month),
                    trend_strength=trend_strength(len(month_visits), average_visits),
                )
            )

        logger.info(
            "Seasonal trend analysis covered %s visits across %s months", len(visits), len(trends)
        )
        return trends
