from collections import Counter
from typing import List

from ..models import PatternFinding, PatternType, SeasonalPatternMetadata, Severity
from ..utils.time_utils import years_ago
from .base import PatternDetector


class SeasonalSpikeDetector(PatternDetector):
    """Compares the current calendar month's visits with the trailing-year average."""

    name = "seasonal_spike"
    pattern_type = PatternType.SEASONAL_PATTERN
    pattern_name = "Seasonal Visit Spike"
    recommendation = "Prepare additional resources, investigate seasonal factors"

    MIN_MONTHS_OF_DATA = 6
    SPIKE_RATIO = 1.8
    CONFIDENCE = 0.8

    async def detect(self) -> List[PatternFinding]:
        now = self.clock()
        visits = await self.reader.list_visits(since=years_ago(now, 1))

        monthly_visits = Counter(v.visit_date.month for v in visits if v.visit_date is not None)
        if len(monthly_visits) < self.MIN_MONTHS_OF_DATA:
            return []

        average_visits = sum(monthly_visits.values()) / len(monthly_visits)
        current_month_visits = monthly_visits.get(now.month, 0)
        if current_month_visits <= average_visits * self.SPIKE_RATIO:
            return []

        percentage_increase = round((current_month_visits / average_visits - 1) * 100, 1)
        return [
            PatternFinding(
                pattern_name=self.pattern_name,
                pattern_type=self.pattern_type,
                description=(
                    f"Current month shows {percentage_increase}% increase in visits "
                    "compared to average"
                ),
                severity=Severity.MEDIUM,
                confidence_score=self.CONFIDENCE,
                recommendation=self.recommendation,
                detected_at=now,
                metadata=SeasonalPatternMetadata(
                    current_month_visits=current_month_visits,
                    average_monthly_visits=round(average_visits, 1),
                    percentage_increase=percentage_increase,
                ),
            )
        ]
