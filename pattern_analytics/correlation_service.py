import logging
import math
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from .clinical_data_reader import ClinicalDataReader
from .detectors import group_by_blood_type
from .detectors.base import mean
from .models import CorrelationResult
from .utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson's r; 0 for mismatched lengths, fewer than 2 points or zero variance."""

    if len(x) != len(y) or len(x) < 2:
        return 0.0

    mean_x = sum(x) / len(x)
    mean_y = sum(y) / len(y)

    numerator = sum((xi - mean_x) * (yi - mean_y) for xi, yi in zip(x, y))
    denominator = math.sqrt(
        sum((xi - mean_x) ** 2 for xi in x) * sum((yi - mean_y) ** 2 for yi in y)
    )

    if denominator == 0:
        return 0.0
    # Clamp float noise so r stays inside [-1, 1]
    return max(-1.0, min(1.0, numerator / denominator))


def significance_level(correlation: float) -> str:
    strength = abs(correlation)
    if strength > 0.7:
        return "Strong"
    if strength > 0.4:
        return "Moderate"
    if strength > 0.2:
        return "Weak"
    return "Very Weak"


def correlation_insight(factor1: str, factor2: str, correlation: float) -> str:
    direction = "positive" if correlation > 0 else "negative"
    return f"{significance_level(correlation)} {direction} correlation between {factor1} and {factor2}"


def build_correlation(
    factor1: str,
    factor2: str,
    x: Sequence[float],
    y: Sequence[float],
    sample_size: Optional[int] = None,
) -> CorrelationResult:
    correlation = pearson_correlation(x, y)
    return CorrelationResult(
        factor1=factor1,
        factor2=factor2,
        correlation_strength=round(correlation, 3),
        significance=significance_level(correlation),
        sample_size=len(x) if sample_size is None else sample_size,
        insight=correlation_insight(factor1, factor2, correlation),
    )


class CorrelationService:
    """Pairwise correlation between aggregate clinical factors."""

    def __init__(
        self,
        reader: ClinicalDataReader,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.reader = reader
        self.clock = clock or utcnow

    async def analyze_correlations(self) -> List[CorrelationResult]:
        today = self.clock().date()
        patients = await self.reader.list_patients()
        correlations: List[CorrelationResult] = []

        groups = group_by_blood_type(patients)
        if len(groups) > 1:
            correlations.append(
                build_correlation(
                    "Blood Type Distribution",
                    "Average Visits",
                    [float(len(members)) for members in groups.values()],
                    [mean(len(p.visits) for p in members) for members in groups.values()],
                    sample_size=sum(len(members) for members in groups.values()),
                )
            )

        dated = [p for p in patients if p.date_of_birth is not None]
        if len(dated) > 1:
            ages = [float(p.age(today)) for p in dated]
            correlations.append(
                build_correlation(
                    "Patient Age", "Allergy Count", ages, [float(len(p.allergies)) for p in dated]
                )
            )
            correlations.append(
                build_correlation(
                    "Patient Age", "Visit Count", ages, [float(len(p.visits)) for p in dated]
                )
            )

        if len(patients) > 1:
            visit_counts = [float(len(p.visits)) for p in patients]
            correlations.append(
                build_correlation(
                    "Allergy Count",
                    "Visit Count",
                    [float(len(p.allergies)) for p in patients],
                    visit_counts,
                )
            )
            correlations.append(
                build_correlation(
                    "Vaccination Count",
                    "Visit Count",
                    [float(len(p.vaccinations)) for p in patients],
                    visit_counts,
                )
            )

        logger.info("Correlation analysis produced %s results", len(correlations))
        return correlations
