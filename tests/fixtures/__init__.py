# Test Fixtures Package
# Provides builders for patient snapshots pinned to a frozen clock

from .patients import (
    NOW,
    SnapshotFactory,
    birth_date_for_age,
    days_ago,
    frozen_clock,
    recent_visits,
)

__all__ = [
    "NOW",
    "SnapshotFactory",
    "birth_date_for_age",
    "days_ago",
    "frozen_clock",
    "recent_visits",
]
