"""
Total experience aggregation from work history ranges.
"""

import math
from collections.abc import Callable, Iterable
from datetime import date, datetime
from typing import Optional, Union

from src.data.models.resume import WorkExperience

Clock = Callable[[], Union[date, datetime]]


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``, ignoring days; never negative."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    return max(0, months)


def round_one_decimal(value: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


class ExperienceAggregator:
    """
    Computes total years of experience from work history.

    Entries without a start date are skipped. Current positions, and
    positions with no end date, run until "now", read from the UTC clock
    unless one is injected. The result is a deterministic function of the
    ranges and the clock.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or datetime.utcnow

    def total_months(
        self,
        experiences: Iterable[WorkExperience],
        now: Optional[Union[date, datetime]] = None,
    ) -> int:
        current = now or self._clock()
        total = 0
        for experience in experiences:
            if experience.start_date is None:
                continue
            if experience.is_current:
                end = current
            else:
                end = experience.end_date or current
            total += months_between(experience.start_date, end)
        return total

    def total_years(
        self,
        experiences: Iterable[WorkExperience],
        now: Optional[Union[date, datetime]] = None,
    ) -> float:
        """
        Total experience in years, rounded to one decimal.

        Args:
            experiences: Work history entries
            now: Overrides the aggregator clock for this call

        Returns:
            Years of experience, e.g. ``4.0`` for 48 months
        """
        return round_one_decimal(self.total_months(experiences, now) / 12)


def calculate_total_experience(
    experiences: Iterable[WorkExperience],
    now: Optional[Union[date, datetime]] = None,
) -> float:
    """Module-level shortcut for ``ExperienceAggregator().total_years``."""
    return ExperienceAggregator().total_years(experiences, now)
