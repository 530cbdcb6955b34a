"""
Fallback Week Source
====================

Synthetic week used when the contribution calendar is unavailable.

Modes:
    - fixed: configured counts (default [3, 4, 1, 10, 6, 5, 11]) ending today
    - random: uniform counts in [0, max_random_count] from the injected rng

The long-range total is a fixed configured value (default 1234).
"""

import datetime
import logging
from typing import List, Optional

import numpy as np

from contribution_city.models.week import Week, weekday_of


logger = logging.getLogger(__name__)


class FallbackWeekSource:
    """
    Deterministic (or seeded random) stand-in for the real calendar.

    Attributes:
        counts: Counts used in fixed mode, oldest first
        total_contributions: Reported long-range total
        end_date: Date of the newest day (default: today)
        randomize: Draw counts from ``rng`` instead of ``counts``
    """

    def __init__(
        self,
        counts: List[int],
        total_contributions: int = 0,
        end_date: Optional[datetime.date] = None,
        randomize: bool = False,
        max_random_count: int = 14,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if not counts:
            raise ValueError("Fallback counts must not be empty")
        if randomize and rng is None:
            raise ValueError("Random fallback requires an rng")

        self.counts = list(counts)
        self.total_contributions = total_contributions
        self.end_date = end_date
        self.randomize = randomize
        self.max_random_count = max_random_count
        self.rng = rng

    @classmethod
    def from_settings(cls, settings, rng: Optional[np.random.Generator] = None) -> "FallbackWeekSource":
        """Build from the full ``Settings`` tree."""
        cfg = settings.fallback
        return cls(
            counts=cfg.counts[-settings.layout.days:],
            total_contributions=cfg.total_contributions,
            randomize=cfg.randomize,
            max_random_count=cfg.max_random_count,
            rng=rng,
        )

    def fetch_week(self) -> Week:
        """
        Build the synthetic week.

        Returns:
            Week of ``len(counts)`` consecutive days ending at ``end_date``
        """
        end = self.end_date or datetime.date.today()
        n = len(self.counts)

        if self.randomize:
            counts = [int(c) for c in self.rng.integers(0, self.max_random_count + 1, size=n)]
        else:
            counts = self.counts

        records = []
        for i, count in enumerate(counts):
            date = end - datetime.timedelta(days=n - 1 - i)
            records.append({"date": date, "weekday": weekday_of(date), "count": count})

        return Week.from_records(records, total_contributions=self.total_contributions)
