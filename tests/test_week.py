"""
Week Schema Tests
=================

Tests for the contribution sample input contract.
"""

import datetime

import pytest

from conftest import make_records
from contribution_city.models.week import (
    DaySample,
    InvalidSampleError,
    Week,
    weekday_of,
)


class TestDaySample:
    """Tests for single day samples."""

    def test_accepts_calendar_alias(self):
        """contributionCount maps onto count."""
        day = DaySample.model_validate(
            {"date": "2024-01-07", "weekday": 0, "contributionCount": 3}
        )
        assert day.count == 3
        assert day.weekday_name == "SUN"

    def test_weekday_of_uses_sunday_zero(self):
        """Sunday is 0 and Saturday is 6."""
        assert weekday_of(datetime.date(2024, 1, 7)) == 0
        assert weekday_of(datetime.date(2024, 1, 13)) == 6

    def test_mismatched_weekday_rejected(self):
        """A weekday that disagrees with the date is a contract violation."""
        with pytest.raises(ValueError):
            DaySample(date=datetime.date(2024, 1, 7), weekday=3, count=1)

    def test_negative_count_rejected(self):
        """Counts are never clamped."""
        with pytest.raises(ValueError):
            DaySample(date=datetime.date(2024, 1, 7), weekday=0, count=-1)


class TestWeek:
    """Tests for the week window."""

    def test_totals(self, scenario_week):
        """week_total sums the window; total_contributions is carried through."""
        assert len(scenario_week) == 7
        assert scenario_week.week_total == 40
        assert scenario_week.total_contributions == 1234

    def test_unordered_days_rejected(self):
        """Dates must be strictly increasing."""
        records = make_records([1, 2, 3])
        records[0], records[1] = records[1], records[0]
        with pytest.raises(InvalidSampleError):
            Week.from_records(records)

    def test_invalid_record_wrapped(self):
        """Validation failures surface as InvalidSampleError."""
        records = make_records([1, -2, 3])
        with pytest.raises(InvalidSampleError):
            Week.from_records(records)

    def test_empty_week_rejected(self):
        """A week needs at least one day."""
        with pytest.raises(InvalidSampleError):
            Week.from_records([])
