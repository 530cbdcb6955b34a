"""
Week Input Schema
=================

This module defines the Pydantic models for the contribution samples that
drive a render.

Input Contract (from the contribution calendar):
    {
        "days": [
            {"date": "2024-01-07", "weekday": 0, "contributionCount": 3},
            ...
        ],
        "total_contributions": 1234
    }

Guarantees (checked on construction):
    - count is non-negative
    - weekday is 0..6 (0 = Sunday) and agrees with the date
    - dates are strictly increasing (oldest -> newest)

Anything else is a contract violation of the data source and is rejected
before rendering; it is never clamped.

Example:
    from contribution_city.models.week import Week

    week = Week.from_records(records, total_contributions=1234)
    print(week.week_total)
"""

import datetime
from typing import Iterable, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


WEEKDAY_NAMES = ("SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT")


class InvalidSampleError(ValueError):
    """Raised when a day sample violates the input contract."""
    pass


def weekday_of(date: datetime.date) -> int:
    """Weekday index with Sunday = 0."""
    return (date.weekday() + 1) % 7


class DaySample(BaseModel):
    """
    Contribution count for a single calendar day.

    Attributes:
        date: Calendar date of the sample
        weekday: Day of week, 0 = Sunday .. 6 = Saturday
        count: Number of contributions on that day
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: datetime.date = Field(
        ...,
        description="Calendar date (ISO-8601)",
    )

    weekday: int = Field(
        ...,
        ge=0,
        le=6,
        description="Day of week (0 = Sunday)",
    )

    count: int = Field(
        ...,
        ge=0,
        alias="contributionCount",
        description="Contribution count for the day",
    )

    @model_validator(mode="after")
    def validate_weekday(self) -> "DaySample":
        """Ensure weekday agrees with the date."""
        expected = weekday_of(self.date)
        if self.weekday != expected:
            raise ValueError(
                f"weekday {self.weekday} does not match {self.date.isoformat()} "
                f"(expected {expected})"
            )
        return self

    @property
    def weekday_name(self) -> str:
        """Three-letter upper-case weekday name."""
        return WEEKDAY_NAMES[self.weekday]


class Week(BaseModel):
    """
    Ordered window of day samples plus the long-range total.

    Attributes:
        days: Samples ordered oldest -> newest
        total_contributions: Contributions over the whole calendar window
    """

    model_config = ConfigDict(frozen=True)

    days: List[DaySample] = Field(
        ...,
        min_length=1,
        description="Day samples, oldest first",
    )

    total_contributions: int = Field(
        default=0,
        ge=0,
        description="Total contributions over the longer history window",
    )

    @field_validator("days")
    @classmethod
    def validate_order(cls, v: List[DaySample]) -> List[DaySample]:
        """Ensure dates are strictly increasing."""
        for prev, cur in zip(v, v[1:]):
            if cur.date <= prev.date:
                raise ValueError(
                    f"days must be ordered oldest to newest: "
                    f"{prev.date.isoformat()} then {cur.date.isoformat()}"
                )
        return v

    @property
    def week_total(self) -> int:
        """Sum of the window's counts."""
        return sum(day.count for day in self.days)

    def __len__(self) -> int:
        return len(self.days)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping],
        total_contributions: int = 0,
    ) -> "Week":
        """
        Build a week from raw calendar records.

        Args:
            records: Mappings with date, weekday and contributionCount (or count)
            total_contributions: Long-range total

        Returns:
            Validated Week

        Raises:
            InvalidSampleError: If any record violates the contract
        """
        try:
            return cls.model_validate({
                "days": list(records),
                "total_contributions": total_contributions,
            })
        except ValidationError as e:
            raise InvalidSampleError(f"Rejected week samples: {e}") from e
