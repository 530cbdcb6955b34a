"""
Tier Model
==========

Discrete size buckets derived from a day's contribution count.

Tiers are ordered by severity so they compare naturally:
    EMPTY < XSMALL < SMALL < MEDIUM < LARGE

EMPTY days render as a lamp post; every other tier renders a building
whose footprint and colours are keyed by the tier name.
"""

from enum import Enum


class Tier(int, Enum):
    """
    Size bucket of a day entity.

    Attributes:
        EMPTY: No contributions (lamp post)
        XSMALL: Smallest building
        SMALL: Small building
        MEDIUM: Medium building
        LARGE: Largest building
    """

    EMPTY = 0
    XSMALL = 1
    SMALL = 2
    MEDIUM = 3
    LARGE = 4

    @property
    def is_building(self) -> bool:
        """Whether this tier renders a building."""
        return self is not Tier.EMPTY
