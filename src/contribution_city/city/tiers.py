"""
Tier Classification
===================

Deterministic mapping from a day's contribution count to a Tier.

Rules (default thresholds, lower bounds inclusive):
    count == 0     -> EMPTY
    1 <= count < 4 -> XSMALL
    4 <= count < 7 -> SMALL
    7 <= count < 10 -> MEDIUM
    count >= 10    -> LARGE

The bounds partition [0, inf) with no gaps or overlaps. Large counts are
not capped here; building height saturates in the geometry builder.
"""

import logging
from dataclasses import dataclass

from contribution_city.models.tier import Tier
from contribution_city.models.week import InvalidSampleError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TierThresholds:
    """
    Inclusive lower bound of each non-empty tier.

    Loaded from configuration file. Bounds must be strictly increasing and
    ``xsmall`` at least 1 so that 0 is always EMPTY.
    """

    xsmall: int = 1
    small: int = 4
    medium: int = 7
    large: int = 10

    def __post_init__(self) -> None:
        if self.xsmall < 1:
            raise ValueError(f"xsmall threshold must be >= 1, got {self.xsmall}")
        if not (self.xsmall < self.small < self.medium < self.large):
            raise ValueError(
                f"Tier thresholds must be strictly increasing: "
                f"{self.xsmall}, {self.small}, {self.medium}, {self.large}"
            )

    @classmethod
    def from_config(cls, config) -> "TierThresholds":
        """Build from a ``TierThresholdsConfig``."""
        return cls(
            xsmall=config.xsmall,
            small=config.small,
            medium=config.medium,
            large=config.large,
        )


DEFAULT_THRESHOLDS = TierThresholds()


def classify(count: int, thresholds: TierThresholds = DEFAULT_THRESHOLDS) -> Tier:
    """
    Classify a contribution count.

    Args:
        count: Non-negative contribution count
        thresholds: Tier lower bounds

    Returns:
        The tier whose range contains ``count``

    Raises:
        InvalidSampleError: If count is negative
    """
    if count < 0:
        raise InvalidSampleError(f"Contribution count must be non-negative, got {count}")

    if count >= thresholds.large:
        return Tier.LARGE
    if count >= thresholds.medium:
        return Tier.MEDIUM
    if count >= thresholds.small:
        return Tier.SMALL
    if count >= thresholds.xsmall:
        return Tier.XSMALL
    return Tier.EMPTY
