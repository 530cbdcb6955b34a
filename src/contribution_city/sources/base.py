"""
Week Sources
============

Source abstraction for the week that drives a render.

This module provides the WeekSource protocol and the fallback policy.

Fallback Policy:
    DataUnavailableError from the primary source is an expected condition:
    it is logged as a warning and the caller-supplied fallback week is used.
    InvalidSampleError is a contract violation and always propagates.
"""

import logging
from typing import Protocol

from contribution_city.models.week import Week
from contribution_city.sources.github import DataUnavailableError


logger = logging.getLogger(__name__)


class WeekSource(Protocol):
    """
    Protocol for week providers.

    Implemented by:
        - GitHubWeekSource (GraphQL API)
        - FallbackWeekSource (synthetic)
    """

    def fetch_week(self) -> Week:
        """
        Produce a validated week.

        Returns:
            Week ordered oldest -> newest
        """
        ...


def resolve_week(primary: WeekSource, fallback: WeekSource) -> Week:
    """
    Fetch from the primary source, falling back on unavailability.

    Args:
        primary: Preferred source (e.g. GitHub)
        fallback: Source used when the primary is unavailable

    Returns:
        Week from whichever source succeeded
    """
    try:
        return primary.fetch_week()
    except DataUnavailableError as e:
        logger.warning(f"{e}. Using fallback week (data unavailable)")
        return fallback.fetch_week()
