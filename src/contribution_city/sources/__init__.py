"""
Sources Module
==============

Providers of the week of contribution samples.

The renderer consumes ONLY validated Week objects, never raw API payloads.

Components:
    - WeekSource: Protocol for week providers
    - GitHubWeekSource: GitHub GraphQL contribution calendar
    - FallbackWeekSource: Synthetic week (fixed or random)
    - resolve_week: primary-then-fallback policy
"""

from contribution_city.sources.github import (
    CONTRIBUTIONS_QUERY,
    DataUnavailableError,
    GitHubWeekSource,
    calendar_total,
    flatten_calendar,
)
from contribution_city.sources.fallback import FallbackWeekSource
from contribution_city.sources.base import WeekSource, resolve_week

__all__ = [
    "CONTRIBUTIONS_QUERY",
    "DataUnavailableError",
    "GitHubWeekSource",
    "calendar_total",
    "flatten_calendar",
    "FallbackWeekSource",
    "WeekSource",
    "resolve_week",
]
