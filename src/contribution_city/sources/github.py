"""
GitHub Contribution Source
==========================

Fetches the contribution calendar from the GitHub GraphQL API.

This source:
    - POSTs the contributionCalendar query for one user
    - Flattens every week into a date-sorted list of days
    - Keeps the last N days (oldest -> newest)
    - Sums the whole calendar as the long-range total

Design Rules:
    - Network, auth and schema failures raise DataUnavailableError so the
      caller can fall back to a synthetic week
    - Samples that arrive but violate the contract (negative counts, bad
      weekdays) raise InvalidSampleError and are NOT masked
"""

import logging
from typing import List, Optional

import requests

from contribution_city.models.week import InvalidSampleError, Week


logger = logging.getLogger(__name__)


CONTRIBUTIONS_QUERY = """
query($username: String!) {
    user(login: $username) {
        contributionsCollection {
            contributionCalendar {
                weeks {
                    contributionDays {
                        contributionCount
                        date
                        weekday
                    }
                }
            }
        }
    }
}
"""


class DataUnavailableError(Exception):
    """Raised when contribution data cannot be fetched or parsed."""
    pass


class GitHubWeekSource:
    """
    Week source backed by the GitHub GraphQL API.

    Attributes:
        api_url: GraphQL endpoint
        username: GitHub login
        token: Personal access token (required by the API)
        days: Number of trailing days to keep
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        username: str,
        token: Optional[str],
        days: int = 7,
        api_url: str = "https://api.github.com/graphql",
        timeout: float = 15.0,
    ) -> None:
        self.api_url = api_url
        self.username = username
        self.token = token
        self.days = days
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "GitHubWeekSource":
        """Build from the full ``Settings`` tree."""
        return cls(
            username=settings.github.username,
            token=settings.github.token,
            days=settings.layout.days,
            api_url=settings.github.api_url,
            timeout=settings.github.timeout_seconds,
        )

    def fetch_calendar(self) -> dict:
        """
        Fetch the raw contributionCalendar object.

        Returns:
            Calendar dict with a ``weeks`` list

        Raises:
            DataUnavailableError: On missing token, transport, HTTP or GraphQL errors
        """
        if not self.token:
            raise DataUnavailableError("No GitHub token configured (set GITHUB_TOKEN)")

        logger.info(f"Fetching GitHub contributions for {self.username}...")
        try:
            response = requests.post(
                self.api_url,
                json={"query": CONTRIBUTIONS_QUERY, "variables": {"username": self.username}},
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise DataUnavailableError(f"Error fetching contributions: {e}") from e

        if response.status_code != 200:
            raise DataUnavailableError(
                f"GitHub API returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise DataUnavailableError(f"GitHub API returned invalid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise DataUnavailableError(
                f"GitHub API returned a {type(payload).__name__}, expected an object"
            )

        if payload.get("errors"):
            raise DataUnavailableError(f"GraphQL errors: {payload['errors']}")

        try:
            calendar = payload["data"]["user"]["contributionsCollection"]["contributionCalendar"]
        except (KeyError, TypeError) as e:
            raise DataUnavailableError(f"Malformed contribution payload: missing {e}") from e

        if not isinstance(calendar, dict) or not isinstance(calendar.get("weeks"), list):
            raise DataUnavailableError("Malformed contribution payload: no weeks")

        return calendar

    def fetch_week(self) -> Week:
        """
        Fetch the trailing window of days.

        Returns:
            Week of ``days`` samples with the calendar-wide total

        Raises:
            DataUnavailableError: If the calendar is unavailable or too short
            InvalidSampleError: If returned samples violate the contract
        """
        calendar = self.fetch_calendar()
        all_days = flatten_calendar(calendar)

        if len(all_days) < self.days:
            raise DataUnavailableError(
                f"Calendar has {len(all_days)} days, need {self.days}"
            )

        total = calendar_total(all_days)
        return Week.from_records(all_days[-self.days:], total_contributions=total)


def flatten_calendar(calendar: dict) -> List[dict]:
    """
    Flatten calendar weeks into a list of day records sorted by date.

    Raises:
        DataUnavailableError: If a week or day record is malformed
    """
    days = []
    try:
        for week in calendar["weeks"]:
            for day in week["contributionDays"]:
                if not isinstance(day, dict):
                    raise DataUnavailableError(f"Malformed calendar day: {day!r}")
                days.append(day)
        days.sort(key=lambda d: d["date"])
    except (KeyError, TypeError) as e:
        raise DataUnavailableError(f"Malformed calendar week: {e}") from e
    return days


def calendar_total(days: List[dict]) -> int:
    """
    Sum the counts of every calendar day.

    Older days never become DaySamples, so their counts are checked here.

    Raises:
        DataUnavailableError: If a count is missing or not an integer
        InvalidSampleError: If a count is negative
    """
    total = 0
    for day in days:
        count = day.get("contributionCount")
        if isinstance(count, bool) or not isinstance(count, int):
            raise DataUnavailableError(
                f"Malformed contribution count on {day.get('date')}: {count!r}"
            )
        if count < 0:
            raise InvalidSampleError(
                f"Contribution count must be non-negative, got {count} on {day.get('date')}"
            )
        total += count
    return total
