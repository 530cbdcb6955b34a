"""
Week Source Tests
=================

Tests for the GitHub GraphQL source, the fallback source and the
fallback policy. The network is never touched: requests.post is patched.
"""

import datetime

import numpy as np
import pytest
import requests

from contribution_city.models.week import InvalidSampleError
from contribution_city.sources import (
    CONTRIBUTIONS_QUERY,
    DataUnavailableError,
    FallbackWeekSource,
    GitHubWeekSource,
    calendar_total,
    resolve_week,
)


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


@pytest.fixture
def fake_post(monkeypatch):
    """Patch requests.post; returns a list of captured calls and a setter."""
    calls = []
    state = {"response": None, "error": None}

    def post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if state["error"] is not None:
            raise state["error"]
        return state["response"]

    monkeypatch.setattr("contribution_city.sources.github.requests.post", post)
    return calls, state


NULL_COUNT_PAYLOAD = {
    "data": {"user": {"contributionsCollection": {"contributionCalendar": {"weeks": [
        {"contributionDays": [{"date": "2024-01-07", "weekday": 0, "contributionCount": None}]},
    ]}}}}
}


def source(days=7):
    return GitHubWeekSource(username="octocat", token="ghp_test", days=days, timeout=5.0)


class TestGitHubWeekSource:
    """Tests for calendar fetching and parsing."""

    def test_last_days_and_total(self, fake_post, calendar_payload):
        """Keeps the trailing window and sums the whole calendar."""
        calls, state = fake_post
        state["response"] = FakeResponse(calendar_payload)

        week = source().fetch_week()

        assert [d.count for d in week.days] == [3, 4, 1, 10, 6, 5, 11]
        assert week.days[0].date == datetime.date(2024, 1, 7)
        assert week.days[-1].weekday_name == "SAT"
        assert week.total_contributions == 47
        assert week.week_total == 40

    def test_request_shape(self, fake_post, calendar_payload):
        """Bearer auth, the calendar query and the username variable."""
        calls, state = fake_post
        state["response"] = FakeResponse(calendar_payload)

        source().fetch_week()

        call = calls[0]
        assert call["url"] == "https://api.github.com/graphql"
        assert call["headers"]["Authorization"] == "Bearer ghp_test"
        assert call["json"]["query"] == CONTRIBUTIONS_QUERY
        assert call["json"]["variables"] == {"username": "octocat"}
        assert call["timeout"] == 5.0

    def test_unsorted_weeks_are_sorted(self, fake_post, calendar_payload):
        """Day order does not depend on the order of calendar weeks."""
        _, state = fake_post
        weeks = calendar_payload["data"]["user"]["contributionsCollection"]["contributionCalendar"]["weeks"]
        weeks.reverse()
        state["response"] = FakeResponse(calendar_payload)

        week = source().fetch_week()
        assert [d.count for d in week.days] == [3, 4, 1, 10, 6, 5, 11]

    def test_missing_token(self, fake_post):
        """No token means no request at all."""
        calls, _ = fake_post
        with pytest.raises(DataUnavailableError):
            GitHubWeekSource(username="octocat", token=None).fetch_week()
        assert calls == []

    def test_transport_error(self, fake_post):
        _, state = fake_post
        state["error"] = requests.ConnectionError("connection refused")
        with pytest.raises(DataUnavailableError):
            source().fetch_week()

    def test_http_error(self, fake_post):
        _, state = fake_post
        state["response"] = FakeResponse({"message": "Bad credentials"}, status_code=401)
        with pytest.raises(DataUnavailableError, match="401"):
            source().fetch_week()

    def test_invalid_json(self, fake_post):
        _, state = fake_post
        state["response"] = FakeResponse(None)
        with pytest.raises(DataUnavailableError):
            source().fetch_week()

    def test_graphql_errors(self, fake_post):
        """GraphQL errors arrive with HTTP 200."""
        _, state = fake_post
        state["response"] = FakeResponse({"errors": [{"message": "Could not resolve to a User"}]})
        with pytest.raises(DataUnavailableError, match="GraphQL"):
            source().fetch_week()

    def test_null_user(self, fake_post):
        _, state = fake_post
        state["response"] = FakeResponse({"data": {"user": None}})
        with pytest.raises(DataUnavailableError):
            source().fetch_week()

    def test_too_few_days(self, fake_post, calendar_payload):
        _, state = fake_post
        state["response"] = FakeResponse(calendar_payload)
        with pytest.raises(DataUnavailableError):
            source(days=11).fetch_week()

    def test_invalid_samples_not_masked(self, fake_post, calendar_payload):
        """Contract violations in delivered data raise InvalidSampleError."""
        _, state = fake_post
        weeks = calendar_payload["data"]["user"]["contributionsCollection"]["contributionCalendar"]["weeks"]
        weeks[-1]["contributionDays"][-1]["contributionCount"] = -3
        state["response"] = FakeResponse(calendar_payload)

        with pytest.raises(InvalidSampleError):
            source().fetch_week()

    @pytest.mark.parametrize("body", [[], "rate limited", 42])
    def test_non_object_body(self, fake_post, body):
        """A JSON body that is not an object is unavailable data."""
        _, state = fake_post
        state["response"] = FakeResponse(body)
        with pytest.raises(DataUnavailableError):
            source().fetch_week()

    def test_null_count_in_history(self, fake_post, calendar_payload):
        """A malformed count outside the window still makes the calendar unusable."""
        _, state = fake_post
        weeks = calendar_payload["data"]["user"]["contributionsCollection"]["contributionCalendar"]["weeks"]
        weeks[0]["contributionDays"][0]["contributionCount"] = None
        state["response"] = FakeResponse(calendar_payload)
        with pytest.raises(DataUnavailableError):
            source().fetch_week()

    def test_negative_count_in_history(self, fake_post, calendar_payload):
        """A negative count outside the window is rejected, not summed."""
        _, state = fake_post
        weeks = calendar_payload["data"]["user"]["contributionsCollection"]["contributionCalendar"]["weeks"]
        weeks[0]["contributionDays"][0]["contributionCount"] = -30
        state["response"] = FakeResponse(calendar_payload)
        with pytest.raises(InvalidSampleError):
            source().fetch_week()

    def test_non_object_day(self, fake_post, calendar_payload):
        _, state = fake_post
        weeks = calendar_payload["data"]["user"]["contributionsCollection"]["contributionCalendar"]["weeks"]
        weeks[0]["contributionDays"].append("2024-01-06")
        state["response"] = FakeResponse(calendar_payload)
        with pytest.raises(DataUnavailableError):
            source().fetch_week()

    @pytest.mark.parametrize("body", [[], NULL_COUNT_PAYLOAD])
    def test_malformed_payload_falls_back(self, fake_post, body):
        """Malformed payloads end in the fallback week, never a crash."""
        _, state = fake_post
        state["response"] = FakeResponse(body)
        fallback = FallbackWeekSource(
            counts=[3, 4, 1, 10, 6, 5, 11],
            total_contributions=1234,
            end_date=datetime.date(2024, 1, 13),
        )
        week = resolve_week(source(days=1), fallback)
        assert week.total_contributions == 1234


class TestCalendarTotal:
    """Tests for calendar_total."""

    def test_sums_counts(self):
        days = [{"date": "2024-01-01", "contributionCount": 2}, {"date": "2024-01-02", "contributionCount": 5}]
        assert calendar_total(days) == 7

    @pytest.mark.parametrize("count", [None, "3", 2.5, True])
    def test_non_integer_count(self, count):
        with pytest.raises(DataUnavailableError):
            calendar_total([{"date": "2024-01-01", "contributionCount": count}])

    def test_missing_count(self):
        with pytest.raises(DataUnavailableError):
            calendar_total([{"date": "2024-01-01"}])


class TestFallbackWeekSource:
    """Tests for the synthetic week."""

    def test_fixed_counts(self):
        """Configured counts end at end_date, oldest first."""
        week = FallbackWeekSource(
            counts=[3, 4, 1, 10, 6, 5, 11],
            total_contributions=1234,
            end_date=datetime.date(2024, 1, 13),
        ).fetch_week()
        assert [d.count for d in week.days] == [3, 4, 1, 10, 6, 5, 11]
        assert week.days[0].date == datetime.date(2024, 1, 7)
        assert week.days[0].weekday == 0
        assert week.total_contributions == 1234

    def test_random_counts_reproducible(self):
        """Random mode draws from the injected generator."""
        def fetch():
            return FallbackWeekSource(
                counts=[0] * 7,
                randomize=True,
                max_random_count=14,
                rng=np.random.default_rng(11),
                end_date=datetime.date(2024, 1, 13),
            ).fetch_week()

        first, second = fetch(), fetch()
        assert [d.count for d in first.days] == [d.count for d in second.days]
        assert all(0 <= d.count <= 14 for d in first.days)

    def test_random_requires_rng(self):
        with pytest.raises(ValueError):
            FallbackWeekSource(counts=[1, 2], randomize=True)

    def test_from_settings_trims_to_window(self, settings):
        """Extra configured counts beyond the day window are dropped."""
        settings = settings.model_copy(
            update={"layout": settings.layout.model_copy(update={"days": 6})}
        )
        week = FallbackWeekSource.from_settings(settings).fetch_week()
        assert [d.count for d in week.days] == [4, 1, 10, 6, 5, 11]


class StubSource:
    """Week source that returns a week or raises."""

    def __init__(self, week=None, error=None):
        self.week = week
        self.error = error
        self.calls = 0

    def fetch_week(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.week


class TestResolveWeek:
    """Tests for the fallback policy."""

    def test_primary_used_when_available(self, scenario_week):
        fallback = StubSource(week=None)
        assert resolve_week(StubSource(week=scenario_week), fallback) is scenario_week
        assert fallback.calls == 0

    def test_unavailable_falls_back(self, scenario_week, caplog):
        """Unavailability is logged and the fallback week returned."""
        primary = StubSource(error=DataUnavailableError("rate limited"))
        week = resolve_week(primary, StubSource(week=scenario_week))
        assert week is scenario_week
        assert "rate limited" in caplog.text

    def test_invalid_samples_propagate(self, scenario_week):
        """Contract violations are never replaced by the fallback."""
        primary = StubSource(error=InvalidSampleError("negative count"))
        fallback = StubSource(week=scenario_week)
        with pytest.raises(InvalidSampleError):
            resolve_week(primary, fallback)
        assert fallback.calls == 0
