"""
Test Configuration
==================

Pytest fixtures and test configuration for Contribution City.
"""

import datetime

import numpy as np
import pytest


SCENARIO_COUNTS = [3, 4, 1, 10, 6, 5, 11]
SCENARIO_START = datetime.date(2024, 1, 7)  # a Sunday


CITY_ENV_VARS = (
    "GITHUB_TOKEN",
    "GITHUB_USERNAME",
    "CITY_PRESET",
    "CITY_OUTPUT_PATH",
    "CITY_LABEL_STRATEGY",
    "CITY_BUILDING_STYLE",
    "CITY_SEED",
    "CITY_LOG_LEVEL",
)


def make_records(counts, start=SCENARIO_START):
    """Raw calendar records for consecutive days starting at ``start``."""
    from contribution_city.models.week import weekday_of

    records = []
    for i, count in enumerate(counts):
        date = start + datetime.timedelta(days=i)
        records.append({
            "date": date.isoformat(),
            "weekday": weekday_of(date),
            "contributionCount": count,
        })
    return records


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of configuration tests."""
    for name in CITY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings():
    """Provide default (city preset) settings."""
    from contribution_city.config import Settings

    return Settings()


@pytest.fixture
def rng():
    """Provide a seeded random generator."""
    return np.random.default_rng(7)


@pytest.fixture
def scenario_week():
    """Provide the reference week: counts [3, 4, 1, 10, 6, 5, 11], total 1234."""
    from contribution_city.models.week import Week

    return Week.from_records(make_records(SCENARIO_COUNTS), total_contributions=1234)


@pytest.fixture
def projector(settings):
    """Provide the default projector."""
    from contribution_city.geometry import Projector

    return Projector.from_config(settings.projection)


@pytest.fixture
def builder(settings, projector, rng):
    """Provide an entity builder on the default settings."""
    from contribution_city.city.buildings import EntityBuilder

    return EntityBuilder(
        projector=projector,
        building=settings.building,
        lamp=settings.lamp,
        footprints=settings.layout.footprints,
        palette=settings.palette,
        rng=rng,
    )


@pytest.fixture
def calendar_payload():
    """Provide a GraphQL response body with ten days split over two weeks."""
    days = make_records([2, 0, 5, 3, 4, 1, 10, 6, 5, 11], start=datetime.date(2024, 1, 4))
    return {
        "data": {
            "user": {
                "contributionsCollection": {
                    "contributionCalendar": {
                        "weeks": [
                            {"contributionDays": days[:3]},
                            {"contributionDays": days[3:]},
                        ]
                    }
                }
            }
        }
    }


def art_svg(width, height):
    """Minimal sized SVG document."""
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}">'
        f'<rect width="{width}" height="{height}" fill="#888"/></svg>'
    ).encode("utf-8")


@pytest.fixture
def building_assets(tmp_path):
    """Provide a directory with every building tier SVG and Base.svg."""
    asset_dir = tmp_path / "assets"
    asset_dir.mkdir()
    (asset_dir / "Xsmall.svg").write_bytes(art_svg(120, 110))
    (asset_dir / "Small.svg").write_bytes(art_svg(130, 140))
    (asset_dir / "Middle.svg").write_bytes(art_svg(140, 240))
    (asset_dir / "Big.svg").write_bytes(art_svg(250, 300))
    (asset_dir / "Base.svg").write_bytes(art_svg(2166, 1280))
    return asset_dir
