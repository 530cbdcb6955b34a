"""
Entity Geometry Tests
=====================

Tests for building, lamp and vehicle primitives.
"""

import numpy as np
import pytest

from contribution_city.city.buildings import EntityBuilder
from contribution_city.models.drawable import Polygon
from contribution_city.models.scene import GridSlot
from contribution_city.models.tier import Tier


SLOT = GridSlot(index=3, gx=23.0, gy=-5.0)


def roles(drawables):
    return [d.role for d in drawables]


def window_count(drawables):
    return sum(1 for d in drawables if d.role.startswith("window"))


class TestBuildingHeight:
    """Tests for the height function."""

    def test_linear_below_cap(self, builder):
        """Height is base + count * slope."""
        assert builder.building_height(0) == 60.0
        assert builder.building_height(3) == 126.0
        assert builder.building_height(10) == 280.0

    def test_saturates(self, builder):
        """Height never exceeds max_height."""
        assert builder.building_height(11) == 300.0
        assert builder.building_height(500) == 300.0

    def test_monotonic(self, builder):
        """More contributions never make a shorter building."""
        heights = [builder.building_height(c) for c in range(30)]
        assert heights == sorted(heights)


class TestBuild:
    """Tests for entity emission."""

    def test_building_emission_order(self, builder):
        """Roof precedes both walls, walls precede every window."""
        drawables = builder.build(Tier.LARGE, SLOT, 10)
        r = roles(drawables)
        assert r[:4] == ["shadow", "roof", "wall-left", "wall-right"]
        windows = [i for i, role in enumerate(r) if role.startswith("window")]
        assert windows
        assert min(windows) > r.index("wall-right")

    def test_shared_depth_and_group(self, builder):
        """Every primitive of an entity carries the slot's key and group."""
        drawables = builder.build(Tier.MEDIUM, SLOT, 8)
        assert {d.depth for d in drawables} == {SLOT.depth_key}
        assert {d.group for d in drawables} == {"day-3"}

    def test_empty_is_lamp_only(self, builder):
        """An EMPTY day is a lamp post with no building faces or windows."""
        drawables = builder.build(Tier.EMPTY, SLOT, 0)
        assert roles(drawables) == ["lamp-glow", "lamp-post", "lamp-head"]
        assert all(d.depth == SLOT.depth_key for d in drawables)

    def test_taller_building_has_more_windows(self, builder):
        """Window rows grow with height."""
        short = builder.build(Tier.XSMALL, SLOT, 1)
        tall = builder.build(Tier.LARGE, SLOT, 11)
        assert window_count(tall) > window_count(short)

    def test_window_grid_size(self, builder):
        """Rows fill the wall between margins, two columns per wall."""
        drawables = builder.build(Tier.LARGE, SLOT, 11)
        # (300 - 2 * 18) // 24 = 11 rows, 2 columns, 2 walls
        windows = [d for d in drawables if d.role.startswith("window")]
        assert len(windows) == 11 * 2 * 2

    def test_roof_is_lifted_by_height(self, builder, projector):
        """Roof vertices sit exactly ``height`` pixels above the base."""
        drawables = builder.build(Tier.SMALL, SLOT, 4)
        roof = next(d for d in drawables if d.role == "roof").shape
        assert isinstance(roof, Polygon)
        half = 1.8
        bx, by = projector.project(SLOT.gx - half, SLOT.gy - half)
        assert roof.points[0] == pytest.approx((bx, by - 148.0))

    def test_windows_reproducible_with_seed(self, settings, projector):
        """Same seed, same lit pattern."""
        def build(seed):
            b = EntityBuilder(
                projector=projector,
                building=settings.building,
                lamp=settings.lamp,
                footprints=settings.layout.footprints,
                palette=settings.palette,
                rng=np.random.default_rng(seed),
            )
            return roles(b.build(Tier.LARGE, SLOT, 11))

        assert build(42) == build(42)

    def test_missing_footprint_rejected(self, settings, projector, rng):
        """Every building tier needs a footprint."""
        with pytest.raises(ValueError):
            EntityBuilder(
                projector=projector,
                building=settings.building,
                lamp=settings.lamp,
                footprints={"XSMALL": 1.0},
                palette=settings.palette,
                rng=rng,
            )


class TestVehicle:
    """Tests for parked cars."""

    def test_vehicle_primitives(self, builder):
        """Body faces first, then two headlights, all on the given key."""
        drawables = builder.build_vehicle(12.5, 0.0, "#f85149", depth=1000.0, group="vehicle-0")
        assert roles(drawables) == [
            "vehicle-roof", "vehicle-side", "vehicle-front", "headlight", "headlight",
        ]
        assert {d.depth for d in drawables} == {1000.0}
