"""
Projector Tests
===============

Tests for the isometric grid -> screen transform.
"""

import numpy as np
import pytest

from contribution_city.geometry import Projector


class TestProjector:
    """Tests for Projector."""

    def test_origin(self, projector):
        """Grid origin lands on the configured screen origin."""
        assert projector.project(0, 0) == (500.0, 440.0)

    def test_axes(self):
        """+gx goes right-down, +gy left-down, +gz up."""
        p = Projector(tile_w=28, tile_h=16)
        assert p.project(1, 0) == (28.0, 16.0)
        assert p.project(0, 1) == (-28.0, 16.0)
        assert p.project(0, 0, 10) == (0.0, -10.0)
        assert p.axis_vectors() == ((28.0, 16.0), (-28.0, 16.0))

    def test_linearity(self, projector):
        """Translation in grid space is a fixed translation on screen."""
        a = np.array([2.5, -1.0, 30.0])
        b = np.array([-4.0, 3.0, 7.0])
        ox, oy = projector.project(0, 0)
        ax, ay = projector.project(*a)
        bx, by = projector.project(*b)
        sx, sy = projector.project(*(a + b))
        assert sx - ox == pytest.approx((ax - ox) + (bx - ox))
        assert sy - oy == pytest.approx((ay - oy) + (by - oy))

    def test_project_many_matches_project(self, projector):
        """Vectorised projection agrees with the scalar formula."""
        points = np.array([[0, 0, 0], [2, -5, 120], [9.5, 3.25, 4]])
        screen = projector.project_many(points)
        for row, (x, y) in zip(points, screen):
            assert (x, y) == pytest.approx(projector.project(*row))

    def test_project_many_without_elevation(self, projector):
        """(N, 2) input is treated as ground level."""
        screen = projector.project_many(np.array([[1.0, 2.0]]))
        assert tuple(screen[0]) == pytest.approx(projector.project(1.0, 2.0))

    def test_bad_shape_rejected(self, projector):
        """Only (N, 2) or (N, 3) arrays are accepted."""
        with pytest.raises(ValueError):
            projector.project_many(np.zeros((3, 4)))

    @pytest.mark.parametrize("tile_w,tile_h", [(0, 16), (28, -1)])
    def test_invalid_tile_rejected(self, tile_w, tile_h):
        """Tile dimensions must be positive."""
        with pytest.raises(ValueError):
            Projector(tile_w=tile_w, tile_h=tile_h)
