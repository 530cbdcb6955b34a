"""
Compositor Tests
================

Tests for depth ordering and SVG serialization.
"""

import logging

from contribution_city.city.assembler import SceneAssembler
from contribution_city.models.drawable import Circle, Drawable, Rect
from contribution_city.models.scene import Scene
from contribution_city.render import Compositor, depth_order, write_document


def rect(x):
    return Rect(x=x, y=0.0, width=1.0, height=1.0, fill="#000000")


class TestDepthOrder:
    """Tests for the painter's-algorithm sort."""

    def test_ascending(self):
        """Smaller keys are painted first."""
        near = Drawable(rect(1), 5.0)
        far = Drawable(rect(2), -5.0)
        assert depth_order([near, far]) == [far, near]

    def test_stable_for_equal_keys(self):
        """Equal keys keep their emission order."""
        batch = [Drawable(rect(i), 1.0, "day-0", f"p{i}") for i in range(20)]
        mixed = [Drawable(rect(99), 0.0)] + batch + [Drawable(rect(98), 0.5)]
        ordered = [d for d in depth_order(mixed) if d.depth == 1.0]
        assert ordered == batch


class TestCompositor:
    """Tests for SVG output."""

    def test_scenario_document(self, settings, rng, scenario_week):
        """The document carries the summary values and canvas size."""
        scene = SceneAssembler(settings, rng=rng).assemble(scenario_week)
        svg = Compositor.from_settings(settings).render(scene)
        assert svg.startswith("<svg")
        assert 'width="2166"' in svg
        assert ">1234<" in svg
        assert ">40<" in svg
        assert "sky-gradient" in svg

    def test_nearer_days_drawn_later(self, settings, rng, scenario_week):
        """Saturday's building is painted after Sunday's."""
        scene = SceneAssembler(settings, rng=rng).assemble(scenario_week)
        ordered = depth_order(scene.drawables)
        first_sat = next(i for i, d in enumerate(ordered) if d.group == "day-6")
        last_sun = max(i for i, d in enumerate(ordered) if d.group == "day-0")
        assert last_sun < first_sat

    def test_fixture_order(self, settings, rng, scenario_week):
        """Sky, ground, road, days, cars, summary."""
        scene = SceneAssembler(settings, rng=rng).assemble(scenario_week)
        ordered = depth_order(scene.drawables)
        assert ordered[0].role == "sky"
        assert ordered[-1].group == "summary"
        groups = [d.group for d in ordered]
        assert groups.index("ground") < groups.index("road") < groups.index("day-0")

    def test_missing_font_warns(self, settings, tmp_path, caplog):
        """A missing font file falls back to the font stack with a warning."""
        compositor = Compositor(settings.palette, font_path=str(tmp_path / "missing.ttf"))
        scene = Scene(width=10, height=10, drawables=[Drawable(Circle(1, 1, 1, fill="#fff"), 0.0)])
        with caplog.at_level(logging.WARNING):
            svg = compositor.render(scene)
        assert "Font file not found" in caplog.text
        assert "@font-face" not in svg

    def test_embedded_font(self, settings, tmp_path):
        """An existing font file is embedded as a data URI."""
        font = tmp_path / "city.ttf"
        font.write_bytes(b"\x00\x01\x00\x00")
        compositor = Compositor(settings.palette, font_path=str(font))
        svg = compositor.render(Scene(width=10, height=10))
        assert "@font-face" in svg
        assert "data:font/ttf;base64," in svg


class TestWriter:
    """Tests for write_document."""

    def test_creates_parent_dirs(self, tmp_path):
        path = write_document("<svg/>", str(tmp_path / "out" / "city.svg"))
        assert path.read_text(encoding="utf-8") == "<svg/>"
