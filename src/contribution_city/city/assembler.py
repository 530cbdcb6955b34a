"""
Scene Assembly
==============

Collects every drawable of one render, each carrying its depth key.

Bands (ascending depth):
    background  sky gradient, stars, moon
    ground      ground plane, Base.svg backdrop (asset building style)
    road        road slab and lane markings
    data        one cluster per day: building (prism or artwork) or lamp,
                then its sign and
                labels, keyed ``slot.gx + slot.gy``
    foreground  parked cars
    overlay     TOTAL / WEEK summary block

Slots:
    slot(i) = base + i * stride, oldest day first. The stride must increase
    ``gx + gy`` so later days get strictly larger keys and are drawn later.

The returned Scene is NOT sorted; ordering is the compositor's job.
"""

import logging
import time
from typing import List, Optional

import numpy as np

from contribution_city.city.artwork import BuildingArtwork
from contribution_city.city.buildings import EntityBuilder
from contribution_city.city.labels import (
    AssetGlyphLabelRenderer,
    LabelRenderer,
    LabelStyle,
    MissingAssetError,
    TextLabelRenderer,
    create_label_renderer,
)
from contribution_city.city.tiers import TierThresholds, classify
from contribution_city.geometry.projector import Projector
from contribution_city.models.drawable import Circle, Drawable, Image, Polygon, Rect
from contribution_city.models.scene import EntityCluster, GridSlot, Scene
from contribution_city.models.week import DaySample, InvalidSampleError, Week


logger = logging.getLogger(__name__)


SKY_GRADIENT_ID = "sky-gradient"


def create_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Create the source of cosmetic randomness.

    Args:
        seed: Fixed seed, or None for a time-based one

    Returns:
        numpy Generator
    """
    if seed is None:
        seed = time.time_ns() % (2 ** 32)
        logger.info(f"Using time-based seed {seed} (set scene.seed to reproduce)")
    return np.random.default_rng(seed)


class SceneAssembler:
    """
    Builds a Scene from a Week.

    Attributes:
        settings: Full ``Settings`` tree
        projector: Shared projector
        thresholds: Tier thresholds
        artwork: Building artwork (``asset`` building style only)
        builder: Entity geometry builder
        labels: Label renderer
    """

    def __init__(
        self,
        settings,
        rng: Optional[np.random.Generator] = None,
        label_renderer: Optional[LabelRenderer] = None,
    ) -> None:
        """
        Initialize scene assembler.

        Args:
            settings: Loaded settings
            rng: Random generator (default: seeded from ``scene.seed``)
            label_renderer: Label strategy (default: ``labels.strategy``)

        Raises:
            ValueError: If the depth bands do not bracket the day slots
        """
        self.settings = settings
        self.rng = rng if rng is not None else create_rng(settings.scene.seed)
        self.projector = Projector.from_config(settings.projection)
        self.thresholds = TierThresholds.from_config(settings.tiers)
        self.artwork = (
            BuildingArtwork.from_config(settings.building)
            if settings.building.style == "asset"
            else None
        )
        self.builder = EntityBuilder(
            projector=self.projector,
            building=settings.building,
            lamp=settings.lamp,
            footprints=settings.layout.footprints,
            palette=settings.palette,
            rng=self.rng,
            artwork=self.artwork,
        )
        self.labels = label_renderer or create_label_renderer(
            settings.labels.strategy, settings.labels, self.projector
        )
        # Glyph artwork only covers the signs; the summary block stays native text
        if isinstance(self.labels, AssetGlyphLabelRenderer):
            self.summary_labels: LabelRenderer = TextLabelRenderer(settings.labels.font_family)
        else:
            self.summary_labels = self.labels

        self._validate_bands()

        logger.debug(
            f"SceneAssembler initialized: {self.projector}, "
            f"days={settings.layout.days}, labels={settings.labels.strategy}, "
            f"buildings={settings.building.style}"
        )

    def _validate_bands(self) -> None:
        """Static bands must sit strictly outside the range of slot keys."""
        depth = self.settings.depth
        keys = [self.slot_for(i).depth_key for i in range(self.settings.layout.days)]
        if depth.road >= min(keys):
            raise ValueError(
                f"road band {depth.road} must be below every slot key (min {min(keys)})"
            )
        if depth.foreground <= max(keys):
            raise ValueError(
                f"foreground band {depth.foreground} must be above every slot key (max {max(keys)})"
            )

    def slot_for(self, index: int) -> GridSlot:
        """Grid slot of the ``index``-th day (0 = oldest)."""
        gx, gy = self.settings.layout.slot_position(index)
        return GridSlot(index=index, gx=gx, gy=gy)

    def assemble(self, week: Week) -> Scene:
        """
        Assemble every drawable of the render.

        Args:
            week: Validated week, oldest day first

        Returns:
            Unsorted scene

        Raises:
            InvalidSampleError: If the week length differs from ``layout.days``
        """
        days = self.settings.layout.days
        if len(week) != days:
            raise InvalidSampleError(f"Expected {days} day samples, got {len(week)}")

        canvas = self.settings.canvas
        scene = Scene(
            width=canvas.width,
            height=canvas.height,
            week_total=week.week_total,
            total_contributions=week.total_contributions,
        )

        scene.drawables.extend(self._background())
        scene.drawables.extend(self._ground())
        scene.drawables.extend(self._road())

        for index, day in enumerate(week.days):
            slot = self.slot_for(index)
            tier = classify(day.count, self.thresholds)
            scene.drawables.extend(self.builder.build(tier, slot, day.count))
            scene.drawables.extend(self._sign(slot, day))
            scene.clusters.append(
                EntityCluster(
                    slot=slot,
                    date=day.date,
                    weekday_name=day.weekday_name,
                    count=day.count,
                    tier=tier,
                    height=self.builder.building_height(day.count) if tier.is_building else 0.0,
                )
            )

        scene.drawables.extend(self._vehicles())
        scene.drawables.extend(self._summary(scene))

        logger.info(
            f"Assembled scene: {len(scene.clusters)} days, "
            f"{len(scene.drawables)} drawables, week={scene.week_total}, "
            f"total={scene.total_contributions}"
        )
        return scene

    # -------------------------------------------------------------------------
    # Static fixtures
    # -------------------------------------------------------------------------

    def _background(self) -> List[Drawable]:
        """Sky, star field and moon."""
        cfg = self.settings.scene
        pal = self.settings.palette
        canvas = self.settings.canvas
        depth = self.settings.depth.background

        drawables = [
            Drawable(
                Rect(0.0, 0.0, canvas.width, canvas.height, fill=f"url(#{SKY_GRADIENT_ID})"),
                depth, "sky", "sky",
            )
        ]

        for _ in range(cfg.star_count):
            x = float(self.rng.uniform(0, canvas.width))
            y = float(self.rng.uniform(0, cfg.star_band))
            r = float(self.rng.choice([1.0, 1.5, 2.0, 2.5]))
            opacity = round(float(self.rng.uniform(0.5, 0.9)), 2)
            drawables.append(
                Drawable(Circle(x, y, r, fill=pal.star, opacity=opacity), depth, "sky", "star")
            )

        drawables.append(
            Drawable(
                Circle(cfg.moon_x, cfg.moon_y, cfg.moon_r * 1.6, fill=pal.moon, opacity=0.08),
                depth, "sky", "moon-halo",
            )
        )
        drawables.append(
            Drawable(Circle(cfg.moon_x, cfg.moon_y, cfg.moon_r, fill=pal.moon), depth, "sky", "moon")
        )
        return drawables

    def _flat_quad(self, gx0: float, gx1: float, gy0: float, gy1: float):
        """Projected ground-level rectangle between grid bounds."""
        return self.projector.project_polygon(np.array([
            [gx0, gy0, 0.0],
            [gx1, gy0, 0.0],
            [gx1, gy1, 0.0],
            [gx0, gy1, 0.0],
        ]))

    def _ground(self) -> List[Drawable]:
        """Ground plane under the whole city, then the Base.svg backdrop (asset style)."""
        layout = self.settings.layout
        quad = self._flat_quad(*layout.ground_gx, *layout.ground_gy)
        drawables = [
            Drawable(
                Polygon(quad, fill=self.settings.palette.ground),
                self.settings.depth.ground, "ground", "ground",
            )
        ]

        base_file = self.settings.building.base_file
        if self.artwork is not None and base_file:
            try:
                art = self.artwork.load(base_file)
            except MissingAssetError as e:
                logger.warning(f"{e}; rendering without a backdrop")
            else:
                canvas = self.settings.canvas
                drawables.append(
                    Drawable(
                        Image(0.0, 0.0, canvas.width, canvas.height, art.href),
                        self.settings.depth.ground, "ground", "base-art",
                    )
                )
        return drawables

    def _road(self) -> List[Drawable]:
        """Road slab with a dashed centre line."""
        layout = self.settings.layout
        pal = self.settings.palette
        depth = self.settings.depth.road
        gx0, gx1 = layout.road_gx
        gy0, gy1 = layout.road_gy

        drawables = [
            Drawable(Polygon(self._flat_quad(gx0, gx1, gy0, gy1), fill=pal.road), depth, "road", "road")
        ]

        mid = (gy0 + gy1) / 2
        dash, gap, half_w = 1.5, 1.5, 0.08
        x = gx0 + gap
        while x + dash <= gx1 - gap:
            quad = self._flat_quad(x, x + dash, mid - half_w, mid + half_w)
            drawables.append(
                Drawable(Polygon(quad, fill=pal.road_marking, opacity=0.8), depth, "road", "road-marking")
            )
            x += dash + gap
        return drawables

    def _vehicles(self) -> List[Drawable]:
        """Parked cars in the far lane."""
        layout = self.settings.layout
        colors = self.settings.palette.vehicle_body
        gy = layout.vehicle_lane_gy()

        drawables = []
        for i, gx in enumerate(layout.vehicles):
            drawables.extend(
                self.builder.build_vehicle(
                    gx, gy, colors[i % len(colors)],
                    depth=self.settings.depth.foreground,
                    group=f"vehicle-{i}",
                )
            )
        return drawables

    # -------------------------------------------------------------------------
    # Labels
    # -------------------------------------------------------------------------

    def _sign(self, slot: GridSlot, day: DaySample) -> List[Drawable]:
        """
        Day sign across the road: post, board, weekday name and count.

        Everything inherits the slot's depth key so it composites with its
        own cluster.
        """
        cfg = self.settings.sign
        pal = self.settings.palette
        depth = slot.depth_key
        group = slot.group
        gx = slot.gx
        gy = self.settings.layout.sign_row_gy(slot.index)
        half = cfg.board_span / 2
        lo = cfg.post_height
        hi = cfg.post_height + cfg.board_height

        x, y = self.projector.project(gx, gy)
        board = self.projector.project_polygon(np.array([
            [gx - half, gy, lo],
            [gx + half, gy, lo],
            [gx + half, gy, hi],
            [gx - half, gy, hi],
        ]))

        drawables = [
            Drawable(Rect(x - 2.0, y - lo, 4.0, lo, fill=pal.sign_post), depth, group, "sign-post"),
            Drawable(Polygon(board, fill=pal.sign_board), depth, group, "sign-board"),
        ]

        name_style = LabelStyle(
            fill=pal.sign_text,
            font_size=cfg.day_font_size,
            anchor="middle",
            css_class="sign-label",
            isometric=True,
        )
        count_style = LabelStyle(
            fill=pal.sign_text,
            font_size=cfg.count_font_size,
            anchor="middle",
            css_class="sign-count",
            isometric=True,
        )
        name_anchor = self.projector.project(gx, gy, lo + cfg.board_height * 0.62)
        count_anchor = self.projector.project(gx, gy, lo + cfg.board_height * 0.12)
        drawables.extend(self.labels.render(name_anchor, day.weekday_name, name_style, depth, group))
        drawables.extend(self.labels.render(count_anchor, str(day.count), count_style, depth, group))
        return drawables

    def _summary(self, scene: Scene) -> List[Drawable]:
        """TOTAL (long-range) and WEEK (window sum) block."""
        cfg = self.settings.labels
        pal = self.settings.palette
        depth = self.settings.depth.overlay

        label_style = LabelStyle(
            fill=pal.stats_label, font_size=cfg.summary_label_size, css_class="stats-label",
        )
        value_style = LabelStyle(
            fill=pal.stats_text, font_size=cfg.summary_value_size, css_class="stats-text",
        )

        rows = [
            ("TOTAL:", scene.total_contributions),
            ("WEEK:", scene.week_total),
        ]
        drawables = []
        for i, (caption, value) in enumerate(rows):
            y = cfg.summary_y + i * cfg.summary_line_height
            value_x = cfg.summary_x + cfg.summary_value_offset
            drawables.extend(
                self.summary_labels.render((cfg.summary_x, y), caption, label_style, depth, "summary")
            )
            drawables.extend(
                self.summary_labels.render((value_x, y), str(value), value_style, depth, "summary")
            )
        return drawables
