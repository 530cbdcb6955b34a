"""
Entity Geometry
===============

Builds the drawable primitives of one day entity.

Entities:
    - EMPTY tier: lamp post (glow at the base, post, lantern head)
    - other tiers: building prism (shadow, roof, left wall, right wall)
      followed by the window grid of both visible walls
    - other tiers with artwork: one embedded SVG standing on the front
      corner of the lot; a tier whose file is missing falls back to the
      prism with a warning

Height:
    height(count) = min(max_height, base_height + count * height_slope)

Self-occlusion:
    All primitives of one entity share the slot's depth key, so their
    relative order is their EMISSION order (the compositor's sort is
    stable). Emission is always roof -> walls -> windows; the roof and the
    two visible walls of a convex prism only share edges, and windows must
    sit on top of their wall.

Randomness:
    Window lit/unlit state is cosmetic. It is drawn from the injected numpy
    Generator so a fixed seed reproduces a render exactly.
"""

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from contribution_city.city.artwork import BuildingArtwork
from contribution_city.city.labels import MissingAssetError
from contribution_city.geometry.projector import Projector
from contribution_city.models.drawable import Circle, Drawable, Ellipse, Image, Polygon, Rect, ScreenPoint
from contribution_city.models.scene import GridSlot
from contribution_city.models.tier import Tier


logger = logging.getLogger(__name__)


Faces = Dict[str, Tuple[ScreenPoint, ...]]

# Parked car box: half-size along gx/gy (grid units) and height (x tile_h)
VEHICLE_HALF_GX = 1.2
VEHICLE_HALF_GY = 0.6
VEHICLE_HEIGHT = 1.1


class EntityBuilder:
    """
    Geometry builder for buildings, lamps and vehicles.

    Attributes:
        projector: Shared grid-to-screen transform
        building: Height and window settings (``BuildingConfig``)
        lamp: Lamp post sizes (``LampConfig``)
        footprints: Footprint half-size per tier name
        palette: Colours (``PaletteConfig``)
        rng: Source of cosmetic randomness
        artwork: Building artwork (None draws every building as a prism)
    """

    def __init__(
        self,
        projector: Projector,
        building,
        lamp,
        footprints: Dict[str, float],
        palette,
        rng: np.random.Generator,
        artwork: Optional[BuildingArtwork] = None,
    ) -> None:
        missing = [t.name for t in Tier if t.is_building and t.name not in footprints]
        if missing:
            raise ValueError(f"No footprint configured for tiers: {missing}")

        self.projector = projector
        self.building = building
        self.lamp = lamp
        self.footprints = footprints
        self.palette = palette
        self.rng = rng
        self.artwork = artwork

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def building_height(self, count: int) -> float:
        """
        Height of a building for a contribution count.

        Monotonically increasing and saturating at ``max_height``.
        """
        cfg = self.building
        return min(cfg.max_height, cfg.base_height + count * cfg.height_slope)

    def build(self, tier: Tier, slot: GridSlot, count: int) -> List[Drawable]:
        """
        Build the primitives of one day entity.

        Args:
            tier: Classified tier of the day
            slot: Grid slot of the day (supplies the depth key)
            count: Contribution count (drives height)

        Returns:
            Drawables in emission order, all keyed ``slot.depth_key``
        """
        if tier is Tier.EMPTY:
            return self._build_lamp(slot)
        if self.artwork is not None:
            try:
                return self._build_artwork(tier, slot)
            except MissingAssetError as e:
                logger.warning(f"{e}; drawing {slot.group} as a {tier.name} prism")
        return self._build_building(tier, slot, count)

    def build_vehicle(
        self,
        gx: float,
        gy: float,
        color: str,
        depth: float,
        group: str,
    ) -> List[Drawable]:
        """
        Build a parked car on the road.

        Args:
            gx: Grid x of the car centre
            gy: Grid y of the car centre
            color: Body colour
            depth: Depth key (a foreground band)
            group: Cluster name

        Returns:
            Body faces then headlights
        """
        body_h = self.projector.tile_h * VEHICLE_HEIGHT
        faces = self._prism_faces(gx, gy, VEHICLE_HALF_GX, VEHICLE_HALF_GY, body_h)

        drawables = [
            Drawable(Polygon(faces["roof"], fill=color), depth, group, "vehicle-roof"),
            Drawable(Polygon(faces["left"], fill=color, opacity=0.8), depth, group, "vehicle-side"),
            Drawable(Polygon(faces["right"], fill=color, opacity=0.6), depth, group, "vehicle-front"),
        ]

        r = self.projector.tile_h * 0.18
        for dy in (-0.3, 0.3):
            hx, hy = self.projector.project(gx + VEHICLE_HALF_GX, gy + dy, body_h * 0.4)
            drawables.append(
                Drawable(Circle(hx, hy, r, fill=self.palette.headlight), depth, group, "headlight")
            )

        return drawables

    # -------------------------------------------------------------------------
    # Entities
    # -------------------------------------------------------------------------

    def _build_lamp(self, slot: GridSlot) -> List[Drawable]:
        """Lamp post standing on an empty lot."""
        cfg = self.lamp
        pal = self.palette
        depth = slot.depth_key
        group = slot.group
        x, y = self.projector.project(slot.gx, slot.gy)

        return [
            Drawable(
                Ellipse(x, y, cfg.glow_rx, cfg.glow_ry, fill=pal.lamp_glow, opacity=0.25),
                depth, group, "lamp-glow",
            ),
            Drawable(
                Rect(
                    x - cfg.post_width / 2,
                    y - cfg.post_height,
                    cfg.post_width,
                    cfg.post_height,
                    fill=pal.lamp_post,
                ),
                depth, group, "lamp-post",
            ),
            Drawable(
                Circle(x, y - cfg.post_height, cfg.head_radius, fill=pal.lamp_head),
                depth, group, "lamp-head",
            ),
        ]

    def _build_building(self, tier: Tier, slot: GridSlot, count: int) -> List[Drawable]:
        """Building prism plus window grid."""
        pal = self.palette
        depth = slot.depth_key
        group = slot.group
        half = self.footprints[tier.name]
        height = self.building_height(count)

        faces = self._prism_faces(slot.gx, slot.gy, half, half, height)
        shadow = self._prism_faces(slot.gx + 0.4, slot.gy + 0.4, half, half, 0.0)["base"]

        drawables = [
            Drawable(Polygon(shadow, fill=pal.shadow, opacity=0.35), depth, group, "shadow"),
            Drawable(Polygon(faces["roof"], fill=pal.roofs[tier.name]), depth, group, "roof"),
            Drawable(Polygon(faces["left"], fill=pal.walls_left[tier.name]), depth, group, "wall-left"),
            Drawable(Polygon(faces["right"], fill=pal.walls_right[tier.name]), depth, group, "wall-right"),
        ]

        # Left wall runs left -> front corner, right wall front -> right corner
        left_a = (slot.gx - half, slot.gy + half)
        front = (slot.gx + half, slot.gy + half)
        right_b = (slot.gx + half, slot.gy - half)
        drawables.extend(self._windows(left_a, front, height, depth, group))
        drawables.extend(self._windows(front, right_b, height, depth, group))

        logger.debug(
            f"Building {group}: tier={tier.name}, count={count}, "
            f"height={height:.1f}, primitives={len(drawables)}"
        )
        return drawables

    def _build_artwork(self, tier: Tier, slot: GridSlot) -> List[Drawable]:
        """Tier artwork, bottom-centred on the front corner of the lot."""
        art = self.artwork.for_tier(tier)
        dx, dy = self.artwork.offset(tier)
        half = self.footprints[tier.name]
        x, y = self.projector.project(slot.gx + half, slot.gy + half)
        image = Image(x - art.width / 2 + dx, y - art.height + dy, art.width, art.height, art.href)
        return [Drawable(image, slot.depth_key, slot.group, "building-art")]

    # -------------------------------------------------------------------------
    # Geometry helpers
    # -------------------------------------------------------------------------

    def _prism_faces(
        self,
        cx: float,
        cy: float,
        hx: float,
        hy: float,
        height: float,
    ) -> Faces:
        """
        Project the visible faces of an axis-aligned box.

        Corners (grid space): back (-,-), right (+,-), front (+,+), left (-,+).
        Visible from the camera: roof, left wall (+gy side), right wall
        (+gx side).
        """
        corners = np.array([
            [cx - hx, cy - hy],  # back
            [cx + hx, cy - hy],  # right
            [cx + hx, cy + hy],  # front
            [cx - hx, cy + hy],  # left
        ])
        bottom = np.hstack([corners, np.zeros((4, 1))])
        top = np.hstack([corners, np.full((4, 1), height)])

        b = self.projector.project_polygon(bottom)
        t = self.projector.project_polygon(top)
        right, front, left = 1, 2, 3

        return {
            "base": b,
            "roof": t,
            "left": (b[left], b[front], t[front], t[left]),
            "right": (b[front], b[right], t[right], t[front]),
        }

    def _windows(
        self,
        start: Tuple[float, float],
        end: Tuple[float, float],
        height: float,
        depth: float,
        group: str,
    ) -> List[Drawable]:
        """
        Window grid on the wall spanning ``start`` -> ``end``.

        The wall height minus the top and bottom margins is divided into
        bands of ``window_band``; each band x column gets one window whose
        lit state is an independent draw.
        """
        cfg = self.building
        pal = self.palette
        rows = int(max(0.0, height - 2 * cfg.window_margin) // cfg.window_band)
        cols = cfg.window_columns
        if rows == 0:
            return []

        sx, sy = start
        ex, ey = end
        pad = cfg.window_band * 0.2
        windows = []

        for row in range(rows):
            z0 = cfg.window_margin + row * cfg.window_band + pad
            z1 = cfg.window_margin + (row + 1) * cfg.window_band - pad
            for col in range(cols):
                t0 = (col + 0.25) / cols
                t1 = (col + 0.75) / cols
                quad = np.array([
                    [sx + (ex - sx) * t0, sy + (ey - sy) * t0, z0],
                    [sx + (ex - sx) * t1, sy + (ey - sy) * t1, z0],
                    [sx + (ex - sx) * t1, sy + (ey - sy) * t1, z1],
                    [sx + (ex - sx) * t0, sy + (ey - sy) * t0, z1],
                ])
                lit = bool(self.rng.random() < cfg.lit_probability)
                windows.append(
                    Drawable(
                        Polygon(
                            self.projector.project_polygon(quad),
                            fill=pal.window_lit if lit else pal.window_unlit,
                        ),
                        depth,
                        group,
                        "window-lit" if lit else "window-unlit",
                    )
                )

        return windows
