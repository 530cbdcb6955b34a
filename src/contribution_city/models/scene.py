"""
Scene Models
============

Containers produced by the scene assembler and consumed by the compositor.

Core Concepts:
    - GridSlot: world-space coordinate of one day entity
    - EntityCluster: summary of one day's entity (for logging and tests)
    - Scene: every Drawable of a render, UNSORTED, each with its depth key

Depth Keys:
    Data-driven drawables use ``slot.gx + slot.gy``. Static fixtures use
    the named bands of ``DepthBands``. Primitives that share a key keep the
    order they were emitted in; the compositor's sort is stable.
"""

import datetime
from dataclasses import dataclass, field
from typing import List

from contribution_city.models.drawable import Drawable
from contribution_city.models.tier import Tier


@dataclass(frozen=True, slots=True)
class GridSlot:
    """
    World-space position of one day entity.

    Attributes:
        index: Position of the day in the week (0 = oldest)
        gx: Grid x coordinate
        gy: Grid y coordinate
    """

    index: int
    gx: float
    gy: float

    @property
    def depth_key(self) -> float:
        """Painter's-algorithm key: larger is nearer the viewer."""
        return self.gx + self.gy

    @property
    def group(self) -> str:
        """Cluster name shared by all drawables of this slot."""
        return f"day-{self.index}"


@dataclass(frozen=True, slots=True)
class EntityCluster:
    """Summary of the entity generated for one day."""

    slot: GridSlot
    date: datetime.date
    weekday_name: str
    count: int
    tier: Tier
    height: float


@dataclass
class Scene:
    """
    Everything needed to serialize one render.

    Attributes:
        width: Canvas width in pixels
        height: Canvas height in pixels
        drawables: All primitives in emission order (not depth order)
        clusters: One entry per day, oldest first
        week_total: Sum of the window's counts
        total_contributions: Long-range total
    """

    width: int
    height: int
    drawables: List[Drawable] = field(default_factory=list)
    clusters: List[EntityCluster] = field(default_factory=list)
    week_total: int = 0
    total_contributions: int = 0

    def group(self, name: str) -> List[Drawable]:
        """Drawables of one cluster, in emission order."""
        return [d for d in self.drawables if d.group == name]
