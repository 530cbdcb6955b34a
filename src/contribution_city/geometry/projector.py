"""
Isometric Projection
====================

Fixed 3D-grid to 2D-screen transform used for every vertex of the scene.

Formula:
    sx = origin_x + (gx - gy) * tile_w
    sy = origin_y + (gx + gy) * tile_h - gz

Elevation ``gz`` is subtracted straight from screen y (no vertical
foreshortening). No rounding is applied; sub-pixel coordinates are valid.

Axes on screen:
    +gx -> right and down   (tile_w, tile_h)
    +gy -> left and down    (-tile_w, tile_h)
    +gz -> up               (0, -1)

Example:
    from contribution_city.geometry import Projector

    projector = Projector(tile_w=28, tile_h=16, origin_x=500, origin_y=440)
    sx, sy = projector.project(2, -5, gz=120)
"""

import logging
from typing import Tuple

import numpy as np

from contribution_city.models.drawable import ScreenPoint


logger = logging.getLogger(__name__)


class Projector:
    """
    Pure affine isometric projector.

    Attributes:
        tile_w: Screen x distance per grid unit
        tile_h: Screen y distance per grid unit
        origin_x: Screen x of grid (0, 0)
        origin_y: Screen y of grid (0, 0)
    """

    def __init__(
        self,
        tile_w: float,
        tile_h: float,
        origin_x: float = 0.0,
        origin_y: float = 0.0,
    ) -> None:
        """
        Initialize projector.

        Args:
            tile_w: Screen x per grid unit (must be positive)
            tile_h: Screen y per grid unit (must be positive)
            origin_x: Screen x of grid origin
            origin_y: Screen y of grid origin

        Raises:
            ValueError: If a tile dimension is not positive
        """
        if tile_w <= 0 or tile_h <= 0:
            raise ValueError(f"Tile dimensions must be positive: {tile_w}x{tile_h}")

        self.tile_w = float(tile_w)
        self.tile_h = float(tile_h)
        self.origin_x = float(origin_x)
        self.origin_y = float(origin_y)

        # Row-vector form: [gx, gy, gz] @ matrix + origin
        self._matrix = np.array([
            [self.tile_w, self.tile_h],
            [-self.tile_w, self.tile_h],
            [0.0, -1.0],
        ])
        self._origin = np.array([self.origin_x, self.origin_y])

    @classmethod
    def from_config(cls, config) -> "Projector":
        """Build from a ``ProjectionConfig``."""
        return cls(
            tile_w=config.tile_w,
            tile_h=config.tile_h,
            origin_x=config.origin_x,
            origin_y=config.origin_y,
        )

    def project(self, gx: float, gy: float, gz: float = 0.0) -> ScreenPoint:
        """
        Project one grid coordinate to screen space.

        Args:
            gx: Grid x
            gy: Grid y
            gz: Elevation in screen pixels

        Returns:
            (sx, sy) screen point
        """
        sx = self.origin_x + (gx - gy) * self.tile_w
        sy = self.origin_y + (gx + gy) * self.tile_h - gz
        return (sx, sy)

    def project_many(self, points: np.ndarray) -> np.ndarray:
        """
        Project an (N, 3) array of grid coordinates.

        Args:
            points: Array of [gx, gy, gz] rows (gz may be omitted: (N, 2))

        Returns:
            (N, 2) array of screen points
        """
        pts = np.asarray(points, dtype=float)
        if pts.ndim != 2 or pts.shape[1] not in (2, 3):
            raise ValueError(f"Expected (N, 2) or (N, 3) points, got {pts.shape}")
        if pts.shape[1] == 2:
            pts = np.hstack([pts, np.zeros((pts.shape[0], 1))])
        return pts @ self._matrix + self._origin

    def project_polygon(self, points: np.ndarray) -> Tuple[ScreenPoint, ...]:
        """Project grid vertices into a tuple of screen points."""
        return tuple((float(x), float(y)) for x, y in self.project_many(points))

    def axis_vectors(self) -> Tuple[ScreenPoint, ScreenPoint]:
        """
        Screen-space step of one unit along gx and gy.

        Returns:
            ((dx, dy) for +gx, (dx, dy) for +gy)
        """
        return (self.tile_w, self.tile_h), (-self.tile_w, self.tile_h)

    def __repr__(self) -> str:
        return (
            f"Projector(tile={self.tile_w}x{self.tile_h}, "
            f"origin=({self.origin_x}, {self.origin_y}))"
        )
