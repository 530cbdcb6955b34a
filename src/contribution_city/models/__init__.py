"""
Data Models
===========

Data models for the contribution city renderer.

This module re-exports all data models for convenient access.

Models:
    Input:
        - DaySample: One day's contribution count
        - Week: Ordered window of samples plus the long-range total

    Classification:
        - Tier: Size bucket (EMPTY .. LARGE)

    Geometry:
        - Polygon, Rect, Circle, Ellipse, Text, Image: Screen primitives
        - Drawable: Primitive plus depth key

    Scene:
        - GridSlot: World position of a day entity
        - EntityCluster: Per-day summary
        - Scene: Unsorted drawables of one render
"""

from contribution_city.models.week import (
    WEEKDAY_NAMES,
    DaySample,
    InvalidSampleError,
    Week,
    weekday_of,
)
from contribution_city.models.tier import Tier
from contribution_city.models.drawable import (
    Circle,
    Drawable,
    Ellipse,
    Image,
    Polygon,
    Rect,
    ScreenPoint,
    Shape,
    Text,
)
from contribution_city.models.scene import EntityCluster, GridSlot, Scene

__all__ = [
    # Input
    "WEEKDAY_NAMES",
    "DaySample",
    "Week",
    "InvalidSampleError",
    "weekday_of",
    # Classification
    "Tier",
    # Geometry
    "ScreenPoint",
    "Shape",
    "Polygon",
    "Rect",
    "Circle",
    "Ellipse",
    "Text",
    "Image",
    "Drawable",
    # Scene
    "GridSlot",
    "EntityCluster",
    "Scene",
]
