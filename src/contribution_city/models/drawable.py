"""
Drawable Primitives
===================

Typed render primitives passed from scene assembly to the compositor.

Design Rules:
    - Shapes carry final screen-space geometry and flat styles
    - Drawable pairs a shape with its depth key (painter's algorithm)
    - Everything is immutable (frozen) so sorting can never mutate a batch

Roles:
    The ``role`` tag names what a primitive is (``roof``, ``wall-left``,
    ``window-lit``, ``lamp-post``, ``label`` ...). It does not affect
    rendering order; it exists for grouping and inspection.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union


ScreenPoint = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class Polygon:
    """Closed polygon in screen space."""

    points: Tuple[ScreenPoint, ...]
    fill: str
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    opacity: float = 1.0


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned rectangle in screen space."""

    x: float
    y: float
    width: float
    height: float
    fill: str
    opacity: float = 1.0
    rx: float = 0.0


@dataclass(frozen=True, slots=True)
class Circle:
    """Circle in screen space."""

    cx: float
    cy: float
    r: float
    fill: str
    opacity: float = 1.0


@dataclass(frozen=True, slots=True)
class Ellipse:
    """Ellipse in screen space."""

    cx: float
    cy: float
    rx: float
    ry: float
    fill: str
    opacity: float = 1.0


@dataclass(frozen=True, slots=True)
class Text:
    """Native text run anchored at its baseline."""

    x: float
    y: float
    text: str
    fill: str
    font_size: float
    font_family: Optional[str] = None
    font_weight: str = "bold"
    anchor: str = "start"
    css_class: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Image:
    """Embedded image (data URI) placed at its top-left corner."""

    x: float
    y: float
    width: float
    height: float
    href: str


Shape = Union[Polygon, Rect, Circle, Ellipse, Text, Image]


@dataclass(frozen=True, slots=True)
class Drawable:
    """
    One renderable primitive with its depth key.

    Attributes:
        shape: Screen-space geometry and style
        depth: Painter's-algorithm key (ascending = drawn earlier)
        group: Owning cluster, e.g. ``day-3`` or ``road``
        role: What the primitive depicts, e.g. ``roof``
    """

    shape: Shape
    depth: float
    group: str = ""
    role: str = ""
