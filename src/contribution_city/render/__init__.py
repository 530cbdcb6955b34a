"""
Render Module
=============

Depth-ordered compositing and output of the city scene.

This module provides:
    - depth_order: stable painter's-algorithm ordering
    - Compositor: Scene -> SVG document (svgwrite)
    - write_document: SVG string -> file
"""

from contribution_city.render.compositor import Compositor, depth_order
from contribution_city.render.writer import write_document


__all__ = [
    "Compositor",
    "depth_order",
    "write_document",
]
