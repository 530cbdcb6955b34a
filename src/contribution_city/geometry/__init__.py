"""
Geometry Module
===============

Isometric projection for the city scene.

Every vertex of every entity is produced by the Projector, so the whole
scene shares one fixed grid-to-screen transform.
"""

from contribution_city.geometry.projector import Projector

__all__ = [
    "Projector",
]
