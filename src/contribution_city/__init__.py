"""
Contribution City
=================

Renders one week of GitHub contribution activity as an isometric night city.

Each day becomes a building whose footprint and height grow with the day's
contribution count (or a street lamp for a day without contributions),
placed on an isometric grid and painted back-to-front into an SVG document.

Components:
    - models: Week input schema, tiers, drawables and scenes
    - geometry: Grid -> screen isometric projection
    - city: Tier classifier, entity builder, label renderers, scene assembly
    - render: Depth-ordered SVG compositing and output
    - sources: GitHub GraphQL and fallback week sources

Example:
    from contribution_city.config import load_config
    from contribution_city.main import run

    settings = load_config(preset="compact")
    run(settings, offline=True)
"""

__version__ = "0.1.0"
__author__ = "Contribution City Project"

__all__ = [
    "__version__",
]
