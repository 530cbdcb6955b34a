"""
City Module
===========

Scene composition for the contribution city.

Components:
    - tiers: count -> Tier classification
    - buildings: Tier + slot -> building / lamp primitives
    - artwork: per-tier building SVGs for the asset building style
    - labels: text, bitmap and glyph-asset label strategies
    - assembler: Week -> unsorted Scene with depth keys

Data Flow:
    Week -> classify -> EntityBuilder (Projector for every vertex)
         -> SceneAssembler (depth keys) -> compositor
"""

from contribution_city.city.tiers import DEFAULT_THRESHOLDS, TierThresholds, classify
from contribution_city.city.artwork import Artwork, BuildingArtwork
from contribution_city.city.buildings import EntityBuilder
from contribution_city.city.labels import (
    AssetGlyphLabelRenderer,
    BitmapLabelRenderer,
    LabelRenderer,
    LabelStyle,
    MissingAssetError,
    TextLabelRenderer,
    create_label_renderer,
)
from contribution_city.city.assembler import SceneAssembler, create_rng

__all__ = [
    "DEFAULT_THRESHOLDS",
    "TierThresholds",
    "classify",
    "Artwork",
    "BuildingArtwork",
    "EntityBuilder",
    "LabelRenderer",
    "LabelStyle",
    "TextLabelRenderer",
    "BitmapLabelRenderer",
    "AssetGlyphLabelRenderer",
    "MissingAssetError",
    "create_label_renderer",
    "SceneAssembler",
    "create_rng",
]
