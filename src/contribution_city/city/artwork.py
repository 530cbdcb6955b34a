"""
Building Artwork
================

Loads the per-tier building SVGs used by the ``asset`` building style.

Files:
    One SVG per building tier (``Xsmall.svg``, ``Small.svg``, ``Middle.svg``,
    ``Big.svg`` by default) plus an optional full-canvas ``Base.svg``.

Placement:
    Artwork is embedded as a base64 data URI. Its intrinsic size comes from
    the root ``width``/``height`` attributes, or the ``viewBox`` when those
    are missing or relative, multiplied by ``scale``.
"""

import base64
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from contribution_city.city.labels import MissingAssetError
from contribution_city.models.tier import Tier


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Artwork:
    """One loaded SVG: data URI and on-canvas size."""

    href: str
    width: float
    height: float


def _length(value: Optional[str]) -> Optional[float]:
    """Parse an absolute SVG length (``120`` or ``120px``)."""
    if value is None:
        return None
    value = value.strip()
    if value.endswith("px"):
        value = value[:-2]
    try:
        return float(value)
    except ValueError:
        return None


def svg_size(data: bytes) -> Tuple[float, float]:
    """
    Intrinsic (width, height) of an SVG document.

    Raises:
        ValueError: If the document cannot be parsed or has no usable size
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ValueError(f"not an SVG document: {e}") from e

    width = _length(root.get("width"))
    height = _length(root.get("height"))
    if width and height:
        return width, height

    view_box = root.get("viewBox")
    if view_box:
        parts = view_box.replace(",", " ").split()
        if len(parts) == 4:
            vb_w, vb_h = _length(parts[2]), _length(parts[3])
            if vb_w and vb_h:
                return vb_w, vb_h

    raise ValueError("no width/height or viewBox")


class BuildingArtwork:
    """
    Cached loader of building artwork.

    Attributes:
        asset_dir: Directory holding the SVG files
        files: File name per building tier name
        offsets: Screen (dx, dy) nudge per tier name
        scale: Size multiplier applied to every file
    """

    def __init__(
        self,
        asset_dir: str,
        files: Dict[str, str],
        offsets: Optional[Dict[str, List[float]]] = None,
        scale: float = 1.0,
    ) -> None:
        self.asset_dir = Path(asset_dir)
        self.files = dict(files)
        self.offsets = dict(offsets or {})
        self.scale = scale
        self._cache: Dict[str, Artwork] = {}

    @classmethod
    def from_config(cls, config) -> "BuildingArtwork":
        """Build from a ``BuildingConfig``."""
        return cls(
            asset_dir=config.asset_dir,
            files=config.asset_files,
            offsets=config.asset_offsets,
            scale=config.asset_scale,
        )

    def load(self, filename: str) -> Artwork:
        """
        Load one SVG file from the asset directory.

        Raises:
            MissingAssetError: If the file does not exist or is not a sized SVG
        """
        if filename in self._cache:
            return self._cache[filename]

        path = self.asset_dir / filename
        if not path.is_file():
            raise MissingAssetError(f"Building asset not found: {path}")

        data = path.read_bytes()
        try:
            width, height = svg_size(data)
        except ValueError as e:
            raise MissingAssetError(f"Unusable building asset {path}: {e}") from e

        encoded = base64.b64encode(data).decode("ascii")
        artwork = Artwork(
            href=f"data:image/svg+xml;base64,{encoded}",
            width=width * self.scale,
            height=height * self.scale,
        )
        self._cache[filename] = artwork
        logger.debug(f"Loaded building asset {path} ({artwork.width:.0f}x{artwork.height:.0f})")
        return artwork

    def for_tier(self, tier: Tier) -> Artwork:
        """Artwork of a building tier."""
        return self.load(self.files[tier.name])

    def offset(self, tier: Tier) -> Tuple[float, float]:
        dx, dy = self.offsets.get(tier.name, (0.0, 0.0))
        return float(dx), float(dy)
