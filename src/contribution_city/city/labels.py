"""
Label Rendering
===============

Interchangeable strategies for the small annotations of the scene (day
signs and the TOTAL / WEEK summary block).

Strategies:
    - TextLabelRenderer: native SVG text at the anchor
    - BitmapLabelRenderer: built-in 5x7 dot font, each run of lit dots
      rasterised into a small parallelogram. Flat labels use screen axes;
      isometric labels follow the projector's gx axis so they lie on the
      same plane as the sign boards.
    - AssetGlyphLabelRenderer: one SVG file per character in a glyph
      directory, embedded as a data URI. A missing glyph is skipped with a
      warning; the render continues.

Design Rules:
    - Labels are emitted inside their owner's batch and take its depth key
    - Anchors are baseline points; ``anchor="middle"`` centres the run
"""

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from contribution_city.geometry.projector import Projector
from contribution_city.models.drawable import Drawable, Image, Polygon, ScreenPoint, Text


logger = logging.getLogger(__name__)


class MissingAssetError(Exception):
    """Raised when a glyph, font or artwork asset cannot be found or read."""
    pass


@dataclass(frozen=True)
class LabelStyle:
    """
    Visual style of one label.

    Attributes:
        fill: Text colour
        font_size: Cap height in pixels
        font_weight: Native text weight
        anchor: 'start' or 'middle'
        css_class: Optional CSS class (native text only)
        isometric: Slant along the grid's gx axis (bitmap and asset only)
    """

    fill: str
    font_size: float
    font_weight: str = "bold"
    anchor: str = "start"
    css_class: Optional[str] = None
    isometric: bool = False


class LabelRenderer(Protocol):
    """
    Protocol for label strategies.

    All implementations turn a text run at an anchor into drawables that
    share the caller's depth key and group.
    """

    def render(
        self,
        anchor: ScreenPoint,
        text: str,
        style: LabelStyle,
        depth: float,
        group: str,
    ) -> List[Drawable]:
        """
        Render a text run.

        Args:
            anchor: Baseline anchor in screen space
            text: Text to render
            style: Label style
            depth: Depth key inherited from the owning entity
            group: Owning cluster name

        Returns:
            Drawables in drawing order
        """
        ...


class TextLabelRenderer:
    """Native SVG text labels."""

    def __init__(self, font_family: Optional[str] = None) -> None:
        self.font_family = font_family

    def render(
        self,
        anchor: ScreenPoint,
        text: str,
        style: LabelStyle,
        depth: float,
        group: str,
    ) -> List[Drawable]:
        x, y = anchor
        shape = Text(
            x=x,
            y=y,
            text=text,
            fill=style.fill,
            font_size=style.font_size,
            font_family=self.font_family,
            font_weight=style.font_weight,
            anchor=style.anchor,
            css_class=style.css_class,
        )
        return [Drawable(shape, depth, group, "label")]


# 5x7 dot font: one 5-bit row per entry, bit 4 is the leftmost column.
GLYPH_COLUMNS = 5
GLYPH_ROWS = 7
GLYPH_ADVANCE = 6

BITMAP_FONT: Dict[str, Tuple[int, ...]] = {
    "0": (0x0E, 0x11, 0x13, 0x15, 0x19, 0x11, 0x0E),
    "1": (0x04, 0x0C, 0x04, 0x04, 0x04, 0x04, 0x0E),
    "2": (0x0E, 0x11, 0x01, 0x02, 0x04, 0x08, 0x1F),
    "3": (0x1F, 0x02, 0x04, 0x02, 0x01, 0x11, 0x0E),
    "4": (0x02, 0x06, 0x0A, 0x12, 0x1F, 0x02, 0x02),
    "5": (0x1F, 0x10, 0x1E, 0x01, 0x01, 0x11, 0x0E),
    "6": (0x06, 0x08, 0x10, 0x1E, 0x11, 0x11, 0x0E),
    "7": (0x1F, 0x01, 0x02, 0x04, 0x08, 0x08, 0x08),
    "8": (0x0E, 0x11, 0x11, 0x0E, 0x11, 0x11, 0x0E),
    "9": (0x0E, 0x11, 0x11, 0x0F, 0x01, 0x02, 0x0C),
    "A": (0x0E, 0x11, 0x11, 0x1F, 0x11, 0x11, 0x11),
    "B": (0x1E, 0x11, 0x11, 0x1E, 0x11, 0x11, 0x1E),
    "C": (0x0E, 0x11, 0x10, 0x10, 0x10, 0x11, 0x0E),
    "D": (0x1C, 0x12, 0x11, 0x11, 0x11, 0x12, 0x1C),
    "E": (0x1F, 0x10, 0x10, 0x1E, 0x10, 0x10, 0x1F),
    "F": (0x1F, 0x10, 0x10, 0x1E, 0x10, 0x10, 0x10),
    "G": (0x0E, 0x11, 0x10, 0x17, 0x11, 0x11, 0x0F),
    "H": (0x11, 0x11, 0x11, 0x1F, 0x11, 0x11, 0x11),
    "I": (0x0E, 0x04, 0x04, 0x04, 0x04, 0x04, 0x0E),
    "J": (0x07, 0x02, 0x02, 0x02, 0x02, 0x12, 0x0C),
    "K": (0x11, 0x12, 0x14, 0x18, 0x14, 0x12, 0x11),
    "L": (0x10, 0x10, 0x10, 0x10, 0x10, 0x10, 0x1F),
    "M": (0x11, 0x1B, 0x15, 0x15, 0x11, 0x11, 0x11),
    "N": (0x11, 0x11, 0x19, 0x15, 0x13, 0x11, 0x11),
    "O": (0x0E, 0x11, 0x11, 0x11, 0x11, 0x11, 0x0E),
    "P": (0x1E, 0x11, 0x11, 0x1E, 0x10, 0x10, 0x10),
    "Q": (0x0E, 0x11, 0x11, 0x11, 0x15, 0x12, 0x0D),
    "R": (0x1E, 0x11, 0x11, 0x1E, 0x14, 0x12, 0x11),
    "S": (0x0F, 0x10, 0x10, 0x0E, 0x01, 0x01, 0x1E),
    "T": (0x1F, 0x04, 0x04, 0x04, 0x04, 0x04, 0x04),
    "U": (0x11, 0x11, 0x11, 0x11, 0x11, 0x11, 0x0E),
    "V": (0x11, 0x11, 0x11, 0x11, 0x11, 0x0A, 0x04),
    "W": (0x11, 0x11, 0x11, 0x15, 0x15, 0x15, 0x0A),
    "X": (0x11, 0x11, 0x0A, 0x04, 0x0A, 0x11, 0x11),
    "Y": (0x11, 0x11, 0x0A, 0x04, 0x04, 0x04, 0x04),
    "Z": (0x1F, 0x01, 0x02, 0x04, 0x08, 0x10, 0x1F),
    ":": (0x00, 0x04, 0x04, 0x00, 0x04, 0x04, 0x00),
    "/": (0x01, 0x01, 0x02, 0x04, 0x08, 0x10, 0x10),
    "-": (0x00, 0x00, 0x00, 0x1F, 0x00, 0x00, 0x00),
    " ": (0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00),
}


def glyph_runs(rows: Tuple[int, ...]) -> List[Tuple[int, int, int]]:
    """
    Horizontal runs of lit dots in a glyph.

    Returns:
        (row, first_column, length) for every maximal run
    """
    runs = []
    for row, bits in enumerate(rows):
        col = 0
        while col < GLYPH_COLUMNS:
            if (bits >> (GLYPH_COLUMNS - 1 - col)) & 1:
                start = col
                while col < GLYPH_COLUMNS and (bits >> (GLYPH_COLUMNS - 1 - col)) & 1:
                    col += 1
                runs.append((row, start, col - start))
            else:
                col += 1
    return runs


class BitmapLabelRenderer:
    """
    Dot-font labels that need no font support in the viewer.

    Each run of lit dots becomes one parallelogram spanned by the column
    step ``u`` and the row step ``v``.
    """

    def __init__(self, projector: Projector) -> None:
        self.projector = projector

    def _axes(self, style: LabelStyle) -> Tuple[ScreenPoint, ScreenPoint]:
        """Column and row step vectors for one dot."""
        pixel = style.font_size / GLYPH_ROWS
        if style.isometric:
            (ax, ay), _ = self.projector.axis_vectors()
            return (pixel, pixel * ay / ax), (0.0, pixel)
        return (pixel, 0.0), (0.0, pixel)

    def render(
        self,
        anchor: ScreenPoint,
        text: str,
        style: LabelStyle,
        depth: float,
        group: str,
    ) -> List[Drawable]:
        (ux, uy), (vx, vy) = self._axes(style)
        x0, y0 = anchor

        # Anchor is the baseline: the glyph box starts GLYPH_ROWS rows up
        x0 -= GLYPH_ROWS * vx
        y0 -= GLYPH_ROWS * vy
        if style.anchor == "middle":
            width = len(text) * GLYPH_ADVANCE - 1
            x0 -= ux * width / 2
            y0 -= uy * width / 2

        drawables = []
        for i, ch in enumerate(text.upper()):
            rows = BITMAP_FONT.get(ch)
            if rows is None:
                logger.debug(f"No bitmap glyph for {ch!r}, leaving a gap")
                continue
            base_col = i * GLYPH_ADVANCE
            for row, col, length in glyph_runs(rows):
                c = base_col + col
                ox = x0 + c * ux + row * vx
                oy = y0 + c * uy + row * vy
                points = (
                    (ox, oy),
                    (ox + length * ux, oy + length * uy),
                    (ox + length * ux + vx, oy + length * uy + vy),
                    (ox + vx, oy + vy),
                )
                drawables.append(
                    Drawable(Polygon(points, fill=style.fill), depth, group, "label")
                )
        return drawables


class AssetGlyphLabelRenderer:
    """
    Labels composed from per-character SVG files (``<char>.svg``).

    A file named after the whole text run (``SUN.svg``) is used as-is when
    present. Loaded glyphs are cached as data URIs for the lifetime of the
    renderer.
    """

    def __init__(
        self,
        glyph_dir: str,
        glyph_width: float,
        glyph_height: float,
        projector: Projector,
    ) -> None:
        self.glyph_dir = Path(glyph_dir)
        self.glyph_width = glyph_width
        self.glyph_height = glyph_height
        self.projector = projector
        self._cache: Dict[str, str] = {}

        if not self.glyph_dir.is_dir():
            logger.warning(f"Glyph directory not found: {self.glyph_dir}")

    def load_glyph(self, ch: str) -> str:
        """
        Load one glyph as a data URI.

        Raises:
            MissingAssetError: If the glyph file does not exist
        """
        if ch in self._cache:
            return self._cache[ch]

        path = self.glyph_dir / f"{ch}.svg"
        if not path.is_file():
            raise MissingAssetError(f"Glyph asset not found: {path}")

        encoded = base64.b64encode(path.read_bytes()).decode("ascii")
        uri = f"data:image/svg+xml;base64,{encoded}"
        self._cache[ch] = uri
        return uri

    def render(
        self,
        anchor: ScreenPoint,
        text: str,
        style: LabelStyle,
        depth: float,
        group: str,
    ) -> List[Drawable]:
        scale = style.font_size / self.glyph_height
        width = self.glyph_width * scale
        height = self.glyph_height * scale
        if style.isometric:
            (ax, ay), _ = self.projector.axis_vectors()
            step = (width, width * ay / ax)
        else:
            step = (width, 0.0)

        x0, y0 = anchor
        if style.anchor == "middle":
            x0 -= step[0] * len(text) / 2
            y0 -= step[1] * len(text) / 2

        # Whole-word artwork (e.g. SUN.svg) takes precedence over glyphs
        if len(text) > 1 and (self.glyph_dir / f"{text}.svg").is_file():
            href = self.load_glyph(text)
            image = Image(x0, y0 - height, width * len(text), height, href)
            return [Drawable(image, depth, group, "label")]

        drawables = []
        for i, ch in enumerate(text):
            if ch == " ":
                continue
            try:
                href = self.load_glyph(ch)
            except MissingAssetError as e:
                logger.warning(f"{e}; skipping glyph {ch!r} of {text!r}")
                continue
            x = x0 + i * step[0]
            y = y0 + i * step[1] - height
            drawables.append(
                Drawable(Image(x, y, width, height, href), depth, group, "label")
            )
        return drawables


def create_label_renderer(strategy: str, labels, projector: Projector) -> LabelRenderer:
    """
    Create the label renderer named by configuration.

    Args:
        strategy: 'text', 'bitmap' or 'asset'
        labels: ``LabelsConfig``
        projector: Shared projector

    Returns:
        Label renderer instance

    Raises:
        ValueError: If the strategy is unknown
    """
    if strategy == "text":
        return TextLabelRenderer(font_family=labels.font_family)
    if strategy == "bitmap":
        return BitmapLabelRenderer(projector)
    if strategy == "asset":
        return AssetGlyphLabelRenderer(
            glyph_dir=labels.glyph_dir,
            glyph_width=labels.glyph_width,
            glyph_height=labels.glyph_height,
            projector=projector,
        )
    raise ValueError(f"Unknown label strategy: {strategy}")
