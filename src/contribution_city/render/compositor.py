"""
Compositor
==========

Painter's-algorithm compositing of a Scene into an SVG document.

Algorithm:
    1. Stable sort of all drawables by ascending depth key
    2. Serialize in that order (first = farthest, last = nearest)

Stability is the correctness guarantee for self-occlusion: all primitives
of one entity share a depth key, so only their emission order (roof ->
walls -> windows -> sign -> labels) keeps windows above walls. Python's
``sorted`` is stable; never replace it with an unstable ordering.

Output:
    Single self-contained SVG (svgwrite) with a sky gradient and an
    optional embedded @font-face in <defs>.
"""

import base64
import logging
from pathlib import Path
from typing import Iterable, List, Optional

import svgwrite

from contribution_city.city.assembler import SKY_GRADIENT_ID
from contribution_city.city.labels import MissingAssetError
from contribution_city.models.drawable import Circle, Drawable, Ellipse, Image, Polygon, Rect, Text
from contribution_city.models.scene import Scene


logger = logging.getLogger(__name__)


LABEL_CLASSES = (".stats-label", ".stats-text", ".sign-label", ".sign-count")
EMBEDDED_FONT_NAME = "CityFont"


def depth_order(drawables: Iterable[Drawable]) -> List[Drawable]:
    """
    Order drawables for painting.

    Args:
        drawables: Drawables in emission order

    Returns:
        New list sorted by ascending depth; ties keep emission order
    """
    return sorted(drawables, key=lambda d: d.depth)


def _r(value: float) -> float:
    """Trim coordinates to two decimals for compact output."""
    return round(float(value), 2)


class Compositor:
    """
    Serializes a Scene into an SVG document.

    Attributes:
        palette: Colours (``PaletteConfig``)
        font_family: CSS font stack for label classes
        font_path: Optional TTF embedded as base64 @font-face
    """

    def __init__(
        self,
        palette,
        font_family: str = "monospace",
        font_path: Optional[str] = None,
    ) -> None:
        self.palette = palette
        self.font_family = font_family
        self.font_path = font_path

    @classmethod
    def from_settings(cls, settings) -> "Compositor":
        """Build from the full ``Settings`` tree."""
        return cls(
            palette=settings.palette,
            font_family=settings.labels.font_family,
            font_path=settings.labels.font_path,
        )

    def compose(self, scene: Scene) -> svgwrite.Drawing:
        """
        Compose the scene into a drawing.

        Args:
            scene: Unsorted scene

        Returns:
            svgwrite Drawing with every drawable in depth order
        """
        dwg = svgwrite.Drawing(size=(scene.width, scene.height), profile="full", debug=False)
        dwg.viewbox(0, 0, scene.width, scene.height)

        gradient = dwg.linearGradient(start=(0, 0), end=(0, 1), id=SKY_GRADIENT_ID)
        gradient.add_stop_color(0, self.palette.sky_top)
        gradient.add_stop_color(1, self.palette.sky_bottom)
        dwg.defs.add(gradient)
        dwg.embed_stylesheet(self._stylesheet())

        ordered = depth_order(scene.drawables)
        for drawable in ordered:
            dwg.add(self._element(dwg, drawable))

        logger.debug(f"Composed {len(ordered)} drawables into {scene.width}x{scene.height} SVG")
        return dwg

    def render(self, scene: Scene) -> str:
        """Compose and serialize to an SVG string."""
        return self.compose(scene).tostring()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _font_face(self) -> str:
        """
        @font-face rule for the configured TTF.

        Raises:
            MissingAssetError: If the font file does not exist
        """
        path = Path(self.font_path)
        if not path.is_file():
            raise MissingAssetError(f"Font file not found: {path}")
        encoded = base64.b64encode(path.read_bytes()).decode("ascii")
        return (
            f"@font-face {{ font-family: '{EMBEDDED_FONT_NAME}'; "
            f"src: url('data:font/ttf;base64,{encoded}') format('truetype'); }}\n"
        )

    def _stylesheet(self) -> str:
        """CSS for label classes, with the embedded font when available."""
        css = ""
        family = self.font_family
        if self.font_path:
            try:
                css += self._font_face()
                family = f"'{EMBEDDED_FONT_NAME}', {family}"
            except MissingAssetError as e:
                logger.warning(f"{e}; falling back to {family}")
        css += f"{', '.join(LABEL_CLASSES)} {{ font-family: {family}; }}\n"
        return css

    def _element(self, dwg: svgwrite.Drawing, drawable: Drawable):
        """Create the svgwrite element for one drawable."""
        shape = drawable.shape
        extra = {}
        if getattr(shape, "opacity", 1.0) < 1.0:
            extra["opacity"] = shape.opacity

        if isinstance(shape, Polygon):
            if shape.stroke:
                extra["stroke"] = shape.stroke
                extra["stroke_width"] = shape.stroke_width
            return dwg.polygon(
                points=[(_r(x), _r(y)) for x, y in shape.points],
                fill=shape.fill,
                **extra,
            )
        if isinstance(shape, Rect):
            if shape.rx:
                extra["rx"] = shape.rx
            return dwg.rect(
                insert=(_r(shape.x), _r(shape.y)),
                size=(_r(shape.width), _r(shape.height)),
                fill=shape.fill,
                **extra,
            )
        if isinstance(shape, Circle):
            return dwg.circle(center=(_r(shape.cx), _r(shape.cy)), r=_r(shape.r), fill=shape.fill, **extra)
        if isinstance(shape, Ellipse):
            return dwg.ellipse(
                center=(_r(shape.cx), _r(shape.cy)),
                r=(_r(shape.rx), _r(shape.ry)),
                fill=shape.fill,
                **extra,
            )
        if isinstance(shape, Text):
            if shape.font_family:
                extra["font_family"] = shape.font_family
            if shape.css_class:
                extra["class_"] = shape.css_class
            return dwg.text(
                shape.text,
                insert=(_r(shape.x), _r(shape.y)),
                fill=shape.fill,
                font_size=shape.font_size,
                font_weight=shape.font_weight,
                text_anchor=shape.anchor,
                **extra,
            )
        if isinstance(shape, Image):
            return dwg.image(
                href=shape.href,
                insert=(_r(shape.x), _r(shape.y)),
                size=(_r(shape.width), _r(shape.height)),
            )
        raise TypeError(f"Unsupported shape: {type(shape).__name__}")
