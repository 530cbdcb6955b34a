"""
Document Writer
===============

Writes the serialized SVG to disk. This is the only place the renderer
touches the filesystem for output.
"""

import logging
from pathlib import Path


logger = logging.getLogger(__name__)


def write_document(svg: str, path: str) -> Path:
    """
    Write an SVG document as UTF-8.

    Args:
        svg: Serialized document
        path: Destination file; parent directories are created

    Returns:
        Resolved output path
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(svg, encoding="utf-8")
    logger.info(f"Generated: {out.resolve()} ({len(svg)} bytes)")
    return out
