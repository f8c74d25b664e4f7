# pyright: reportUnknownMemberType=false
"""
Signature image template metadata.

Templates are rendered by the signing service, not here.  Preparation
only needs their pixel size, to warn when grid slots are too close for
the image.  The size comes from the template configuration, or else from
the image itself: SVG width/height (or viewBox) attributes, or the
header of a raster image.
"""

from __future__ import annotations

import io
import logging
import re

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from ..errors import ConfigError

_logger = logging.getLogger(__name__)

__all__ = ["image_dimensions"]

# Maximum template size accepted (2 MB). Templates are small vector
# drawings; anything larger is a mistake or a decompression bomb.
_MAX_TEMPLATE_SIZE = 2 * 1024 * 1024

# Allowed raster formats (Pillow format names).
_ALLOWED_FORMATS = {"PNG", "JPEG", "GIF", "BMP", "TIFF", "WEBP"}

_SVG_LENGTH = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(px)?\s*$")


def image_dimensions(data: bytes) -> tuple[int, int] | None:
    """Return (width, height) in pixels of an SVG or raster image.

    Returns None when an SVG declares no usable size (e.g. percentages
    only).

    Raises:
        ConfigError: If the image is too large or cannot be read.
    """
    if not data:
        raise ConfigError("Signature image template is empty")
    if len(data) > _MAX_TEMPLATE_SIZE:
        raise ConfigError(
            f"Signature image template too large: {len(data) / 1024 / 1024:.1f} MB "
            f"(max {_MAX_TEMPLATE_SIZE / 1024 / 1024:.0f} MB)"
        )
    if _looks_like_svg(data):
        return _svg_dimensions(data)
    return _raster_dimensions(data)


def _looks_like_svg(data: bytes) -> bool:
    head = data[:1024].lstrip().lower()
    return head.startswith((b"<?xml", b"<svg", b"<!--")) and b"<svg" in data[:4096].lower()


def _svg_dimensions(data: bytes) -> tuple[int, int] | None:
    try:
        root = ET.fromstring(data)
    except (ET.ParseError, DefusedXmlException) as exc:
        raise ConfigError(f"Cannot parse SVG template: {exc}") from exc

    width = _svg_length(root.get("width"))
    height = _svg_length(root.get("height"))
    if width is not None and height is not None:
        return width, height

    view_box = root.get("viewBox")
    if view_box:
        parts = view_box.replace(",", " ").split()
        if len(parts) == 4:
            try:
                return round(float(parts[2])), round(float(parts[3]))
            except ValueError:
                pass
    _logger.debug("SVG template declares no absolute size")
    return None


def _svg_length(value: str | None) -> int | None:
    """Parse an SVG length in user units or px; other units are not supported."""
    if value is None:
        return None
    m = _SVG_LENGTH.match(value)
    if not m:
        return None
    return round(float(m.group(1)))


def _raster_dimensions(data: bytes) -> tuple[int, int]:
    try:
        from PIL import Image, UnidentifiedImageError
    except ImportError as exc:
        raise ImportError(
            "Pillow is required for raster image templates.\nInstall with: pip install Pillow"
        ) from exc

    try:
        # Image.open() is lazy and reads only the header
        with Image.open(io.BytesIO(data)) as img:
            if not img.format or img.format not in _ALLOWED_FORMATS:
                actual = img.format or "unknown"
                raise ConfigError(
                    f"Unsupported template image format: {actual}. "
                    f"Supported: SVG, {', '.join(sorted(_ALLOWED_FORMATS))}"
                )
            return img.width, img.height
    except (UnidentifiedImageError, OSError) as exc:
        raise ConfigError(f"Cannot load template image: {exc}") from exc
