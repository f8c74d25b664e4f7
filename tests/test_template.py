"""Tests for signpage.core.template -- image template dimensions."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from signpage.config import PackageResourceLoader
from signpage.core.template import image_dimensions
from signpage.errors import ConfigError


def _raster(fmt: str, size: tuple[int, int] = (120, 45)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, "white").save(buf, format=fmt)
    return buf.getvalue()


# ── SVG ───────────────────────────────────────────────────────────────


def test_svg_width_height():
    svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="300" height="120"></svg>'
    assert image_dimensions(svg) == (300, 120)


def test_svg_px_units():
    svg = b'<?xml version="1.0"?>\n<svg width="300px" height="120.4px"></svg>'
    assert image_dimensions(svg) == (300, 120)


def test_svg_viewbox_fallback():
    svg = b'<svg width="100%" height="100%" viewBox="0 0 640 480"></svg>'
    assert image_dimensions(svg) == (640, 480)


def test_svg_without_size():
    assert image_dimensions(b'<svg width="50%"></svg>') is None


def test_packaged_template_size():
    data = PackageResourceLoader().load("resource:default-sign-image.svg")
    assert image_dimensions(data) == (967, 351)


def test_svg_entity_expansion_rejected():
    svg = (
        b'<?xml version="1.0"?>\n'
        b'<!DOCTYPE svg [<!ENTITY a "aaaa"><!ENTITY b "&a;&a;&a;">]>\n'
        b'<svg width="10" height="10">&b;</svg>'
    )
    with pytest.raises(ConfigError, match="SVG"):
        image_dimensions(svg)


def test_svg_malformed():
    with pytest.raises(ConfigError, match="Cannot parse SVG"):
        image_dimensions(b"<svg width='1'")


# ── Raster ────────────────────────────────────────────────────────────


@pytest.mark.parametrize("fmt", ["PNG", "JPEG", "GIF"])
def test_raster_dimensions(fmt):
    assert image_dimensions(_raster(fmt)) == (120, 45)


def test_raster_unreadable():
    with pytest.raises(ConfigError, match="Cannot load template image"):
        image_dimensions(b"\x89PNG not really")


def test_raster_unsupported_format():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4)).save(buf, format="PPM")
    with pytest.raises(ConfigError, match="Unsupported template image format: PPM"):
        image_dimensions(buf.getvalue())


# ── Limits ────────────────────────────────────────────────────────────


def test_empty_template():
    with pytest.raises(ConfigError, match="empty"):
        image_dimensions(b"")


def test_template_too_large():
    with pytest.raises(ConfigError, match="too large"):
        image_dimensions(b"<svg>" + b" " * (2 * 1024 * 1024))
