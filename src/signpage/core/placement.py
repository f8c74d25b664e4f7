"""
Signature image placement on a signature page grid.

A signature page holds ``rows * columns`` image slots, filled row by row,
left to right.  Slot ``n`` sits at::

    x = x_position + (n % columns) * x_increment
    y = y_position + (n // columns) * y_increment

Placement is a pure function of its inputs, so repeated signing rounds of
the same document always land on the same coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..errors import ValidationError

if TYPE_CHECKING:
    from .model import PlacementConfig

__all__ = [
    "ImagePlacement",
    "compute_placement",
    "overlaps_next_slot",
    "scaled_size",
]


@dataclass(frozen=True)
class ImagePlacement:
    """Computed position of one signature image."""

    x: int
    y: int
    row: int
    column: int
    scale: int


def compute_placement(
    config: PlacementConfig,
    rows: int,
    columns: int,
    existing_image_count: int,
) -> ImagePlacement | None:
    """Compute the position of the next signature image.

    Args:
        config: Placement configuration of the signature page.
        rows: Number of grid rows.
        columns: Number of grid columns.
        existing_image_count: Images already on the page, i.e. the
            0-based index of the slot about to be filled.

    Returns:
        The placement, or None when the page is full.

    Raises:
        ValidationError: On a non-positive grid or a negative count.
    """
    if rows < 1 or columns < 1:
        raise ValidationError("signaturePage", f"Invalid grid {rows}x{columns}")
    if existing_image_count < 0:
        raise ValidationError(
            "existingImageCount", f"must be 0 or greater, got {existing_image_count}"
        )
    if existing_image_count >= rows * columns:
        return None

    row, column = divmod(existing_image_count, columns)

    # A single column/row never moves, whatever the increment says
    x_increment = config.x_increment if columns > 1 else 0
    y_increment = config.y_increment if rows > 1 else 0

    return ImagePlacement(
        x=config.x_position + column * x_increment,
        y=config.y_position + row * y_increment,
        row=row,
        column=column,
        scale=config.scale,
    )


def scaled_size(width: int, height: int, scale: int) -> tuple[float, float]:
    """Size of an image after applying a zoom percentage (-100 = zero size)."""
    factor = (100 + scale) / 100.0
    return width * factor, height * factor


def overlaps_next_slot(
    config: PlacementConfig,
    rows: int,
    columns: int,
    image_size: tuple[int, int],
) -> bool:
    """Tell whether neighbouring slots would overlap for an image of *image_size*."""
    width, height = scaled_size(image_size[0], image_size[1], config.scale)
    if columns > 1 and abs(config.x_increment) < width:
        return True
    return rows > 1 and abs(config.y_increment) < height
