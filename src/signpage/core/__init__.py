"""Core preparation logic: placement, PDF structure, resolution, caching."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import PDFError

if TYPE_CHECKING:
    import types

__all__: list[str] = []


def require_pikepdf() -> types.ModuleType:
    """Import pikepdf on first PDF access.

    Importing the package, parsing policies and computing placements
    never load the C extension; only reading or writing a document does.

    Raises:
        PDFError: If pikepdf is not installed.
    """
    try:
        import pikepdf
    except ImportError as exc:
        raise PDFError("Reading PDF documents needs pikepdf (pip install pikepdf)") from exc
    return pikepdf
