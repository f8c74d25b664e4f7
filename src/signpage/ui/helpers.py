"""
Common CLI helper functions for signpage.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from ..config._storage import write_atomic

if TYPE_CHECKING:
    from pathlib import Path

__all__ = [
    "default_output_path",
    "format_size_kb",
    "parse_field_values",
    "safe_read_file",
    "write_output",
]

_BYTES_PER_KB = 1024


def format_size_kb(size_bytes: int) -> str:
    """Format a byte count as a human-readable KB string (e.g. '123.4 KB')."""
    return f"{size_bytes / _BYTES_PER_KB:.1f} KB"


def default_output_path(pdf_path: Path) -> Path:
    """Compute default output path for a prepared PDF: '<stem>_prepared.pdf'."""
    return pdf_path.with_name(f"{pdf_path.stem}_prepared.pdf")


def safe_read_file(path: Path, kind: str = "file") -> bytes | None:
    """Read *path*, printing an error and returning None when it cannot be read.

    *kind* names the file in the error message, e.g. ``"PDF"``.
    """
    if not path.exists():
        print(f"Error: {kind} not found: {path}", file=sys.stderr)
        return None

    try:
        return path.read_bytes()
    except OSError as e:
        print(f"Error reading {kind}: {e}", file=sys.stderr)
        return None


def write_output(path: Path, data: bytes) -> None:
    """Write an output document atomically, readable by others (0644)."""
    write_atomic(path, data, mode=0o644)


def parse_field_values(items: list[str] | None) -> dict[str, str]:
    """Parse repeated ``NAME=VALUE`` arguments.

    Raises:
        ValueError: If an item has no ``=`` or an empty name.
    """
    values: dict[str, str] = {}
    for item in items or []:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"expected NAME=VALUE, got {item!r}")
        values[name.strip()] = value
    return values
