"""Read-only PDF structure analysis.

Answers the questions preparation needs before touching a document:
how many pages, whether it carries a fillable AcroForm, how many
signatures it already holds, whether it is encrypted, and which PDF/A
part it claims.  pikepdf is used only for reading here -- nothing is saved.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...constants import PDF_MAGIC
from ...errors import PDFError
from .. import require_pikepdf as _require_pikepdf

if TYPE_CHECKING:
    import pikepdf

_logger = logging.getLogger(__name__)

__all__ = [
    "DocumentInfo",
    "count_signature_images",
    "inspect_document",
    "inspect_pdf",
    "open_pdf",
]

# Guard against malformed field trees that nest without end
_MAX_FIELD_DEPTH = 32


@dataclass(frozen=True)
class DocumentInfo:
    """Structural summary of a PDF document.

    Attributes:
        page_count: Number of pages.
        has_fillable_fields: The AcroForm holds at least one non-signature field.
        signature_count: Number of signed signature fields.
        encrypted: The document has an encryption dictionary.
        pdfa_part: PDF/A part claimed in the XMP metadata ("1", "2", "3"), or None.
        pdfa_conformance: PDF/A conformance level ("A", "B", "U"), or None.
    """

    page_count: int
    has_fillable_fields: bool
    signature_count: int
    encrypted: bool
    pdfa_part: str | None = None
    pdfa_conformance: str | None = None

    @property
    def is_signed(self) -> bool:
        return self.signature_count > 0

    @property
    def is_pdfa(self) -> bool:
        return self.pdfa_part is not None


@contextmanager
def open_pdf(pdf_bytes: bytes) -> Iterator[pikepdf.Pdf]:
    """Open PDF bytes with pikepdf, translating failures into PDFError."""
    if not pdf_bytes or not pdf_bytes.startswith(PDF_MAGIC):
        raise PDFError("Input does not appear to be a PDF file.")
    pikepdf = _require_pikepdf()
    try:
        pdf = pikepdf.open(io.BytesIO(pdf_bytes))
    except pikepdf.PasswordError as exc:
        raise PDFError("PDF is password protected and cannot be opened.") from exc
    except (ValueError, RuntimeError, OSError, pikepdf.PdfError) as exc:
        raise PDFError(f"Cannot parse PDF: {exc}") from exc
    with pdf:
        yield pdf


def inspect_document(pdf_bytes: bytes) -> DocumentInfo:
    """Analyse a PDF document.

    Raises:
        PDFError: If the bytes cannot be read as a PDF.
    """
    with open_pdf(pdf_bytes) as pdf:
        info = inspect_pdf(pdf)
    _logger.debug("Inspected document: %s", info)
    return info


def inspect_pdf(pdf: pikepdf.Pdf) -> DocumentInfo:
    """Analyse an already opened PDF."""
    fillable = False
    signed = 0
    for field_type, has_value in _iter_terminal_fields(pdf):
        if field_type == "/Sig":
            if has_value:
                signed += 1
        else:
            fillable = True

    part, conformance = _pdfa_identification(pdf)
    return DocumentInfo(
        page_count=len(pdf.pages),
        has_fillable_fields=fillable,
        signature_count=signed,
        encrypted=bool(pdf.is_encrypted),
        pdfa_part=part,
        pdfa_conformance=conformance,
    )


def count_signature_images(pdf: pikepdf.Pdf, page_number: int) -> int:
    """Count visible, signed signature widgets on a page.

    A widget counts when it belongs to a signature field that carries a
    value (the signature dictionary) and has a rectangle of non-zero area.

    Args:
        pdf: An open pikepdf.Pdf object.
        page_number: 1-based page number.
    """
    total = len(pdf.pages)
    if page_number < 1 or page_number > total:
        raise PDFError(f"Page {page_number} out of range (PDF has {total} page(s)).")

    annots = pdf.pages[page_number - 1].obj.get("/Annots")
    if annots is None:
        return 0

    count = 0
    for annot in annots:
        if str(annot.get("/Subtype", "")) != "/Widget":
            continue
        field_type, value = _inherited(annot, "/FT"), _inherited(annot, "/V")
        if field_type is None or str(field_type) != "/Sig" or value is None:
            continue
        if _rect_area(annot.get("/Rect")) > 0:
            count += 1
    return count


# ── Internals ────────────────────────────────────────────────────────


def _iter_terminal_fields(pdf: pikepdf.Pdf) -> Iterator[tuple[str | None, bool]]:
    """Yield (field type, has value) for every terminal AcroForm field."""
    acroform = pdf.Root.get("/AcroForm")
    if acroform is None:
        return
    fields = acroform.get("/Fields")
    if fields is None:
        return

    seen: set[tuple[int, int]] = set()
    stack: list[tuple[pikepdf.Object, str | None, bool, int]] = [
        (f, None, False, 0) for f in reversed(list(fields))
    ]
    while stack:
        node, parent_type, parent_value, depth = stack.pop()
        if node.is_indirect:
            if node.objgen in seen:
                continue
            seen.add(node.objgen)
        if depth > _MAX_FIELD_DEPTH:
            _logger.warning("AcroForm field tree deeper than %d levels, truncated", depth)
            continue

        ft = node.get("/FT")
        field_type = str(ft) if ft is not None else parent_type
        has_value = parent_value or node.get("/V") is not None

        kids = node.get("/Kids")
        # Kids without /T are widget annotations of this field, not sub-fields
        sub_fields = [k for k in kids if "/T" in k] if kids is not None else []
        if sub_fields:
            stack.extend((k, field_type, has_value, depth + 1) for k in reversed(sub_fields))
        else:
            yield field_type, has_value


def _inherited(node: pikepdf.Object, key: str) -> pikepdf.Object | None:
    """Look up an inheritable field attribute through the /Parent chain."""
    current: pikepdf.Object | None = node
    for _ in range(_MAX_FIELD_DEPTH):
        if current is None:
            return None
        value = current.get(key)
        if value is not None:
            return value
        current = current.get("/Parent")
    return None


def _rect_area(rect: pikepdf.Object | None) -> float:
    if rect is None or len(rect) != 4:
        return 0.0
    x0, y0, x1, y1 = (float(v) for v in rect)
    return abs(x1 - x0) * abs(y1 - y0)


def _pdfa_identification(pdf: pikepdf.Pdf) -> tuple[str | None, str | None]:
    """Read pdfaid:part and pdfaid:conformance from the XMP metadata."""
    if "/Metadata" not in pdf.Root:
        return None, None
    meta = pdf.open_metadata()
    part = meta.get("pdfaid:part")
    conformance = meta.get("pdfaid:conformance")
    if not part:
        return None, None
    return str(part).strip(), str(conformance).strip().upper() if conformance else None
