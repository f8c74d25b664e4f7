"""Structural fixes applied before signing.

Two fixes exist, always applied in this order:

1. flatten the AcroForm -- widget appearances are merged into the page
   content and the form is removed, so a signature cannot be invalidated
   by later form filling;
2. strip the encryption dictionary -- the document is rewritten in the
   clear.

A fix is applied only when its condition is actually present, so running
the fixer on its own output does nothing.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

from .. import require_pikepdf as _require_pikepdf
from ..model import (
    ENCRYPTION_DICTIONARY,
    FLATTENED_ACROFORM,
    REMOVED_ENCRYPTION_DICTIONARY,
    UNSIGNED_ACROFORM,
)
from .inspect import inspect_pdf, open_pdf

if TYPE_CHECKING:
    from collections.abc import Collection

    import pikepdf

    from ..model import DocumentIssue, PrepareAction

_logger = logging.getLogger(__name__)

__all__ = ["fix_document"]


def fix_document(
    pdf_bytes: bytes, issues: Collection[DocumentIssue]
) -> tuple[bytes, list[PrepareAction]]:
    """Apply the fixes for the queued issues.

    Args:
        pdf_bytes: The document.
        issues: Issues the consistency check queued as fixable.

    Returns:
        (pdf_bytes, actions) -- the rewritten document and the actions
        performed, in order.  When nothing needed fixing the input bytes
        are returned as-is with an empty action list.

    Raises:
        PDFError: If the document cannot be read.
    """
    actions: list[PrepareAction] = []
    if not issues:
        return pdf_bytes, actions

    with open_pdf(pdf_bytes) as pdf:
        info = inspect_pdf(pdf)

        if UNSIGNED_ACROFORM in issues and info.has_fillable_fields and not info.is_signed:
            _flatten_acroform(pdf)
            actions.append(FLATTENED_ACROFORM)

        strip_encryption = ENCRYPTION_DICTIONARY in issues and info.encrypted
        if strip_encryption:
            actions.append(REMOVED_ENCRYPTION_DICTIONARY)

        if not actions:
            _logger.debug("Nothing to fix for issues %s", sorted(issues))
            return pdf_bytes, actions

        buf = io.BytesIO()
        # encryption=True keeps the existing encryption, False writes in the clear
        pdf.save(buf, encryption=info.encrypted and not strip_encryption)

    _logger.info("Applied structural fixes: %s", ", ".join(actions))
    return buf.getvalue(), actions


def _flatten_acroform(pdf: pikepdf.Pdf) -> None:
    """Merge form widgets into page content and drop the AcroForm.

    Only widget annotations are flattened; links, comments and markup
    stay on their pages as annotations.
    """
    pikepdf = _require_pikepdf()
    detached: list[tuple[pikepdf.Page, list[pikepdf.Object]]] = []
    for page in pdf.pages:
        annots = page.obj.get("/Annots")
        if not isinstance(annots, pikepdf.Array):
            continue
        widgets: list[pikepdf.Object] = []
        others: list[pikepdf.Object] = []
        for annot in annots:
            is_widget = (
                isinstance(annot, pikepdf.Dictionary)
                and annot.get("/Subtype") == pikepdf.Name.Widget
            )
            (widgets if is_widget else others).append(annot)
        if others:
            page.obj.Annots = pikepdf.Array(widgets)
            detached.append((page, others))

    # Fields without appearance streams would vanish when flattened
    pdf.generate_appearance_streams()
    pdf.flatten_annotations(mode="all")

    for page, others in detached:
        remaining = page.obj.get("/Annots")
        kept = list(remaining) if isinstance(remaining, pikepdf.Array) else []
        page.obj.Annots = pikepdf.Array(kept + others)
    if detached:
        _logger.debug(
            "Kept %d non-form annotation(s) while flattening",
            sum(len(others) for _, others in detached),
        )

    if "/AcroForm" in pdf.Root:
        del pdf.Root["/AcroForm"]
