"""Document consistency checks run before a document is prepared for signing.

Classifies structural issues as fatal or fixable according to the
policy's :class:`~signpage.core.model.PrepareSettings`.  Nothing is
modified here; fixes are applied by :mod:`.fixer`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...errors import (
    PdfAConsistencyCheckError,
    PdfContainsAcroformError,
    PdfContainsEncryptionDictionaryError,
)
from ..model import ENCRYPTION_DICTIONARY, PDFA_INCONSISTENCY, UNSIGNED_ACROFORM
from .inspect import DocumentInfo, inspect_document

if TYPE_CHECKING:
    from ..model import DocumentIssue, PrepareSettings, PrepareWarning

_logger = logging.getLogger(__name__)

__all__ = ["ConsistencyReport", "check_consistency", "check_document"]


@dataclass(frozen=True)
class ConsistencyReport:
    """Issues queued for fixing, and warnings for the caller."""

    fixable_issues: tuple[DocumentIssue, ...] = ()
    warnings: tuple[PrepareWarning, ...] = ()

    @property
    def needs_fixing(self) -> bool:
        return bool(self.fixable_issues)


def check_consistency(
    info: DocumentInfo,
    settings: PrepareSettings,
    sign_page_pdfa: bool | None = None,
) -> ConsistencyReport:
    """Classify the structural issues of a document.

    Args:
        info: Structural summary of the host document.
        settings: Which issues may be fixed, and whether PDF/A is enforced.
        sign_page_pdfa: Whether the signature page about to be merged is
            PDF/A. None when no page will be merged (later signing rounds),
            which skips the PDF/A check.

    Raises:
        PdfContainsAcroformError: Unsigned fillable form, flattening not allowed.
        PdfContainsEncryptionDictionaryError: Encrypted, removal not allowed.
        PdfAConsistencyCheckError: PDF/A host, non-PDF/A signature page, enforced.
    """
    fixable: list[DocumentIssue] = []
    warnings: list[PrepareWarning] = []

    if info.has_fillable_fields and not info.is_signed:
        if not settings.allow_flatten_acroforms:
            raise PdfContainsAcroformError(
                "PDF document contains an AcroForm and is not signed. "
                "Flattening the form is not allowed by the policy."
            )
        fixable.append(UNSIGNED_ACROFORM)

    if info.encrypted:
        if not settings.allow_remove_encryption_dictionary:
            raise PdfContainsEncryptionDictionaryError(
                "PDF document contains an encryption dictionary. "
                "Removing it is not allowed by the policy."
            )
        fixable.append(ENCRYPTION_DICTIONARY)

    if info.is_pdfa and sign_page_pdfa is False:
        if settings.enforce_pdfa_consistency:
            raise PdfAConsistencyCheckError(
                f"PDF document is PDF/A-{info.pdfa_part}"
                f"{(info.pdfa_conformance or '').lower()} but the signature page is not PDF/A"
            )
        _logger.warning(
            "Merging a non-PDF/A signature page into a PDF/A-%s document; "
            "the result is no longer PDF/A",
            info.pdfa_part,
        )
        warnings.append(PDFA_INCONSISTENCY)

    return ConsistencyReport(fixable_issues=tuple(fixable), warnings=tuple(warnings))


def check_document(
    pdf_bytes: bytes,
    settings: PrepareSettings,
    sign_page_pdfa: bool | None = None,
) -> ConsistencyReport:
    """Inspect *pdf_bytes* and classify its issues (see :func:`check_consistency`)."""
    return check_consistency(inspect_document(pdf_bytes), settings, sign_page_pdfa)
