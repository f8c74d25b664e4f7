"""PDF structure inspection, consistency checks, fixes, and signature-page merging."""

from .consistency import ConsistencyReport, check_consistency, check_document
from .fixer import fix_document
from .inspect import DocumentInfo, count_signature_images, inspect_document, inspect_pdf, open_pdf
from .merge import (
    insert_signature_page,
    locate_signature_page,
    resolve_insert_position,
    target_page_offset,
)

__all__ = [
    "ConsistencyReport",
    "DocumentInfo",
    "check_consistency",
    "check_document",
    "count_signature_images",
    "fix_document",
    "insert_signature_page",
    "inspect_document",
    "inspect_pdf",
    "locate_signature_page",
    "open_pdf",
    "resolve_insert_position",
    "target_page_offset",
]
