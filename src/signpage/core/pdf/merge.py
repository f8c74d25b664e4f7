"""Signature-page insertion and location.

The signature-page document (one or more pages) is inserted into the
host document once, on the first signing round.  Later rounds find it
again from the same ``insert_page_at`` value, or from the page number
the caller remembered.

Page numbers in this module are 1-based; ``insert_page_at == 0`` and
``placement page == 0`` mean "after the last page" and "last page".
"""

from __future__ import annotations

import io
import logging

from ...errors import ConfigError, ValidationError
from .inspect import open_pdf

_logger = logging.getLogger(__name__)

__all__ = [
    "insert_signature_page",
    "locate_signature_page",
    "resolve_insert_position",
    "target_page_offset",
]


def resolve_insert_position(insert_page_at: int, host_page_count: int) -> int:
    """Return the 1-based host page the signature page's first page becomes.

    Raises:
        ValidationError: If ``insert_page_at`` is negative or beyond the end.
    """
    if insert_page_at < 0:
        raise ValidationError("insertPageAt", f"must be 0 or greater, got {insert_page_at}")
    if insert_page_at == 0:
        return host_page_count + 1
    if insert_page_at > host_page_count + 1:
        raise ValidationError(
            "insertPageAt",
            f"page {insert_page_at} is beyond the end of the document "
            f"({host_page_count} page(s))",
        )
    return insert_page_at


def target_page_offset(placement_page: int, sign_page_count: int) -> int:
    """0-based offset of the image page inside the signature-page document.

    Raises:
        ConfigError: If the placement names a page the document lacks.
    """
    if sign_page_count < 1:
        raise ConfigError("Signature page document has no pages")
    if placement_page == 0:
        return sign_page_count - 1
    if placement_page > sign_page_count:
        raise ConfigError(
            f"Image placement page {placement_page} does not exist in the signature "
            f"page document ({sign_page_count} page(s))"
        )
    return placement_page - 1


def insert_signature_page(
    pdf_bytes: bytes,
    sign_page_bytes: bytes,
    insert_page_at: int,
) -> tuple[bytes, int]:
    """Insert every page of the signature-page document into the host.

    Args:
        pdf_bytes: Host document.
        sign_page_bytes: Signature-page document.
        insert_page_at: 0 to append, otherwise the 1-based host page the
            signature page's first page should become.

    Returns:
        (pdf_bytes, first_page) -- the merged document and the 1-based
        page number of the signature page's first page in it.
    """
    with open_pdf(pdf_bytes) as host, open_pdf(sign_page_bytes) as sign_pdf:
        first_page = resolve_insert_position(insert_page_at, len(host.pages))
        index = first_page - 1
        inserted = len(sign_pdf.pages)
        for offset, page in enumerate(sign_pdf.pages):
            host.pages.insert(index + offset, page)

        buf = io.BytesIO()
        host.save(buf)

    _logger.debug("Inserted %d signature page(s) at page %d", inserted, first_page)
    return buf.getvalue(), first_page


def locate_signature_page(
    host_page_count: int,
    sign_page_count: int,
    insert_page_at: int,
) -> int:
    """Find the first page of an already inserted signature page.

    Relies on the caller using the same ``insert_page_at`` on every round.

    Raises:
        ValidationError: If the document is too short to hold the page.
    """
    if insert_page_at == 0:
        first_page = host_page_count - sign_page_count + 1
    else:
        first_page = insert_page_at
    if first_page < 1 or first_page + sign_page_count - 1 > host_page_count:
        raise ValidationError(
            "insertPageAt",
            f"signature page cannot be located at page {first_page} in a document "
            f"with {host_page_count} page(s)",
        )
    return first_page
