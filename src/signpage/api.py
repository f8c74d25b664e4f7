"""High-level convenience API for signature-page preparation.

Provides :func:`prepare_pdf_document`, which builds a
:class:`~signpage.core.preparer.DocumentPreparer` from the policy file,
the packaged resources and the configured document cache.

For lower-level control, construct a
:class:`~signpage.core.preparer.DocumentPreparer` directly with your own
policy provider, content loader and cache.
"""

from __future__ import annotations

__all__ = ["create_document_cache", "create_preparer", "prepare_pdf_document"]

import logging
from typing import TYPE_CHECKING

from .config import (
    DefaultContentLoader,
    FileContentLoader,
    get_cache_settings,
    get_config_file,
    load_policy_provider,
)
from .constants import DEFAULT_POLICY
from .core.cache import FileDocumentCache
from .core.preparer import DocumentPreparer

if TYPE_CHECKING:
    from pathlib import Path

    from .core.cache import DocumentReferenceCache
    from .core.model import PreparePreferences, PrepareResult

_logger = logging.getLogger(__name__)


def create_document_cache(config_path: Path | None = None) -> DocumentReferenceCache | None:
    """File-backed document cache from env vars or the policy file, if configured."""
    directory, ttl = get_cache_settings(config_path)
    if directory is None:
        return None
    _logger.debug("Using document cache %s (ttl %ds)", directory, ttl)
    return FileDocumentCache(directory, ttl)


def create_preparer(
    config_path: Path | None = None,
    cache: DocumentReferenceCache | None = None,
) -> DocumentPreparer:
    """Build a preparer from the policy file.

    Relative content locations in the policy file resolve against the
    file's directory.

    Args:
        config_path: Policy file. Defaults to ``$SIGNPAGE_CONFIG`` or
            ``~/.signpage/policies.json``.
        cache: Document cache. Defaults to :func:`create_document_cache`.

    Raises:
        ConfigError: If the policy file is malformed.
    """
    path = config_path if config_path is not None else get_config_file()
    loader = DefaultContentLoader(files=FileContentLoader(path.parent))
    return DocumentPreparer(
        load_policy_provider(path),
        loader=loader,
        cache=cache if cache is not None else create_document_cache(path),
    )


def prepare_pdf_document(
    pdf_document: bytes | None = None,
    policy: str = DEFAULT_POLICY,
    preferences: PreparePreferences | None = None,
    return_reference: bool = False,
    *,
    content_reference: str | None = None,
    config_path: Path | None = None,
) -> PrepareResult:
    """Prepare a PDF for the next visible signature.

    High-level convenience function: loads the configured policies and
    runs :meth:`DocumentPreparer.prepare_pdf_document`.

    Args:
        pdf_document: Raw PDF content. Mutually exclusive with
            *content_reference*.
        policy: Policy name (``"default"`` ships with the package).
        preferences: Signature page and placement preferences.
        return_reference: Store the prepared document in the document
            cache and return its reference (stateful policies only).
        content_reference: Reference of a previously stored document.
        config_path: Policy file to use instead of the default one.

    Returns:
        The prepare result.

    Raises:
        SignPageError: See :meth:`DocumentPreparer.prepare_pdf_document`.
    """
    preparer = create_preparer(config_path)
    return preparer.prepare_pdf_document(
        policy,
        pdf_document,
        preferences,
        return_reference,
        content_reference=content_reference,
    )
