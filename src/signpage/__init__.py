"""
signpage: signature page preparation for visibly signed PDF documents.

Inserts a signature page into a PDF, works out where the next signature
image goes on it, and fixes or rejects document structure that would
break a signature.
"""

from __future__ import annotations

from .api import create_preparer, prepare_pdf_document
from .config import PolicyConfiguration, StaticPolicyProvider, load_policy_provider
from .constants import __version__
from .core.cache import FileDocumentCache, InMemoryDocumentCache
from .core.model import (
    PlacementConfig,
    PreparePreferences,
    PrepareResult,
    PrepareSettings,
    SignatureImageTemplate,
    SignaturePage,
    SignerName,
    SuppressedSignature,
    VisibleSignatureRequirement,
    VisibleSignatureUserInformation,
)
from .core.pdf import inspect_document
from .core.placement import compute_placement
from .core.preparer import DocumentPreparer
from .errors import (
    ConfigError,
    PDFError,
    PdfSignaturePageFullError,
    SignPageError,
    StructuralPolicyViolation,
    ValidationError,
)

__all__ = [
    "ConfigError",
    "DocumentPreparer",
    "FileDocumentCache",
    "InMemoryDocumentCache",
    "PDFError",
    "PdfSignaturePageFullError",
    "PlacementConfig",
    "PolicyConfiguration",
    "PreparePreferences",
    "PrepareResult",
    "PrepareSettings",
    "SignPageError",
    "SignatureImageTemplate",
    "SignaturePage",
    "SignerName",
    "StaticPolicyProvider",
    "StructuralPolicyViolation",
    "SuppressedSignature",
    "ValidationError",
    "VisibleSignatureRequirement",
    "VisibleSignatureUserInformation",
    "__version__",
    "compute_placement",
    "create_preparer",
    "inspect_document",
    "load_policy_provider",
    "prepare_pdf_document",
]
