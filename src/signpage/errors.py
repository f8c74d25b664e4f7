"""signpage error types.

Every error carries a stable machine-readable :class:`ErrorCode`
(``error.<category>.<code>``) and the HTTP status a REST front end
should answer with.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = [
    "CapacityError",
    "ConfigError",
    "DocumentReferenceNotFoundError",
    "ErrorCode",
    "ImageTemplateNotFoundError",
    "PDFError",
    "PdfAConsistencyCheckError",
    "PdfContainsAcroformError",
    "PdfContainsEncryptionDictionaryError",
    "PdfSignaturePageFullError",
    "PolicyNotFoundError",
    "ResolutionError",
    "SignPageError",
    "SignaturePageNotFoundError",
    "StructuralPolicyViolation",
    "ValidationError",
]

ERROR_CODE_PREFIX = "error."


@dataclass(frozen=True)
class ErrorCode:
    """Error code on the form ``error.<category>.<code>``."""

    category: str
    code: str

    def __post_init__(self) -> None:
        if not self.category or "." in self.category:
            raise ValueError(f"Invalid error category {self.category!r}")

    @classmethod
    def parse(cls, error_code: str) -> ErrorCode:
        """Parse the string form, e.g. ``error.document.too-many-signimages``."""
        if not error_code.startswith(ERROR_CODE_PREFIX):
            raise ValueError(f"Incorrect format on error code {error_code!r}")
        parts = error_code.split(".", 2)
        if len(parts) != 3 or not parts[1] or not parts[2]:
            raise ValueError(f"Incorrect format on error code {error_code!r}")
        return cls(parts[1], parts[2])

    def __str__(self) -> str:
        return f"{ERROR_CODE_PREFIX}{self.category}.{self.code}"


class SignPageError(Exception):
    """Base error for signpage operations."""

    error_code: ClassVar[ErrorCode] = ErrorCode("internal", "error")
    http_status: ClassVar[int] = 500


# ── Validation ──────────────────────────────────────────────────────


class ValidationError(SignPageError):
    """Malformed or contradictory input.

    Args:
        object_name: Name of the validated object, e.g. ``"preferences"``.
        message: Optional error message.
        details: Optional map of field names to error messages.
    """

    error_code = ErrorCode("bad-request", "validation")
    http_status = 400

    def __init__(
        self,
        object_name: str,
        message: str | None = None,
        details: Mapping[str, str] | None = None,
    ) -> None:
        text = f"{object_name}: {message or 'Validation error'}"
        if details:
            text += f". Details: {dict(details)}"
        super().__init__(text)
        self.object_name = object_name
        self.message = message
        self.details = dict(details) if details else None

    def __reduce__(self) -> tuple[type[ValidationError], tuple[Any, ...]]:
        """Preserve object name and details across pickle/unpickle."""
        return (type(self), (self.object_name, self.message, self.details))


class PDFError(SignPageError):
    """The supplied bytes could not be read as a PDF document."""

    error_code = ErrorCode("bad-request", "invalid-pdf")
    http_status = 400


# ── Structural policy violations ────────────────────────────────────


class StructuralPolicyViolation(SignPageError):
    """The document breaks a structural policy that is not allowed to be fixed."""

    http_status = 403
    issue: ClassVar[str | None] = None


class PdfContainsAcroformError(StructuralPolicyViolation):
    """Unsigned document with a fillable AcroForm, and flattening is not allowed."""

    error_code = ErrorCode("document", "pdf-contains-acroform")
    issue = "acroform-in-unsigned-pdf"


class PdfContainsEncryptionDictionaryError(StructuralPolicyViolation):
    """Document has an encryption dictionary, and removing it is not allowed."""

    error_code = ErrorCode("document", "pdf-contains-encryption-dictionary")
    issue = "encryption-dictionary"


class PdfAConsistencyCheckError(StructuralPolicyViolation):
    """PDF/A host document combined with a signature page that is not PDF/A."""

    error_code = ErrorCode("document", "pdfa-consistency-check-failed")


# ── Capacity ────────────────────────────────────────────────────────


class CapacityError(SignPageError):
    """No room left for another signature image."""

    http_status = 403


class PdfSignaturePageFullError(CapacityError):
    """All slots of the signature page are occupied."""

    error_code = ErrorCode("document", "too-many-signimages")


# ── Resolution ──────────────────────────────────────────────────────


class ResolutionError(SignPageError):
    """A named policy, signature page, template or reference does not exist."""

    http_status = 400


class PolicyNotFoundError(ResolutionError):
    error_code = ErrorCode("bad-request", "missing-policy")


class SignaturePageNotFoundError(ResolutionError):
    error_code = ErrorCode("bad-request", "unknown-signature-page")


class ImageTemplateNotFoundError(ResolutionError):
    error_code = ErrorCode("bad-request", "unknown-image-template")


class DocumentReferenceNotFoundError(ResolutionError):
    error_code = ErrorCode("bad-request", "unknown-document-reference")


# ── Configuration ───────────────────────────────────────────────────


class ConfigError(SignPageError):
    """Policy configuration is invalid or its content cannot be loaded."""

    error_code = ErrorCode("config", "invalid-configuration")
