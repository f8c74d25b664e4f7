"""
Value objects for signature-page preparation.

Everything here is an immutable dataclass validated on construction.
A :class:`SignaturePage` loaded from policy configuration may be shared
by any number of concurrent prepare calls.
"""

from __future__ import annotations

__all__ = [
    "ENCRYPTION_DICTIONARY",
    "FLATTENED_ACROFORM",
    "PDFA_INCONSISTENCY",
    "REMOVED_ENCRYPTION_DICTIONARY",
    "SUPPRESSED_NO_PLACEMENT",
    "SUPPRESSED_PAGE_FULL",
    "UNSIGNED_ACROFORM",
    "DocumentIssue",
    "PlacementConfig",
    "PrepareAction",
    "PreparePreferences",
    "PrepareResult",
    "PrepareSettings",
    "PrepareWarning",
    "SignatureImageTemplate",
    "SignaturePage",
    "SignerName",
    "SuppressedSignature",
    "VisibleSignatureRequirement",
    "VisibleSignatureUserInformation",
]

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Union

from ..errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..config.content import ContentSource

# ── Issues, actions, warnings ────────────────────────────────────────

DocumentIssue = Literal["acroform-in-unsigned-pdf", "encryption-dictionary"]
UNSIGNED_ACROFORM: DocumentIssue = "acroform-in-unsigned-pdf"
ENCRYPTION_DICTIONARY: DocumentIssue = "encryption-dictionary"

PrepareAction = Literal["flattened-acroform", "removed-encryption-dictionary"]
FLATTENED_ACROFORM: PrepareAction = "flattened-acroform"
REMOVED_ENCRYPTION_DICTIONARY: PrepareAction = "removed-encryption-dictionary"

PrepareWarning = Literal["pdfa-inconsistency"]
PDFA_INCONSISTENCY: PrepareWarning = "pdfa-inconsistency"

SuppressionReason = Literal["signature-page-full", "no-image-placement"]
SUPPRESSED_PAGE_FULL: SuppressionReason = "signature-page-full"
SUPPRESSED_NO_PLACEMENT: SuppressionReason = "no-image-placement"


# ── Policy-side configuration ────────────────────────────────────────


@dataclass(frozen=True)
class PlacementConfig:
    """Where signature images go on a signature page.

    Attributes:
        x_position: X coordinate of slot 0.
        y_position: Y coordinate of slot 0.
        x_increment: Offset added per column.
        y_increment: Offset added per row.
        scale: Zoom percentage: -100 is zero size, 0 is unscaled.
        page: Page of the signature-page document the images go on.
            0 means its last page, otherwise 1-based.
    """

    x_position: int = 0
    y_position: int = 0
    x_increment: int = 0
    y_increment: int = 0
    scale: int = 0
    page: int = 1

    def __post_init__(self) -> None:
        if self.scale < -100:
            raise ValidationError("placement", f"scale must be -100 or greater, got {self.scale}")
        if self.page < 0:
            raise ValidationError("placement", f"page must be 0 or greater, got {self.page}")


@dataclass(frozen=True)
class SignaturePage:
    """A PDF page template hosting a rows x columns grid of signature images."""

    id: str
    content: ContentSource
    rows: int = 1
    columns: int = 1
    signature_image_reference: str | None = None
    placement: PlacementConfig | None = None

    def __post_init__(self) -> None:
        details: dict[str, str] = {}
        if not self.id:
            details["id"] = "must be set"
        if self.rows < 1:
            details["rows"] = f"must be 1 or greater, got {self.rows}"
        if self.columns < 1:
            details["columns"] = f"must be 1 or greater, got {self.columns}"
        if details:
            raise ValidationError("signaturePage", "Invalid signature page", details)

    @property
    def capacity(self) -> int:
        return self.rows * self.columns


@dataclass(frozen=True)
class SignatureImageTemplate:
    """Visual template stamped into a signature slot.

    Only metadata is used here; rendering happens in the signing service.

    Attributes:
        reference: Name the signature page refers to the template by.
        image: The (SVG or raster) template image, if known.
        width: Image width in pixels. Derived from ``image`` when None.
        height: Image height in pixels. Derived from ``image`` when None.
        include_signer_name: The rendered image shows the signer's name.
        include_signing_time: The rendered image shows the signing time.
        fields: Extra fields the template accepts, name -> description.
    """

    reference: str
    image: ContentSource | None = None
    width: int | None = None
    height: int | None = None
    include_signer_name: bool = True
    include_signing_time: bool = True
    fields: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PrepareSettings:
    """Which structural problems may be fixed instead of failing the call."""

    enforce_pdfa_consistency: bool = False
    allow_flatten_acroforms: bool = False
    allow_remove_encryption_dictionary: bool = False


# ── Caller-side preferences ──────────────────────────────────────────


@dataclass(frozen=True)
class SignerName:
    """Signer attributes making up the displayed name, plus optional formatting."""

    attributes: tuple[str, ...] = ()
    formatting: str | None = None


@dataclass(frozen=True)
class VisibleSignatureUserInformation:
    """Values the caller supplies for the signature image."""

    signer_name: SignerName | None = None
    field_values: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PreparePreferences:
    """Caller preferences for one prepare call.

    Attributes:
        signature_page_reference: Id of a signature page in the policy.
        signature_page: An inline signature page. Mutually exclusive
            with ``signature_page_reference``; when neither is set the
            policy's default page is used.
        user_information: Signer name and field values for the image.
        fail_when_full: Fail when no slot is left. When False the call
            succeeds without a visible signature.
        insert_page_at: Host page at which the signature page is
            inserted. 0 appends it after the last page.
        existing_signature_page_number: Host page already holding the
            signature page, for repeated signing rounds.
    """

    signature_page_reference: str | None = None
    signature_page: SignaturePage | None = None
    user_information: VisibleSignatureUserInformation | None = None
    fail_when_full: bool = True
    insert_page_at: int = 0
    existing_signature_page_number: int | None = None


# ── Result ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class VisibleSignatureRequirement:
    """Position and template of the image the signing step should add."""

    template_image_ref: str | None
    x_position: int
    y_position: int
    scale: int
    page: int
    field_values: Mapping[str, str] = field(default_factory=dict)
    signer_name: SignerName | None = None


@dataclass(frozen=True)
class SuppressedSignature:
    """No image will be added to the document."""

    reason: SuppressionReason = SUPPRESSED_PAGE_FULL


@dataclass(frozen=True)
class PrepareResult:
    """Outcome of preparing a document for signing.

    At most one of ``updated_document`` and ``updated_document_reference``
    is set. Both are None when the document was left unchanged and the
    caller did not ask for a reference.
    """

    policy: str
    visible_signature_requirement: Union[VisibleSignatureRequirement, SuppressedSignature]
    updated_document: bytes | None = None
    updated_document_reference: str | None = None
    fixed_issues: tuple[PrepareAction, ...] = ()
    warnings: tuple[PrepareWarning, ...] = ()
    signature_page_number: int | None = None

    def __post_init__(self) -> None:
        if self.updated_document is not None and self.updated_document_reference is not None:
            raise ValueError("updated_document and updated_document_reference are mutually exclusive")

    @property
    def document_changed(self) -> bool:
        return self.updated_document is not None or self.updated_document_reference is not None

    @property
    def visible(self) -> bool:
        return isinstance(self.visible_signature_requirement, VisibleSignatureRequirement)

    def __repr__(self) -> str:
        doc = f"<{len(self.updated_document)} bytes>" if self.updated_document is not None else None
        return (
            f"PrepareResult(policy={self.policy!r}, "
            f"visible_signature_requirement={self.visible_signature_requirement!r}, "
            f"updated_document={doc}, "
            f"updated_document_reference={self.updated_document_reference!r}, "
            f"fixed_issues={self.fixed_issues!r}, warnings={self.warnings!r}, "
            f"signature_page_number={self.signature_page_number!r})"
        )
