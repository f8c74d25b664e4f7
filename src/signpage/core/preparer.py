"""
Prepare a PDF document for visible signing.

One call runs these steps, in order:

1. validate the request and load the document;
2. resolve the signature page and its image template;
3. check the document's structure against the policy;
4. apply the structural fixes the policy allows;
5. insert the signature page, unless an earlier round already did;
6. place the next signature image on the signature page grid;
7. return the document inline or as a cache reference.

Any failure aborts the call; nothing is retried and no partial result
is returned.
"""

from __future__ import annotations

__all__ = ["DocumentPreparer"]

import logging
from typing import TYPE_CHECKING

from ..constants import BYTES_PER_MB, PDF_MAGIC, PDF_WARN_SIZE
from ..errors import PDFError, PdfSignaturePageFullError, ValidationError
from .model import (
    SUPPRESSED_NO_PLACEMENT,
    SUPPRESSED_PAGE_FULL,
    PreparePreferences,
    PrepareResult,
    SuppressedSignature,
    VisibleSignatureRequirement,
)
from .pdf.consistency import check_consistency
from .pdf.fixer import fix_document
from .pdf.inspect import count_signature_images, inspect_document, open_pdf
from .pdf.merge import insert_signature_page, locate_signature_page, target_page_offset
from .placement import compute_placement, overlaps_next_slot
from .resolver import SignPageResolver

if TYPE_CHECKING:
    from ..config.content import ContentLoader
    from ..config.policies import PolicyConfiguration, PolicyConfigurationProvider
    from .cache import DocumentReferenceCache
    from .model import (
        PrepareAction,
        SignatureImageTemplate,
        VisibleSignatureUserInformation,
    )
    from .pdf.inspect import DocumentInfo
    from .resolver import ResolvedSignaturePage

_logger = logging.getLogger(__name__)


class DocumentPreparer:
    """Prepares PDF documents for signing under configured policies.

    Holds only its collaborators; concurrent calls share nothing else.

    Args:
        policies: Looks up policy configuration by name.
        loader: Loads configured signature pages and image templates.
        cache: Document reference cache for stateful policies. Without
            one, document references are rejected.
    """

    def __init__(
        self,
        policies: PolicyConfigurationProvider,
        loader: ContentLoader | None = None,
        cache: DocumentReferenceCache | None = None,
    ) -> None:
        self.policies = policies
        self.resolver = SignPageResolver(loader)
        self.cache = cache

    def prepare_pdf_document(
        self,
        policy: str,
        pdf_document: bytes | None = None,
        preferences: PreparePreferences | None = None,
        return_reference: bool = False,
        *,
        content_reference: str | None = None,
    ) -> PrepareResult:
        """Prepare a document so the next signature can be added visibly.

        Args:
            policy: Name of the policy to apply.
            pdf_document: The document bytes. Mutually exclusive with
                ``content_reference``.
            preferences: Signature page choice and placement preferences.
            return_reference: Return the prepared document as a cache
                reference instead of inline bytes.
            content_reference: Reference of a document stored in the
                cache by an earlier call.

        Returns:
            The prepared document (or its reference), where the next
            signature image goes, the fixes applied and any warnings.

        Raises:
            ValidationError: Malformed request.
            PDFError: The document is not a readable PDF.
            StructuralPolicyViolation: The document has an issue the policy
                does not allow fixing.
            PdfSignaturePageFullError: No slot left and ``fail_when_full``.
            ResolutionError: Unknown policy, signature page, image template
                or document reference.
            ConfigError: Configured content cannot be loaded.
        """
        prefs = preferences if preferences is not None else PreparePreferences()

        # ── Validating ──
        policy_config = self.policies.get_policy(policy)
        document = self._load_document(policy_config, pdf_document, content_reference)
        self._validate_request(policy_config, prefs, return_reference)
        _logger.debug(
            "Preparing %d byte document under policy %r", len(document), policy_config.policy
        )

        # ── Resolving ──
        resolved = self.resolver.resolve(policy_config, prefs)
        _validate_user_information(prefs.user_information, resolved.image_template)

        # ── Checking consistency ──
        info = inspect_document(document)
        page_present = prefs.existing_signature_page_number is not None or info.is_signed
        if prefs.existing_signature_page_number is None and info.is_signed:
            _logger.info(
                "Document already holds %d signature(s), assuming the signature page is present",
                info.signature_count,
            )
        report = check_consistency(
            info,
            policy_config.prepare_settings,
            sign_page_pdfa=None if page_present else resolved.is_pdfa,
        )

        # ── Fixing ──
        actions: list[PrepareAction] = []
        if report.needs_fixing:
            document, actions = fix_document(document, report.fixable_issues)
        changed = bool(actions)

        # ── Merging ──
        placement = resolved.page.placement
        offset = target_page_offset(
            placement.page if placement is not None else 1, resolved.page_count
        )
        if page_present:
            target_page = _locate_target_page(info, resolved, prefs, offset)
            with open_pdf(document) as pdf:
                existing = count_signature_images(pdf, target_page)
            _logger.debug(
                "Signature page already present, target page %d holds %d image(s)",
                target_page,
                existing,
            )
        else:
            document, first_page = insert_signature_page(
                document, resolved.content, prefs.insert_page_at
            )
            changed = True
            target_page = first_page + offset
            existing = 0
            _logger.info(
                "Inserted signature page %r at page %d", resolved.page.id, first_page
            )

        # ── Placing ──
        requirement: VisibleSignatureRequirement | SuppressedSignature
        if placement is None:
            _logger.info(
                "Signature page %r has no image placement, no visible signature",
                resolved.page.id,
            )
            requirement = SuppressedSignature(SUPPRESSED_NO_PLACEMENT)
        else:
            slot = compute_placement(
                placement, resolved.page.rows, resolved.page.columns, existing
            )
            if slot is None:
                if prefs.fail_when_full:
                    raise PdfSignaturePageFullError(
                        f"Signature page {resolved.page.id!r} is full: all "
                        f"{resolved.page.capacity} image slot(s) on page {target_page} are used"
                    )
                _logger.info(
                    "Signature page %r is full, signing without a visible signature",
                    resolved.page.id,
                )
                requirement = SuppressedSignature(SUPPRESSED_PAGE_FULL)
            else:
                if resolved.image_size is not None and overlaps_next_slot(
                    placement, resolved.page.rows, resolved.page.columns, resolved.image_size
                ):
                    _logger.warning(
                        "Signature images on page %r overlap: increments (%d, %d) are "
                        "smaller than the scaled image",
                        resolved.page.id,
                        placement.x_increment,
                        placement.y_increment,
                    )
                user_info = prefs.user_information
                requirement = VisibleSignatureRequirement(
                    template_image_ref=resolved.page.signature_image_reference,
                    x_position=slot.x,
                    y_position=slot.y,
                    scale=slot.scale,
                    page=target_page,
                    field_values=dict(user_info.field_values) if user_info else {},
                    signer_name=user_info.signer_name if user_info else None,
                )
                _logger.debug(
                    "Next signature image at (%d, %d) on page %d, slot row %d column %d",
                    slot.x,
                    slot.y,
                    target_page,
                    slot.row,
                    slot.column,
                )

        # ── Finalizing ──
        updated_document = None
        reference = None
        if return_reference:
            cache = self._require_cache(policy_config, "returnDocumentReference")
            reference = cache.put(document)
            _logger.debug("Stored prepared document as %s", reference)
        elif changed:
            updated_document = document

        return PrepareResult(
            policy=policy_config.policy,
            visible_signature_requirement=requirement,
            updated_document=updated_document,
            updated_document_reference=reference,
            fixed_issues=tuple(actions),
            warnings=report.warnings,
            signature_page_number=target_page,
        )

    # ── Validation ──

    def _load_document(
        self,
        policy_config: PolicyConfiguration,
        pdf_document: bytes | None,
        content_reference: str | None,
    ) -> bytes:
        if pdf_document is not None and content_reference is None:
            document = pdf_document
        elif content_reference is not None and pdf_document is None:
            cache = self._require_cache(policy_config, "contentReference")
            document = cache.get(content_reference)
        else:
            raise ValidationError(
                "prepareRequest", "exactly one of pdfDocument and contentReference must be set"
            )

        if not document.startswith(PDF_MAGIC):
            raise PDFError("Input does not appear to be a PDF file.")
        if len(document) > PDF_WARN_SIZE:
            _logger.warning(
                "Large document (%.1f MB); reference mode avoids sending it back and forth",
                len(document) / BYTES_PER_MB,
            )
        return document

    def _validate_request(
        self,
        policy_config: PolicyConfiguration,
        prefs: PreparePreferences,
        return_reference: bool,
    ) -> None:
        if return_reference:
            self._require_cache(policy_config, "returnDocumentReference")
        if prefs.insert_page_at < 0:
            raise ValidationError(
                "insertPageAt", f"must be 0 or greater, got {prefs.insert_page_at}"
            )
        existing = prefs.existing_signature_page_number
        if existing is not None and existing < 1:
            raise ValidationError(
                "existingSignaturePageNumber", f"must be 1 or greater, got {existing}"
            )

    def _require_cache(
        self, policy_config: PolicyConfiguration, object_name: str
    ) -> DocumentReferenceCache:
        if policy_config.stateless:
            raise ValidationError(
                object_name,
                f"document references are not supported by stateless policy "
                f"{policy_config.policy!r}",
            )
        if self.cache is None:
            raise ValidationError(object_name, "no document reference cache is configured")
        return self.cache


def _locate_target_page(
    info: DocumentInfo,
    resolved: ResolvedSignaturePage,
    prefs: PreparePreferences,
    offset: int,
) -> int:
    """Host page holding the signature images when the page is already there."""
    existing = prefs.existing_signature_page_number
    if existing is not None:
        if existing > info.page_count:
            raise ValidationError(
                "existingSignaturePageNumber",
                f"page {existing} is beyond the end of the document ({info.page_count} page(s))",
            )
        return existing
    first_page = locate_signature_page(info.page_count, resolved.page_count, prefs.insert_page_at)
    return first_page + offset


def _validate_user_information(
    user_info: VisibleSignatureUserInformation | None,
    template: SignatureImageTemplate | None,
) -> None:
    """Check the caller's values against what the image template accepts."""
    if user_info is None:
        return
    if template is None:
        if user_info.field_values:
            raise ValidationError(
                "visibleSignatureUserInformation",
                "the signature page has no image template accepting field values",
            )
        return

    unknown = sorted(set(user_info.field_values) - set(template.fields))
    if unknown:
        raise ValidationError(
            "visibleSignatureUserInformation",
            f"unknown field(s) for image template {template.reference!r}",
            {name: "not defined by the template" for name in unknown},
        )
    if template.include_signer_name and (
        user_info.signer_name is None or not user_info.signer_name.attributes
    ):
        raise ValidationError(
            "visibleSignatureUserInformation",
            f"image template {template.reference!r} shows the signer name, "
            "but no signer name attributes were given",
        )
