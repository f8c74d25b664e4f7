"""
Signature page resolution.

Picks the signature page a prepare call works with (named by reference,
given inline, or the policy default), loads its PDF content, and looks
up the image template it refers to.
"""

from __future__ import annotations

__all__ = ["ResolvedSignaturePage", "SignPageResolver"]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..config.content import DefaultContentLoader, resolve_content
from ..errors import (
    ConfigError,
    ImageTemplateNotFoundError,
    PDFError,
    SignaturePageNotFoundError,
    ValidationError,
)
from .pdf.inspect import inspect_document
from .template import image_dimensions

if TYPE_CHECKING:
    from ..config.content import ContentLoader
    from ..config.policies import PolicyConfiguration
    from .model import PreparePreferences, SignatureImageTemplate, SignaturePage

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedSignaturePage:
    """A signature page with its content loaded.

    Attributes:
        page: The signature page configuration.
        content: The signature-page PDF bytes.
        page_count: Number of pages in the signature-page document.
        is_pdfa: Whether the signature-page document claims PDF/A.
        image_template: Template named by the page, if any.
        image_size: Template size in pixels, if known.
    """

    page: SignaturePage
    content: bytes
    page_count: int
    is_pdfa: bool
    image_template: SignatureImageTemplate | None = None
    image_size: tuple[int, int] | None = None

    def __repr__(self) -> str:
        return (
            f"ResolvedSignaturePage(page={self.page.id!r}, content=<{len(self.content)} bytes>, "
            f"page_count={self.page_count}, is_pdfa={self.is_pdfa}, "
            f"image_template={self.image_template.reference if self.image_template else None!r})"
        )


class SignPageResolver:
    """Resolves the signature page for a prepare call."""

    def __init__(self, loader: ContentLoader | None = None) -> None:
        self.loader: ContentLoader = loader if loader is not None else DefaultContentLoader()

    def select(
        self, policy: PolicyConfiguration, preferences: PreparePreferences
    ) -> SignaturePage:
        """Choose the signature page without loading anything.

        Raises:
            ValidationError: If both a reference and an inline page are given.
            SignaturePageNotFoundError: Unknown reference, or no default page.
        """
        reference = preferences.signature_page_reference
        inline = preferences.signature_page

        if reference is not None and inline is not None:
            raise ValidationError(
                "signaturePagePreferences",
                "signaturePageReference and signaturePage must not both be set",
            )
        if inline is not None:
            return inline
        if reference is not None:
            page = policy.get_signature_page(reference)
            if page is None:
                raise SignaturePageNotFoundError(
                    f"Signature page {reference!r} is not configured for policy {policy.policy!r}"
                )
            return page

        default = policy.default_signature_page
        if default is None:
            raise SignaturePageNotFoundError(
                f"No signature page given and policy {policy.policy!r} has no default"
            )
        return default

    def resolve(
        self, policy: PolicyConfiguration, preferences: PreparePreferences
    ) -> ResolvedSignaturePage:
        """Choose the signature page and load its content and template.

        Raises:
            ValidationError: If both a reference and an inline page are given.
            SignaturePageNotFoundError: Unknown reference, or no default page.
            ImageTemplateNotFoundError: The page names an unknown template.
            ConfigError: Configured content cannot be loaded or parsed.
        """
        page = self.select(policy, preferences)

        content = resolve_content(page.content, self.loader)
        try:
            info = inspect_document(content)
        except PDFError as exc:
            raise ConfigError(f"Signature page {page.id!r} is not a valid PDF: {exc}") from exc

        template = None
        image_size = None
        if page.signature_image_reference is not None:
            template = policy.get_image_template(page.signature_image_reference)
            if template is None:
                raise ImageTemplateNotFoundError(
                    f"Image template {page.signature_image_reference!r} of signature page "
                    f"{page.id!r} is not configured for policy {policy.policy!r}"
                )
            image_size = self._template_size(template)

        _logger.debug(
            "Resolved signature page %r (%d page(s), grid %dx%d, template %s)",
            page.id,
            info.page_count,
            page.rows,
            page.columns,
            page.signature_image_reference,
        )
        return ResolvedSignaturePage(
            page=page,
            content=content,
            page_count=info.page_count,
            is_pdfa=info.is_pdfa,
            image_template=template,
            image_size=image_size,
        )

    def _template_size(self, template: SignatureImageTemplate) -> tuple[int, int] | None:
        if template.width is not None and template.height is not None:
            return template.width, template.height
        if template.image is None:
            return None
        return image_dimensions(resolve_content(template.image, self.loader))
