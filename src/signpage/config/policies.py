"""
Policy configuration for signature-page preparation.

A policy bundles the signature pages, image templates and prepare
settings that apply to documents prepared under its name.  The built-in
``default`` policy ships a one-page A4 signature page with room for
eight signatures; further policies are read from the JSON policy file.

Policy file layout::

    {
      "policies": {
        "<name>": {
          "stateless": true,
          "prepare": {"allow_flatten_acroforms": true, ...},
          "signature_pages": [
            {"id": "...", "pdf": "<location>" | "pdf_base64": "...",
             "rows": 2, "columns": 3, "signature_image_reference": "...",
             "placement": {"x_position": 100, "y_position": 100, ...}}
          ],
          "image_templates": [
            {"reference": "...", "image": "<location>", "width": 300,
             "height": 120, "include_signer_name": true, "fields": {...}}
          ]
        }
      }
    }

The first signature page of a policy is its default.
"""

from __future__ import annotations

__all__ = [
    "BUILTIN_POLICIES",
    "PolicyConfiguration",
    "PolicyConfigurationProvider",
    "StaticPolicyProvider",
    "load_policy_provider",
    "parse_policies",
]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from ..constants import DEFAULT_POLICY, RESOURCE_PREFIX
from ..core.model import (
    PlacementConfig,
    PrepareSettings,
    SignatureImageTemplate,
    SignaturePage,
)
from ..errors import ConfigError, PolicyNotFoundError, ValidationError
from ._storage import load_raw_config
from .content import InlineContent, LazyContent

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from .content import ContentSource

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicyConfiguration:
    """Preparation settings of one policy.

    Attributes:
        policy: Policy name.
        stateless: True when no state is kept between calls; document
            references can only be used by stateful policies.
        prepare_settings: Which structural issues may be fixed.
        signature_pages: Configured signature pages, default first.
        image_templates: Configured signature image templates.
    """

    policy: str
    stateless: bool = True
    prepare_settings: PrepareSettings = PrepareSettings()
    signature_pages: tuple[SignaturePage, ...] = ()
    image_templates: tuple[SignatureImageTemplate, ...] = ()

    @property
    def default_signature_page(self) -> SignaturePage | None:
        return self.signature_pages[0] if self.signature_pages else None

    def get_signature_page(self, page_id: str) -> SignaturePage | None:
        return next((p for p in self.signature_pages if p.id == page_id), None)

    def get_image_template(self, reference: str) -> SignatureImageTemplate | None:
        return next((t for t in self.image_templates if t.reference == reference), None)


class PolicyConfigurationProvider(Protocol):
    """Looks up policy configuration by name."""

    def get_policy(self, name: str) -> PolicyConfiguration:
        """
        Raises:
            PolicyNotFoundError: If no policy has that name.
        """
        ...

    def policy_names(self) -> list[str]: ...


class StaticPolicyProvider:
    """Policy provider backed by a fixed set of policies."""

    def __init__(self, policies: Iterable[PolicyConfiguration]) -> None:
        self._policies = {p.policy: p for p in policies}

    def get_policy(self, name: str) -> PolicyConfiguration:
        key = name.strip()
        policy = self._policies.get(key)
        if policy is None:
            available = ", ".join(sorted(self._policies)) or "none"
            raise PolicyNotFoundError(f"Unknown policy {name!r}. Available: {available}")
        return policy

    def policy_names(self) -> list[str]:
        return sorted(self._policies)


# ── Built-in policies ────────────────────────────────────────────────

BUILTIN_POLICIES: dict[str, PolicyConfiguration] = {
    DEFAULT_POLICY: PolicyConfiguration(
        policy=DEFAULT_POLICY,
        stateless=True,
        prepare_settings=PrepareSettings(),
        signature_pages=(
            SignaturePage(
                id="default-sign-page",
                content=LazyContent(f"{RESOURCE_PREFIX}default-sign-page.pdf"),
                rows=4,
                columns=2,
                signature_image_reference="default-sign-image",
                placement=PlacementConfig(
                    x_position=37,
                    y_position=165,
                    x_increment=268,
                    y_increment=105,
                    scale=-74,
                    page=0,
                ),
            ),
        ),
        image_templates=(
            SignatureImageTemplate(
                reference="default-sign-image",
                image=LazyContent(f"{RESOURCE_PREFIX}default-sign-image.svg"),
                width=967,
                height=351,
                include_signer_name=True,
                include_signing_time=True,
            ),
        ),
    ),
}


# ── Parsing ──────────────────────────────────────────────────────────


def _content(entry: Mapping[str, Any], key: str, where: str) -> ContentSource | None:
    """Read ``key`` (a location) or ``key_base64`` (inline content) from an entry."""
    location = entry.get(key)
    encoded = entry.get(f"{key}_base64")
    if location is not None and encoded is not None:
        raise ConfigError(f"{where}: use either {key!r} or '{key}_base64', not both")
    if isinstance(encoded, str):
        return InlineContent.from_base64(encoded)
    if isinstance(location, str) and location:
        return LazyContent(location)
    if location is not None or encoded is not None:
        raise ConfigError(f"{where}: {key!r} must be a string")
    return None


def _int(entry: Mapping[str, Any], key: str, default: int, where: str) -> int:
    value = entry.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{where}: {key!r} must be an integer, got {value!r}")
    return value


def _bool(entry: Mapping[str, Any], key: str, default: bool, where: str) -> bool:
    value = entry.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{where}: {key!r} must be true or false, got {value!r}")
    return value


def _parse_placement(entry: Mapping[str, Any], where: str) -> PlacementConfig:
    return PlacementConfig(
        x_position=_int(entry, "x_position", 0, where),
        y_position=_int(entry, "y_position", 0, where),
        x_increment=_int(entry, "x_increment", 0, where),
        y_increment=_int(entry, "y_increment", 0, where),
        scale=_int(entry, "scale", 0, where),
        page=_int(entry, "page", 1, where),
    )


def _parse_signature_page(entry: Mapping[str, Any], where: str) -> SignaturePage:
    content = _content(entry, "pdf", where)
    if content is None:
        raise ConfigError(f"{where}: missing 'pdf' or 'pdf_base64'")
    placement = entry.get("placement")
    if placement is not None and not isinstance(placement, dict):
        raise ConfigError(f"{where}: 'placement' must be an object")
    image_ref = entry.get("signature_image_reference")
    return SignaturePage(
        id=str(entry.get("id", "")),
        content=content,
        rows=_int(entry, "rows", 1, where),
        columns=_int(entry, "columns", 1, where),
        signature_image_reference=str(image_ref) if image_ref is not None else None,
        placement=_parse_placement(placement, f"{where}.placement") if placement else None,
    )


def _parse_image_template(entry: Mapping[str, Any], where: str) -> SignatureImageTemplate:
    reference = entry.get("reference")
    if not isinstance(reference, str) or not reference:
        raise ConfigError(f"{where}: missing 'reference'")
    fields = entry.get("fields", {})
    if not isinstance(fields, dict):
        raise ConfigError(f"{where}: 'fields' must be an object")
    width = entry.get("width")
    height = entry.get("height")
    return SignatureImageTemplate(
        reference=reference,
        image=_content(entry, "image", where),
        width=_int(entry, "width", 0, where) if width is not None else None,
        height=_int(entry, "height", 0, where) if height is not None else None,
        include_signer_name=_bool(entry, "include_signer_name", True, where),
        include_signing_time=_bool(entry, "include_signing_time", True, where),
        fields={str(k): str(v) for k, v in fields.items()},
    )


def _parse_policy(name: str, entry: Mapping[str, Any]) -> PolicyConfiguration:
    where = f"policies.{name}"
    prepare = entry.get("prepare", {})
    if not isinstance(prepare, dict):
        raise ConfigError(f"{where}: 'prepare' must be an object")
    pages = entry.get("signature_pages", [])
    templates = entry.get("image_templates", [])
    if not isinstance(pages, list) or not isinstance(templates, list):
        raise ConfigError(f"{where}: 'signature_pages' and 'image_templates' must be lists")

    try:
        return PolicyConfiguration(
            policy=name,
            stateless=_bool(entry, "stateless", True, where),
            prepare_settings=PrepareSettings(
                enforce_pdfa_consistency=_bool(
                    prepare, "enforce_pdfa_consistency", False, f"{where}.prepare"
                ),
                allow_flatten_acroforms=_bool(
                    prepare, "allow_flatten_acroforms", False, f"{where}.prepare"
                ),
                allow_remove_encryption_dictionary=_bool(
                    prepare, "allow_remove_encryption_dictionary", False, f"{where}.prepare"
                ),
            ),
            signature_pages=tuple(
                _parse_signature_page(p, f"{where}.signature_pages[{i}]")
                for i, p in enumerate(pages)
            ),
            image_templates=tuple(
                _parse_image_template(t, f"{where}.image_templates[{i}]")
                for i, t in enumerate(templates)
            ),
        )
    except ValidationError as exc:
        raise ConfigError(f"{where}: {exc}") from exc
    except (TypeError, AttributeError) as exc:
        raise ConfigError(f"{where}: malformed entry ({exc})") from exc


def parse_policies(data: Mapping[str, object]) -> list[PolicyConfiguration]:
    """Parse the ``policies`` section of a policy file.

    Raises:
        ConfigError: If an entry is malformed.
    """
    section = data.get("policies", {})
    if not isinstance(section, dict):
        raise ConfigError("'policies' must be an object")
    policies: list[PolicyConfiguration] = []
    for name, entry in section.items():
        if not isinstance(entry, dict):
            raise ConfigError(f"policies.{name}: must be an object")
        policies.append(_parse_policy(str(name), entry))
    return policies


def load_policy_provider(
    path: Path | None = None, include_builtin: bool = True
) -> StaticPolicyProvider:
    """Build a policy provider from the policy file.

    Priority: policy file > built-in policies (a file policy with a
    built-in name replaces the built-in one).
    """
    policies: dict[str, PolicyConfiguration] = dict(BUILTIN_POLICIES) if include_builtin else {}
    for policy in parse_policies(load_raw_config(path)):
        if policy.policy in policies:
            _logger.debug("Policy file overrides built-in policy %r", policy.policy)
        policies[policy.policy] = policy
    return StaticPolicyProvider(policies.values())
