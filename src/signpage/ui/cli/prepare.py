"""Prepare command handler for signpage CLI."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ...api import create_preparer
from ...constants import BYTES_PER_MB, PDF_WARN_SIZE
from ...core.model import (
    PreparePreferences,
    SignerName,
    VisibleSignatureRequirement,
    VisibleSignatureUserInformation,
)
from ...errors import SignPageError
from ..helpers import (
    default_output_path,
    format_size_kb,
    parse_field_values,
    safe_read_file,
    write_output,
)

if TYPE_CHECKING:
    import argparse

    from ...core.model import PrepareResult


def _build_preferences(args: argparse.Namespace) -> PreparePreferences:
    try:
        field_values = parse_field_values(args.field)
    except ValueError as e:
        print(f"Error: --field {e}", file=sys.stderr)
        sys.exit(1)

    user_info = None
    if args.signer_attribute or field_values:
        signer_name = (
            SignerName(tuple(args.signer_attribute), args.name_format)
            if args.signer_attribute
            else None
        )
        user_info = VisibleSignatureUserInformation(
            signer_name=signer_name, field_values=field_values
        )

    return PreparePreferences(
        signature_page_reference=args.sign_page,
        user_information=user_info,
        fail_when_full=not args.allow_full,
        insert_page_at=args.insert_at,
        existing_signature_page_number=args.existing_page,
    )


def _print_result(result: PrepareResult) -> None:
    for action in result.fixed_issues:
        print(f"  Fixed: {action}")
    for warning in result.warnings:
        print(f"  Warning: {warning}")

    requirement = result.visible_signature_requirement
    if isinstance(requirement, VisibleSignatureRequirement):
        print(
            f"  Next signature image: page {requirement.page}, "
            f"x={requirement.x_position}, y={requirement.y_position}, "
            f"scale={requirement.scale}%"
        )
        if requirement.template_image_ref:
            print(f"  Image template: {requirement.template_image_ref}")
    else:
        print(f"  No visible signature ({requirement.reason})")


def cmd_prepare(args: argparse.Namespace) -> None:
    """Prepare a PDF for the next visible signature."""
    pdf_path = Path(args.pdf)
    pdf_bytes = safe_read_file(pdf_path, "PDF")
    if pdf_bytes is None:
        sys.exit(1)

    if len(pdf_bytes) > PDF_WARN_SIZE:
        print(
            f"  Warning: large document ({len(pdf_bytes) / BYTES_PER_MB:.1f} MB)",
            file=sys.stderr,
        )

    preferences = _build_preferences(args)
    config_path = Path(args.config) if args.config else None

    print(f"Preparing {pdf_path.name} ({format_size_kb(len(pdf_bytes))}), policy {args.policy}...")
    try:
        preparer = create_preparer(config_path)
        result = preparer.prepare_pdf_document(args.policy, pdf_bytes, preferences)
    except SignPageError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    _print_result(result)

    if result.updated_document is None:
        print("  Document unchanged, nothing written.")
        return

    out_path = Path(args.output) if args.output else default_output_path(pdf_path)
    if args.dry_run:
        print(f"  Dry run: would write {out_path} ({format_size_kb(len(result.updated_document))})")
        return
    try:
        write_output(out_path, result.updated_document)
    except OSError as e:
        print(f"Error: cannot write {out_path}: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"  Saved: {out_path} ({format_size_kb(len(result.updated_document))})")
