"""
Command-line interface for signpage.

Argument parsing, dispatch, and the read-only subcommands.
Preparation logic lives in ``prepare``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ...config import load_policy_provider
from ...constants import DEFAULT_POLICY, __version__
from ...core.pdf import inspect_document
from ...errors import SignPageError
from ..helpers import format_size_kb, safe_read_file
from .prepare import cmd_prepare


def _cmd_inspect(args: argparse.Namespace) -> None:
    """Show the structural properties that matter for signing."""
    pdf_path = Path(args.pdf)
    pdf_bytes = safe_read_file(pdf_path, "PDF")
    if pdf_bytes is None:
        sys.exit(1)

    try:
        info = inspect_document(pdf_bytes)
    except SignPageError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    pdfa = "no"
    if info.is_pdfa:
        pdfa = f"PDF/A-{info.pdfa_part}{(info.pdfa_conformance or '').lower()}"

    print(f"{pdf_path.name} ({format_size_kb(len(pdf_bytes))})")
    print(f"  Pages:            {info.page_count}")
    print(f"  Signatures:       {info.signature_count}")
    print(f"  Fillable fields:  {'yes' if info.has_fillable_fields else 'no'}")
    print(f"  Encrypted:        {'yes' if info.encrypted else 'no'}")
    print(f"  PDF/A:            {pdfa}")


def _cmd_policies(args: argparse.Namespace) -> None:
    """List configured policies and their signature pages."""
    config_path = Path(args.config) if args.config else None
    try:
        provider = load_policy_provider(config_path)
    except SignPageError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for name in provider.policy_names():
        policy = provider.get_policy(name)
        mode = "stateless" if policy.stateless else "stateful"
        print(f"{name} ({mode})")
        settings = policy.prepare_settings
        print(
            f"  flatten forms: {'yes' if settings.allow_flatten_acroforms else 'no'}, "
            f"remove encryption: {'yes' if settings.allow_remove_encryption_dictionary else 'no'}, "
            f"enforce PDF/A: {'yes' if settings.enforce_pdfa_consistency else 'no'}"
        )
        for i, page in enumerate(policy.signature_pages):
            default = " [default]" if i == 0 else ""
            print(f"  - {page.id}: {page.rows}x{page.columns} grid{default}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="signpage",
        description="Prepare PDF documents for visible signatures.",
        epilog=(
            "Environment variables:\n"
            "  SIGNPAGE_CONFIG     Policy file (default: ~/.signpage/policies.json)\n"
            "  SIGNPAGE_CACHE_DIR  Document reference cache directory\n"
            "  SIGNPAGE_CACHE_TTL  Cache retention in seconds (default: 3600)\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-V", "--version", action="version", version=f"signpage {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=False, help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # prepare
    p_prepare = sub.add_parser("prepare", help="Prepare a PDF for the next signature")
    p_prepare.add_argument("pdf", help="PDF file to prepare")
    p_prepare.add_argument("-o", "--output", help="Output file path (default: <name>_prepared.pdf)")
    p_prepare.add_argument(
        "-p",
        "--policy",
        default=DEFAULT_POLICY,
        help=f"Policy name (default: {DEFAULT_POLICY})",
    )
    p_prepare.add_argument("-c", "--config", default=None, help="Policy file to use")
    p_prepare.add_argument(
        "--sign-page", default=None, help="Signature page id (default: the policy's first page)"
    )
    p_prepare.add_argument(
        "--insert-at",
        type=int,
        default=0,
        help="Page at which to insert the signature page (default: 0, after the last page)",
    )
    p_prepare.add_argument(
        "--existing-page",
        type=int,
        default=None,
        help="Page already holding the signature page, from an earlier round",
    )
    p_prepare.add_argument(
        "--allow-full",
        action="store_true",
        default=False,
        help="Succeed without a visible signature when the signature page is full",
    )
    p_prepare.add_argument(
        "--signer-attribute",
        action="append",
        default=[],
        help="Signer attribute making up the displayed name (repeatable)",
    )
    p_prepare.add_argument("--name-format", default=None, help="Signer name format string")
    p_prepare.add_argument(
        "--field",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Image template field value (repeatable)",
    )
    p_prepare.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Show what would be done without writing the output",
    )

    # inspect
    p_inspect = sub.add_parser("inspect", help="Show signing-related PDF structure")
    p_inspect.add_argument("pdf", help="PDF file")

    # policies
    p_policies = sub.add_parser("policies", help="List configured policies")
    p_policies.add_argument("-c", "--config", default=None, help="Policy file to use")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "prepare":
        cmd_prepare(args)
    elif args.command == "inspect":
        _cmd_inspect(args)
    elif args.command == "policies":
        _cmd_policies(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
