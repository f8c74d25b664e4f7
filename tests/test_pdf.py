"""Tests for signpage.core.pdf -- inspection, consistency checks, fixes, merging."""

from __future__ import annotations

import io
from unittest.mock import patch

import pikepdf
import pytest

from signpage.core.model import PrepareSettings
from signpage.core.pdf import (
    check_consistency,
    check_document,
    count_signature_images,
    fix_document,
    insert_signature_page,
    inspect_document,
    locate_signature_page,
    open_pdf,
    resolve_insert_position,
    target_page_offset,
)
from signpage.errors import (
    ConfigError,
    PDFError,
    PdfAConsistencyCheckError,
    PdfContainsAcroformError,
    PdfContainsEncryptionDictionaryError,
    ValidationError,
)

from .conftest import add_signature, make_encrypted_pdf, make_form_pdf, make_pdf, make_pdfa_pdf

ALLOW_ALL = PrepareSettings(allow_flatten_acroforms=True, allow_remove_encryption_dictionary=True)


def _page_widths(pdf_bytes: bytes) -> list[float]:
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        return [float(page.mediabox[2]) for page in pdf.pages]


# ── inspect_document ──────────────────────────────────────────────────


def test_inspect_plain_pdf(valid_pdf_bytes):
    info = inspect_document(valid_pdf_bytes)
    assert info.page_count == 1
    assert not info.has_fillable_fields
    assert info.signature_count == 0
    assert not info.is_signed
    assert not info.encrypted
    assert not info.is_pdfa


def test_inspect_form_pdf(form_pdf_bytes):
    info = inspect_document(form_pdf_bytes)
    assert info.has_fillable_fields
    assert not info.is_signed


def test_inspect_encrypted_pdf(encrypted_pdf_bytes):
    assert inspect_document(encrypted_pdf_bytes).encrypted


def test_inspect_pdfa_pdf(pdfa_pdf_bytes):
    info = inspect_document(pdfa_pdf_bytes)
    assert info.is_pdfa
    assert info.pdfa_part == "2"
    assert info.pdfa_conformance == "B"


def test_inspect_signed_pdf(valid_pdf_bytes):
    signed = add_signature(valid_pdf_bytes, 1)
    info = inspect_document(signed)
    assert info.signature_count == 1
    assert info.is_signed
    assert not info.has_fillable_fields


def test_inspect_unsigned_signature_field_is_not_a_signature(valid_pdf_bytes):
    info = inspect_document(add_signature(valid_pdf_bytes, 1, signed=False))
    assert info.signature_count == 0
    assert not info.has_fillable_fields


def test_inspect_rejects_non_pdf():
    with pytest.raises(PDFError, match="does not appear"):
        inspect_document(b"hello world")


def test_inspect_rejects_empty():
    with pytest.raises(PDFError):
        inspect_document(b"")


def test_inspect_rejects_garbage_after_magic():
    with pytest.raises(PDFError, match="Cannot parse"):
        inspect_document(b"%PDF-1.7\n" + b"\x00" * 64)


def test_open_pdf_password_protected():
    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page()
    buf = io.BytesIO()
    pdf.save(buf, encryption=pikepdf.Encryption(owner="owner", user="secret"))
    with pytest.raises(PDFError, match="password"), open_pdf(buf.getvalue()):
        pass


# ── count_signature_images ────────────────────────────────────────────


def test_count_signature_images_per_page():
    data = make_pdf(pages=2)
    data = add_signature(data, 2)
    data = add_signature(data, 2, rect=(300, 100, 400, 150))
    data = add_signature(data, 1)
    with open_pdf(data) as pdf:
        assert count_signature_images(pdf, 1) == 1
        assert count_signature_images(pdf, 2) == 2


def test_count_ignores_invisible_and_unsigned_widgets():
    data = make_pdf()
    data = add_signature(data, 1, rect=(0, 0, 0, 0))
    data = add_signature(data, 1, signed=False)
    data = add_signature(data, 1)
    with open_pdf(data) as pdf:
        assert count_signature_images(pdf, 1) == 1


def test_count_on_page_without_annotations(valid_pdf_bytes):
    with open_pdf(valid_pdf_bytes) as pdf:
        assert count_signature_images(pdf, 1) == 0


def test_count_page_out_of_range(valid_pdf_bytes):
    with open_pdf(valid_pdf_bytes) as pdf, pytest.raises(PDFError, match="out of range"):
        count_signature_images(pdf, 2)


# ── check_consistency ─────────────────────────────────────────────────


def test_clean_document_has_no_issues(valid_pdf_bytes):
    report = check_document(valid_pdf_bytes, PrepareSettings(), sign_page_pdfa=False)
    assert report.fixable_issues == ()
    assert report.warnings == ()
    assert not report.needs_fixing


def test_acroform_rejected_by_default(form_pdf_bytes):
    with pytest.raises(PdfContainsAcroformError) as exc_info:
        check_document(form_pdf_bytes, PrepareSettings())
    assert exc_info.value.issue == "acroform-in-unsigned-pdf"


def test_acroform_queued_when_flattening_allowed(form_pdf_bytes):
    settings = PrepareSettings(allow_flatten_acroforms=True)
    report = check_document(form_pdf_bytes, settings)
    assert report.fixable_issues == ("acroform-in-unsigned-pdf",)
    assert report.needs_fixing


def test_acroform_in_signed_document_is_fine():
    data = add_signature(make_form_pdf(), 1)
    report = check_document(data, PrepareSettings())
    assert report.fixable_issues == ()


def test_encryption_rejected_by_default(encrypted_pdf_bytes):
    with pytest.raises(PdfContainsEncryptionDictionaryError):
        check_document(encrypted_pdf_bytes, PrepareSettings())


def test_encryption_queued_when_removal_allowed(encrypted_pdf_bytes):
    settings = PrepareSettings(allow_remove_encryption_dictionary=True)
    report = check_document(encrypted_pdf_bytes, settings)
    assert report.fixable_issues == ("encryption-dictionary",)


def test_pdfa_mismatch_enforced(pdfa_pdf_bytes):
    settings = PrepareSettings(enforce_pdfa_consistency=True)
    with pytest.raises(PdfAConsistencyCheckError, match="PDF/A-2b"):
        check_document(pdfa_pdf_bytes, settings, sign_page_pdfa=False)


def test_pdfa_mismatch_warns_when_not_enforced(pdfa_pdf_bytes, caplog):
    report = check_document(pdfa_pdf_bytes, PrepareSettings(), sign_page_pdfa=False)
    assert report.warnings == ("pdfa-inconsistency",)
    assert report.fixable_issues == ()
    assert "no longer PDF/A" in caplog.text


def test_pdfa_with_pdfa_sign_page_is_fine(pdfa_pdf_bytes):
    settings = PrepareSettings(enforce_pdfa_consistency=True)
    report = check_document(pdfa_pdf_bytes, settings, sign_page_pdfa=True)
    assert report.warnings == ()


def test_pdfa_check_skipped_without_merge(pdfa_pdf_bytes):
    settings = PrepareSettings(enforce_pdfa_consistency=True)
    report = check_document(pdfa_pdf_bytes, settings, sign_page_pdfa=None)
    assert report.warnings == ()


def test_issue_order_acroform_then_encryption():
    pdf = pikepdf.open(io.BytesIO(make_form_pdf()))
    buf = io.BytesIO()
    pdf.save(buf, encryption=pikepdf.Encryption(owner="owner", user=""))
    pdf.close()
    info = inspect_document(buf.getvalue())
    report = check_consistency(info, ALLOW_ALL)
    assert report.fixable_issues == ("acroform-in-unsigned-pdf", "encryption-dictionary")


# ── fix_document ──────────────────────────────────────────────────────


def test_fix_nothing_queued_returns_input(valid_pdf_bytes):
    data, actions = fix_document(valid_pdf_bytes, [])
    assert data is valid_pdf_bytes
    assert actions == []


def test_flatten_acroform(form_pdf_bytes):
    data, actions = fix_document(form_pdf_bytes, ["acroform-in-unsigned-pdf"])
    assert actions == ["flattened-acroform"]
    info = inspect_document(data)
    assert not info.has_fillable_fields
    with pikepdf.open(io.BytesIO(data)) as pdf:
        assert "/AcroForm" not in pdf.Root


def test_flatten_keeps_links_and_markup(form_pdf_bytes):
    with pikepdf.open(io.BytesIO(form_pdf_bytes)) as pdf:
        page = pdf.pages[0]
        box = pdf.make_stream(b"0 0 1 RG 0 0 50 50 re S")
        box.Type = pikepdf.Name.XObject
        box.Subtype = pikepdf.Name.Form
        box.BBox = pikepdf.Array([0, 0, 50, 50])
        square = pdf.make_indirect(
            pikepdf.Dictionary(
                Type=pikepdf.Name.Annot,
                Subtype=pikepdf.Name.Square,
                Rect=pikepdf.Array([300, 300, 350, 350]),
                AP=pikepdf.Dictionary(N=box),
            )
        )
        link = pdf.make_indirect(
            pikepdf.Dictionary(
                Type=pikepdf.Name.Annot,
                Subtype=pikepdf.Name.Link,
                Rect=pikepdf.Array([100, 500, 200, 520]),
                A=pikepdf.Dictionary(
                    S=pikepdf.Name.URI, URI=pikepdf.String("https://example.org")
                ),
            )
        )
        page.obj.Annots.append(square)
        page.obj.Annots.append(link)
        buf = io.BytesIO()
        pdf.save(buf)

    data, actions = fix_document(buf.getvalue(), ["acroform-in-unsigned-pdf"])

    assert actions == ["flattened-acroform"]
    with pikepdf.open(io.BytesIO(data)) as pdf:
        subtypes = [str(annot.Subtype) for annot in pdf.pages[0].obj.get("/Annots", [])]
        assert "/AcroForm" not in pdf.Root
    assert sorted(subtypes) == ["/Link", "/Square"]


def test_remove_encryption(encrypted_pdf_bytes):
    data, actions = fix_document(encrypted_pdf_bytes, ["encryption-dictionary"])
    assert actions == ["removed-encryption-dictionary"]
    assert not inspect_document(data).encrypted


def test_fix_order_flatten_then_decrypt():
    pdf = pikepdf.open(io.BytesIO(make_form_pdf()))
    buf = io.BytesIO()
    pdf.save(buf, encryption=pikepdf.Encryption(owner="owner", user=""))
    pdf.close()
    data, actions = fix_document(
        buf.getvalue(), ["acroform-in-unsigned-pdf", "encryption-dictionary"]
    )
    assert actions == ["flattened-acroform", "removed-encryption-dictionary"]
    info = inspect_document(data)
    assert not info.encrypted
    assert not info.has_fillable_fields


def test_flatten_keeps_encryption_when_not_queued():
    pdf = pikepdf.open(io.BytesIO(make_form_pdf()))
    buf = io.BytesIO()
    pdf.save(buf, encryption=pikepdf.Encryption(owner="owner", user=""))
    pdf.close()
    data, actions = fix_document(buf.getvalue(), ["acroform-in-unsigned-pdf"])
    assert actions == ["flattened-acroform"]
    assert inspect_document(data).encrypted


@pytest.mark.parametrize(
    "make",
    [make_form_pdf, make_encrypted_pdf],
)
def test_fixer_is_idempotent(make):
    issues = ["acroform-in-unsigned-pdf", "encryption-dictionary"]
    fixed, first_actions = fix_document(make(), issues)
    assert first_actions
    again, second_actions = fix_document(fixed, issues)
    assert second_actions == []
    assert again is fixed


def test_fix_skips_condition_not_present(valid_pdf_bytes):
    data, actions = fix_document(valid_pdf_bytes, ["acroform-in-unsigned-pdf"])
    assert actions == []
    assert data is valid_pdf_bytes


# ── merge ─────────────────────────────────────────────────────────────


def test_resolve_insert_position():
    assert resolve_insert_position(0, 3) == 4
    assert resolve_insert_position(1, 3) == 1
    assert resolve_insert_position(4, 3) == 4


@pytest.mark.parametrize("value", [-1, 5])
def test_resolve_insert_position_out_of_range(value):
    with pytest.raises(ValidationError, match="insertPageAt"):
        resolve_insert_position(value, 3)


def test_target_page_offset():
    assert target_page_offset(0, 3) == 2
    assert target_page_offset(1, 3) == 0
    assert target_page_offset(3, 3) == 2


def test_target_page_offset_beyond_document():
    with pytest.raises(ConfigError, match="does not exist"):
        target_page_offset(2, 1)


def test_insert_signature_page_appends():
    host = make_pdf(pages=2)
    sign_pdf = pikepdf.Pdf.new()
    sign_pdf.add_blank_page(page_size=(595, 842))
    buf = io.BytesIO()
    sign_pdf.save(buf)

    merged, first_page = insert_signature_page(host, buf.getvalue(), 0)
    assert first_page == 3
    assert _page_widths(merged) == [612, 612, 595]


def test_insert_signature_page_at_position():
    host = make_pdf(pages=2)
    sign_pdf = pikepdf.Pdf.new()
    sign_pdf.add_blank_page(page_size=(595, 842))
    sign_pdf.add_blank_page(page_size=(500, 842))
    buf = io.BytesIO()
    sign_pdf.save(buf)

    merged, first_page = insert_signature_page(host, buf.getvalue(), 2)
    assert first_page == 2
    assert _page_widths(merged) == [612, 595, 500, 612]


def test_locate_signature_page():
    assert locate_signature_page(host_page_count=5, sign_page_count=2, insert_page_at=0) == 4
    assert locate_signature_page(host_page_count=5, sign_page_count=2, insert_page_at=2) == 2


def test_locate_signature_page_too_short():
    with pytest.raises(ValidationError):
        locate_signature_page(host_page_count=1, sign_page_count=2, insert_page_at=0)
    with pytest.raises(ValidationError):
        locate_signature_page(host_page_count=3, sign_page_count=2, insert_page_at=3)


def test_missing_pikepdf_reported_as_pdf_error(valid_pdf_bytes):
    with patch.dict("sys.modules", {"pikepdf": None}), pytest.raises(PDFError, match="pikepdf"):
        inspect_document(valid_pdf_bytes)
