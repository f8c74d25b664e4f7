"""Shared test fixtures for signpage test suite."""

from __future__ import annotations

import io

import pikepdf
import pytest
from pikepdf import Array, Dictionary, Name, String

from signpage.config import InlineContent, PolicyConfiguration, StaticPolicyProvider
from signpage.core.model import PlacementConfig, PrepareSettings, SignatureImageTemplate, SignaturePage

# Grid used across preparer tests: 2 rows x 3 columns (capacity 6).
GRID_PLACEMENT = PlacementConfig(
    x_position=100, y_position=100, x_increment=50, y_increment=80, scale=-50, page=0
)


def save_pdf(pdf: pikepdf.Pdf, **kwargs) -> bytes:
    buf = io.BytesIO()
    pdf.save(buf, **kwargs)
    return buf.getvalue()


def make_pdf(pages: int = 1) -> bytes:
    """Plain letter-size PDF with the given number of blank pages."""
    pdf = pikepdf.Pdf.new()
    for _ in range(pages):
        pdf.add_blank_page(page_size=(612, 792))
    return save_pdf(pdf)


def make_form_pdf() -> bytes:
    """One-page PDF with a filled-in text field."""
    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    page = pdf.pages[0]

    appearance = pdf.make_stream(b"BT /Helv 12 Tf 2 4 Td (Alice) Tj ET")
    appearance.Type = Name.XObject
    appearance.Subtype = Name.Form
    appearance.BBox = Array([0, 0, 200, 20])

    field = pdf.make_indirect(
        Dictionary(
            Type=Name.Annot,
            Subtype=Name.Widget,
            FT=Name.Tx,
            T=String("name"),
            V=String("Alice"),
            DA=String("/Helv 12 Tf 0 g"),
            Rect=Array([100, 700, 300, 720]),
            F=4,
            P=page.obj,
            AP=Dictionary(N=appearance),
        )
    )
    page.obj.Annots = Array([field])
    pdf.Root.AcroForm = Dictionary(
        Fields=Array([field]),
        DA=String("/Helv 12 Tf 0 g"),
        DR=Dictionary(
            Font=Dictionary(
                Helv=Dictionary(Type=Name.Font, Subtype=Name.Type1, BaseFont=Name.Helvetica)
            )
        ),
    )
    return save_pdf(pdf)


def make_encrypted_pdf(pages: int = 1) -> bytes:
    """PDF with an encryption dictionary and an empty user password."""
    pdf = pikepdf.Pdf.new()
    for _ in range(pages):
        pdf.add_blank_page(page_size=(612, 792))
    return save_pdf(pdf, encryption=pikepdf.Encryption(owner="owner", user=""))


def make_pdfa_pdf(pages: int = 1) -> bytes:
    """PDF whose XMP metadata claims PDF/A-2b."""
    pdf = pikepdf.Pdf.new()
    for _ in range(pages):
        pdf.add_blank_page(page_size=(612, 792))
    with pdf.open_metadata(set_pikepdf_as_editor=False) as meta:
        meta["pdfaid:part"] = "2"
        meta["pdfaid:conformance"] = "B"
    return save_pdf(pdf)


def add_signature(
    pdf_bytes: bytes,
    page_number: int,
    rect: tuple[int, int, int, int] = (100, 100, 200, 150),
    signed: bool = True,
) -> bytes:
    """Add a signature field widget on a 1-based page, signed unless told otherwise."""
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        page = pdf.pages[page_number - 1]
        acroform = pdf.Root.get("/AcroForm")
        if acroform is None:
            pdf.Root.AcroForm = Dictionary(Fields=Array(), SigFlags=3)
            acroform = pdf.Root.AcroForm

        widget = pdf.make_indirect(
            Dictionary(
                Type=Name.Annot,
                Subtype=Name.Widget,
                FT=Name.Sig,
                T=String(f"Signature{len(acroform.Fields) + 1}"),
                Rect=Array(list(rect)),
                F=4,
                P=page.obj,
            )
        )
        if signed:
            widget.V = pdf.make_indirect(
                Dictionary(
                    Type=Name.Sig,
                    Filter=Name("/Adobe.PPKLite"),
                    SubFilter=Name("/adbe.pkcs7.detached"),
                    ByteRange=Array([0, 0, 0, 0]),
                    Contents=String(b"\x00" * 16),
                )
            )

        if "/Annots" not in page.obj:
            page.obj.Annots = Array()
        page.obj.Annots.append(widget)
        acroform.Fields.append(widget)
        return save_pdf(pdf)


def make_policy(
    name: str = "test",
    stateless: bool = True,
    settings: PrepareSettings | None = None,
    pages: tuple[SignaturePage, ...] | None = None,
    templates: tuple[SignatureImageTemplate, ...] | None = None,
    sign_page_bytes: bytes | None = None,
) -> PolicyConfiguration:
    """Policy with one 2x3 signature page backed by inline PDF content."""
    if pages is None:
        pages = (
            SignaturePage(
                id="grid",
                content=InlineContent(sign_page_bytes or make_pdf()),
                rows=2,
                columns=3,
                signature_image_reference="stamp",
                placement=GRID_PLACEMENT,
            ),
        )
    if templates is None:
        templates = (
            SignatureImageTemplate(
                reference="stamp",
                width=80,
                height=60,
                include_signer_name=True,
                fields={"department": "Signer department"},
            ),
        )
    return PolicyConfiguration(
        policy=name,
        stateless=stateless,
        prepare_settings=settings or PrepareSettings(),
        signature_pages=pages,
        image_templates=templates,
    )


@pytest.fixture
def valid_pdf_bytes():
    """Create a minimal valid PDF using pikepdf."""
    return make_pdf()


@pytest.fixture
def form_pdf_bytes():
    return make_form_pdf()


@pytest.fixture
def encrypted_pdf_bytes():
    return make_encrypted_pdf()


@pytest.fixture
def pdfa_pdf_bytes():
    return make_pdfa_pdf()


@pytest.fixture
def policy():
    return make_policy()


@pytest.fixture
def provider(policy):
    return StaticPolicyProvider([policy])
