"""Tests for page rendering and multi-page PDF export."""

import base64
import io
import json
import os

import pdfplumber
import pytest
from PIL import Image
from pypdf import PdfReader

from conftest import make_items
from quotebuilder.core import paths
from quotebuilder.forms import pdf_export
from quotebuilder.forms.document import QuotationDocument
from quotebuilder.forms.pagination import allocate_pages
from quotebuilder.forms.pdf_export import ExportError, export_filename, export_pdf
from quotebuilder.forms.quote_renderer import COMPANY, _open_image, company_info, render_page_pdf
from quotebuilder.forms.totals import totals_for_document


def _upright(obj):
    # the rotated name watermark would otherwise interleave with body lines
    return obj.get("object_type") != "char" or obj.get("upright", True)


def _page_texts(path):
    with pdfplumber.open(path) as pdf:
        return [page.filter(_upright).extract_text() or "" for page in pdf.pages]


def _png_data_uri(color=(200, 30, 30)):
    buf = io.BytesIO()
    Image.new("RGB", (40, 20), color).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode()


# ═══════════════════════════════════════════════════════════════════════
# Single page
# ═══════════════════════════════════════════════════════════════════════

class TestRenderPage:
    def test_single_page_pdf(self, sample_doc, config):
        page = allocate_pages(sample_doc.items, config)[0]
        blob = render_page_pdf(page, sample_doc, totals_for_document(sample_doc), config)
        assert blob.startswith(b"%PDF")
        assert len(PdfReader(io.BytesIO(blob)).pages) == 1

    def test_bad_image_does_not_break_render(self, sample_doc, config):
        doc = sample_doc.replace(logo_image="data:image/png;base64,not-an-image",
                                 signature_image="/no/such/file.png")
        page = allocate_pages(doc.items, config)[0]
        blob = render_page_pdf(page, doc, totals_for_document(doc), config)
        assert blob.startswith(b"%PDF")

    def test_images_rendered(self, sample_doc, config):
        doc = sample_doc.replace(logo_image=_png_data_uri(),
                                 signature_image=_png_data_uri((0, 0, 0)),
                                 watermark_image=_png_data_uri((0, 90, 0)))
        page = allocate_pages(doc.items, config)[0]
        blob = render_page_pdf(page, doc, totals_for_document(doc), config)
        assert len(PdfReader(io.BytesIO(blob)).pages) == 1


class TestImageSources:
    def test_data_uri_and_raw_base64(self):
        uri = _png_data_uri()
        assert _open_image(uri).size == (40, 20)
        assert _open_image(uri.split(",", 1)[1]).size == (40, 20)

    def test_server_path_not_opened(self, temp_data_dir):
        secret = os.path.join(temp_data_dir, "secret.png")
        Image.new("RGB", (8, 8)).save(secret)
        assert _open_image(secret) is None

    def test_imported_path_not_embedded(self, config, temp_data_dir):
        secret = os.path.join(temp_data_dir, "secret.png")
        Image.new("RGB", (8, 8)).save(secret)
        doc = QuotationDocument.from_dict({"items": [], "logoImage": secret})
        assert _open_image(doc.logo_image) is None
        assert export_pdf(doc, config=config)["ok"]

    def test_non_string_image_exports(self, config, temp_data_dir):
        doc = QuotationDocument.from_dict({"items": [], "logoImage": 5, "signatureImage": {}})
        assert doc.logo_image is None and doc.signature_image is None
        assert export_pdf(doc, config=config)["ok"]


# ═══════════════════════════════════════════════════════════════════════
# Export
# ═══════════════════════════════════════════════════════════════════════

class TestExportPdf:
    def test_result_dict(self, sample_doc, config, temp_data_dir):
        out = os.path.join(temp_data_dir, "output", "q.pdf")
        r = export_pdf(sample_doc, out, config)
        assert r["ok"] is True
        assert r["path"] == out
        assert r["pages"] == 1
        assert r["subtotal"] == 52100
        assert r["vat"] == pytest.approx(7815)
        assert r["tax"] == 0
        assert r["total"] == 59915
        assert r["items_count"] == 2
        assert os.path.exists(out)
        assert not os.path.exists(out + ".tmp")

    def test_first_page_content(self, sample_doc, config, temp_data_dir):
        out = os.path.join(temp_data_dir, "q.pdf")
        export_pdf(sample_doc, out, config)
        text = _page_texts(out)[0]
        assert "Acme Builders Ltd" in text
        assert "Subject: QUOTATION FOR BOUNDARY WALL" in text
        assert "2026-03-01" in text
        assert "Brick work" in text
        assert "Sub-total" in text
        assert "VAT (15%)" in text
        assert "Tax (" not in text
        assert "GRAND TOTAL" in text
        assert "$59,915" in text
        assert "TERMS & CONDITIONS" in text
        assert "Thank You" in text
        assert COMPANY["signer"] in text

    def test_no_tax_rows_without_rates(self, config, temp_data_dir):
        doc = QuotationDocument(items=make_items(2), vat_rate=0, tax_rate=0)
        out = os.path.join(temp_data_dir, "q.pdf")
        export_pdf(doc, out, config)
        text = _page_texts(out)[0]
        assert "VAT (" not in text
        assert "Tax (" not in text
        assert "Sub-total" in text

    def test_hidden_client_keeps_date(self, sample_doc, config, temp_data_dir):
        doc = sample_doc.replace(hide_client_details=True)
        out = os.path.join(temp_data_dir, "q.pdf")
        export_pdf(doc, out, config)
        text = _page_texts(out)[0]
        assert "Site Engineer" not in text
        assert "2026-03-01" in text

    def test_blank_notes_no_notes_box(self, sample_doc, config, temp_data_dir):
        doc = sample_doc.replace(notes="   ")
        out = os.path.join(temp_data_dir, "q.pdf")
        export_pdf(doc, out, config)
        assert "TERMS & CONDITIONS" not in _page_texts(out)[0]

    def test_empty_quotation(self, config, temp_data_dir):
        doc = QuotationDocument(items=[], notes="")
        out = os.path.join(temp_data_dir, "q.pdf")
        r = export_pdf(doc, out, config)
        assert r["pages"] == 1
        assert r["total"] == 0
        text = _page_texts(out)[0]
        assert "GRAND TOTAL" in text
        assert "Zero" in text

    def test_multi_page_with_footer_page(self, config, long_doc, temp_data_dir):
        doc = long_doc(12 + 14)
        out = os.path.join(temp_data_dir, "q.pdf")
        r = export_pdf(doc, out, config)
        assert r["pages"] == 3
        assert len(PdfReader(out).pages) == 3
        texts = _page_texts(out)
        assert "Work item 1" in texts[0]
        assert "CONTINUATION SHEET" in texts[1]
        assert "Page 2" in texts[1]
        assert "Work item 26" in texts[1]
        assert "GRAND TOTAL" not in texts[0]
        assert "GRAND TOTAL" not in texts[1]
        assert "GRAND TOTAL" in texts[2]
        assert "Work item" not in texts[2]

    def test_default_output_path(self, sample_doc, config):
        r = export_pdf(sample_doc, config=config)
        assert r["path"] == os.path.join(paths.OUTPUT_DIR, "Quotation_Acme_Builders_Ltd.pdf")
        assert os.path.exists(r["path"])

    def test_company_from_config_file(self, sample_doc, config, temp_data_dir):
        with open(paths.CONFIG_PATH, "w") as f:
            json.dump({"company": {"name": "Delta Works", "signer": "R. Karim"}}, f)
        assert company_info()["name"] == "Delta Works"
        out = os.path.join(temp_data_dir, "q.pdf")
        export_pdf(sample_doc, out, config)
        text = _page_texts(out)[0]
        assert "R. Karim" in text

    def test_failure_leaves_no_file(self, sample_doc, config, temp_data_dir, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("canvas exploded")

        monkeypatch.setattr(pdf_export, "render_page_pdf", broken)
        out = os.path.join(temp_data_dir, "q.pdf")
        with pytest.raises(ExportError):
            export_pdf(sample_doc, out, config)
        assert not os.path.exists(out)
        assert not os.path.exists(out + ".tmp")

    def test_export_filename(self, sample_doc):
        assert export_filename(sample_doc) == "Quotation_Acme_Builders_Ltd.pdf"
        assert export_filename(sample_doc.replace(to_company="")) == "Quotation_Draft.pdf"
