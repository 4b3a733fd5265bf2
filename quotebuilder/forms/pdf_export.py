"""
pdf_export.py — Multi-page quotation PDF

Pipeline: totals → page descriptors → one single-page PDF per descriptor →
pages appended in order with pypdf → temp file → os.replace into place.

Either the whole file lands at output_path or nothing does.
"""

import io
import os
import re
import time
import logging

from pypdf import PdfReader, PdfWriter

from ..core import paths
from .pagination import paginate_document, resolve_config
from .quote_renderer import company_info, render_page_pdf
from .totals import totals_for_document

log = logging.getLogger("pdf_export")


class ExportError(Exception):
    """PDF could not be produced; no partial file is left behind."""


def export_filename(doc) -> str:
    """Quotation_<company>.pdf, company reduced to filename-safe characters."""
    company = re.sub(r"[^A-Za-z0-9]+", "_", doc.to_company or "").strip("_")
    return f"Quotation_{company or 'Draft'}.pdf"


def _assemble(page_pdfs) -> PdfWriter:
    writer = PdfWriter()
    for blob in page_pdfs:
        reader = PdfReader(io.BytesIO(blob))
        for page in reader.pages:
            writer.add_page(page)
    return writer


def export_pdf(doc, output_path=None, config=None, company=None) -> dict:
    """
    Render every page of the quotation and write one PDF.

    Returns:
        {"ok", "path", "pages", "subtotal", "vat", "tax", "total", "items_count"}
    Raises:
        ExportError on any rendering or write failure.
    """
    t0 = time.time()
    config = resolve_config(config)
    company = company or company_info()
    if output_path is None:
        output_path = os.path.join(paths.OUTPUT_DIR, export_filename(doc))

    totals = totals_for_document(doc)
    pages = paginate_document(doc, config)

    tmp_path = f"{output_path}.tmp"
    try:
        blobs = [render_page_pdf(page, doc, totals, config, company) for page in pages]
        writer = _assemble(blobs)
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with open(tmp_path, "wb") as f:
            writer.write(f)
        os.replace(tmp_path, output_path)
    except Exception as e:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        log.error("PDF export failed for %s: %s", output_path, e)
        raise ExportError(f"PDF generation failed: {e}") from e

    duration_ms = round((time.time() - t0) * 1000, 1)
    log.info("Exported %s (%d pages, %d items, total %s)",
             os.path.basename(output_path), len(pages), len(doc.items), totals["grand_total"],
             extra={"pages": len(pages), "quote_items": len(doc.items),
                    "total": totals["grand_total"], "company": doc.to_company,
                    "duration_ms": duration_ms})

    return {
        "ok": True,
        "path": output_path,
        "pages": len(pages),
        "subtotal": totals["subtotal"],
        "vat": totals["vat_amount"],
        "tax": totals["tax_amount"],
        "total": totals["grand_total"],
        "items_count": len(doc.items),
    }
