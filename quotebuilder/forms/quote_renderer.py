"""
quote_renderer.py — Draw one quotation page onto a reportlab canvas

Pure function of (page descriptor, document, totals). The allocator has
already decided which rows go where and which page carries the footer; this
module only lays out the regions:

  every page   watermark, bottom brand strip
  first page   letterhead, recipient block (suppressible), date, subject
  later pages  "Continuation Sheet" header with page number
  rows         item table with global serial numbers
  last page    totals, notes, signature block

Coordinates: A4 portrait in points. Helpers take top-origin y values (like
the on-screen preview) and convert with _Y().
"""

import io
import base64
import logging

from reportlab.lib.pagesizes import A4
from reportlab.lib.colors import Color, HexColor
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit, ImageReader
from reportlab.pdfgen import canvas
from PIL import Image

from ..core.paths import load_config_file
from .amount_words import format_money
from .pagination import numbered_rows, resolve_config

log = logging.getLogger("quote_gen")

# ═══════════════════════════════════════════════════════════════════════════════
# COLORS
# ═══════════════════════════════════════════════════════════════════════════════
BRAND_GREEN = HexColor("#0f7a3d")
BRAND_BLUE  = HexColor("#1d3f8f")
TOTAL_GREEN = HexColor("#10b981")
TEXT_DARK   = HexColor("#1f2937")
TEXT_MID    = HexColor("#4b5563")
TEXT_LIGHT  = HexColor("#9ca3af")
RULE_GRAY   = HexColor("#e5e7eb")
BOX_BORDER  = HexColor("#d1d5db")
ALT_ROW     = Color(0.953, 0.957, 0.965)
WHITE       = HexColor("#FFFFFF")

WATERMARK_OPACITY = 0.08
PX = 0.75  # CSS px → pt

# ═══════════════════════════════════════════════════════════════════════════════
# COMPANY INFO, overridable by the "company" section of the config file
# ═══════════════════════════════════════════════════════════════════════════════
COMPANY = {
    "name":     "Village Builders",
    "tagline":  "General Constructor & Supplier",
    "lines":    ["3 Avoy Das Lane, Diganta 1",
                 "A-2 (1st Floor) Tikatuli, Dhaka",
                 "Cell: +8801754569378",
                 "Email: shakhawat.village@gmail.com"],
    "signer":   "Shakhawat Hossain",
    "signer_title": "Authorized Signature",
}


def company_info(path: str = None) -> dict:
    info = dict(COMPANY)
    section = load_config_file(path).get("company", {})
    if isinstance(section, dict):
        info.update({k: v for k, v in section.items() if k in COMPANY})
    return info


# ═══════════════════════════════════════════════════════════════════════════════
# PAGE GEOMETRY
# ═══════════════════════════════════════════════════════════════════════════════
W, H = A4
ML = 20 * mm            # left margin
MR = W - 20 * mm        # right edge
UW = MR - ML            # usable width
TOP = 10 * mm
STRIP_Y = 15 * mm       # brand strip baseline (from bottom)

# (label, fraction of usable width, align)
COLS = [
    ("SL",          0.07, "center"),
    ("DESCRIPTION", 0.43, "left"),
    ("UNIT",        0.09, "center"),
    ("QTY",         0.09, "center"),
    ("UNIT PRICE",  0.15, "right"),
    ("TOTAL",       0.17, "right"),
]


def _Y(top_y):
    """Top-origin y → reportlab y."""
    return H - top_y


def _text(c, x, yt, txt, font="Helvetica", size=9, color=TEXT_DARK, align="left"):
    c.setFont(font, size)
    c.setFillColor(color)
    s = str(txt) if txt is not None else ""
    if align == "right":
        c.drawRightString(x, _Y(yt), s)
    elif align == "center":
        c.drawCentredString(x, _Y(yt), s)
    else:
        c.drawString(x, _Y(yt), s)


def _fmt_qty(q) -> str:
    q = float(q or 0)
    return str(int(q)) if q == int(q) else f"{q:g}"


def _fmt_rate(r) -> str:
    return f"{float(r):g}"


# ═══════════════════════════════════════════════════════════════════════════════
# IMAGES: data URIs or raw base64 only, never server paths
# ═══════════════════════════════════════════════════════════════════════════════

def _open_image(src):
    """PIL image for an image field, or None when empty/undecodable.

    Image fields arrive over HTTP, so anything that is not embedded image data
    (a filesystem path, a URL) is refused rather than opened.
    """
    if not src or not isinstance(src, str):
        return None
    try:
        if src.startswith("data:"):
            src = src.split(",", 1)[1]
        raw = base64.b64decode("".join(src.split()), validate=True)
        return Image.open(io.BytesIO(raw))
    except (OSError, ValueError, IndexError) as e:
        log.warning("Image load failed: %s", e)
        return None


def _faded(img, opacity):
    img = img.convert("RGBA")
    alpha = img.getchannel("A").point(lambda a: int(a * opacity))
    img.putalpha(alpha)
    return img


def _draw_image(c, img, x, yt, max_w, max_h):
    """Draw fitted inside max_w × max_h with its top-left at (x, yt). Returns (w, h)."""
    iw, ih = img.size
    scale = min(max_w / iw, max_h / ih)
    dw, dh = iw * scale, ih * scale
    c.drawImage(ImageReader(img), x, _Y(yt) - dh, width=dw, height=dh,
                preserveAspectRatio=True, mask="auto")
    return dw, dh


# ═══════════════════════════════════════════════════════════════════════════════
# PAGE REGIONS
# ═══════════════════════════════════════════════════════════════════════════════

def _draw_watermark(c, doc, company):
    """Faded watermark on every page; falls back to the logo, then to the name."""
    src = doc.watermark_image or doc.logo_image
    width = (doc.watermark_width if doc.watermark_image else 500) * PX
    # vertical position 100 = top of the sheet, 0 = lowest slot
    yt = 36 + H * 0.6 * (100 - doc.watermark_vertical_position) / 100
    img = _open_image(src)
    if img is not None:
        _draw_image(c, _faded(img, WATERMARK_OPACITY), W - width + 28, yt, width, H)
        return
    c.saveState()
    c.setFillAlpha(WATERMARK_OPACITY)
    c.setFillColor(BRAND_GREEN)
    c.setFont("Helvetica-Bold", 54)
    c.translate(W / 2, _Y(min(yt + 200, H - 80)))
    c.rotate(30)
    c.drawCentredString(0, 0, company["name"])
    c.restoreState()


def _draw_letterhead(c, doc, company, logo):
    """First-page header. Returns top-origin y below the header rule."""
    yt = TOP
    logo_h = 40
    if logo is not None:
        _, logo_h = _draw_image(c, logo, ML, yt, doc.logo_width * PX, 70)
    else:
        # text mark
        c.setFillColor(BRAND_GREEN)
        c.circle(ML + 14, _Y(yt + 18), 14, fill=1, stroke=0)
        _text(c, ML + 14, yt + 22, company["name"][:1], "Helvetica-Bold", 14, WHITE, "center")

    scale = (doc.logo_width or 180) / 180
    _text(c, MR, yt + 16 * scale, company["name"], "Helvetica-BoldOblique", 15 * scale,
          BRAND_GREEN, "right")
    _text(c, MR, yt + 28 * scale, company["tagline"].upper(), "Helvetica-Bold", 7 * scale,
          BRAND_BLUE, "right")
    ly = yt + 40 * scale
    for line in company["lines"]:
        _text(c, MR, ly, line, "Helvetica", 8 * scale, TEXT_MID, "right")
        ly += 10 * scale

    bottom = max(yt + logo_h, ly) + 4
    c.setStrokeColor(BRAND_GREEN)
    c.setLineWidth(1)
    c.line(ML, _Y(bottom), MR, _Y(bottom))
    return bottom + 8


def _draw_continuation_header(c, page, company, logo):
    yt = TOP + 4
    x = ML
    if logo is not None:
        w, _ = _draw_image(c, logo, ML, yt, 90, 22)
        x = ML + w + 6
    else:
        _text(c, x, yt + 14, company["name"], "Helvetica-Bold", 11, BRAND_GREEN)
        x += c.stringWidth(company["name"], "Helvetica-Bold", 11) + 6
    _text(c, x, yt + 14, "| CONTINUATION SHEET", "Helvetica", 8, TEXT_LIGHT)
    _text(c, MR, yt + 14, f"Page {page.index + 1}", "Helvetica", 8, TEXT_LIGHT, "right")
    c.setStrokeColor(RULE_GRAY)
    c.setLineWidth(0.5)
    c.line(ML, _Y(yt + 22), MR, _Y(yt + 22))
    return yt + 40


def _draw_recipient_block(c, doc, yt, fs):
    """To/date/subject block on the first page. Returns y below it."""
    top = yt + doc.header_vertical_position
    ay = top + 10 * fs
    if not doc.hide_client_details:
        _text(c, ML, ay, "To,", "Helvetica", 8 * fs, TEXT_LIGHT)
        ay += 13 * fs
        _text(c, ML, ay, doc.to_name, "Helvetica-Bold", 10 * fs)
        ay += 12 * fs
        _text(c, ML, ay, doc.to_company, "Helvetica", 10 * fs)
        ay += 12 * fs
        for line in simpleSplit(doc.to_address, "Helvetica", 8 * fs, UW * 0.45):
            _text(c, ML, ay, line, "Helvetica", 8 * fs, TEXT_MID)
            ay += 10 * fs
    # the date is never hidden
    date_y = max(ay - 10 * fs, top + 10 * fs)
    date_val_w = c.stringWidth(doc.date, "Helvetica", 10 * fs)
    _text(c, MR - date_val_w - 2, date_y, "Date:", "Helvetica-Bold", 10 * fs, TEXT_DARK, "right")
    _text(c, MR, date_y, doc.date, "Helvetica", 10 * fs, TEXT_DARK, "right")

    sy = max(ay, top + 60 * fs) + 14 * fs
    subject = f"Subject: {doc.subject.upper()}"
    _text(c, ML, sy, subject, "Helvetica-Bold", 10 * fs)
    c.setStrokeColor(BOX_BORDER)
    c.setLineWidth(0.5)
    c.line(ML, _Y(sy + 4), ML + c.stringWidth(subject, "Helvetica-Bold", 10 * fs), _Y(sy + 4))
    return sy + 18 * fs


def _col_edges():
    edges, x = [], ML
    for _, frac, _ in COLS:
        edges.append((x, UW * frac))
        x += UW * frac
    return edges


def _draw_item_table(c, page, yt, fs, config):
    """Header row plus one row per item. Returns y below the table."""
    edges = _col_edges()
    hdr_h = 18 * fs
    c.setFillColor(BRAND_BLUE)
    c.roundRect(ML, _Y(yt) - hdr_h, UW, hdr_h, 4, fill=1, stroke=0)
    for (label, _, align), (cx, cw) in zip(COLS, edges):
        tx = cx + 4 if align == "left" else cx + cw / 2 if align == "center" else cx + cw - 4
        _text(c, tx, yt + hdr_h - 6 * fs, label, "Helvetica-Bold", 7.5 * fs, WHITE, align)
    yt += hdr_h

    for row, (serial, item) in enumerate(numbered_rows(page, config)):
        desc_lines = simpleSplit(item.description, "Helvetica-Bold", 8.5 * fs,
                                 edges[1][1] - 8) or [""]
        row_h = max(20 * fs, len(desc_lines) * 10 * fs + 10 * fs)
        if row % 2 == 1:
            c.setFillColor(ALT_ROW)
            c.rect(ML, _Y(yt) - row_h, UW, row_h, fill=1, stroke=0)
        base = yt + 13 * fs
        values = [
            str(serial), None, item.unit, _fmt_qty(item.quantity),
            f"{item.unit_cost:,.2f}", f"{item.line_total():,.2f}",
        ]
        for i, ((_, _, align), (cx, cw)) in enumerate(zip(COLS, edges)):
            if i == 1:
                dy = base
                for dl in desc_lines:
                    _text(c, cx + 4, dy, dl, "Helvetica-Bold", 8.5 * fs, TEXT_DARK)
                    dy += 10 * fs
                continue
            tx = cx + cw / 2 if align == "center" else cx + cw - 4
            font = "Helvetica-Bold" if i == 5 else "Helvetica"
            color = TEXT_LIGHT if i == 0 else TEXT_DARK
            _text(c, tx, base, values[i], font, 8.5 * fs, color, align)
        c.setStrokeColor(RULE_GRAY)
        c.setLineWidth(0.4)
        c.line(ML, _Y(yt + row_h), MR, _Y(yt + row_h))
        yt += row_h
    return yt + 6


def _draw_totals_box(c, doc, totals, x, yt, w, fs):
    """Sub-total, tax rows (only for nonzero rates) and the grand total card."""
    rows = [("Sub-total", format_money(totals["subtotal"]))]
    if doc.vat_rate > 0:
        rows.append((f"VAT ({_fmt_rate(doc.vat_rate)}%)", format_money(totals["vat_amount"])))
    if doc.tax_rate > 0:
        rows.append((f"Tax ({_fmt_rate(doc.tax_rate)}%)", format_money(totals["tax_amount"])))

    row_h = 20 * fs
    words = f"In word: {totals['grand_total_words']} only"
    word_lines = simpleSplit(words, "Helvetica-Oblique", 7.5 * fs, w - 16)
    card_h = 34 * fs + len(word_lines) * 9 * fs
    box_h = len(rows) * row_h + card_h

    c.setStrokeColor(BOX_BORDER)
    c.setLineWidth(0.6)
    c.roundRect(x, _Y(yt) - box_h, w, box_h, 6, fill=0, stroke=1)
    ry = yt
    for label, value in rows:
        _text(c, x + w * 0.55, ry + 13 * fs, label, "Helvetica", 9 * fs, TEXT_MID, "right")
        _text(c, x + w - 8, ry + 13 * fs, value, "Helvetica-Bold", 10 * fs, TEXT_DARK, "right")
        ry += row_h
        c.setStrokeColor(RULE_GRAY)
        c.line(x, _Y(ry), x + w, _Y(ry))

    c.setFillColor(TOTAL_GREEN)
    c.rect(x, _Y(ry) - card_h, w, card_h, fill=1, stroke=0)
    _text(c, x + 8, ry + 18 * fs, "GRAND TOTAL", "Helvetica-Bold", 9.5 * fs, WHITE)
    _text(c, x + w - 8, ry + 20 * fs, format_money(totals["grand_total"], 0),
          "Helvetica-Bold", 16 * fs, WHITE, "right")
    wy = ry + 32 * fs
    for line in word_lines:
        _text(c, x + 8, wy, line, "Helvetica-Oblique", 7.5 * fs, WHITE)
        wy += 9 * fs
    return yt + box_h


def _draw_notes_box(c, doc, x, yt, w, fs):
    lines = []
    for para in doc.notes.strip().splitlines():
        lines.extend(simpleSplit(para, "Helvetica", 7.5 * fs, w - 20) or [""])
    box_h = 30 * fs + len(lines) * 10 * fs
    c.setStrokeColor(BOX_BORDER)
    c.setLineWidth(0.6)
    c.roundRect(x, _Y(yt) - box_h, w, box_h, 6, fill=0, stroke=1)
    _text(c, x + 10, yt + 16 * fs, "TERMS & CONDITIONS", "Helvetica-Bold", 8 * fs)
    ly = yt + 28 * fs
    for line in lines:
        _text(c, x + 10, ly, line, "Helvetica", 7.5 * fs, TEXT_MID)
        ly += 10 * fs
    return yt + box_h + 8


def _draw_signature_block(c, doc, company, x, yt, fs):
    s = fs * doc.signature_block_size / 100
    ty = yt + doc.thank_you_size * PX * s
    _text(c, x, ty, "Thank You", "Helvetica-Bold", doc.thank_you_size * PX * s)
    ty += 6 * s
    sig = _open_image(doc.signature_image)
    if sig is not None:
        _, h = _draw_image(c, sig, x, ty, 140 * s, 48 * s)
        ty += h + 6 * s
    ty += 12 * s
    _text(c, x, ty, company["signer"], "Helvetica-Bold", 11 * s, TEXT_DARK)
    ty += 11 * s
    _text(c, x, ty, company["signer_title"].upper(), "Helvetica-Bold", 7 * s, TEXT_MID)
    ty += 11 * s
    _text(c, x, ty, company["name"], "Helvetica", 7.5 * s, BRAND_BLUE)
    return ty


def _draw_footer(c, doc, totals, company, yt, fs):
    """Notes + signature on the left, totals on the right, split by the box widths."""
    c.setStrokeColor(RULE_GRAY)
    c.setLineWidth(1.2)
    c.line(ML, _Y(yt), MR, _Y(yt))
    yt += 8
    gap = 16
    left_w = (UW - gap) * doc.notes_box_width / 100
    right_w = (UW - gap) * doc.total_box_width / 100
    left_y = yt
    if doc.has_notes:
        left_y = _draw_notes_box(c, doc, ML, yt, left_w, fs)
    _draw_signature_block(c, doc, company, ML, left_y, fs)
    _draw_totals_box(c, doc, totals, ML + left_w + gap, yt, right_w, fs)


def _draw_brand_strip(c, company, logo):
    y = STRIP_Y
    c.setStrokeColor(RULE_GRAY)
    c.setLineWidth(1.2)
    c.line(ML, y + 14, MR, y + 14)
    x = ML
    if logo is not None:
        iw, ih = logo.size
        h = 12
        w = iw * h / ih
        c.drawImage(ImageReader(logo), x, y - 2, width=w, height=h, mask="auto")
        x += w + 5
    else:
        c.setFillColor(BRAND_BLUE)
        c.circle(x + 6, y + 3, 6, fill=1, stroke=0)
        c.setFillColor(WHITE)
        c.setFont("Helvetica-Bold", 6)
        c.drawCentredString(x + 6, y + 1, company["name"][:1])
        x += 17
    c.setFillColor(TEXT_MID)
    c.setFont("Helvetica-Bold", 8)
    c.drawString(x, y, company["name"])
    c.setFillColor(TEXT_LIGHT)
    c.setFont("Helvetica", 8)
    c.drawRightString(MR, y, company["tagline"])


# ═══════════════════════════════════════════════════════════════════════════════
# PUBLIC
# ═══════════════════════════════════════════════════════════════════════════════

def draw_page(c, page, doc, totals, config=None, company=None):
    """Draw one page descriptor on the canvas's current page (no showPage)."""
    config = resolve_config(config)
    company = company or company_info()
    fs = (doc.content_font_scale or 100) / 100
    logo = _open_image(doc.logo_image)

    _draw_watermark(c, doc, company)

    if page.is_first:
        yt = _draw_letterhead(c, doc, company, logo)
        yt = _draw_recipient_block(c, doc, yt, fs)
    else:
        yt = _draw_continuation_header(c, page, company, logo)

    if page.items:
        yt = _draw_item_table(c, page, yt, fs, config)

    if page.shows_footer:
        _draw_footer(c, doc, totals, company, yt, fs)

    _draw_brand_strip(c, company, logo)


def render_page_pdf(page, doc, totals, config=None, company=None) -> bytes:
    """One page descriptor → single-page A4 PDF bytes."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.setTitle(f"Quotation — {doc.subject}")
    c.setAuthor((company or COMPANY)["name"])
    draw_page(c, page, doc, totals, config, company)
    c.showPage()
    c.save()
    return buf.getvalue()
