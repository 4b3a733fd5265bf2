"""
document.py — Quotation data model

QuotationDocument is the aggregate root: recipient fields, the ordered item
list, notes, two tax rates, branding/signature assets and layout controls.
Every edit produces a new document (replace / merge / reset); nothing patches
a shared instance in place.

The notes box and totals box widths are complementary percentages. They are
only ever written together through set_notes_box_width / set_total_box_width.
"""

import uuid
import logging
from datetime import date

log = logging.getLogger("quote_gen")

# ═══════════════════════════════════════════════════════════════════════════════
# LIMITS (editor slider ranges)
# ═══════════════════════════════════════════════════════════════════════════════
BOX_WIDTH_MIN = 30
BOX_WIDTH_MAX = 70
SIGNATURE_SPACING_MAX = 12

IMAGE_FIELDS = ("logo_image", "signature_image", "watermark_image")

# Interchange keys (camelCase) → model attributes
_KEY_ALIASES = {
    "toName": "to_name",
    "toCompany": "to_company",
    "toAddress": "to_address",
    "vatRate": "vat_rate",
    "taxRate": "tax_rate",
    "hideClientDetails": "hide_client_details",
    "logoImage": "logo_image",
    "logoWidth": "logo_width",
    "watermarkImage": "watermark_image",
    "watermarkWidth": "watermark_width",
    "watermarkVerticalPosition": "watermark_vertical_position",
    "signatureImage": "signature_image",
    "signatureSpacing": "signature_spacing",
    "signatureBlockSize": "signature_block_size",
    "thankYouSize": "thank_you_size",
    "notesBoxWidth": "notes_box_width",
    "totalBoxWidth": "total_box_width",
    "contentFontScale": "content_font_scale",
    "headerVerticalPosition": "header_vertical_position",
    "unitCost": "unit_cost",
}
_ATTR_TO_KEY = {v: k for k, v in _KEY_ALIASES.items()}


def new_item_id() -> str:
    """Opaque unique token for a line item."""
    return uuid.uuid4().hex[:9]


def _num(value, default=0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int(value, default=0) -> int:
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return default


def _image(value):
    """Image fields hold a data URI / base64 string or nothing."""
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("ascii", "ignore")
    return value if isinstance(value, str) and value.strip() else None


def _canonical(record: dict) -> dict:
    """camelCase interchange keys → snake_case attribute names."""
    return {_KEY_ALIASES.get(k, k): v for k, v in (record or {}).items()}


# ═══════════════════════════════════════════════════════════════════════════════
# LINE ITEM
# ═══════════════════════════════════════════════════════════════════════════════

class QuotationItem:
    """One row of the quotation table. Line total is always derived."""

    __slots__ = ("id", "description", "unit", "quantity", "unit_cost")

    def __init__(self, description="", unit="L/S", quantity=1, unit_cost=0.0, id=None):
        self.id = str(id) if id else new_item_id()
        self.description = str(description or "")
        self.unit = str(unit or "")
        self.quantity = max(0.0, _num(quantity))
        self.unit_cost = max(0.0, _num(unit_cost))

    def line_total(self) -> float:
        return self.quantity * self.unit_cost

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "unit": self.unit,
            "quantity": self.quantity,
            "unitCost": self.unit_cost,
        }

    @classmethod
    def from_dict(cls, record: dict, fresh_id: bool = False) -> "QuotationItem":
        d = _canonical(record)
        return cls(
            description=d.get("description", ""),
            unit=d.get("unit", "L/S"),
            quantity=d.get("quantity", 1),
            unit_cost=d.get("unit_cost", 0),
            id=None if fresh_id else d.get("id"),
        )

    def __eq__(self, other):
        return isinstance(other, QuotationItem) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"QuotationItem(id={self.id!r}, description={self.description[:30]!r}, "
                f"quantity={self.quantity}, unit_cost={self.unit_cost})")


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT
# ═══════════════════════════════════════════════════════════════════════════════

def _template() -> dict:
    return {
        "to_name": "Project Manager",
        "to_company": "Shimizu Corporation",
        "to_address": "Dhaka, Bangladesh",
        "date": date.today().isoformat(),
        "subject": "QUOTATION FOR SITE OFFICE RENOVATION",
        "items": [
            {"id": "1", "description": "Excavation Work and Back Filling",
             "unit": "M3", "quantity": 1, "unit_cost": 90090},
            {"id": "2", "description": "Floor Finishing Work",
             "unit": "L/S", "quantity": 1, "unit_cost": 24000},
        ],
        "notes": ("1. Payment terms: 50% advance, 50% upon completion.\n"
                  "2. Validity: 15 days from date of issue."),
        "vat_rate": 0,
        "tax_rate": 0,
        "hide_client_details": False,
        "logo_image": None,
        "logo_width": 160,
        "watermark_image": None,
        "watermark_width": 500,
        "watermark_vertical_position": 50,
        "signature_image": None,
        "signature_spacing": 0,
        "signature_block_size": 100,
        "thank_you_size": 16,
        "notes_box_width": 50,
        "total_box_width": 50,
        "content_font_scale": 100,
        "header_vertical_position": 0,
    }


FIELDS = tuple(k for k in _template() if k not in ("notes_box_width", "total_box_width"))


class QuotationDocument:
    """The full quotation being edited."""

    def __init__(self, **values):
        base = _template()
        base.update(_canonical(values))
        self.to_name = str(base["to_name"] or "")
        self.to_company = str(base["to_company"] or "")
        self.to_address = str(base["to_address"] or "")
        self.date = str(base["date"] or "")
        self.subject = str(base["subject"] or "")
        self.items = [QuotationItem.from_dict(it.to_dict() if isinstance(it, QuotationItem) else it)
                      for it in (base["items"] or [])]
        self.notes = str(base["notes"] or "")
        self.vat_rate = max(0.0, _num(base["vat_rate"]))
        self.tax_rate = max(0.0, _num(base["tax_rate"]))
        self.hide_client_details = bool(base["hide_client_details"])
        self.logo_image = _image(base["logo_image"])
        self.logo_width = _int(base["logo_width"], 160)
        self.watermark_image = _image(base["watermark_image"])
        self.watermark_width = _int(base["watermark_width"], 500)
        self.watermark_vertical_position = min(100, max(0, _int(base["watermark_vertical_position"], 50)))
        self.signature_image = _image(base["signature_image"])
        self.signature_spacing = min(SIGNATURE_SPACING_MAX, max(0, _int(base["signature_spacing"])))
        self.signature_block_size = _int(base["signature_block_size"], 100)
        self.thank_you_size = _int(base["thank_you_size"], 16)
        self.content_font_scale = _int(base["content_font_scale"], 100)
        self.header_vertical_position = _int(base["header_vertical_position"])

        # Widths: notes wins when both are supplied and disagree
        if "notes_box_width" in values or "notesBoxWidth" in values:
            self.set_notes_box_width(base["notes_box_width"])
        else:
            self.set_total_box_width(base["total_box_width"])

    # ── Complementary widths ──────────────────────────────────────────────────
    def set_notes_box_width(self, value):
        notes = min(BOX_WIDTH_MAX, max(BOX_WIDTH_MIN, _int(value, 50)))
        self.notes_box_width, self.total_box_width = notes, 100 - notes

    def set_total_box_width(self, value):
        total = min(BOX_WIDTH_MAX, max(BOX_WIDTH_MIN, _int(value, 50)))
        self.notes_box_width, self.total_box_width = 100 - total, total

    def with_notes_box_width(self, value) -> "QuotationDocument":
        doc = self.copy()
        doc.set_notes_box_width(value)
        return doc

    def with_total_box_width(self, value) -> "QuotationDocument":
        doc = self.copy()
        doc.set_total_box_width(value)
        return doc

    # ── Derived ───────────────────────────────────────────────────────────────
    @property
    def has_notes(self) -> bool:
        return bool(self.notes.strip())

    # ── Full-document replacement ─────────────────────────────────────────────
    def copy(self) -> "QuotationDocument":
        return QuotationDocument.from_dict(self.to_dict())

    def replace(self, **changes) -> "QuotationDocument":
        """New document with the given fields changed."""
        record = self.to_dict()
        record.update({_ATTR_TO_KEY.get(k, k): v for k, v in changes.items()})
        if "total_box_width" in changes and "notes_box_width" not in changes:
            record.pop("notesBoxWidth", None)
        return QuotationDocument.from_dict(record)

    def merge(self, record: dict) -> "QuotationDocument":
        """Overlay present keys of a partial record; absent keys keep current values."""
        incoming = _canonical(record)
        known = {k: v for k, v in incoming.items()
                 if k in FIELDS or k in ("notes_box_width", "total_box_width")}
        ignored = set(incoming) - set(known)
        if ignored:
            log.debug("merge ignored unknown keys: %s", ", ".join(sorted(ignored)))
        return self.replace(**known)

    def reset(self, preserve_branding: bool = True) -> "QuotationDocument":
        """Back to the template. Branding images (and their sizing) survive when asked."""
        doc = default_document()
        if not preserve_branding:
            return doc
        keep = {name: getattr(self, name) for name in IMAGE_FIELDS}
        if self.logo_image:
            keep["logo_width"] = self.logo_width
        if self.watermark_image:
            keep["watermark_width"] = self.watermark_width
            keep["watermark_vertical_position"] = self.watermark_vertical_position
        return doc.replace(**keep)

    # ── Serialization ─────────────────────────────────────────────────────────
    def to_dict(self) -> dict:
        record = {}
        for attr in FIELDS:
            value = getattr(self, attr)
            if attr == "items":
                value = [it.to_dict() for it in value]
            record[_ATTR_TO_KEY.get(attr, attr)] = value
        record["notesBoxWidth"] = self.notes_box_width
        record["totalBoxWidth"] = self.total_box_width
        return record

    @classmethod
    def from_dict(cls, record: dict) -> "QuotationDocument":
        return cls(**(record or {}))

    def __eq__(self, other):
        return isinstance(other, QuotationDocument) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"QuotationDocument(to_company={self.to_company!r}, "
                f"items={len(self.items)}, vat={self.vat_rate}, tax={self.tax_rate})")


def default_document() -> QuotationDocument:
    """Built-in starting template."""
    return QuotationDocument()


def new_item(description="", unit="L/S", quantity=1, unit_cost=0.0) -> QuotationItem:
    """Blank row as added by the editor's "+ item" button."""
    return QuotationItem(description=description, unit=unit,
                         quantity=quantity, unit_cost=unit_cost)
