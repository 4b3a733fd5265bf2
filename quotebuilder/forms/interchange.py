"""
interchange.py — Portable JSON save/load of a quotation

The file is the flat camelCase record produced by QuotationDocument.to_dict(),
pretty-printed with 2-space indentation. Loading is a merge: keys present in
the file replace the current values, everything else is kept.
"""

import re
import json
import logging
from datetime import date

from .document import QuotationDocument, QuotationItem

log = logging.getLogger("quote_gen")


class ImportFormatError(ValueError):
    """Input is not a quotation record. The current document is untouched."""


def export_document(doc) -> str:
    return json.dumps(doc.to_dict(), indent=2)


def export_filename(doc, today=None) -> str:
    """Quotation_<company>_<YYYY-MM-DD>.json"""
    today = today or date.today()
    if not isinstance(today, str):
        today = today.isoformat()
    company = re.sub(r"[^A-Za-z0-9]", "_", doc.to_company or "")
    return f"Quotation_{company}_{today}.json"


def parse_record(text_or_record) -> dict:
    """Text, bytes or an already-decoded dict → validated record."""
    record = text_or_record
    if isinstance(record, (bytes, bytearray)):
        try:
            record = record.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ImportFormatError(f"Failed to read file: {e}") from e
    if isinstance(record, str):
        try:
            record = json.loads(record)
        except json.JSONDecodeError as e:
            raise ImportFormatError(f"Failed to read file: {e}") from e

    if not isinstance(record, dict):
        raise ImportFormatError("Invalid file format: expected a JSON object")
    check_items(record.get("items"))
    return record


def check_items(items):
    """Raise ImportFormatError unless `items` is a list of row objects."""
    if not isinstance(items, list):
        raise ImportFormatError("Invalid file format: 'items' must be a list")
    for row in items:
        if not isinstance(row, dict):
            raise ImportFormatError("Invalid file format: every item must be an object")


def import_document(text_or_record, current=None) -> QuotationDocument:
    """Validated record merged over `current` (or the template)."""
    record = dict(parse_record(text_or_record))
    record["items"] = [QuotationItem.from_dict(row).to_dict() for row in record["items"]]
    base = current if current is not None else QuotationDocument()
    doc = base.merge(record)
    log.info("Imported quotation for %s (%d items)", doc.to_company, len(doc.items))
    return doc
