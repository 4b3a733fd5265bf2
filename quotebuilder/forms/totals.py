"""
totals.py — Subtotal, VAT, tax and grand total for a quotation

Recomputed from the item list on every render; nothing here is cached.
The grand total is rounded to whole currency units before it is displayed
or spelled out, so the figure and its "In word:" line always agree.
"""

from decimal import Decimal, ROUND_HALF_UP

from .amount_words import amount_to_words


def _qty_cost(item):
    """(quantity, unit_cost) from a QuotationItem or a plain dict."""
    if isinstance(item, dict):
        qty = item.get("quantity", item.get("qty", 0))
        cost = item.get("unit_cost", item.get("unitCost", 0))
    else:
        qty, cost = item.quantity, item.unit_cost
    return float(qty or 0), float(cost or 0)


def line_total(item) -> float:
    qty, cost = _qty_cost(item)
    return qty * cost


def round_whole(value: float) -> int:
    """Half-up rounding to whole units (Python's round() is banker's)."""
    return int(Decimal(repr(float(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_totals(items, vat_rate=0, tax_rate=0) -> dict:
    """
    Returns:
        {"subtotal", "vat_amount", "tax_amount", "grand_total",
         "grand_total_words", "has_tax", "vat_rate", "tax_rate"}
    """
    vat_rate = float(vat_rate or 0)
    tax_rate = float(tax_rate or 0)

    subtotal = 0.0
    for item in items or []:
        subtotal += line_total(item)

    vat_amount = subtotal * (vat_rate / 100) if vat_rate else 0.0
    tax_amount = subtotal * (tax_rate / 100) if tax_rate else 0.0
    grand_total = round_whole(subtotal + vat_amount + tax_amount)

    return {
        "subtotal": subtotal,
        "vat_rate": vat_rate,
        "tax_rate": tax_rate,
        "vat_amount": vat_amount,
        "tax_amount": tax_amount,
        "grand_total": grand_total,
        "grand_total_words": amount_to_words(grand_total),
        "has_tax": vat_rate > 0 or tax_rate > 0,
    }


def totals_for_document(doc) -> dict:
    return compute_totals(doc.items, doc.vat_rate, doc.tax_rate)
