"""Quotation model, totals, pagination and PDF rendering."""
