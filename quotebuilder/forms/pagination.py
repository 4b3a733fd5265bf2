"""
pagination.py — Split quotation rows across fixed A4 page slots

Pages are discrete slots, not flowing text:

  1. CHUNK   first page takes up to items_per_first_page rows, every later
             page up to items_per_page, until the rows run out. An empty
             quotation still gets one (empty) first page.
  2. FIT     only the last chunk is inspected. If it holds MORE rows than the
             fit threshold for its kind, the footer cannot share the page and
             an empty footer-only page is appended. A chunk exactly at the
             threshold fits.
  3. FOOTER  totals, notes and signature render on the final descriptor only.

Fit thresholds shrink with long notes and grow with the signature spacing
slider; see fit_capacities().
"""

import math
import logging

from ..core.layout_config import PaginationConfig, load_pagination_config

log = logging.getLogger("pagination")

KIND_FIRST = "first"
KIND_STANDARD = "standard"
KIND_FOOTER_ONLY = "footer-only"
PAGE_KINDS = (KIND_FIRST, KIND_STANDARD, KIND_FOOTER_ONLY)


class PageDescriptor:
    """One output page: its kind, its rows and its position."""

    __slots__ = ("kind", "items", "index", "page_count")

    def __init__(self, kind, items, index, page_count=None):
        if kind not in PAGE_KINDS:
            raise ValueError(f"unknown page kind: {kind!r}")
        self.kind = kind
        self.items = list(items)
        self.index = index
        self.page_count = page_count

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.page_count is not None and self.index == self.page_count - 1

    @property
    def shows_footer(self) -> bool:
        return self.is_last

    def start_offset(self, config: PaginationConfig) -> int:
        """Rows printed on all earlier pages."""
        return page_start_offset(self.index, config)

    def __repr__(self):
        return f"PageDescriptor(kind={self.kind!r}, items={len(self.items)}, index={self.index})"


def resolve_config(config):
    return config if config is not None else load_pagination_config()


def page_start_offset(page_index: int, config: PaginationConfig) -> int:
    if page_index <= 0:
        return 0
    return config.items_per_first_page + (page_index - 1) * config.items_per_page


def global_serial(page_index: int, position: int, config: PaginationConfig = None) -> int:
    """1-based serial number of the row at `position` on page `page_index`."""
    return page_start_offset(page_index, resolve_config(config)) + position + 1


def chunk_items(items, config: PaginationConfig = None) -> list:
    """Chunk rows by the chunking caps. Always returns at least one descriptor."""
    config = resolve_config(config)
    rows = list(items or [])
    pages = [PageDescriptor(KIND_FIRST, rows[:config.items_per_first_page], 0)]
    pos = config.items_per_first_page
    while pos < len(rows):
        chunk = rows[pos:pos + config.items_per_page]
        pages.append(PageDescriptor(KIND_STANDARD, chunk, len(pages)))
        pos += config.items_per_page
    return pages


def notes_penalty(notes: str, config: PaginationConfig) -> int:
    """Rows displaced by the notes box: estimated lines // lines-per-row."""
    if not notes or not notes.strip():
        return 0
    lines = math.ceil(len(notes) / config.notes_chars_per_line)
    return lines // config.notes_lines_per_item


def spacing_bonus(signature_spacing, config: PaginationConfig) -> int:
    """Rows gained from the signature spacing slider (0–12)."""
    steps = max(0, int(signature_spacing or 0))
    return steps // config.spacing_steps_per_item


def fit_capacities(config: PaginationConfig = None, notes: str = "",
                   signature_spacing=0) -> tuple:
    """(first_page_capacity, standard_page_capacity) for rows sharing a page with the footer."""
    config = resolve_config(config)
    adjust = spacing_bonus(signature_spacing, config) - notes_penalty(notes, config)
    first = max(0, config.base_first_page_capacity + adjust)
    standard = max(0, config.base_standard_page_capacity + adjust)
    return first, standard


def allocate_pages(items, config: PaginationConfig = None, notes: str = "",
                   signature_spacing=0) -> list:
    """
    Ordered page descriptors for a quotation.

    Every row appears exactly once, in order. The final descriptor carries
    the footer; it is an empty footer-only page when the last chunk is too
    full to share its page with the footer.
    """
    config = resolve_config(config)
    pages = chunk_items(items, config)

    first_cap, standard_cap = fit_capacities(config, notes, signature_spacing)
    last = pages[-1]
    capacity = first_cap if last.kind == KIND_FIRST else standard_cap
    if len(last.items) > capacity:
        pages.append(PageDescriptor(KIND_FOOTER_ONLY, [], len(pages)))

    for page in pages:
        page.page_count = len(pages)

    log.debug("Paginated %d rows → %d pages (fit first=%d standard=%d, last=%s)",
              len(items or []), len(pages), first_cap, standard_cap, pages[-1].kind)
    return pages


def paginate_document(doc, config: PaginationConfig = None) -> list:
    return allocate_pages(doc.items, config, doc.notes, doc.signature_spacing)


def numbered_rows(page: PageDescriptor, config: PaginationConfig = None) -> list:
    """[(serial, item)] for the rows on one page."""
    config = resolve_config(config)
    start = page.start_offset(config)
    return [(start + pos + 1, item) for pos, item in enumerate(page.items)]


def describe_pages(pages, config: PaginationConfig = None) -> list:
    """JSON-friendly summary of a pagination result."""
    config = resolve_config(config)
    summary = []
    for page in pages:
        rows = numbered_rows(page, config)
        summary.append({
            "index": page.index,
            "kind": page.kind,
            "items": len(page.items),
            "item_ids": [getattr(it, "id", None) for it in page.items],
            "first_serial": rows[0][0] if rows else None,
            "last_serial": rows[-1][0] if rows else None,
            "shows_footer": page.shows_footer,
        })
    return summary
