"""
session.py — The quotation currently being edited

QuoteSession is the single owner of the live document. Every edit swaps in a
whole new QuotationDocument under a lock and schedules a draft save; readers
always see a complete document, never a half-applied edit.

AI fill and PDF export each run through their own SingleFlightTask so a
second click while one is in flight is rejected, not queued.
"""

import logging
import threading

from .drafts import DraftStore
from .tasks import SingleFlightTask
from ..forms.document import QuotationDocument, default_document, new_item
from ..forms import interchange
from ..forms.pagination import paginate_document, describe_pages, resolve_config
from ..forms.totals import totals_for_document

log = logging.getLogger("quote_gen")


class QuoteSession:

    def __init__(self, drafts: DraftStore = None, config=None, restore: bool = True):
        self.drafts = drafts if drafts is not None else DraftStore()
        self.config = resolve_config(config)
        self._lock = threading.RLock()
        self.autofill_task = SingleFlightTask("autofill")
        self.export_task = SingleFlightTask("export")

        doc = self.drafts.load() if restore else None
        if doc is not None:
            log.info("Restored draft for %s (%d items)", doc.to_company, len(doc.items))
        self._doc = doc or default_document()

    # ── Read ──────────────────────────────────────────────────────────────────
    @property
    def document(self) -> QuotationDocument:
        with self._lock:
            return self._doc

    def totals(self) -> dict:
        return totals_for_document(self.document)

    def pages(self) -> list:
        return paginate_document(self.document, self.config)

    def page_summary(self) -> list:
        return describe_pages(self.pages(), self.config)

    # ── Write ─────────────────────────────────────────────────────────────────
    def _swap(self, doc: QuotationDocument) -> QuotationDocument:
        with self._lock:
            self._doc = doc
        self.drafts.schedule(doc)
        return doc

    def replace(self, doc: QuotationDocument) -> QuotationDocument:
        return self._swap(doc)

    def update(self, record: dict) -> QuotationDocument:
        """Field-wise edit from a (partial) record."""
        with self._lock:
            return self._swap(self._doc.merge(record))

    def add_item(self, **fields) -> QuotationDocument:
        with self._lock:
            items = list(self._doc.items) + [new_item(**fields)]
            return self._swap(self._doc.replace(items=items))

    def remove_item(self, item_id: str) -> QuotationDocument:
        with self._lock:
            items = [it for it in self._doc.items if it.id != item_id]
            return self._swap(self._doc.replace(items=items))

    def set_notes_box_width(self, value) -> QuotationDocument:
        with self._lock:
            return self._swap(self._doc.with_notes_box_width(value))

    def set_total_box_width(self, value) -> QuotationDocument:
        with self._lock:
            return self._swap(self._doc.with_total_box_width(value))

    def reset(self) -> QuotationDocument:
        """Template values, branding images kept, draft slot cleared."""
        with self._lock:
            doc = self._doc.reset(preserve_branding=True)
            self._doc = doc
        self.drafts.clear()
        log.info("Quotation reset to template")
        return doc

    def import_json(self, text_or_record) -> QuotationDocument:
        """Raises interchange.ImportFormatError without touching the document."""
        with self._lock:
            doc = interchange.import_document(text_or_record, self._doc)
            return self._swap(doc)

    def export_json(self) -> tuple:
        """(filename, json_text)"""
        doc = self.document
        return interchange.export_filename(doc), interchange.export_document(doc)

    # ── Single-flight side effects ────────────────────────────────────────────
    def autofill(self, prompt: str) -> QuotationDocument:
        """AI fill. The document changes only if the call succeeds."""
        from ..agents.autofill import request_autofill, apply_autofill
        response = self.autofill_task.run(request_autofill, prompt)
        with self._lock:
            return self._swap(apply_autofill(self._doc, response))

    def export_pdf(self, output_path=None) -> dict:
        from ..forms.pdf_export import export_pdf
        return self.export_task.run(export_pdf, self.document, output_path, self.config)

    def status(self) -> dict:
        return {
            "autofill": self.autofill_task.status(),
            "export": self.export_task.status(),
            "draft_autosave": self.drafts.enabled,
            "notifications": list(self.drafts.notifications),
        }

    def take_notifications(self) -> list:
        """Pending draft notices; each is handed out once."""
        return self.drafts.drain_notifications()
