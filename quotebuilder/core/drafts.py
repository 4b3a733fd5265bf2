"""
drafts.py — Best-effort auto-save of the quotation being edited

One draft slot (DATA_DIR/quotation_draft.json). Saves are debounced: each
schedule() call restarts a timer and only the newest document is written.

When a save hits the storage limit the store degrades instead of failing:
  1. retry without logo and signature images
       → "Storage full. Images not saved in draft."
  2. still failing: drop the slot and stop auto-saving
       → "Storage full. Draft auto-save disabled."
Nothing here raises into the editor.
"""

import os
import json
import logging
import threading

from . import paths

log = logging.getLogger("drafts")

DEBOUNCE_SECONDS = 1.0
DEFAULT_MAX_BYTES = 5_000_000

MSG_IMAGES_DROPPED = "Storage full. Images not saved in draft."
MSG_AUTOSAVE_DISABLED = "Storage full. Draft auto-save disabled."

_STRIPPED_KEYS = ("logoImage", "signatureImage")


class DraftQuotaError(OSError):
    """Serialized draft does not fit in the draft slot."""


class DraftStore:
    """Debounced draft slot with graceful degradation."""

    def __init__(self, path=None, max_bytes=DEFAULT_MAX_BYTES, delay=DEBOUNCE_SECONDS):
        self.path = path or paths.DRAFT_PATH
        self.max_bytes = max_bytes
        self.delay = delay
        self.enabled = True
        self.notifications = []
        self._lock = threading.Lock()
        self._timer = None
        self._pending = None

    # ── Slot I/O ──────────────────────────────────────────────────────────────
    def _write(self, record: dict):
        payload = json.dumps(record)
        size = len(payload.encode("utf-8"))
        if self.max_bytes is not None and size > self.max_bytes:
            raise DraftQuotaError(f"draft is {size} bytes, limit {self.max_bytes}")
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w") as f:
            f.write(payload)
        os.replace(tmp, self.path)

    def _notify(self, level: str, message: str):
        self.notifications.append((level, message))

    def _remove_slot(self):
        for p in (self.path, self.path + ".tmp"):
            try:
                os.remove(p)
            except FileNotFoundError:
                pass
            except OSError as e:
                log.warning("Could not remove draft file %s: %s", p, e)

    # ── Public ────────────────────────────────────────────────────────────────
    def save(self, doc) -> bool:
        """Write the draft now. Returns True when something was stored."""
        if not self.enabled:
            return False
        record = doc.to_dict()
        try:
            self._write(record)
            return True
        except OSError as e:
            log.warning("Draft save failed (%s), retrying without images", e)

        slim = {k: (None if k in _STRIPPED_KEYS else v) for k, v in record.items()}
        try:
            self._write(slim)
            self._notify("warning", MSG_IMAGES_DROPPED)
            return True
        except OSError as e:
            log.error("Draft save failed without images (%s), disabling auto-save", e)

        self._remove_slot()
        self.enabled = False
        self._notify("error", MSG_AUTOSAVE_DISABLED)
        return False

    def schedule(self, doc):
        """Debounced save: the newest document wins once edits pause."""
        if not self.enabled:
            return
        with self._lock:
            self._pending = doc
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool:
        """Save the pending document immediately, if any."""
        with self._lock:
            doc, self._pending = self._pending, None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if doc is None:
            return False
        return self.save(doc)

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def load(self):
        """Stored document, or None when there is no usable draft."""
        from ..forms.document import QuotationDocument
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path) as f:
                record = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("Ignoring unreadable draft %s: %s", self.path, e)
            return None
        if not isinstance(record, dict):
            log.warning("Ignoring draft %s: not a quotation record", self.path)
            return None
        return QuotationDocument.from_dict(record)

    def clear(self):
        """Drop the draft (used by reset). Auto-save stays in its current state."""
        self.cancel()
        self._remove_slot()

    def drain_notifications(self) -> list:
        out, self.notifications = self.notifications, []
        return out
