"""
autofill.py — "Magic Fill": draft a quotation from a one-line request

    "Renovation of a 2,000 sqft office, 15% VAT"
        → recipient, subject, priced line items, VAT/tax rates, numbered notes

Flow:
  request_autofill(prompt)   Claude Messages API over requests → parsed JSON
  apply_autofill(doc, data)  new document; current items kept when the
                             response has none, every new item gets a fresh id
  autofill_document(...)     both of the above

Any failure raises AutofillError and leaves the caller's document as it was.

Config: ANTHROPIC_API_KEY, QB_AUTOFILL_MODEL, or the "autofill" section of
quotebuilder_config.json ({"model": ..., "max_tokens": ..., "timeout": ...}).
"""

import os
import re
import json
import logging

import requests

from ..core.paths import load_config_file
from ..forms.document import QuotationItem

log = logging.getLogger("autofill")

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TIMEOUT = 30

# Keys the model is asked to produce (interchange spelling)
RESPONSE_KEYS = ("toName", "toCompany", "toAddress", "subject",
                 "items", "vatRate", "taxRate", "notes")


class AutofillError(Exception):
    """The AI service failed or answered with something unusable."""


_SYSTEM = """You prepare construction and service quotations.
Given a short request, return ONE JSON object with these keys:
  toName, toCompany, toAddress, subject (strings),
  items: list of {description, unit, quantity, unitCost}
         unit is e.g. M3, Sqft, L/S, Pcs,
  vatRate: VAT percentage if mentioned (15 for 15%),
  taxRate: Tax/AIT percentage if mentioned,
  notes: conditions numbered 1, 2, 3... separated by newlines.
Use realistic quantities and market rates. Keep descriptions professional.
Leave out keys you have no information for.
Respond in JSON only. No markdown, no explanation."""


def _settings() -> dict:
    cfg = load_config_file().get("autofill") or {}
    return {
        "api_key": os.environ.get("ANTHROPIC_API_KEY", ""),
        "model": os.environ.get("QB_AUTOFILL_MODEL") or cfg.get("model") or DEFAULT_MODEL,
        "max_tokens": int(cfg.get("max_tokens", DEFAULT_MAX_TOKENS)),
        "timeout": float(cfg.get("timeout", DEFAULT_TIMEOUT)),
    }


def _call_llm(prompt: str) -> str:
    """Raw text of the model's reply."""
    s = _settings()
    if not s["api_key"]:
        raise AutofillError("ANTHROPIC_API_KEY is not set")

    try:
        resp = requests.post(
            API_URL,
            headers={
                "x-api-key": s["api_key"],
                "anthropic-version": API_VERSION,
                "content-type": "application/json",
            },
            json={
                "model": s["model"],
                "max_tokens": s["max_tokens"],
                "system": _SYSTEM,
                "messages": [{"role": "user", "content":
                              f'Generate a realistic quotation for this request: "{prompt}"'}],
            },
            timeout=s["timeout"],
        )
        resp.raise_for_status()
        data = resp.json()
        return data["content"][0]["text"]
    except requests.RequestException as e:
        raise AutofillError(f"AI service request failed: {e}") from e
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise AutofillError(f"Unexpected AI service response: {e}") from e


def parse_response(text: str) -> dict:
    """Strip markdown fences and decode; must be a JSON object."""
    text = (text or "").strip()
    if text.startswith("```"):
        text = re.sub(r'^```\w*\n?', '', text)
        text = re.sub(r'\n?```$', '', text)
    try:
        data = json.loads(text or "{}")
    except json.JSONDecodeError as e:
        raise AutofillError(f"AI returned non-JSON: {e}") from e
    if not isinstance(data, dict):
        raise AutofillError("AI returned JSON that is not an object")
    items = data.get("items")
    if items is not None and not isinstance(items, list):
        raise AutofillError("AI returned 'items' that is not a list")
    return data


def request_autofill(prompt: str) -> dict:
    prompt = (prompt or "").strip()
    if not prompt:
        raise AutofillError("prompt is empty")
    log.info("Autofill request (%d chars)", len(prompt))
    data = parse_response(_call_llm(prompt))
    log.info("Autofill response: %d items, keys=%s",
             len(data.get("items") or []), ",".join(sorted(data)))
    return data


def apply_autofill(doc, response: dict):
    """New document with the AI fields laid over `doc`."""
    changes = {k: v for k, v in (response or {}).items() if k in RESPONSE_KEYS and v is not None}

    rows = [r for r in (changes.pop("items", None) or []) if isinstance(r, dict)]
    if rows:
        changes["items"] = [QuotationItem.from_dict(r, fresh_id=True).to_dict() for r in rows]

    return doc.merge(changes)


def autofill_document(doc, prompt: str):
    return apply_autofill(doc, request_autofill(prompt))
