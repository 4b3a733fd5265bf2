# Quotation editor routes
# Registered by app.create_app(); the live QuoteSession is app.extensions["quote_session"]

import os
import logging
import functools

from flask import Blueprint, Response, current_app, jsonify, request, send_file

from ..agents.autofill import AutofillError
from ..core.tasks import TaskBusyError
from ..forms.interchange import ImportFormatError, check_items
from ..forms.pdf_export import ExportError, export_filename
from ..core import paths

log = logging.getLogger("quotebuilder.api")

bp = Blueprint("quote", __name__)


# ═══════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════

def check_auth(username, password):
    return (username == os.environ.get("QB_USER", "quote")
            and password == os.environ.get("QB_PASS", "changeme"))


def auth_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        auth = request.authorization
        if not auth or not check_auth(auth.username, auth.password):
            return Response(
                "Quotation Builder — Login Required",
                401, {"WWW-Authenticate": 'Basic realm="Quotation Builder"'})
        return f(*args, **kwargs)
    return decorated


def _session():
    return current_app.extensions["quote_session"]


def _error(message, status):
    return jsonify({"ok": False, "error": message}), status


def _doc_response(doc, **extra):
    body = {"ok": True, "quote": doc.to_dict()}
    body.update(extra)
    return jsonify(body)


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


# ═══════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/health")
def health():
    return jsonify({"ok": True, "status": _session().status()})


@bp.route("/api/quote", methods=["GET"])
@auth_required
def get_quote():
    s = _session()
    notices = [{"level": level, "message": msg} for level, msg in s.take_notifications()]
    return _doc_response(s.document, notifications=notices)


@bp.route("/api/quote", methods=["PUT"])
@auth_required
def update_quote():
    data = _json_body()
    if data is None:
        return _error("JSON object body required", 400)
    if "items" in data:
        try:
            check_items(data["items"])
        except ImportFormatError as e:
            return _error(str(e), 400)
    doc = _session().update(data)
    return _doc_response(doc)


@bp.route("/api/quote/items", methods=["POST"])
@auth_required
def add_item():
    data = _json_body() or {}
    fields = {k: data[k] for k in ("description", "unit", "quantity") if k in data}
    if "unitCost" in data or "unit_cost" in data:
        fields["unit_cost"] = data.get("unitCost", data.get("unit_cost"))
    return _doc_response(_session().add_item(**fields))


@bp.route("/api/quote/items/<item_id>", methods=["DELETE"])
@auth_required
def remove_item(item_id):
    return _doc_response(_session().remove_item(item_id))


@bp.route("/api/quote/reset", methods=["POST"])
@auth_required
def reset_quote():
    return _doc_response(_session().reset())


@bp.route("/api/quote/layout/widths", methods=["PUT"])
@auth_required
def set_widths():
    data = _json_body()
    if not data:
        return _error("notesBoxWidth or totalBoxWidth required", 400)
    s = _session()
    try:
        if "notesBoxWidth" in data:
            doc = s.set_notes_box_width(float(data["notesBoxWidth"]))
        elif "totalBoxWidth" in data:
            doc = s.set_total_box_width(float(data["totalBoxWidth"]))
        else:
            return _error("notesBoxWidth or totalBoxWidth required", 400)
    except (TypeError, ValueError):
        return _error("width must be a number", 400)
    return jsonify({"ok": True, "notesBoxWidth": doc.notes_box_width,
                    "totalBoxWidth": doc.total_box_width})


@bp.route("/api/quote/totals")
@auth_required
def get_totals():
    return jsonify({"ok": True, "totals": _session().totals()})


@bp.route("/api/quote/pages")
@auth_required
def get_pages():
    pages = _session().page_summary()
    return jsonify({"ok": True, "page_count": len(pages), "pages": pages})


@bp.route("/api/quote/export")
@auth_required
def export_json():
    filename, text = _session().export_json()
    return Response(text, mimetype="application/json",
                    headers={"Content-Disposition": f'attachment; filename="{filename}"'})


@bp.route("/api/quote/import", methods=["POST"])
@auth_required
def import_json():
    upload = request.files.get("file")
    payload = upload.read() if upload else request.get_data()
    try:
        doc = _session().import_json(payload)
    except ImportFormatError as e:
        log.warning("Import rejected: %s", e)
        return _error(str(e), 400)
    return _doc_response(doc, message="Quotation loaded successfully!")


@bp.route("/api/quote/autofill", methods=["POST"])
@auth_required
def autofill():
    data = _json_body() or {}
    prompt = (data.get("prompt") or "").strip()
    if not prompt:
        return _error("prompt required", 400)
    try:
        doc = _session().autofill(prompt)
    except TaskBusyError as e:
        return _error(str(e), 409)
    except AutofillError as e:
        log.warning("Autofill failed: %s", e)
        return _error("AI Generation failed. Please check your API key or try a different prompt.", 502)
    return _doc_response(doc, message="Magic Fill completed!")


@bp.route("/api/quote/pdf")
@auth_required
def download_pdf():
    s = _session()
    path = os.path.join(paths.OUTPUT_DIR, export_filename(s.document))
    try:
        result = s.export_pdf(path)
    except TaskBusyError as e:
        return _error(str(e), 409)
    except ExportError:
        return _error("Failed to generate PDF. Please try again.", 500)
    if request.args.get("inline") == "0":
        return jsonify(result)
    return send_file(result["path"], mimetype="application/pdf",
                     as_attachment=True, download_name=os.path.basename(result["path"]))

