"""
Shared pytest fixtures for the quotation builder test suite.

Every test gets its own DATA_DIR (drafts, logs, generated PDFs) and an absent
config file, so nothing leaks between tests or from the developer's machine.
"""
import os
import base64
import pytest

from quotebuilder.core import paths
from quotebuilder.core.drafts import DraftStore
from quotebuilder.core.layout_config import PaginationConfig
from quotebuilder.core.session import QuoteSession
from quotebuilder.forms.document import QuotationDocument, QuotationItem


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """Redirect data/output/log dirs and the config file to a tmp directory."""
    data = str(tmp_path / "data")
    for d in ("output", "logs"):
        os.makedirs(os.path.join(data, d), exist_ok=True)

    monkeypatch.setattr(paths, "DATA_DIR", data)
    monkeypatch.setattr(paths, "OUTPUT_DIR", os.path.join(data, "output"))
    monkeypatch.setattr(paths, "LOG_DIR", os.path.join(data, "logs"))
    monkeypatch.setattr(paths, "DRAFT_PATH", os.path.join(data, "quotation_draft.json"))
    monkeypatch.setattr(paths, "CONFIG_PATH", str(tmp_path / "quotebuilder_config.json"))

    for var in ("QB_ITEMS_PER_FIRST_PAGE", "QB_ITEMS_PER_PAGE",
                "ANTHROPIC_API_KEY", "QB_AUTOFILL_MODEL"):
        monkeypatch.delenv(var, raising=False)
    return data


# ── Sample data factories ─────────────────────────────────────────────────────

def make_items(n, cost=100):
    """n simple rows with predictable ids item-1..item-n."""
    return [QuotationItem(description=f"Work item {i}", unit="L/S",
                          quantity=1, unit_cost=cost, id=f"item-{i}")
            for i in range(1, n + 1)]


@pytest.fixture
def config():
    """Default pagination settings (12/15 caps, 10/13 thresholds)."""
    return PaginationConfig().validate()


@pytest.fixture
def sample_doc():
    """Two-row quotation with VAT and short notes."""
    return QuotationDocument(
        to_name="Site Engineer",
        to_company="Acme Builders Ltd",
        to_address="House 12, Road 4, Dhaka",
        date="2026-03-01",
        subject="Quotation for boundary wall",
        items=[
            QuotationItem("Brick work", "M3", 10, 4500, id="a1"),
            QuotationItem("Plaster work", "Sqft", 200, 35.5, id="a2"),
        ],
        notes="1. Payment: 50% advance.",
        vat_rate=15,
    )


@pytest.fixture
def long_doc():
    """Factory: quotation with n rows and the given notes."""
    def _make(n, notes="", signature_spacing=0):
        return QuotationDocument(items=make_items(n), notes=notes,
                                 signature_spacing=signature_spacing)
    return _make


@pytest.fixture
def drafts(temp_data_dir):
    """Draft store with a short debounce."""
    return DraftStore(path=os.path.join(temp_data_dir, "quotation_draft.json"), delay=0.05)


@pytest.fixture
def session(drafts, config):
    return QuoteSession(drafts=drafts, config=config)


# ── Flask test client ─────────────────────────────────────────────────────────

def _basic_auth_header(user="quote", pw="changeme"):
    creds = base64.b64encode(f"{user}:{pw}".encode()).decode()
    return {"Authorization": f"Basic {creds}"}


class AuthenticatedClient:
    """Wraps Flask test client to add Basic Auth headers to every request."""
    def __init__(self, client, headers):
        self._client = client
        self._headers = headers

    def get(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.get(*args, **kwargs)

    def post(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.post(*args, **kwargs)

    def put(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.put(*args, **kwargs)

    def delete(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.delete(*args, **kwargs)


@pytest.fixture
def app(session, monkeypatch):
    """Create Flask app configured for testing."""
    monkeypatch.setenv("QB_USER", "quote")
    monkeypatch.setenv("QB_PASS", "changeme")

    from app import create_app
    flask_app = create_app(session=session)
    flask_app.config["TESTING"] = True
    yield flask_app
    session.drafts.cancel()


@pytest.fixture
def client(app):
    """Authenticated Flask test client (HTTP Basic Auth on every request)."""
    with app.test_client() as c:
        yield AuthenticatedClient(c, _basic_auth_header())


@pytest.fixture
def anon_client(app):
    """Unauthenticated test client."""
    with app.test_client() as c:
        yield c
