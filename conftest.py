"""
Shared pytest fixtures for the rental document test suite.

Every test gets an isolated sqlite file and a clean environment: none of the
SMTP / upload worker settings leak in from the developer's shell. Network
edges (image downloads, uploads, SMTP) are replaced with local fakes.
"""
import io
import os
import sys
import pytest

_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from PIL import Image as PILImage

from rental_docs.core import db, settings


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """Point the sqlite store at a fresh file under tmp_path."""
    data = str(tmp_path / "data")
    os.makedirs(data, exist_ok=True)
    monkeypatch.setattr(db, "DB_PATH", os.path.join(data, "rental.db"))
    db.init_db()
    return data


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Unset every registered setting (and its fallback)."""
    for entry in settings._REGISTRY.values():
        monkeypatch.delenv(entry["env"], raising=False)
        if "fallback" in entry:
            monkeypatch.delenv(entry["fallback"], raising=False)


# ── Images ────────────────────────────────────────────────────────────────────

def _png(width=40, height=20, color=(0, 0, 0)) -> bytes:
    buf = io.BytesIO()
    PILImage.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return _png()


class FakeFetcher:
    """Image fetcher that records every URL and answers with a small PNG."""
    def __init__(self, data: bytes):
        self.data = data
        self.calls = []

    def __call__(self, url, timeout):
        self.calls.append((url, timeout))
        return self.data


@pytest.fixture
def fake_fetcher(png_bytes):
    return FakeFetcher(png_bytes)


@pytest.fixture
def renderer(fake_fetcher):
    from rental_docs.forms.renderer import PdfRenderer
    return PdfRenderer(image_fetcher=fake_fetcher, timeout=60, image_timeout=5)


# ── Records ───────────────────────────────────────────────────────────────────

@pytest.fixture
def order_record():
    """Current-schema order: nested billing + metadata bags."""
    return {
        "id": 1001,
        "customer_id": "42",
        "status": "on-hold",
        "billing": {
            "first_name": "Ana",
            "last_name": "Pérez",
            "email": "ana@example.cl",
            "phone": "+56911111111",
            "company": "",
            "address_1": "Av. Italia 1000",
            "city": "Santiago",
        },
        "metadata": {
            "order_proyecto": "Comercial Verano",
            "order_fecha_inicio": "2024-03-01",
            "order_fecha_termino": "2024-03-03",
            "num_jornadas": 3,
        },
        "line_items": [
            {"name": "Cámara A", "price": "10000", "quantity": 2, "sku": "CAM-A"},
        ],
        "coupon_lines": [],
        "shipping_lines": [],
    }


@pytest.fixture
def legacy_order_record():
    """Old-schema order: every field in flat columns."""
    return {
        "id": "1002",
        "customer_id": "auth-uid-xyz",
        "status": "processing",
        "billing_first_name": "Luis",
        "billing_last_name": "Soto",
        "billing_email": "luis@example.cl",
        "billing_phone": "+56922222222",
        "billing_company": "Soto Films",
        "order_proyecto": "Documental",
        "order_fecha_inicio": "10-04-2024",
        "order_fecha_termino": "12-04-2024",
        "num_jornadas": "2",
        "company_rut": "76.543.210-K",
        "coupon_code": "VERANO",
        "calculated_discount": "5000",
        "line_items": [
            {"name": "Lente 50mm", "price": 8000, "quantity": 1},
            {"name": "Trípode", "price": "2000", "quantity": 3},
        ],
    }


@pytest.fixture
def user_data():
    return {
        "user_id": 42,
        "email": "ana@example.cl",
        "nombre": "Ana",
        "apellido": "Pérez",
        "rut": "12.345.678-9",
        "direccion": "Av. Italia 1000",
        "ciudad": "Santiago",
        "pais": "Chile",
        "telefono": "+56911111111",
        "tipo_cliente": "natural",
        "url_firma": "https://cdn.example.cl/firma.png",
        "url_rut_anverso": "https://cdn.example.cl/anverso.png",
        "url_rut_reverso": "https://cdn.example.cl/reverso.png",
        "terminos_aceptados": True,
    }


# ── Distribution fakes ────────────────────────────────────────────────────────

class FakeUploader:
    def __init__(self, url="https://files.example.cl/doc.pdf", error=None):
        self.url = url
        self.error = error
        self.calls = []

    def __call__(self, pdf_bytes, filename, owner_id, document_type, endpoint):
        self.calls.append({"filename": filename, "owner_id": owner_id,
                           "document_type": document_type, "endpoint": endpoint,
                           "size": len(pdf_bytes)})
        if self.error is not None:
            raise self.error
        return self.url


class FakeMail:
    """Stands in for rental_docs.integrations.mailer."""
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send_document_email(self, to, subject, html, attachment, filename, sender=None):
        self.sent.append({"to": to, "subject": subject, "filename": filename})
        if self.error is not None:
            raise self.error
        return {"ok": True, "to": to, "subject": subject}

    def send_quote_email(self, to, customer_name, order_id, project_name,
                         attachment, filename, config=None):
        return self.send_document_email(to, f"quote {order_id}", "", attachment, filename)


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def mail():
    return FakeMail()


@pytest.fixture
def service(renderer, uploader, mail):
    from rental_docs.pipeline import DocumentService
    return DocumentService(renderer=renderer, uploader=uploader, mail=mail,
                           clock=lambda: 1700000000.0)


# ── Flask test client ─────────────────────────────────────────────────────────

@pytest.fixture
def app(service):
    from app import create_app
    _app = create_app(service=service, init_logging=False)
    _app.config["TESTING"] = True
    return _app


@pytest.fixture
def client(app):
    return app.test_client()
