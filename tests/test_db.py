"""
tests/test_db.py — sqlite store: orders, document URLs, customer profiles.
"""
import pytest

from rental_docs.core import db


@pytest.fixture
def order():
    return {"id": 1001, "customer_id": "42", "status": "on-hold",
            "billing": {"email": "ana@example.cl"}}


class TestOrders:

    def test_roundtrip(self, order):
        assert db.upsert_order(order)
        assert db.get_order(1001) == order

    def test_missing(self):
        assert db.get_order(9999) is None

    def test_upsert_keeps_document_urls(self, order):
        db.upsert_order(order)
        db.set_contract_url(1001, "https://f/c.pdf")
        order["status"] = "processing"
        db.upsert_order(order)
        assert db.get_order(1001)["status"] == "processing"
        assert db.get_document_urls(1001)["url_contrato"] == "https://f/c.pdf"

    def test_stats(self, order):
        db.upsert_order(order)
        assert db.get_db_stats() == {"orders": 1, "user_profiles": 0}


class TestQuoteHistory:

    def test_append(self, order):
        db.upsert_order(order)
        assert db.append_quote_url(1001, "https://f/1.pdf") == "https://f/1.pdf"
        assert db.append_quote_url(1001, "https://f/2.pdf") == "https://f/1.pdf,https://f/2.pdf"

    def test_repeat_is_noop(self, order):
        db.upsert_order(order)
        db.append_quote_url(1001, "https://f/1.pdf")
        assert db.append_quote_url(1001, "https://f/1.pdf") == "https://f/1.pdf"

    def test_earlier_urls_never_dropped(self, order):
        db.upsert_order(order)
        for url in ("a", "b", "a", "c"):
            db.append_quote_url(1001, url)
        assert db.get_document_urls(1001)["new_pdf_on_hold_url"] == "a,b,c"

    def test_unknown_order(self):
        assert db.append_quote_url(9999, "https://f/1.pdf") is None


class TestOverwrittenUrls:

    def test_contract_overwrites(self, order):
        db.upsert_order(order)
        db.set_contract_url(1001, "one")
        assert db.set_contract_url(1001, "two")
        assert db.get_document_urls(1001)["url_contrato"] == "two"

    def test_processing(self, order):
        db.upsert_order(order)
        assert db.set_processing_url(1001, "p")
        assert db.get_document_urls(1001)["new_pdf_processing_url"] == "p"

    def test_unknown_order(self):
        assert db.set_processing_url(9999, "p") is False


class TestProfiles:

    def test_lookup_by_id_and_uid(self):
        db.upsert_user_profile({"user_id": 42, "auth_uid": "uid-1", "rut": "1-9"})
        assert db.find_profile_by_user_id(42)["rut"] == "1-9"
        assert db.find_profile_by_auth_uid("uid-1")["user_id"] == 42
        assert db.find_profile_by_auth_uid("nope") is None

    def test_empty_fields_do_not_overwrite(self):
        db.upsert_user_profile({"user_id": 42, "nombre": "Ana", "rut": "1-9"})
        db.upsert_user_profile({"user_id": 42, "nombre": "", "ciudad": "Santiago"})
        profile = db.find_profile_by_user_id(42)
        assert profile["nombre"] == "Ana"
        assert profile["ciudad"] == "Santiago"

    def test_update_user_contract(self):
        assert db.update_user_contract(42, "https://f/c.pdf", {"email": "ana@example.cl"})
        profile = db.find_profile_by_user_id(42)
        assert profile["url_user_contrato"] == "https://f/c.pdf"
        assert profile["email"] == "ana@example.cl"

    def test_directory(self):
        db.upsert_user_profile({"user_id": 7, "auth_uid": "u7"})
        directory = db.ProfileDirectory()
        assert directory.find_by_user_id(7)["auth_uid"] == "u7"
        assert directory.find_by_auth_uid("u7")["user_id"] == 7
