"""
tests/test_normalizer.py — order/customer records → canonical document data.

Every fallback chain is exercised in both directions: the structured field
wins when present, the flat legacy column is used when it is not.
"""
import copy
from decimal import Decimal

import pytest

from rental_docs.core.errors import ValidationError
from rental_docs.forms.normalizer import (
    ORDER_FIELDS, lookup_customer, normalize_order, normalize_user_contract,
    order_field,
)


class FakeDirectory:
    def __init__(self, by_id=None, by_uid=None):
        self.by_id = by_id or {}
        self.by_uid = by_uid or {}
        self.calls = []

    def find_by_user_id(self, user_id):
        self.calls.append(("id", user_id))
        return self.by_id.get(user_id)

    def find_by_auth_uid(self, auth_uid):
        self.calls.append(("uid", auth_uid))
        return self.by_uid.get(auth_uid)


PROFILE = {"rut": "12.345.678-9", "url_firma": "https://cdn.example.cl/firma.png"}


# ─── Current schema ──────────────────────────────────────────────────────────

class TestCurrentSchema:

    def test_billing_and_project(self, order_record):
        data = normalize_order(order_record)
        assert data.document_id == 1001
        assert data.billing.full_name == "Ana Pérez"
        assert data.billing.email == "ana@example.cl"
        assert data.billing.address == "Av. Italia 1000"
        assert data.project.name == "Comercial Verano"
        assert data.project.start_date == "01-03-2024"
        assert data.project.end_date == "03-03-2024"
        assert data.project.day_count == 3

    def test_totals_recomputed(self, order_record):
        order_record["metadata"]["calculated_total"] = "1"
        data = normalize_order(order_record)
        assert data.totals.total == 71400
        assert data.totals.deposit == 17850

    def test_status_translated(self, order_record):
        assert normalize_order(order_record).status == "En Espera"

    def test_no_coupon_no_shipping(self, order_record):
        data = normalize_order(order_record)
        assert data.coupon is None
        assert data.shipping is None

    def test_line_items(self, order_record):
        item = normalize_order(order_record).line_items[0]
        assert item.name == "Cámara A"
        assert item.unit_price == Decimal("10000")
        assert item.quantity == 2
        assert item.sku == "CAM-A"


# ─── Legacy schema ───────────────────────────────────────────────────────────

class TestLegacySchema:

    def test_flat_billing(self, legacy_order_record):
        data = normalize_order(legacy_order_record)
        assert data.billing.full_name == "Luis Soto"
        assert data.billing.email == "luis@example.cl"
        assert data.billing.company_name == "Soto Films"

    def test_flat_project(self, legacy_order_record):
        data = normalize_order(legacy_order_record)
        assert data.project.name == "Documental"
        assert data.project.start_date == "10-04-2024"
        assert data.project.day_count == 2
        assert data.project.company_tax_id == "76.543.210-K"

    def test_flat_coupon_and_discount(self, legacy_order_record):
        data = normalize_order(legacy_order_record)
        assert data.coupon.code == "VERANO"
        assert data.coupon.discount_amount == 5000
        assert data.totals.subtotal == 28000
        assert data.totals.discounted_subtotal == 23000

    def test_string_id(self, legacy_order_record):
        assert normalize_order(legacy_order_record).document_id == 1002

    def test_status(self, legacy_order_record):
        assert normalize_order(legacy_order_record).status == "En Proceso"


# ─── Fallback chains ─────────────────────────────────────────────────────────

class TestFallbackChains:

    @pytest.mark.parametrize("name", sorted(n for n in ORDER_FIELDS
                                            if n.startswith(("billing.", "project."))))
    def test_structured_beats_flat(self, name):
        structured, legacy = ORDER_FIELDS[name][0].__name__, ORDER_FIELDS[name][1].__name__
        record = {}
        head, _, leaf = structured.partition(".")
        record[head] = {leaf: "nuevo"}
        record[legacy] = "viejo"
        assert order_field(record, name) == "nuevo"

    @pytest.mark.parametrize("name", sorted(n for n in ORDER_FIELDS
                                            if n.startswith(("billing.", "project."))))
    def test_empty_structured_falls_through(self, name):
        structured, legacy = ORDER_FIELDS[name][0].__name__, ORDER_FIELDS[name][1].__name__
        head, _, leaf = structured.partition(".")
        record = {head: {leaf: ""}, legacy: "viejo"}
        assert order_field(record, name) == "viejo"

    def test_defaults(self):
        assert order_field({}, "project.name") == "Proyecto de Arriendo"
        assert order_field({}, "project.day_count") == "1"
        assert order_field({}, "status") == "on-hold"

    def test_missing_day_count_defaults_to_one(self, order_record):
        del order_record["metadata"]["num_jornadas"]
        assert normalize_order(order_record).project.day_count == 1

    def test_coupon_lines_beat_flat_code(self, order_record):
        order_record["coupon_lines"] = [{"code": "NUEVO", "discount": "1000"}]
        order_record["coupon_code"] = "VIEJO"
        data = normalize_order(order_record)
        assert data.coupon.code == "NUEVO"
        assert data.coupon.discount_amount == 1000

    def test_stored_discount_beats_coupon_lines(self, order_record):
        order_record["coupon_lines"] = [{"code": "X", "discount": "1000"}]
        order_record["metadata"]["calculated_discount"] = "3000"
        assert normalize_order(order_record).coupon.discount_amount == 3000

    def test_discount_without_code(self, order_record):
        order_record["metadata"]["calculated_discount"] = "3000"
        coupon = normalize_order(order_record).coupon
        assert coupon.code == ""
        assert coupon.discount_amount == 3000


# ─── Shipping ────────────────────────────────────────────────────────────────

class TestShipping:

    def test_pickup_method(self, order_record):
        order_record["shipping_lines"] = [
            {"method_id": "pickup", "method_title": "Retiro en tienda", "total": "0"}]
        shipping = normalize_order(order_record).shipping
        assert shipping.is_pickup
        assert shipping.total == 0
        assert shipping.method_label == "Retiro en tienda"

    def test_delivery_meta(self, order_record):
        order_record["shipping_lines"] = [{
            "method_id": "flat_rate", "method_title": "Despacho", "total": "5000",
            "meta_data": [
                {"key": "delivery_method", "value": "shipping"},
                {"key": "shipping_address", "value": "Los Leones 123"},
                {"key": "shipping_phone", "value": "+56933333333"},
            ],
        }]
        shipping = normalize_order(order_record).shipping
        assert not shipping.is_pickup
        assert shipping.total == 5000
        assert shipping.shipping_address == "Los Leones 123"
        assert shipping.shipping_phone == "+56933333333"

    def test_method_id_when_no_title(self, order_record):
        order_record["shipping_lines"] = [{"method_id": "flat_rate", "total": "0"}]
        assert normalize_order(order_record).shipping.method_label == "flat_rate"

    def test_shipping_not_added_to_total(self, order_record):
        order_record["shipping_lines"] = [{"method_id": "flat_rate", "total": "5000"}]
        assert normalize_order(order_record).totals.total == 71400


# ─── Customer lookup ─────────────────────────────────────────────────────────

class TestCustomerLookup:

    def test_numeric_id_first(self, order_record):
        directory = FakeDirectory(by_id={42: PROFILE})
        data = normalize_order(order_record, directory)
        assert directory.calls == [("id", 42)]
        assert data.billing.tax_id == "12.345.678-9"
        assert data.counterparty_signature_url == "https://cdn.example.cl/firma.png"

    def test_auth_uid_when_not_numeric(self, legacy_order_record):
        directory = FakeDirectory(by_uid={"auth-uid-xyz": PROFILE})
        data = normalize_order(legacy_order_record, directory)
        assert directory.calls == [("uid", "auth-uid-xyz")]
        assert data.billing.tax_id == "12.345.678-9"

    def test_auth_uid_when_numeric_misses(self):
        directory = FakeDirectory(by_uid={"42": PROFILE})
        assert lookup_customer(directory, "42") == PROFILE
        assert directory.calls == [("id", 42), ("uid", "42")]

    def test_no_profile(self, order_record):
        data = normalize_order(order_record, FakeDirectory())
        assert data.billing.tax_id == ""
        assert data.counterparty_signature_url == ""

    def test_no_directory(self):
        assert lookup_customer(None, "42") == {}


# ─── Rejected records ────────────────────────────────────────────────────────

class TestRejectedOrders:

    def test_missing_id(self, order_record):
        del order_record["id"]
        with pytest.raises(ValidationError):
            normalize_order(order_record)

    def test_non_numeric_id(self, order_record):
        order_record["id"] = "abc"
        with pytest.raises(ValidationError):
            normalize_order(order_record)

    @pytest.mark.parametrize("days", ["dos", 0, "-1"])
    def test_bad_day_count(self, order_record, days):
        order_record["metadata"]["num_jornadas"] = days
        with pytest.raises(ValidationError):
            normalize_order(order_record)

    def test_item_without_name(self, order_record):
        order_record["line_items"].append({"price": 100, "quantity": 1})
        with pytest.raises(ValidationError):
            normalize_order(order_record)

    def test_negative_price(self, order_record):
        order_record["line_items"][0]["price"] = "-10"
        with pytest.raises(ValidationError):
            normalize_order(order_record)

    def test_discount_above_subtotal(self, order_record):
        order_record["metadata"]["calculated_discount"] = "999999"
        with pytest.raises(ValidationError):
            normalize_order(order_record)

    def test_input_not_mutated(self, order_record):
        before = copy.deepcopy(order_record)
        normalize_order(order_record)
        assert order_record == before


# ─── Standalone contract ─────────────────────────────────────────────────────

class TestUserContract:

    def test_fields(self, user_data):
        contract = normalize_user_contract(user_data, now=1700000000.5)
        assert contract.user_id == 42
        assert contract.contract_number == "42-000500"
        assert contract.full_name == "Ana Pérez"
        assert contract.country == "Chile"
        assert not contract.is_company
        assert contract.terms_accepted
        assert contract.has_attachments

    def test_company(self, user_data):
        user_data.update(tipo_cliente="empresa", empresa_nombre="Ana Films SpA",
                         empresa_rut="76.000.000-1")
        contract = normalize_user_contract(user_data)
        assert contract.is_company
        assert contract.company_name == "Ana Films SpA"

    def test_company_registration_fallback(self, user_data):
        user_data["url_empresa_erut"] = "https://cdn.example.cl/old.pdf"
        assert normalize_user_contract(user_data).company_registration_url == \
            "https://cdn.example.cl/old.pdf"
        user_data["new_url_e_rut_empresa"] = "https://cdn.example.cl/new.pdf"
        assert normalize_user_contract(user_data).company_registration_url == \
            "https://cdn.example.cl/new.pdf"

    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("1", True), ("false", False), ("", False), (None, False), (1, True),
    ])
    def test_terms_flag(self, user_data, raw, expected):
        user_data["terminos_aceptados"] = raw
        assert normalize_user_contract(user_data).terms_accepted is expected

    @pytest.mark.parametrize("missing", ["user_id", "email"])
    def test_required(self, user_data, missing):
        del user_data[missing]
        with pytest.raises(ValidationError) as exc:
            normalize_user_contract(user_data)
        assert exc.value.message == "userData con user_id y email son requeridos"
