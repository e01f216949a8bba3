"""
tests/test_documents.py — layout assemblers for quote, contract, processing
and the standalone customer contract.

Assertions walk the layout tree (iter_text / image_urls); no PDF is rendered.
"""
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from rental_docs.core.business import BusinessConfig, DEFAULT_CONFIG
from rental_docs.forms import legal_text, sections
from rental_docs.forms.documents import (
    BUILDERS, CONTRACT, USER_CONTRACT, assemble_order_document, build_contract,
    build_processing, build_quote, build_user_contract,
)
from rental_docs.forms.layout import (
    Image, Spacer, Table, Text, image_urls, iter_nodes, iter_text,
)
from rental_docs.forms.normalizer import normalize_order, normalize_user_contract

ISSUED = date(2024, 2, 20)


def texts(document):
    return list(iter_text(document))


def _data(record, profile=None):
    class Directory:
        def find_by_user_id(self, user_id):
            return profile

        def find_by_auth_uid(self, auth_uid):
            return profile
    return normalize_order(record, Directory())


# ─── Quote ───────────────────────────────────────────────────────────────────

class TestQuote:

    def test_title_and_single_page(self, order_record):
        doc = build_quote(_data(order_record), issued_on=ISSUED)
        assert doc.title == "Presupuesto #1001"
        assert len(doc.pages) == 1
        assert doc.pages[0].footer == \
            "Presupuesto generado con Rental Mario Hans • www.mariohans.cl"

    def test_header_lines(self, order_record):
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert "Fecha: 20-02-2024" in t
        assert "Estado: En Espera" in t

    def test_notice_no_annex(self, order_record):
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert legal_text.NOTICE_TITLE in t
        assert not any(s.startswith("ANEXO") for s in t)

    def test_no_signatures(self, order_record):
        doc = build_quote(_data(order_record), issued_on=ISSUED)
        assert DEFAULT_CONFIG.signatory.signature_url not in image_urls(doc)

    def test_summary_values(self, order_record):
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        for expected in ("SUBTOTAL PRODUCTOS", "$60.000", "IVA (19%)", "$11.400",
                         "TOTAL", "$71.400", "RESERVA 25% (Anticipo)", "$17.850",
                         "Saldo Pendiente (75%)", "$53.550"):
            assert expected in t

    def test_items_table_rows(self, order_record):
        doc = build_quote(_data(order_record), issued_on=ISSUED)
        table = next(n for n in iter_nodes(doc) if isinstance(n, Table))
        assert table.rows[0].cells == ("Cámara A", "$10.000", "2", "3",
                                       "$60.000", "$11.400", "$71.400")


# ─── Conditional rows ────────────────────────────────────────────────────────

class TestConditionalRows:

    def test_no_discount_rows_without_discount(self, order_record):
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert not any(s.startswith("DESCUENTO") for s in t)
        assert "SUBTOTAL CON DESCUENTO" not in t

    def test_coupon_rows(self, legacy_order_record):
        t = texts(build_quote(_data(legacy_order_record), issued_on=ISSUED))
        assert "DESCUENTO CUPÓN (VERANO)" in t
        assert "-$5.000" in t
        assert "SUBTOTAL CON DESCUENTO" in t
        assert "$23.000" in t

    def test_discount_without_code(self, order_record):
        order_record["metadata"]["calculated_discount"] = "10000"
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert "DESCUENTO" in t
        assert "$59.500" in t

    def test_delivery_row_when_charged(self, order_record):
        order_record["shipping_lines"] = [
            {"method_id": "flat_rate", "method_title": "Despacho", "total": "5000"}]
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert "DELIVERY (Despacho)" in t
        assert "$5.000" in t

    def test_no_delivery_row_when_free(self, order_record):
        order_record["shipping_lines"] = [
            {"method_id": "flat_rate", "method_title": "Despacho", "total": "0"}]
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert not any(s.startswith("DELIVERY") for s in t)


# ─── Additional info column ──────────────────────────────────────────────────

class TestAdditionalInfo:

    def test_placeholder(self, order_record):
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert legal_text.NO_ADDITIONAL_INFO in t

    def test_pickup_contact_wins_over_shipping(self, order_record):
        order_record["metadata"]["order_retire_name"] = "Pedro Rojas"
        order_record["shipping_lines"] = [{
            "method_id": "flat_rate", "method_title": "Despacho", "total": "0",
            "meta_data": [{"key": "shipping_address", "value": "Los Leones 123"}],
        }]
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert "Retira:" in t
        assert "Pedro Rojas" in t
        assert "Método de Entrega:" not in t
        assert "Los Leones 123" not in t
        assert legal_text.NO_ADDITIONAL_INFO not in t

    def test_shipping_block(self, order_record):
        order_record["shipping_lines"] = [{
            "method_id": "flat_rate", "method_title": "Despacho", "total": "0",
            "meta_data": [{"key": "shipping_address", "value": "Los Leones 123"}],
        }]
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert "Envío a domicilio" in t
        assert "Los Leones 123" in t
        assert "Retira:" not in t

    def test_comments(self, order_record):
        order_record["metadata"]["order_comments"] = "Entregar antes de las 9"
        t = texts(build_quote(_data(order_record), issued_on=ISSUED))
        assert "Entregar antes de las 9" in t
        assert legal_text.NO_ADDITIONAL_INFO not in t

    def test_long_comment_moves_below_boxes(self, order_record):
        comment = "Entregar en set norte, llamar antes. " * 120
        order_record["metadata"]["order_comments"] = comment
        nodes = sections.info_columns(_data(order_record))
        row = nodes[0]
        boxed = list(iter_text(row))
        assert comment not in boxed
        assert legal_text.COMMENTS_BELOW in boxed
        assert comment in [n.text for n in nodes[1:] if isinstance(n, Text)]

    def test_short_comment_stays_in_box(self, order_record):
        order_record["metadata"]["order_comments"] = "Entregar antes de las 9"
        nodes = sections.info_columns(_data(order_record))
        assert "Entregar antes de las 9" in list(iter_text(nodes[0]))
        assert legal_text.COMMENTS_BELOW not in list(iter_text(nodes[0]))

    def test_company_rows(self, legacy_order_record):
        t = texts(build_quote(_data(legacy_order_record), issued_on=ISSUED))
        assert "Soto Films" in t
        assert "76.543.210-K" in t


# ─── Contract / processing ───────────────────────────────────────────────────

class TestContract:

    def test_annex_and_status(self, order_record):
        t = texts(build_contract(_data(order_record), issued_on=ISSUED))
        assert "Estado: En Espera" in t
        assert "ANEXO, Pedido #1001" in t
        assert legal_text.NOTICE_TITLE not in t

    def test_annex_value_sentence_uses_totals(self, legacy_order_record):
        t = texts(build_contract(_data(legacy_order_record), issued_on=ISSUED))
        joined = " ".join(t)
        assert "$23.000" in joined
        assert "$4.370" in joined      # IVA of the discounted subtotal

    def test_customer_without_profile(self, order_record):
        doc = build_contract(_data(order_record), issued_on=ISSUED)
        t = texts(doc)
        assert "Sin RUT" in t
        assert "Ana Pérez" in t
        assert DEFAULT_CONFIG.signatory.signature_url in image_urls(doc)
        sig_spacers = [n for n in iter_nodes(doc) if isinstance(n, Spacer) and n.height == 50]
        assert sig_spacers

    def test_customer_with_profile(self, order_record):
        profile = {"rut": "12.345.678-9", "url_firma": "https://cdn.example.cl/firma.png"}
        doc = build_contract(_data(order_record, profile), issued_on=ISSUED)
        assert "12.345.678-9" in texts(doc)
        assert "Sin RUT" not in texts(doc)
        assert "https://cdn.example.cl/firma.png" in image_urls(doc)

    def test_company_representation(self, legacy_order_record):
        t = texts(build_contract(_data(legacy_order_record), issued_on=ISSUED))
        assert t.count("EN REPRESENTACIÓN DE") == 2

    def test_lessor_company_tax_id_not_in_signature(self, order_record):
        t = texts(build_contract(_data(order_record), issued_on=ISSUED))
        assert DEFAULT_CONFIG.company.tax_id not in t


class TestProcessing:

    def test_title_no_status(self, order_record):
        doc = build_processing(_data(order_record), issued_on=ISSUED)
        t = texts(doc)
        assert doc.title == "Pedido #1001"
        assert not any(s.startswith("Estado:") for s in t)
        assert "ANEXO, Pedido #1001" in t
        assert legal_text.PROCESSING_ANNEX.lead in t

    def test_lessor_company_tax_id(self, order_record):
        t = texts(build_processing(_data(order_record), issued_on=ISSUED))
        assert DEFAULT_CONFIG.company.tax_id in t

    def test_footer(self, order_record):
        doc = build_processing(_data(order_record), issued_on=ISSUED)
        assert doc.pages[0].footer.startswith("Pedido generado con")


# ─── Shared properties ───────────────────────────────────────────────────────

class TestAssemblerProperties:

    @pytest.mark.parametrize("kind", ["quote", "contract", "processing"])
    def test_idempotent(self, order_record, kind):
        a = BUILDERS[kind](_data(order_record), issued_on=ISSUED)
        b = BUILDERS[kind](_data(order_record), issued_on=ISSUED)
        assert a == b

    def test_injected_config(self, order_record):
        config = BusinessConfig(tax_rate=Decimal("0.10"))
        doc = build_quote(_data(order_record), config, issued_on=ISSUED)
        t = texts(doc)
        assert "IVA (10%)" in t
        assert "IVA 10%" in t
        assert "$66.000" in t

    def test_company_block(self, order_record):
        doc = build_quote(_data(order_record), issued_on=ISSUED)
        t = texts(doc)
        assert DEFAULT_CONFIG.company.display_name in t
        assert DEFAULT_CONFIG.company.account_number in t
        assert DEFAULT_CONFIG.company.bank_logo_url in image_urls(doc)

    def test_customer_keyed_variant_rejected(self, order_record):
        with pytest.raises(ValueError):
            assemble_order_document(_data(order_record), USER_CONTRACT)


# ─── Standalone contract ─────────────────────────────────────────────────────

class TestUserContract:

    def _doc(self, user_data):
        return build_user_contract(normalize_user_contract(user_data, now=1700000000.5),
                                   issued_on=ISSUED)

    def test_six_pages_with_footer(self, user_data):
        doc = self._doc(user_data)
        assert len(doc.pages) == 6
        for page in doc.pages:
            assert page.footer.endswith("Usuario ID: 42")

    def test_title(self, user_data):
        assert self._doc(user_data).title == "Contrato de Arriendo N° 42-000500"

    def test_cover(self, user_data):
        t = texts(self._doc(user_data).pages[0])
        assert "N° 42-000500" in t
        assert "20-02-2024" in t
        assert legal_text.CONTRACT_HEADING in t
        assert "Persona Natural" in t

    def test_clauses_then_signatures(self, user_data):
        doc = self._doc(user_data)
        assert "CLÁUSULAS" in texts(doc.pages[1])
        last_clause_page = texts(doc.pages[4])
        assert "FIRMAS" in last_clause_page
        assert "ARRENDATARIO" in last_clause_page
        assert "https://cdn.example.cl/firma.png" in image_urls(doc.pages[4])

    def test_notices_email_substituted(self, user_data):
        joined = " ".join(texts(self._doc(user_data)))
        assert "ana@example.cl" in joined
        assert "{" not in joined

    def test_attachments_page(self, user_data):
        page = self._doc(user_data).pages[5]
        urls = image_urls(page)
        assert "https://cdn.example.cl/anverso.png" in urls
        assert "https://cdn.example.cl/reverso.png" in urls
        assert legal_text.TERMS_ACCEPTED in texts(page)

    def test_attachment_images_height_capped(self, user_data):
        page = self._doc(user_data).pages[5]
        attachments = [n for n in iter_nodes(page)
                       if isinstance(n, Image) and n.url.endswith(("anverso.png", "reverso.png"))]
        assert attachments
        assert all(n.max_height == 150 for n in attachments)

    def test_pending_signature_and_terms(self, user_data):
        for key in ("url_firma", "url_rut_anverso", "url_rut_reverso"):
            del user_data[key]
        user_data["terminos_aceptados"] = False
        doc = self._doc(user_data)
        t = texts(doc)
        assert "Firma Pendiente" in t
        assert legal_text.NO_ATTACHMENTS in t
        assert legal_text.TERMS_PENDING in t

    def test_company_customer(self, user_data):
        user_data.update(tipo_cliente="empresa", empresa_nombre="Ana Films SpA",
                         empresa_rut="76.000.000-1")
        t = texts(self._doc(user_data))
        assert "Ana Films SpA" in t
        assert "RUT Empresa:" in t
        assert "Empresa" in t

    def test_idempotent(self, user_data):
        assert self._doc(user_data) == self._doc(user_data)

    def test_signatures_follow_descriptor(self, user_data):
        contract = normalize_user_contract(user_data, now=1700000000.5)
        unsigned = replace(USER_CONTRACT, signatures="none")
        assert "FIRMAS" in texts(self._doc(user_data))
        assert "FIRMAS" not in texts(build_user_contract(contract, issued_on=ISSUED,
                                                         variant=unsigned))

    @pytest.mark.parametrize("variant", [CONTRACT, replace(USER_CONTRACT, closing="annex")])
    def test_rejects_non_customer_variant(self, user_data, variant):
        contract = normalize_user_contract(user_data, now=1700000000.5)
        with pytest.raises(ValueError):
            build_user_contract(contract, variant=variant)

    def test_images_are_declared(self, user_data):
        doc = self._doc(user_data)
        assert all(isinstance(n.url, str) and n.url
                   for n in iter_nodes(doc) if isinstance(n, Image))
