"""
Order / customer record → canonical document data.

Several historical schema versions coexist in the orders table: the same
fact may live in a nested bag (`metadata.order_proyecto`, `billing.email`)
or in a flat legacy column (`order_proyecto`, `billing_email`). Each logical
field below is an explicit, ordered tuple of accessors. The first accessor
that yields a present value (not None, not "") wins; otherwise the default.
Dropping an accessor blanks real data on old records, so every chain is
covered by tests.
"""

import logging
from decimal import Decimal

from ..core.business import BusinessConfig, DEFAULT_CONFIG
from ..core.errors import ValidationError
from .calculations import to_decimal
from .formatting import format_date_ddmmyyyy, status_label, contract_number
from .models import (
    BillingParty, CouponInfo, DocumentData, LineItem, ProjectInfo,
    ShippingInfo, StandaloneContractData,
)

log = logging.getLogger("rental.normalizer")


# ═══════════════════════════════════════════════════════════════════════════════
# ACCESSORS
# ═══════════════════════════════════════════════════════════════════════════════

def _present(value) -> bool:
    return value is not None and value != ""


def _step(current, key):
    if isinstance(current, dict):
        return current.get(key)
    if isinstance(current, list):
        # WooCommerce meta_data: [{"key": ..., "value": ...}]
        if isinstance(key, int):
            return current[key] if -len(current) <= key < len(current) else None
        for entry in current:
            if isinstance(entry, dict) and entry.get("key") == key:
                return entry.get("value")
    return None


def nested(*path):
    """Accessor for a nested field: nested("metadata", "order_proyecto")."""
    def get(record):
        current = record
        for key in path:
            current = _step(current, key)
            if current is None:
                return None
        return current
    get.__name__ = ".".join(str(p) for p in path)
    return get


def flat(key: str):
    """Accessor for a flat legacy column."""
    return nested(key)


def resolve(record: dict, accessors, default=None):
    """Return the first present value produced by `accessors`, else `default`."""
    for accessor in accessors:
        value = accessor(record)
        if _present(value):
            return value
    return default


def _billing(field_name: str):
    return (nested("billing", field_name), flat(f"billing_{field_name}"))


def _meta(field_name: str):
    return (nested("metadata", field_name), flat(field_name))


# Ordered fallback chains: structured field first, flat legacy field second.
ORDER_FIELDS = {
    "billing.first_name":  _billing("first_name"),
    "billing.last_name":   _billing("last_name"),
    "billing.email":       _billing("email"),
    "billing.phone":       _billing("phone"),
    "billing.company":     _billing("company"),
    "billing.address":     _billing("address_1"),
    "billing.city":        _billing("city"),
    "project.name":        _meta("order_proyecto"),
    "project.start_date":  _meta("order_fecha_inicio"),
    "project.end_date":    _meta("order_fecha_termino"),
    "project.day_count":   _meta("num_jornadas"),
    "project.company_rut": _meta("company_rut"),
    "project.retire_name": _meta("order_retire_name"),
    "project.retire_phone": _meta("order_retire_phone"),
    "project.retire_rut":  _meta("order_retire_rut"),
    "project.comments":    _meta("order_comments"),
    "discount":            _meta("calculated_discount"),
    "coupon.code":         (nested("coupon_lines", 0, "code"), flat("coupon_code")),
    "shipping.method":     (nested("shipping_lines", 0, "method_title"),
                            nested("shipping_lines", 0, "method_id")),
    "shipping.delivery_method": (nested("shipping_lines", 0, "meta_data", "delivery_method"),),
    "shipping.address":    (nested("shipping_lines", 0, "meta_data", "shipping_address"),),
    "shipping.phone":      (nested("shipping_lines", 0, "meta_data", "shipping_phone"),),
    "status":              (flat("status"),),
}

ORDER_DEFAULTS = {
    "project.name": "Proyecto de Arriendo",
    "project.day_count": "1",
    "discount": None,
    "shipping.method": "Delivery",
    "status": "on-hold",
}


def order_field(record: dict, name: str):
    return resolve(record, ORDER_FIELDS[name], ORDER_DEFAULTS.get(name, ""))


def _text(value) -> str:
    return "" if value is None else str(value).strip()


# ═══════════════════════════════════════════════════════════════════════════════
# CUSTOMER LOOKUP
# ═══════════════════════════════════════════════════════════════════════════════

def lookup_customer(directory, customer_id) -> dict:
    """Find the customer's profile: numeric user id first, then auth uid.

    Returns {} when neither lookup finds a profile or no directory is given.
    """
    if directory is None or not _present(customer_id):
        return {}
    profile = None
    try:
        numeric_id = int(str(customer_id).strip())
    except ValueError:
        numeric_id = None
    if numeric_id is not None:
        profile = directory.find_by_user_id(numeric_id)
    if not profile:
        profile = directory.find_by_auth_uid(str(customer_id))
    if not profile:
        log.debug("No profile for customer %s", customer_id)
    return profile or {}


# ═══════════════════════════════════════════════════════════════════════════════
# ORDER RECORDS
# ═══════════════════════════════════════════════════════════════════════════════

def _day_count(record: dict) -> int:
    raw = order_field(record, "project.day_count")
    try:
        day_count = int(str(raw).strip())
    except ValueError:
        raise ValidationError(f"num_jornadas is not an integer: {raw!r}", field="num_jornadas")
    if day_count < 1:
        raise ValidationError(f"num_jornadas must be >= 1, got {day_count}", field="num_jornadas")
    return day_count


def _line_items(record: dict) -> tuple:
    items = []
    for idx, raw in enumerate(record.get("line_items") or []):
        name = _text(raw.get("name"))
        if not name:
            raise ValidationError(f"line item {idx} has no name", field="line_items")
        try:
            quantity = int(raw.get("quantity", 1))
        except (TypeError, ValueError):
            raise ValidationError(f"line item {name!r} has invalid quantity", field="quantity")
        if quantity < 1:
            raise ValidationError(f"line item {name!r} quantity must be >= 1", field="quantity")
        unit_price = to_decimal(raw.get("price", 0), "price")
        if unit_price < 0:
            raise ValidationError(f"line item {name!r} has a negative price", field="price")
        items.append(LineItem(name=name, unit_price=unit_price, quantity=quantity,
                              sku=_text(raw.get("sku"))))
    return tuple(items)


def _discount(record: dict) -> Decimal:
    stored = order_field(record, "discount")
    if _present(stored):
        return to_decimal(stored, "calculated_discount")
    lines = record.get("coupon_lines") or []
    return sum((to_decimal(line.get("discount", 0), "coupon discount") for line in lines),
               Decimal("0"))


def _coupon(record: dict):
    code = _text(order_field(record, "coupon.code"))
    discount = _discount(record)
    if not code and discount == 0:
        return None
    return CouponInfo(code=code, discount_amount=discount)


def _shipping(record: dict):
    if not record.get("shipping_lines"):
        return None
    first = record["shipping_lines"][0] or {}
    delivery = order_field(record, "shipping.delivery_method")
    if not delivery:
        delivery = "pickup" if first.get("method_id") == "pickup" else "shipping"
    return ShippingInfo(
        method_label=_text(order_field(record, "shipping.method")),
        total=to_decimal(first.get("total") or "0", "shipping total"),
        delivery_method=delivery,
        shipping_address=_text(order_field(record, "shipping.address")),
        shipping_phone=_text(order_field(record, "shipping.phone")),
    )


def normalize_order(record: dict, directory=None,
                    config: BusinessConfig = DEFAULT_CONFIG) -> DocumentData:
    """Build DocumentData from an upstream order record.

    `directory` provides find_by_user_id / find_by_auth_uid for the
    customer's tax id and signature. Stored calculated_* totals are ignored:
    totals are recomputed from the line items.
    """
    if not record or not _present(record.get("id")):
        raise ValidationError("order record has no id", field="id")
    try:
        order_id = int(record["id"])
    except (TypeError, ValueError):
        raise ValidationError(f"order id is not numeric: {record['id']!r}", field="id")

    profile = lookup_customer(directory, record.get("customer_id"))

    billing = BillingParty(
        first_name=_text(order_field(record, "billing.first_name")),
        last_name=_text(order_field(record, "billing.last_name")),
        email=_text(order_field(record, "billing.email")),
        phone=_text(order_field(record, "billing.phone")),
        company_name=_text(order_field(record, "billing.company")),
        address=_text(order_field(record, "billing.address")),
        city=_text(order_field(record, "billing.city")),
        tax_id=_text(profile.get("rut")),
    )
    project = ProjectInfo(
        name=_text(order_field(record, "project.name")),
        start_date=format_date_ddmmyyyy(order_field(record, "project.start_date")),
        end_date=format_date_ddmmyyyy(order_field(record, "project.end_date")),
        day_count=_day_count(record),
        company_tax_id=_text(order_field(record, "project.company_rut")),
        pickup_contact_name=_text(order_field(record, "project.retire_name")),
        pickup_contact_phone=_text(order_field(record, "project.retire_phone")),
        pickup_contact_tax_id=_text(order_field(record, "project.retire_rut")),
        comments=_text(order_field(record, "project.comments")),
    )
    data = DocumentData(
        document_id=order_id,
        billing=billing,
        project=project,
        line_items=_line_items(record),
        status=status_label(_text(order_field(record, "status"))),
        coupon=_coupon(record),
        shipping=_shipping(record),
        counterparty_signature_url=_text(profile.get("url_firma")),
        config=config,
    )
    log.debug("Order %s normalized: %d items, %d days", order_id,
              len(data.line_items), project.day_count)
    return data


# ═══════════════════════════════════════════════════════════════════════════════
# CUSTOMER RECORDS (standalone contract)
# ═══════════════════════════════════════════════════════════════════════════════

USER_FIELDS = {
    "company_registration_url": (flat("new_url_e_rut_empresa"), flat("url_empresa_erut")),
    "country": (flat("pais"),),
}


def normalize_user_contract(record: dict, now: float = None) -> StandaloneContractData:
    """Build StandaloneContractData from a customer profile / request body."""
    if not record or not _present(record.get("user_id")) or not _present(record.get("email")):
        raise ValidationError("userData con user_id y email son requeridos", field="user_id")
    try:
        user_id = int(record["user_id"])
    except (TypeError, ValueError):
        raise ValidationError(f"user_id is not numeric: {record['user_id']!r}", field="user_id")

    terms = record.get("terminos_aceptados")
    if isinstance(terms, str):
        terms = terms.strip().lower() in ("1", "true", "yes", "si", "sí")

    return StandaloneContractData(
        user_id=user_id,
        contract_number=contract_number(user_id, now),
        first_name=_text(record.get("nombre")),
        last_name=_text(record.get("apellido")),
        email=_text(record.get("email")),
        tax_id=_text(record.get("rut")),
        address=_text(record.get("direccion")),
        city=_text(record.get("ciudad")),
        country=_text(resolve(record, USER_FIELDS["country"], "")),
        phone=_text(record.get("telefono")),
        customer_type="empresa" if record.get("tipo_cliente") == "empresa" else "natural",
        company_name=_text(record.get("empresa_nombre")),
        company_tax_id=_text(record.get("empresa_rut")),
        signature_url=_text(record.get("url_firma")),
        id_front_url=_text(record.get("url_rut_anverso")),
        id_back_url=_text(record.get("url_rut_reverso")),
        company_registration_url=_text(resolve(record, USER_FIELDS["company_registration_url"], "")),
        terms_accepted=bool(terms),
    )
