"""
Chilean locale formatting for documents: pesos, dates, order status,
document numbers and upload filenames. Pure functions, no state.
"""

import re
import base64
import time
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from dateutil.parser import parse as parse_date

_DDMMYYYY = re.compile(r"^\d{2}-\d{2}-\d{4}$")

STATUS_LABELS = {
    "pending":    "Pendiente",
    "processing": "En Proceso",
    "on-hold":    "En Espera",
    "completed":  "Completado",
    "cancelled":  "Cancelado",
    "refunded":   "Reembolsado",
    "failed":     "Fallido",
    "draft":      "Borrador",
    "trash":      "Eliminado",
}


def format_clp(amount) -> str:
    """Whole pesos with dot thousands separators: 71400 -> "$71.400"."""
    value = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    digits = f"{abs(int(value)):,}".replace(",", ".")
    return f"{sign}${digits}"


def format_date_ddmmyyyy(value) -> str:
    """Render a date as DD-MM-YYYY.

    Accepts date/datetime objects and ISO-ish strings. Strings already in
    DD-MM-YYYY, and strings that cannot be parsed, are returned unchanged.
    """
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime("%d-%m-%Y")
    text = str(value).strip()
    if _DDMMYYYY.match(text):
        return text
    try:
        return parse_date(text).strftime("%d-%m-%Y")
    except (ValueError, OverflowError):
        return text


def today_formatted(today: date = None) -> str:
    return (today or date.today()).strftime("%d-%m-%Y")


def status_label(status: str) -> str:
    """WooCommerce status slug → Spanish label; unknown slugs are capitalised."""
    status = status or "on-hold"
    return STATUS_LABELS.get(status, status[:1].upper() + status[1:])


# ═══════════════════════════════════════════════════════════════════════════════
# DOCUMENT NUMBERS & FILENAMES
# ═══════════════════════════════════════════════════════════════════════════════

def timestamp_ms(now: float = None) -> int:
    return int((time.time() if now is None else now) * 1000)


def budget_number(order_id, now: float = None) -> str:
    """PRES-{order}-{last 6 digits of the millisecond clock}."""
    return f"PRES-{order_id}-{str(timestamp_ms(now))[-6:]}"


def contract_number(user_id, now: float = None) -> str:
    return f"{user_id}-{str(timestamp_ms(now))[-6:]}"


UPLOAD_FILENAMES = {
    "quote":      "Presupuesto_{id}_{ts}.pdf",
    "contract":   "Contrato_{id}_{ts}.pdf",
    "processing": "order_processing_{id}_{ts}.pdf",
    "user_contract": "contract_{id}_{day}_{ts}.pdf",
}


def upload_filename(document_type: str, document_id, now: float = None) -> str:
    ts = timestamp_ms(now)
    day = datetime.fromtimestamp(ts / 1000).strftime("%Y%m%d")
    return UPLOAD_FILENAMES[document_type].format(id=document_id, ts=ts, day=day)


def attachment_filename(document_type: str, document_id, project_name: str = "") -> str:
    """Filename used when the PDF is attached to an email."""
    if document_type == "quote":
        project = re.sub(r"\s+", "_", project_name.strip()) or "Proyecto"
        return f"presupuesto_{document_id}_{project}.pdf"
    if document_type == "processing":
        return f"pedido_{document_id}.pdf"
    return f"contrato_{document_id}.pdf"


def pdf_data_url(pdf_bytes: bytes) -> str:
    """Inline fallback URL used when no storage URL is available."""
    return "data:application/pdf;base64," + base64.b64encode(pdf_bytes).decode("ascii")
