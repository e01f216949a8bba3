"""
HTTP routes for document generation.

    POST /api/order/generate-budget-pdf      quote
    POST /api/order/generate-contract-pdf    contract for an order
    POST /api/order/generate-processing-pdf  processing document
    POST /api/contracts/generate-pdf         standalone customer contract
    GET  /api/health                         settings + DB report
"""

import logging
import time
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request

from ..core import db, settings
from ..core.errors import DocumentError, RenderFailure, RenderTimeout, ValidationError
from ..pipeline import DocumentService, display_url

log = logging.getLogger("rental.api")

bp = Blueprint("documents", __name__)

SUCCESS_MESSAGES = {
    "quote": "Presupuesto generado exitosamente",
    "contract": "Contrato generado exitosamente",
    "processing": "PDF de procesamiento generado exitosamente",
    "user_contract": "Contrato PDF generado exitosamente",
}

TIMEOUT_MESSAGE = ("La generación del PDF excedió el tiempo límite. "
                   "Por favor, intente nuevamente.")


def _service() -> DocumentService:
    """The app may inject a preconfigured service (tests swap the network edges)."""
    return current_app.config.get("DOCUMENT_SERVICE") or DocumentService()


def _flag(body: dict, key: str, default: bool) -> bool:
    value = body.get(key, default)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def _error(message: str, status: int, **extra):
    return jsonify({"success": False, "message": message, **extra}), status


def _document_error(e: DocumentError, what: str):
    """Map a pipeline error to its HTTP response."""
    if isinstance(e, ValidationError):
        log.warning("%s rejected: %s", what, e.message)
        return _error(e.message, 400)
    if isinstance(e, RenderTimeout):
        log.error("%s timed out: %s", what, e.message)
        return _error(TIMEOUT_MESSAGE, 504, error=e.message, retry=True)
    if isinstance(e, RenderFailure):
        log.error("%s render failed: %s", what, e.message)
        return _error(e.message, 500, error=e.message)
    log.error("%s failed: %s", what, e.message)
    return _error("Error interno del servidor", 500, error=e.message)


def _validation(result: dict) -> dict:
    return {"size": result["size"], "header": result["header"],
            "isValid": result["is_valid"]}


# ═══════════════════════════════════════════════════════════════════════════════
# ORDER DOCUMENTS
# ═══════════════════════════════════════════════════════════════════════════════

def _order_document(document_type: str):
    t0 = time.time()
    body = request.get_json(silent=True) or {}
    order_id = body.get("order_id")
    customer_id = body.get("customer_id")
    if not order_id or not customer_id:
        return _error("Campos requeridos faltantes: order_id, customer_id", 400)

    try:
        record = db.get_order(order_id)
    except (TypeError, ValueError):
        return _error(f"order_id inválido: {order_id}", 400)
    if record is None:
        return _error("Orden no encontrada", 404)
    if not record.get("customer_id"):
        record["customer_id"] = customer_id

    what = f"{document_type} for order {order_id}"
    try:
        result = _service().generate_order_document(
            document_type, record,
            upload=_flag(body, "uploadToR2", True),
            send_email=_flag(body, "sendEmail", False),
        )
    except DocumentError as e:
        return _document_error(e, what)
    except Exception as e:
        log.exception("%s: unexpected error", what)
        return _error("Error interno del servidor", 500, error=str(e))

    url = display_url(result)
    log.info("POST %s → 200 (%.0fms)", request.path, (time.time() - t0) * 1000,
             extra={"route": request.path, "order_id": result["document_id"],
                    "duration_ms": round((time.time() - t0) * 1000)})
    return jsonify({
        "success": True,
        "message": SUCCESS_MESSAGES[document_type],
        "pdfUrl": url,
        "pdf_url": url,
        "metadata": {
            "order_id": result["document_id"],
            "pdfType": document_type,
            "filename": result["filename"],
            "budgetNumber": result.get("budget_number"),
            "generatedAt": datetime.now().isoformat(),
            "pdfValidation": _validation(result),
            "uploaded": result["uploaded"],
            "emailed": result["emailed"],
            "errors": result["errors"],
        },
    })


@bp.route("/api/order/generate-budget-pdf", methods=["POST"])
def generate_budget_pdf():
    return _order_document("quote")


@bp.route("/api/order/generate-contract-pdf", methods=["POST"])
def generate_contract_pdf():
    return _order_document("contract")


@bp.route("/api/order/generate-processing-pdf", methods=["POST"])
def generate_processing_pdf():
    return _order_document("processing")


# ═══════════════════════════════════════════════════════════════════════════════
# STANDALONE CONTRACT
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route("/api/contracts/generate-pdf", methods=["POST"])
def generate_user_contract_pdf():
    body = request.get_json(silent=True) or {}
    user_data = body.get("userData") or {}
    if not user_data.get("user_id") or not user_data.get("email"):
        return _error("userData con user_id y email son requeridos", 400)

    what = f"user contract for user {user_data.get('user_id')}"
    try:
        result = _service().generate_user_contract(
            user_data, upload=_flag(body, "uploadToR2", True))
    except DocumentError as e:
        return _document_error(e, what)
    except Exception as e:
        log.exception("%s: unexpected error", what)
        return _error("Error interno al generar contrato PDF", 500, error=str(e))

    url = display_url(result)
    return jsonify({
        "success": True,
        "message": SUCCESS_MESSAGES["user_contract"],
        "contractUrl": url,
        "pdfUrl": url,
        "metadata": {
            "user_id": result["document_id"],
            "email": user_data.get("email"),
            "contractNumber": result["contract_number"],
            "generatedAt": datetime.now().isoformat(),
            "fileSize": result["size"],
            "pdfValidation": _validation(result),
            "uploadedToR2": result["uploaded"],
            "emailSent": result["emailed"],
            "errors": result["errors"],
        },
    })


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH
# ═══════════════════════════════════════════════════════════════════════════════

@bp.route("/api/health")
def health():
    report = settings.validate_all()
    try:
        stats = db.get_db_stats()
        db_ok = True
    except Exception as e:
        log.error("Health check DB error: %s", e)
        stats, db_ok = {}, False
    return jsonify({
        "ok": db_ok,
        "db": stats,
        "settings": {k: {"set": v["set"], "masked": v["masked"]}
                     for k, v in report["settings"].items()},
        "warnings": report["warnings"],
    })
