"""
Document generation pipeline.

    record ─► normalize ─► assemble ─► render ─► [upload + persist] ─► [email]

Validation and render errors propagate to the caller: no bytes exist yet,
so there is nothing to salvage. Upload, persistence and email run after a
valid render and are best effort: a failure is logged, recorded in the
result's `errors` list and reported as uploaded=False / emailed=False, while
the rendered bytes are still returned. Nothing here retries.
"""

import logging
import time

from .core import db
from .core.business import BusinessConfig, DEFAULT_CONFIG
from .core.errors import DistributionFailure
from .forms import documents
from .forms.formatting import (
    attachment_filename, budget_number, pdf_data_url, upload_filename,
)
from .forms.normalizer import normalize_order, normalize_user_contract
from .forms.renderer import PdfRenderer, pdf_validation
from .integrations import mailer, storage

log = logging.getLogger("rental.pipeline")

ORDER_DOCUMENTS = ("quote", "contract", "processing")

# documentType form field sent to the upload worker
UPLOAD_TYPES = {
    "quote": "budget",
    "contract": "contract",
    "processing": "processing",
    "user_contract": "contract",
}

# Order column each uploaded URL is written to
PERSIST = {
    "quote": db.append_quote_url,
    "contract": db.set_contract_url,
    "processing": db.set_processing_url,
}


def _new_result(document_type: str, document_id, pdf_bytes: bytes) -> dict:
    check = pdf_validation(pdf_bytes)
    return {
        "ok": True,
        "document_type": document_type,
        "document_id": document_id,
        "pdf_bytes": pdf_bytes,
        "size": check["size"],
        "header": check["header"],
        "is_valid": check["is_valid"],
        "uploaded": False,
        "emailed": False,
        "url": "",
        "filename": "",
        "errors": [],
    }


def display_url(result: dict) -> str:
    """Uploaded URL, or an inline data: URL when nothing was uploaded."""
    return result["url"] or pdf_data_url(result["pdf_bytes"])


class DocumentService:
    """Runs one generation request end to end.

    Collaborators are injectable so tests can swap the network edges:
    `renderer` (PdfRenderer), `directory` (customer profile lookups),
    `uploader(pdf_bytes, filename, owner_id, document_type, endpoint) -> url`
    and `mail` (module or object exposing send_quote_email /
    send_document_email).
    """

    def __init__(self, renderer: PdfRenderer = None, directory=None, uploader=None,
                 mail=None, config: BusinessConfig = DEFAULT_CONFIG, clock=time.time):
        self.renderer = renderer or PdfRenderer()
        self.directory = directory if directory is not None else db.ProfileDirectory()
        self.uploader = uploader or storage.upload_pdf
        self.mail = mail or mailer
        self.config = config
        self.clock = clock

    # ── Order documents ──

    def generate_order_document(self, document_type: str, record: dict, upload: bool = True,
                                send_email: bool = False, issued_on=None) -> dict:
        if document_type not in ORDER_DOCUMENTS:
            raise ValueError(f"unknown order document type: {document_type}")
        t0 = time.time()
        data = normalize_order(record, self.directory, self.config)
        document = documents.BUILDERS[document_type](data, self.config, issued_on)
        pdf_bytes = self.renderer.render(document)
        result = _new_result(document_type, data.document_id, pdf_bytes)
        result["filename"] = upload_filename(document_type, data.document_id, self.clock())
        if document_type == "quote":
            result["budget_number"] = budget_number(data.document_id, self.clock())

        if upload:
            owner_id = record.get("customer_id") or data.document_id
            url = self._upload(result, owner_id, storage.ORDER_ENDPOINT)
            if url:
                self._persist(result, PERSIST[document_type], data.document_id, url)

        if send_email:
            self._email_order(result, data)

        log.info("%s for order %s: %d bytes, uploaded=%s emailed=%s (%.0fms)",
                 document_type, data.document_id, result["size"], result["uploaded"],
                 result["emailed"], (time.time() - t0) * 1000,
                 extra={"document": document_type, "order_id": data.document_id,
                        "size": result["size"]})
        return result

    def generate_quote(self, record: dict, **kwargs) -> dict:
        return self.generate_order_document("quote", record, **kwargs)

    def generate_contract(self, record: dict, **kwargs) -> dict:
        return self.generate_order_document("contract", record, **kwargs)

    def generate_processing(self, record: dict, **kwargs) -> dict:
        return self.generate_order_document("processing", record, **kwargs)

    # ── Standalone customer contract ──

    def generate_user_contract(self, user_data: dict, upload: bool = True,
                               issued_on=None) -> dict:
        """Standalone contract. The customer is always emailed."""
        t0 = time.time()
        contract = normalize_user_contract(user_data, self.clock())
        document = documents.build_user_contract(contract, self.config, issued_on)
        pdf_bytes = self.renderer.render(document)
        result = _new_result("user_contract", contract.user_id, pdf_bytes)
        result["filename"] = upload_filename("user_contract", contract.user_id, self.clock())
        result["contract_number"] = contract.contract_number

        if upload:
            url = self._upload(result, contract.user_id, storage.CUSTOMER_ENDPOINT)
            if url:
                fields = dict(user_data, terminos_aceptados=contract.terms_accepted)
                self._persist(result, db.update_user_contract, contract.user_id, url, fields)

        subject, html = mailer.contract_email(contract.full_name, self.config)
        self._send(result, contract.email, subject, html,
                   attachment_filename("user_contract", contract.user_id))

        log.info("user_contract %s for user %s: %d bytes, uploaded=%s emailed=%s (%.0fms)",
                 contract.contract_number, contract.user_id, result["size"],
                 result["uploaded"], result["emailed"], (time.time() - t0) * 1000,
                 extra={"document": "user_contract", "user_id": contract.user_id,
                        "size": result["size"]})
        return result

    # ── Best-effort steps ──

    def _upload(self, result: dict, owner_id, endpoint: str) -> str:
        try:
            url = self.uploader(result["pdf_bytes"], result["filename"], owner_id,
                                UPLOAD_TYPES[result["document_type"]], endpoint)
        except DistributionFailure as e:
            log.warning("Upload of %s %s failed: %s", result["document_type"],
                        result["document_id"], e.message)
            result["errors"].append(f"upload: {e.message}")
            return ""
        result["url"] = url
        result["uploaded"] = True
        return url

    def _persist(self, result: dict, writer, key, url: str, *extra):
        stored = writer(key, url, *extra)
        if not stored:
            log.warning("Could not store %s URL for %s", result["document_type"], key)
            result["errors"].append("persist: URL not stored")

    def _email_order(self, result: dict, data):
        to = data.billing.email
        if not to:
            log.warning("Email requested for order %s but it has no billing email",
                        data.document_id)
            result["errors"].append("email: no billing email")
            return
        filename = attachment_filename(result["document_type"], data.document_id,
                                       data.project.name)
        if result["document_type"] == "quote":
            try:
                self.mail.send_quote_email(to, data.billing.full_name, data.document_id,
                                           data.project.name, result["pdf_bytes"], filename,
                                           self.config)
                result["emailed"] = True
            except DistributionFailure as e:
                result["errors"].append(f"email: {e.message}")
            return
        subject, html = mailer.order_document_email(result["document_type"],
                                                    data.billing.full_name, data.document_id,
                                                    data.project.name, self.config)
        self._send(result, to, subject, html, filename)

    def _send(self, result: dict, to: str, subject: str, html: str, filename: str):
        try:
            self.mail.send_document_email(to, subject, html, result["pdf_bytes"], filename)
            result["emailed"] = True
        except DistributionFailure as e:
            result["errors"].append(f"email: {e.message}")
