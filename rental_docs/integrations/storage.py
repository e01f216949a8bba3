"""
Object storage upload through the upload worker.

The worker accepts a multipart POST with `file`, `userId` and
`documentType` and answers `{"success": true, "url": ...}` (older workers
answer `fileUrl`). Order documents go to /upload-pdf-only, customer
contracts to /upload-file-only.
"""

import logging
import time

import requests

from ..core import settings
from ..core.errors import DistributionFailure

log = logging.getLogger("rental.storage")

ORDER_ENDPOINT = "/upload-pdf-only"
CUSTOMER_ENDPOINT = "/upload-file-only"


def upload_pdf(pdf_bytes: bytes, filename: str, owner_id, document_type: str,
               endpoint: str = ORDER_ENDPOINT) -> str:
    """Upload a rendered PDF and return its public URL.

    Raises DistributionFailure when the worker is not configured, unreachable,
    answers with a non-2xx status, or returns no URL.
    """
    base = settings.get_setting("upload_worker_url").rstrip("/")
    if not base:
        raise DistributionFailure("UPLOAD_WORKER_URL not configured", filename=filename)

    t0 = time.time()
    try:
        resp = requests.post(
            f"{base}{endpoint}",
            files={"file": (filename, pdf_bytes, "application/pdf")},
            data={"userId": str(owner_id), "documentType": document_type},
            timeout=settings.get_int("upload_timeout"),
        )
    except requests.RequestException as e:
        log.warning("Upload of %s failed: %s", filename, e)
        raise DistributionFailure(f"upload failed: {e}", filename=filename)

    if not resp.ok:
        log.warning("Upload of %s rejected: HTTP %s %s", filename, resp.status_code,
                    resp.text[:200])
        raise DistributionFailure(f"upload rejected with HTTP {resp.status_code}",
                                  filename=filename, status=resp.status_code)
    try:
        body = resp.json()
    except ValueError:
        raise DistributionFailure("upload worker returned a non-JSON body", filename=filename)

    url = body.get("url") or body.get("fileUrl")
    if body.get("success") is False or not url:
        raise DistributionFailure(f"upload worker returned no URL: {body.get('error', body)}",
                                  filename=filename)

    log.info("Uploaded %s (%d bytes) in %.0fms → %s", filename, len(pdf_bytes),
             (time.time() - t0) * 1000, url)
    return url
