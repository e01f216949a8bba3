"""
Document emails over SMTP.

Every message is multipart/mixed: an HTML body (with a plain-text
alternative) and the rendered PDF attached. Quote emails also send a backup
copy to the admin inbox; a failing backup is logged and never fails the
customer email.
"""

import logging
import re
import smtplib
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from ..core import settings
from ..core.business import BusinessConfig, DEFAULT_CONFIG
from ..core.errors import DistributionFailure

log = logging.getLogger("rental.mailer")


# ═══════════════════════════════════════════════════════════════════════════════
# TEMPLATES
# ═══════════════════════════════════════════════════════════════════════════════

_LAYOUT = """<!DOCTYPE html>
<html><body style="font-family:Helvetica,Arial,sans-serif;background:#ffffff;color:#000000;padding:24px">
<div style="max-width:600px;margin:0 auto">
  <img src="{logo}" alt="{brand}" style="width:160px;margin-bottom:24px">
  <h2 style="margin:0 0 16px">{heading}</h2>
  {body}
  <p style="margin:24px 0 0">Saludos,<br>{brand}</p>
  <hr style="border:0;border-top:1px solid #000000;margin:24px 0">
  <p style="font-size:11px;color:#666666">{website}</p>
</div></body></html>"""


def _wrap(heading: str, body: str, config: BusinessConfig) -> str:
    return _LAYOUT.format(logo=config.company.logo_url, brand=config.branding.product_name,
                          heading=heading, body=body, website=config.branding.website)


def quote_email(customer_name: str, order_id, project_name: str,
                config: BusinessConfig = DEFAULT_CONFIG) -> tuple:
    """(subject, html) for a freshly generated quote."""
    subject = f"✅ Presupuesto Generado - {project_name} (Orden #{order_id})"
    body = (
        f"<p>Hola {escape(customer_name)},</p>"
        "<p>Gracias por tu solicitud. Estamos <strong>revisando la disponibilidad de los "
        "equipos</strong> que seleccionaste y te contactaremos muy pronto confirmando su "
        "disponibilidad.</p>"
        f"<p><strong>Nuevo pedido</strong>: {escape(str(order_id))}</p>"
        "<p>Adjuntamos el presupuesto en PDF. Si tienes alguna duda o necesitas hacer "
        "algún ajuste en tu pedido, no dudes en escribirnos. ¡Estamos aquí para ayudarte!</p>"
    )
    return subject, _wrap("Estamos revisando la disponibilidad.", body, config)


def order_document_email(kind: str, customer_name: str, order_id, project_name: str,
                         config: BusinessConfig = DEFAULT_CONFIG) -> tuple:
    """(subject, html) for the contract and processing documents."""
    noun = "Contrato" if kind == "contract" else "Pedido"
    subject = f"✅ {noun} Generado - {project_name} (Orden #{order_id})"
    body = (
        f"<p>Hola {escape(customer_name)},</p>"
        f"<p>Adjunto encontrarás el documento <strong>{noun} #{escape(str(order_id))}</strong> "
        f"correspondiente a tu proyecto <strong>{escape(project_name)}</strong>.</p>"
    )
    return subject, _wrap(f"{noun} #{order_id}", body, config)


def contract_email(customer_name: str, config: BusinessConfig = DEFAULT_CONFIG) -> tuple:
    """(subject, html) for the standalone customer contract."""
    subject = "✅ Contrato Generado - Mario Hans Rental"
    body = (
        f"<p>Hola {escape(customer_name)},</p>"
        "<p>Adjunto encontrarás el contrato con los términos y condiciones de arriendo "
        "de equipos.</p>"
    )
    return subject, _wrap("Tu contrato en Mario Hans Rental ha sido creado!", body, config)


def _plain_text(html: str) -> str:
    text = re.sub(r"<br\s*/?>|</p>", "\n", html)
    text = re.sub(r"<[^>]+>", "", text)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


# ═══════════════════════════════════════════════════════════════════════════════
# SMTP
# ═══════════════════════════════════════════════════════════════════════════════

def build_message(sender: str, to: str, subject: str, html: str,
                  attachment: bytes, filename: str) -> MIMEMultipart:
    msg = MIMEMultipart("mixed")
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = subject

    alt = MIMEMultipart("alternative")
    alt.attach(MIMEText(_plain_text(html), "plain", "utf-8"))
    alt.attach(MIMEText(html, "html", "utf-8"))
    msg.attach(alt)

    part = MIMEBase("application", "pdf")
    part.set_payload(attachment)
    encoders.encode_base64(part)
    part.add_header("Content-Disposition", "attachment", filename=filename)
    msg.attach(part)
    return msg


def _deliver(msg: MIMEMultipart):
    host = settings.get_setting("smtp_host")
    port = settings.get_int("smtp_port")
    user = settings.get_setting("smtp_user")
    password = settings.get_setting("smtp_password")
    with smtplib.SMTP(host, port, timeout=30) as server:
        server.starttls()
        if user and password:
            server.login(user, password)
        server.send_message(msg)


def send_document_email(to: str, subject: str, html: str, attachment: bytes,
                        filename: str, sender: str = None) -> dict:
    """Send one email with the PDF attached. Raises DistributionFailure."""
    if not to:
        raise DistributionFailure("no recipient address", filename=filename)
    if not settings.get_setting("smtp_user"):
        raise DistributionFailure("SMTP_USER not configured", filename=filename)
    sender = sender or f"Rental Mario Hans <{settings.get_setting('mail_from')}>"
    msg = build_message(sender, to, subject, html, attachment, filename)
    try:
        _deliver(msg)
    except (smtplib.SMTPException, OSError) as e:
        log.warning("Email %r to %s failed: %s", subject[:60], to, e)
        raise DistributionFailure(f"email failed: {e}", to=to)
    log.info("Email sent: %s → %s (%s, %d bytes)", subject[:60], to, filename, len(attachment))
    return {"ok": True, "to": to, "subject": subject}


def send_quote_email(to: str, customer_name: str, order_id, project_name: str,
                     attachment: bytes, filename: str,
                     config: BusinessConfig = DEFAULT_CONFIG) -> dict:
    """Customer quote email plus the admin backup copy."""
    subject, html = quote_email(customer_name, order_id, project_name, config)
    result = send_document_email(to, subject, html, attachment, filename)

    backup_to = settings.get_setting("admin_backup_email")
    result["backup"] = False
    if backup_to:
        try:
            send_document_email(backup_to, f"[RESPALDO ORDEN] {subject}", html,
                                attachment, filename,
                                sender=f"Rental Mario Hans Admin <{settings.get_setting('mail_from')}>")
            result["backup"] = True
        except DistributionFailure as e:
            log.warning("Admin backup for order %s failed: %s", order_id, e.message)
    return result
