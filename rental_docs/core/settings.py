"""
settings.py — Centralized runtime settings for document generation

Single source of truth for every environment-driven setting. Business
constants (tax rate, company identity, legal text) are NOT here: they are
deployment constants and live in business.py.

Env vars:
  UPLOAD_WORKER_URL       — Object storage worker base URL
  PUBLIC_CLOUDFLARE_WORKER_URL — legacy name, used when UPLOAD_WORKER_URL unset
  SMTP_HOST / SMTP_PORT   — Outbound mail server
  SMTP_USER / SMTP_PASSWORD — Mail server login
  MAIL_FROM               — Sender address for contracts and quotes
  ADMIN_BACKUP_EMAIL      — Receives a copy of every quote email
  RENDER_TIMEOUT_SECONDS  — Whole-render budget, remote images included
  IMAGE_TIMEOUT_SECONDS   — Per-image fetch timeout
  UPLOAD_TIMEOUT_SECONDS  — Upload request timeout

Security:
  - Sensitive values are never logged in full (masked)
  - Health endpoint shows which settings are present, not their values
"""

import os
import logging

log = logging.getLogger("rental.settings")

# ─── Setting Definitions ────────────────────────────────────────────────────

_REGISTRY = {
    # Object storage
    "upload_worker_url": {
        "env": "UPLOAD_WORKER_URL",
        "fallback": "PUBLIC_CLOUDFLARE_WORKER_URL",
        "required": False,
        "desc": "Object storage worker base URL",
        "used_by": ["storage"],
    },
    "upload_timeout": {
        "env": "UPLOAD_TIMEOUT_SECONDS",
        "required": False,
        "desc": "Upload request timeout in seconds",
        "used_by": ["storage"],
        "default": "30",
    },
    # SMTP
    "smtp_host": {
        "env": "SMTP_HOST",
        "required": False,
        "desc": "Outbound SMTP server",
        "used_by": ["mailer"],
        "default": "smtp.gmail.com",
    },
    "smtp_port": {
        "env": "SMTP_PORT",
        "required": False,
        "desc": "Outbound SMTP port (STARTTLS)",
        "used_by": ["mailer"],
        "default": "587",
    },
    "smtp_user": {
        "env": "SMTP_USER",
        "required": False,
        "desc": "SMTP login",
        "used_by": ["mailer"],
    },
    "smtp_password": {
        "env": "SMTP_PASSWORD",
        "required": False,
        "desc": "SMTP password / app password",
        "used_by": ["mailer"],
        "sensitive": True,
    },
    "mail_from": {
        "env": "MAIL_FROM",
        "required": False,
        "desc": "Sender address for document emails",
        "used_by": ["mailer"],
        "default": "contratos@mail.mariohans.cl",
    },
    "admin_backup_email": {
        "env": "ADMIN_BACKUP_EMAIL",
        "required": False,
        "desc": "Receives a backup copy of every quote email",
        "used_by": ["mailer"],
    },
    # Rendering
    "render_timeout": {
        "env": "RENDER_TIMEOUT_SECONDS",
        "required": False,
        "desc": "Whole-render time budget in seconds",
        "used_by": ["renderer"],
        "default": "30",
    },
    "image_timeout": {
        "env": "IMAGE_TIMEOUT_SECONDS",
        "required": False,
        "desc": "Per-image fetch timeout in seconds",
        "used_by": ["renderer"],
        "default": "10",
    },
    # Flask
    "secret_key": {
        "env": "SECRET_KEY",
        "required": False,
        "desc": "Flask session secret",
        "used_by": ["app"],
        "sensitive": True,
        "default": "rental-docs-dev",
    },
}


# ─── Public API ──────────────────────────────────────────────────────────────

def get_setting(name: str) -> str:
    """Get a setting by registry name. Returns empty string if not set."""
    entry = _REGISTRY.get(name)
    if not entry:
        log.warning("Unknown setting requested: %s", name)
        return ""

    val = os.environ.get(entry["env"], "")
    if not val and "fallback" in entry:
        val = os.environ.get(entry["fallback"], "")
    if not val and "default" in entry:
        val = entry["default"]
    return val


def get_int(name: str) -> int:
    val = get_setting(name)
    try:
        return int(val)
    except (TypeError, ValueError):
        default = _REGISTRY.get(name, {}).get("default", "0")
        log.warning("Setting %s=%r is not an integer, using %s", name, val, default)
        return int(default)


def get_float(name: str) -> float:
    val = get_setting(name)
    try:
        return float(val)
    except (TypeError, ValueError):
        default = _REGISTRY.get(name, {}).get("default", "0")
        log.warning("Setting %s=%r is not a number, using %s", name, val, default)
        return float(default)


def mask(value: str) -> str:
    """Mask a value for safe logging. Shows first 8 chars."""
    if not value:
        return "(not set)"
    if len(value) <= 12:
        return value[:4] + "****"
    return value[:8] + "****" + f"({len(value)} chars)"


def validate_all() -> dict:
    """Validate all settings. Returns status report."""
    results = {}
    warnings = []
    for name, entry in _REGISTRY.items():
        val = get_setting(name)
        is_set = bool(val)
        results[name] = {
            "set": is_set,
            "env": entry["env"],
            "desc": entry["desc"],
            "masked": mask(val) if not entry.get("sensitive") else ("set" if is_set else "not set"),
            "required": entry.get("required", False),
            "used_by": entry["used_by"],
        }
        if entry.get("required") and not is_set:
            warnings.append(f"REQUIRED setting missing: {entry['env']} ({entry['desc']})")
        if "fallback" in entry:
            results[name]["fallback"] = entry["fallback"]
            results[name]["using_fallback"] = (
                not os.environ.get(entry["env"]) and bool(os.environ.get(entry["fallback"]))
            )

    if not results["upload_worker_url"]["set"]:
        warnings.append("No upload worker configured — PDFs will be returned as data: URLs")
    if not results["smtp_user"]["set"] or not results["smtp_password"]["set"]:
        warnings.append("SMTP credentials missing — document emails will not be sent")

    return {
        "settings": results,
        "total": len(results),
        "set": sum(1 for r in results.values() if r["set"]),
        "missing": sum(1 for r in results.values() if not r["set"]),
        "warnings": warnings,
    }


def startup_check() -> dict:
    """Run on startup. Logs warnings for missing settings."""
    report = validate_all()
    log.info("Settings: %d/%d configured", report["set"], report["total"])
    for w in report["warnings"]:
        log.warning("SETTING: %s", w)
    return report
