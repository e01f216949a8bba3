"""
rental_docs/core/db.py — SQLite store for orders and customer profiles

The document subsystem only needs two things from the relational store:
  1. read an order record / customer profile to build a document
  2. write the uploaded document URL back onto the owning row

TABLES:
  orders         — one row per order; the upstream record is kept verbatim
                   in `payload` (JSON) because several schema versions coexist
  user_profiles  — customer identity, identity-document URLs, contract URL

Quote URLs are APPENDED to orders.new_pdf_on_hold_url as a comma-separated
history. Every other document URL overwrites its column.
"""

import os
import json
import sqlite3
import logging
import threading
from datetime import datetime
from contextlib import contextmanager

from .paths import DB_PATH

log = logging.getLogger("rental.db")

_db_lock = threading.Lock()


# ── Connection factory ────────────────────────────────────────────────────────
@contextmanager
def get_db():
    """Thread-safe SQLite connection with WAL mode for multi-worker gunicorn."""
    with _db_lock:
        os.makedirs(os.path.dirname(DB_PATH) or ".", exist_ok=True)
        conn = sqlite3.connect(DB_PATH, timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


# ── Schema ────────────────────────────────────────────────────────────────────
SCHEMA = """
CREATE TABLE IF NOT EXISTS orders (
    id                      INTEGER PRIMARY KEY,
    customer_id             TEXT,
    status                  TEXT DEFAULT 'on-hold',
    payload                 TEXT NOT NULL,      -- upstream order record (JSON)
    new_pdf_on_hold_url     TEXT,               -- comma-separated quote history
    url_contrato            TEXT,
    new_pdf_processing_url  TEXT,
    created_at              TEXT NOT NULL,
    updated_at              TEXT
);
CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders(customer_id);

CREATE TABLE IF NOT EXISTS user_profiles (
    user_id                 INTEGER PRIMARY KEY,
    auth_uid                TEXT UNIQUE,
    email                   TEXT,
    nombre                  TEXT,
    apellido                TEXT,
    rut                     TEXT,
    direccion               TEXT,
    ciudad                  TEXT,
    pais                    TEXT,
    telefono                TEXT,
    instagram               TEXT,
    fecha_nacimiento        TEXT,
    tipo_cliente            TEXT,
    usuario                 TEXT,
    empresa_nombre          TEXT,
    empresa_rut             TEXT,
    empresa_ciudad          TEXT,
    empresa_direccion       TEXT,
    url_firma               TEXT,
    url_rut_anverso         TEXT,
    url_rut_reverso         TEXT,
    url_empresa_erut        TEXT,
    new_url_e_rut_empresa   TEXT,
    url_user_contrato       TEXT,
    terminos_aceptados      INTEGER DEFAULT 0,
    updated_at              TEXT
);
CREATE INDEX IF NOT EXISTS idx_profiles_auth ON user_profiles(auth_uid);
"""

# Profile columns that a contract request may write back
PROFILE_FIELDS = (
    "auth_uid", "email", "nombre", "apellido", "rut", "direccion", "ciudad",
    "pais", "telefono", "instagram", "fecha_nacimiento", "tipo_cliente",
    "usuario", "empresa_nombre", "empresa_rut", "empresa_ciudad",
    "empresa_direccion", "url_firma", "url_rut_anverso", "url_rut_reverso",
    "url_empresa_erut", "new_url_e_rut_empresa", "terminos_aceptados",
)


def init_db():
    """Create all tables if they don't exist. Safe to call multiple times."""
    with get_db() as conn:
        conn.executescript(SCHEMA)
    log.info("DB initialized at %s", DB_PATH)
    return True


def startup() -> dict:
    """Initialize DB. Call once at app start."""
    init_db()
    stats = get_db_stats()
    log.info("DB ready: orders=%d profiles=%d", stats["orders"], stats["user_profiles"])
    return {"ok": True, "db_path": DB_PATH, "stats": stats}


def get_db_stats() -> dict:
    with get_db() as conn:
        orders = conn.execute("SELECT COUNT(*) FROM orders").fetchone()[0]
        profiles = conn.execute("SELECT COUNT(*) FROM user_profiles").fetchone()[0]
    return {"orders": orders, "user_profiles": profiles}


def _row_to_dict(row) -> dict:
    if row is None:
        return {}
    return dict(row)


# ── Order operations ──────────────────────────────────────────────────────────
def upsert_order(order: dict) -> bool:
    """Insert or replace the stored record for an order, keeping document URLs."""
    now = datetime.now().isoformat()
    try:
        with get_db() as conn:
            conn.execute("""
                INSERT INTO orders (id, customer_id, status, payload, created_at, updated_at)
                VALUES (?,?,?,?,?,?)
                ON CONFLICT(id) DO UPDATE SET
                  customer_id=excluded.customer_id, status=excluded.status,
                  payload=excluded.payload, updated_at=excluded.updated_at
            """, (
                int(order["id"]),
                str(order.get("customer_id") or ""),
                order.get("status", "on-hold"),
                json.dumps(order, default=str),
                now, now,
            ))
        return True
    except Exception as e:
        log.error("upsert_order %s: %s", order.get("id"), e)
        return False


def get_order(order_id) -> dict | None:
    """Fetch the upstream record of an order, or None when it does not exist."""
    with get_db() as conn:
        row = conn.execute("SELECT payload FROM orders WHERE id=?",
                           (int(order_id),)).fetchone()
    if row is None:
        return None
    return json.loads(row["payload"])


def get_document_urls(order_id) -> dict:
    with get_db() as conn:
        row = conn.execute("""
            SELECT new_pdf_on_hold_url, url_contrato, new_pdf_processing_url
            FROM orders WHERE id=?""", (int(order_id),)).fetchone()
    return _row_to_dict(row)


def append_quote_url(order_id, url: str) -> str | None:
    """Append a quote URL to the order's comma-separated history.

    Earlier URLs are never dropped. Appending a URL already in the history
    is a no-op. Returns the resulting history, or None on failure.
    """
    try:
        with get_db() as conn:
            row = conn.execute("SELECT new_pdf_on_hold_url FROM orders WHERE id=?",
                               (int(order_id),)).fetchone()
            if row is None:
                log.warning("append_quote_url: order %s not found", order_id)
                return None
            history = [u for u in (row["new_pdf_on_hold_url"] or "").split(",") if u]
            if url not in history:
                history.append(url)
            joined = ",".join(history)
            conn.execute("UPDATE orders SET new_pdf_on_hold_url=?, updated_at=? WHERE id=?",
                         (joined, datetime.now().isoformat(), int(order_id)))
        return joined
    except Exception as e:
        log.error("append_quote_url %s: %s", order_id, e)
        return None


def _set_order_column(order_id, column: str, url: str) -> bool:
    try:
        with get_db() as conn:
            cur = conn.execute(f"UPDATE orders SET {column}=?, updated_at=? WHERE id=?",
                               (url, datetime.now().isoformat(), int(order_id)))
        if cur.rowcount == 0:
            log.warning("%s: order %s not found", column, order_id)
            return False
        return True
    except Exception as e:
        log.error("set %s for order %s: %s", column, order_id, e)
        return False


def set_contract_url(order_id, url: str) -> bool:
    return _set_order_column(order_id, "url_contrato", url)


def set_processing_url(order_id, url: str) -> bool:
    return _set_order_column(order_id, "new_pdf_processing_url", url)


# ── Profile operations ────────────────────────────────────────────────────────
def upsert_user_profile(profile: dict) -> bool:
    """Insert a profile or update the non-empty fields supplied."""
    fields = {k: profile[k] for k in PROFILE_FIELDS if profile.get(k) not in (None, "")}
    if "terminos_aceptados" in fields:
        fields["terminos_aceptados"] = 1 if fields["terminos_aceptados"] else 0
    fields["updated_at"] = datetime.now().isoformat()
    cols = ", ".join(fields)
    marks = ", ".join("?" for _ in fields)
    updates = ", ".join(f"{k}=excluded.{k}" for k in fields)
    try:
        with get_db() as conn:
            conn.execute(
                f"INSERT INTO user_profiles (user_id, {cols}) VALUES (?, {marks}) "
                f"ON CONFLICT(user_id) DO UPDATE SET {updates}",
                (int(profile["user_id"]), *fields.values()),
            )
        return True
    except Exception as e:
        log.error("upsert_user_profile %s: %s", profile.get("user_id"), e)
        return False


def find_profile_by_user_id(user_id: int) -> dict | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM user_profiles WHERE user_id=?",
                           (int(user_id),)).fetchone()
    return dict(row) if row else None


def find_profile_by_auth_uid(auth_uid: str) -> dict | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM user_profiles WHERE auth_uid=?",
                           (str(auth_uid),)).fetchone()
    return dict(row) if row else None


def update_user_contract(user_id, url: str, fields: dict = None) -> bool:
    """Store the contract URL on the profile and write back supplied fields."""
    profile = dict(fields or {})
    profile["user_id"] = user_id
    if not upsert_user_profile(profile):
        return False
    try:
        with get_db() as conn:
            conn.execute("UPDATE user_profiles SET url_user_contrato=?, updated_at=? WHERE user_id=?",
                         (url, datetime.now().isoformat(), int(user_id)))
        return True
    except Exception as e:
        log.error("update_user_contract %s: %s", user_id, e)
        return False


class ProfileDirectory:
    """Customer lookups used by the normalizer (numeric id, then auth uid)."""

    def find_by_user_id(self, user_id: int) -> dict | None:
        return find_profile_by_user_id(user_id)

    def find_by_auth_uid(self, auth_uid: str) -> dict | None:
        return find_profile_by_auth_uid(auth_uid)
