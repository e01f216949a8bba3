"""
Structured logging configuration for the rental document service.
Import and call setup_logging() once at app startup.
"""
import logging
import logging.handlers
import os
import json
import sys
from datetime import datetime, timezone

from rental_docs.core.paths import LOG_DIR

# Extra fields a log call may pass; both formatters surface them
EXTRA_FIELDS = ("route", "method", "document", "order_id", "user_id",
                "size", "duration_ms", "status")

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


def record_context(record) -> dict:
    """The EXTRA_FIELDS a record actually carries, in declaration order."""
    return {key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for the rotating file and LOG_JSON=1 consoles."""

    def format(self, record):
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(record_context(record))
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """`HH:MM:SS L logger: message  key=value ...`, colored on a terminal."""

    def __init__(self, color=None):
        super().__init__()
        self.color = sys.stderr.isatty() if color is None else color

    def format(self, record):
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{ts} {record.levelname[0]} {record.name}: {record.getMessage()}"
        context = record_context(record)
        if context:
            line += "  " + " ".join(f"{k}={v}" for k, v in context.items())
        if self.color:
            line = f"{_LEVEL_COLORS.get(record.levelno, '')}{line}{_RESET}"
        if record.exc_info and record.exc_info[0]:
            line += "\n" + self.formatException(record.exc_info)
        return line


QUIET_LOGGERS = ("urllib3", "werkzeug", "PIL", "reportlab", "pypdf")
LOG_FILE = "rental.log"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def _file_handler(log_dir: str):
    """Rotating JSON file in `log_dir` (5 x 5MB), or None when it cannot be opened."""
    try:
        os.makedirs(log_dir, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE), maxBytes=5_000_000, backupCount=5)
    except OSError as e:
        logging.getLogger("rental").warning("File logging disabled (%s): %s", log_dir, e)
        return None
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(level=None, json_logs=None, log_dir=None):
    """
    Configure the root logger for the document service.

    Args:
        level: log level name; LOG_LEVEL env, then INFO
        json_logs: JSON console lines; LOG_JSON env, then human format
        log_dir: directory for rental.log; <DATA_DIR>/logs by default
    """
    level = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    if json_logs is None:
        json_logs = _env_flag("LOG_JSON")

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    root.addHandler(console)

    file_handler = _file_handler(log_dir or LOG_DIR)
    if file_handler is not None:
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("rental").info("Logging initialized (level=%s, json=%s)",
                                     level, json_logs, extra={"status": level})
