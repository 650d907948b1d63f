"""
Logging for the Inventory Portal.

Call setup_logging() once from the app factory. Records may carry request
and render context through `extra=`:

    route, method, status, duration_ms   - one line per API request
    quotation_id, strategy               - PDF render chain attempts
    user                                 - acting account

The console shows that context as a compact suffix; portal.log keeps it as
JSON fields. Render chain records also go to pdf.log so a failed download
can be traced strategy by strategy.
"""
import logging
import logging.handlers
import os
import json
from datetime import datetime, timezone

DATA_DIR = os.environ.get("PORTAL_DATA_DIR", os.path.join(os.path.dirname(__file__), "data"))
LOG_DIR = os.path.join(DATA_DIR, "logs")

EXTRA_FIELDS = ("route", "method", "status", "duration_ms", "quotation_id",
                "strategy", "user")

PDF_LOGGER = "portal.pdf"
NOISY_LOGGERS = ("pymongo", "werkzeug", "reportlab", "playwright", "asyncio")


def short_quotation_ref(quotation_id) -> str:
    """Last six characters, upper-cased: the suffix used in PDF filenames."""
    return str(quotation_id)[-6:].upper() if quotation_id else ""


def context_suffix(record) -> str:
    """Console tail for render/request context, e.g. '[q=AB12CD document 840ms]'."""
    parts = []
    qid = getattr(record, "quotation_id", None)
    if qid:
        parts.append(f"q={short_quotation_ref(qid)}")
    strategy = getattr(record, "strategy", None)
    if strategy:
        parts.append(strategy)
    # request lines already print their own timing
    duration = getattr(record, "duration_ms", None)
    if duration is not None and not hasattr(record, "route"):
        parts.append(f"{duration:.0f}ms")
    user = getattr(record, "user", None)
    if user and user != "system":
        parts.append(f"by {user}")
    return f" [{' '.join(parts)}]" if parts else ""


class JSONFormatter(logging.Formatter):
    """One JSON object per line; whitelisted extras become top-level keys."""

    def format(self, record):
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "thread": record.threadName,
        }
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Colored console lines with the render/request context appended."""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record):
        ts = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S")
        text = (f"{ts} [{record.levelname[0]}] {record.name}: "
                f"{record.getMessage()}{context_suffix(record)}")
        if self.color:
            text = f"{self.COLORS.get(record.levelname, '')}{text}{self.RESET}"
        if record.exc_info and record.exc_info[0]:
            text += "\n" + self.formatException(record.exc_info)
        return text


def _rotating_json_handler(filename: str, level=logging.NOTSET):
    fh = logging.handlers.RotatingFileHandler(
        os.path.join(LOG_DIR, filename), maxBytes=5_000_000, backupCount=5,
    )
    fh.setLevel(level)
    fh.setFormatter(JSONFormatter())
    return fh


def setup_logging(level=None, json_logs=None):
    """
    Configure logging for the full application.

    Args:
        level: Override log level (default: from LOG_LEVEL env or INFO)
        json_logs: Force JSON console format (default: from JSON_LOGS env)
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if json_logs is None:
        json_logs = os.environ.get("JSON_LOGS", "").lower() == "true"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    root.addHandler(console)

    pdf_logger = logging.getLogger(PDF_LOGGER)
    for h in list(pdf_logger.handlers):
        pdf_logger.removeHandler(h)
        h.close()

    # portal.log gets everything; pdf.log only the render chain
    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        root.addHandler(_rotating_json_handler("portal.log"))
        pdf_logger.addHandler(_rotating_json_handler("pdf.log"))
    except OSError:
        pass  # console only when the log dir is not writable

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("portal").info("Logging initialized (level=%s, json=%s)",
                                     level, json_logs, extra={"user": "system"})
