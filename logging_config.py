"""
Structured logging configuration for the quotation builder.
Import and call setup_logging() once at app startup.
"""
import logging
import logging.handlers
import os
import json
from datetime import datetime, timezone

from quotebuilder.core import paths


# Extra fields carried into JSON lines (quote metrics, request timing, task state)
QUOTE_EXTRAS = (
    "route", "method", "status", "duration_ms",
    "quote_items", "pages", "total", "company",
    "task", "pagination",
)


class JSONFormatter(logging.Formatter):
    """Structured JSON log lines for machine parsing."""
    def format(self, record):
        entry = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        for key in QUOTE_EXTRAS:
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Readable console format with color."""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now().strftime("%H:%M:%S")
        line = f"{color}{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}{self.RESET}"
        if record.exc_info and record.exc_info[0]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level=None, json_logs=None, log_dir=None, pagination=None):
    """
    Configure logging for the full application.

    Args:
        level: Override log level (default: from LOG_LEVEL env or INFO)
        json_logs: Force JSON format (default: QB_JSON_LOGS env, else human)
        log_dir: Where the rotating log file goes (default: DATA_DIR/logs)
        pagination: PaginationConfig in force; its capacities are logged once
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if json_logs is None:
        json_logs = os.environ.get("QB_JSON_LOGS", "").lower() in ("1", "true", "yes")
    log_dir = log_dir or paths.LOG_DIR

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()

    # Console handler
    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    root.addHandler(console)

    # File handler: rotates at 5MB, keeps 5 backups
    try:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, "quotebuilder.log"),
            maxBytes=5_000_000, backupCount=5,
        )
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)
    except OSError as e:
        root.warning("File logging disabled: %s", e)

    # Quiet noisy libs
    for name in ("urllib3", "werkzeug", "PIL", "reportlab", "pypdf"):
        logging.getLogger(name).setLevel(logging.WARNING)

    log = logging.getLogger("quotebuilder")
    log.info("Logging initialized (%s)", level)
    if pagination is not None:
        caps = pagination.to_dict()
        log.info("Page capacities: first %d/%d, continuation %d/%d (chunk/with footer)",
                 caps["items_per_first_page"], caps["base_first_page_capacity"],
                 caps["items_per_page"], caps["base_standard_page_capacity"],
                 extra={"pagination": caps})
