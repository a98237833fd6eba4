import json
import logging
import re
import sys
from logging.handlers import QueueHandler, QueueListener
from queue import Queue
from typing import Any, Dict, Optional
from eshop.config.admin_config import admin_config
from eshop.common.constants import request_id_ctx

ENV = getattr(admin_config, "ENV", "dev").lower()
SERVICE_NAME = getattr(admin_config, "SERVICE_NAME", "eshop")

SENSITIVE_PATTERNS = [
    r"password", r"secret", r"token", r"authorization",
    r"card_number", r"card_cvc", r"cvc", r"cvv", r"card_expiry",
]

# guest tokens identify a cart owner, outside dev only a prefix is logged
GUEST_TOKEN_FIELDS = ("guest_token", "old_guest_token", "new_guest_token")

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "taskName"}

DEV_FORMAT = "%(asctime)s [%(levelname)8s] %(name)s:%(funcName)s:%(lineno)d | %(message)s"


def sanitize_message_text(msg: str) -> str:
    """Mask values that follow a sensitive key, json style or key=value style."""
    for p in SENSITIVE_PATTERNS:
        msg = re.sub(rf'("{p}"\s*:\s*")[^"]+(")', r'\1[REDACTED]\2', msg, flags=re.IGNORECASE)
        msg = re.sub(rf'({p}\s*[=:\s]\s*)[\w\-\./]+', r'\1[REDACTED]', msg, flags=re.IGNORECASE)
    return msg


def shorten_identifier(val: Any) -> str:
    val = str(val)
    return f"{val[:8]}...{val[-4:]}" if len(val) > 12 else f"{val[:8]}..."


class JSONFormatter(logging.Formatter):
    """One json object per record, extras flattened in."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": sanitize_message_text(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "env": ENV,
            "service": SERVICE_NAME,
        }

        rid = request_id_ctx.get()
        if rid:
            payload["request_id"] = rid

        extras = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS and not k.startswith("_")}
        for field in GUEST_TOKEN_FIELDS:
            if extras.get(field):
                extras[field] = shorten_identifier(extras[field])
        payload.update(extras)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class SecurityFilter(logging.Filter):
    """Redacts the rendered message before it reaches a non dev handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = sanitize_message_text(record.getMessage())
        record.args = ()
        return True


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if ENV == "dev":
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    else:
        handler.setFormatter(JSONFormatter())
        handler.addFilter(SecurityFilter())
    return handler


_queue_listener: Optional[QueueListener] = None


def setup_logging():
    """Route every record through a queue so request handlers never block on IO. Call once at startup."""
    global _queue_listener

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    q: Queue = Queue(-1)
    root.addHandler(QueueHandler(q))
    root.setLevel(logging.INFO if ENV in ("prod", "staging") else logging.DEBUG)

    if _queue_listener is not None:
        _queue_listener.stop()
    _queue_listener = QueueListener(q, _console_handler(), respect_handler_level=True)
    _queue_listener.start()

    logging.getLogger("uvicorn.access").setLevel(logging.INFO if ENV == "dev" else logging.WARNING)
    for noisy in ("sqlalchemy.engine", "aiosqlite", "passlib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logging.getLogger("eshop.app")


def stop_logging():
    global _queue_listener
    if _queue_listener is not None:
        _queue_listener.stop()
        _queue_listener = None


class ContextLogger:
    """Logger wrapper that stamps the current request id on every record."""

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, msg: str, *args, extra: Optional[Dict[str, Any]] = None, **kwargs):
        merged = dict(extra or {})
        rid = request_id_ctx.get()
        if rid:
            merged.setdefault("request_id", rid)
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, extra=merged, **kwargs)

    def debug(self, msg: str, *args, **kwargs):
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, *args, **kwargs)


def get_logger(name: str = "eshop.app") -> ContextLogger:
    return ContextLogger(name)
