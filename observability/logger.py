"""Structured interview event logging."""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any, Optional

from config.settings import Settings, settings

HUMAN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
HUMAN_KEYS = ("node", "difficulty", "topic", "score", "provider", "model", "ms", "outcome", "error")

_events = logging.getLogger("interview.events")
_events.propagate = False


class _JsonOnly(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "is_json", False) is True


class _HumanOnly(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "is_json", False) is not True


def configure_logging(cfg: Optional[Settings] = None, *, force: bool = False) -> None:
    """Attach console and optional rotating file handlers to the root and event loggers."""

    cfg = cfg or settings
    level = cfg.LOG_LEVEL.upper()
    root = logging.getLogger()
    if force:
        root.handlers.clear()
        for handler in list(_events.handlers):
            _events.removeHandler(handler)
            handler.close()
    if not root.handlers:
        console = logging.StreamHandler(stream=sys.stdout)
        console.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(console)
    root.setLevel(level)
    _events.setLevel(level)
    if _events.handlers:
        return

    console = logging.StreamHandler(stream=sys.stdout)
    console.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt=DATE_FORMAT))
    console.addFilter(_HumanOnly())
    _events.addHandler(console)

    if not cfg.ENABLE_FILE_LOGS:
        return

    log_dir = os.path.dirname(cfg.LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    json_file = logging.handlers.RotatingFileHandler(
        cfg.LOG_FILE,
        maxBytes=cfg.LOG_MAX_BYTES,
        backupCount=cfg.LOG_BACKUP_COUNT,
    )
    json_file.setFormatter(logging.Formatter("%(message)s"))
    json_file.addFilter(_JsonOnly())
    _events.addHandler(json_file)

    human_name = cfg.LOG_FILE if cfg.LOG_FILE.endswith(".log") else f"{cfg.LOG_FILE}.log"
    human_file = logging.handlers.RotatingFileHandler(
        human_name.replace(".log", "-human.log"),
        maxBytes=cfg.LOG_MAX_BYTES,
        backupCount=cfg.LOG_BACKUP_COUNT,
    )
    human_file.setFormatter(logging.Formatter(HUMAN_FORMAT, datefmt=DATE_FORMAT))
    human_file.addFilter(_HumanOnly())
    _events.addHandler(human_file)


def _format_human(evt: dict[str, Any]) -> str:
    base = f"session={evt.get('session_id')} kind={evt.get('kind')}"
    extras = [f"{key}={evt[key]}" for key in HUMAN_KEYS if key in evt]
    return base + (" " + " ".join(extras) if extras else "")


def log_event(kind: str, session_id: Optional[str], **fields: Any) -> None:
    """Emit one human line and, with file logs enabled, one JSON line."""

    payload: dict[str, Any] = {
        "ts": time.time(),
        "trace": uuid.uuid4().hex,
        "kind": kind,
        "session_id": session_id,
    }
    payload.update(fields)

    _events.info(_format_human(payload), extra={"is_json": False})
    _events.info(json.dumps(payload, ensure_ascii=False, default=str), extra={"is_json": True})


__all__ = ["configure_logging", "log_event"]
