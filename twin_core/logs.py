from __future__ import annotations

import datetime as dt
import json
import logging
from pathlib import Path
from typing import Optional

_RESERVED = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "time": dt.datetime.fromtimestamp(record.created, dt.timezone.utc)
            .replace(tzinfo=None)
            .isoformat(timespec="seconds")
            + "Z",
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED:
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(log_dir: Optional[Path] = None, level: int = logging.INFO) -> None:
    formatter = JsonFormatter()
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "twin_graph.log", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)


__all__ = ["JsonFormatter", "setup_logging"]
