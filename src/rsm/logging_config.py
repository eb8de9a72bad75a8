from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# logger name -> dedicated file, on top of app.log / errors.log
CHANNELS = {
    "rsm.sales": "sales.log",
    "rsm.backend": "backend.log",
}


def split_event(message: str) -> tuple[str | None, dict[str, str]]:
    """
    Split an ``event key=value ...`` message into its event name and fields.

    Values may contain spaces; a token without ``=`` extends the previous
    value. Free-text messages give ``(None, {})``.
    """
    event, _, rest = message.partition(" ")
    if not event.isidentifier() or not rest:
        return None, {}

    fields: dict[str, str] = {}
    key = None
    for token in rest.split(" "):
        name, sep, value = token.partition("=")
        if sep and name.isidentifier():
            key = name
            fields[key] = value
        elif key is not None:
            fields[key] += f" {token}"
        else:
            return None, {}
    return event, fields


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        event, fields = split_event(message)
        if event:
            payload["event"] = event
            payload["fields"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _handler(path: Path, level: int) -> RotatingFileHandler:
    fh = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    fh.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    fh.setLevel(level)
    return fh


def setup_logging(logs_dir: Path, level: int | str = logging.INFO) -> None:
    """Configure file logging once per process; later calls only adjust the level."""
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    for name in CHANNELS:
        logging.getLogger(name).setLevel(level)
    if root.handlers:
        return

    root.addHandler(_handler(logs_dir / "app.log", logging.DEBUG))
    root.addHandler(_handler(logs_dir / "errors.log", logging.ERROR))

    for name, filename in CHANNELS.items():
        logging.getLogger(name).addHandler(_handler(logs_dir / filename, logging.DEBUG))
