import json
import logging
from pathlib import Path

from rsm.logging_config import CHANNELS, JsonFormatter, setup_logging, split_event


def _record(msg, *args, name="rsm.sales", level=logging.INFO):
    return logging.LogRecord(name, level, __file__, 1, msg, args, None)


def test_event_messages_are_split_into_fields():
    event, fields = split_event("sale_created sale_id=s1 total=9.50 items=2")
    assert event == "sale_created"
    assert fields == {"sale_id": "s1", "total": "9.50", "items": "2"}


def test_field_values_may_contain_spaces():
    event, fields = split_event("backend_request_failed method=GET error=503 Server Error: boom")
    assert event == "backend_request_failed"
    assert fields == {"method": "GET", "error": "503 Server Error: boom"}


def test_free_text_is_not_an_event():
    assert split_event("Cart is empty.") == (None, {})
    assert split_event("startup") == (None, {})


def test_json_formatter_adds_event_and_fields():
    line = JsonFormatter().format(_record("report_exported path=%s window=%s", "/tmp/r.xlsx", "all"))
    payload = json.loads(line)

    assert payload["logger"] == "rsm.sales"
    assert payload["level"] == "INFO"
    assert payload["event"] == "report_exported"
    assert payload["fields"] == {"path": "/tmp/r.xlsx", "window": "all"}


def test_setup_logging_writes_channel_files(tmp_path: Path):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    root.handlers.clear()
    channel_levels = {name: logging.getLogger(name).level for name in CHANNELS}

    try:
        setup_logging(tmp_path, level="INFO")
        logging.getLogger("rsm.sales").info("sale_deleted sale_id=%s", "s9")
        for h in root.handlers:
            h.flush()
        for name in CHANNELS:
            for h in logging.getLogger(name).handlers:
                h.flush()

        sales_lines = (tmp_path / "sales.log").read_text(encoding="utf-8").splitlines()
        app_lines = (tmp_path / "app.log").read_text(encoding="utf-8").splitlines()
        assert json.loads(sales_lines[-1])["fields"] == {"sale_id": "s9"}
        assert json.loads(app_lines[-1])["event"] == "sale_deleted"
        assert (tmp_path / "backend.log").exists()
    finally:
        for h in list(root.handlers):
            h.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        for name, level in channel_levels.items():
            logger = logging.getLogger(name)
            for h in list(logger.handlers):
                logger.removeHandler(h)
                h.close()
            logger.setLevel(level)
