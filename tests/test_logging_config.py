import json
import logging
import sys

import pytest

from src.server.logging_config import LOG_FILENAME, HumanFormatter, JSONFormatter, setup_logging


def _record(**extra):
    record = logging.makeLogRecord({
        "name": "src.services.intake",
        "levelno": logging.INFO,
        "levelname": "INFO",
        "msg": "Cotação %s mottagen",
        "args": ("abc",),
    })
    record.__dict__.update(extra)
    return record


def test_json_line_carries_extra_fields():
    line = JSONFormatter().format(_record(quotation_id="abc", company="Açme", unrelated="x"))
    entry = json.loads(line)
    assert entry["message"] == "Cotação abc mottagen"
    assert entry["level"] == "INFO"
    assert entry["quotation_id"] == "abc"
    assert entry["company"] == "Açme"
    assert "unrelated" not in entry
    assert "Açme" in line  # ingen \u-escaping


def test_json_line_includes_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()
    entry = json.loads(JSONFormatter().format(record))
    assert "RuntimeError: boom" in entry["exception"]


def test_human_line_appends_extras():
    line = HumanFormatter().format(_record(stored_file="1.png"))
    assert "INFO" in line
    assert "src.services.intake: Cotação abc mottagen" in line
    assert line.endswith("[stored_file=1.png]")


@pytest.fixture()
def _restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_json_file(tmp_path, _restore_root):
    setup_logging("debug", json_logs=False, log_dir=tmp_path / "logs")
    assert _restore_root.level == logging.DEBUG
    logging.getLogger("src.test").info("hej", extra={"quotation_id": "q1"})
    for handler in _restore_root.handlers:
        handler.flush()
    lines = (tmp_path / "logs" / LOG_FILENAME).read_text(encoding="utf-8").splitlines()
    entries = [json.loads(line) for line in lines]
    assert {"message": "hej", "quotation_id": "q1"}.items() <= entries[-1].items()
