"""
Loggkonfiguration för backenden.
Anropa setup_logging() en gång vid uppstart (görs i lifespan i main.py).

Två format: en läsbar rad för utveckling och en JSON-rad per post för
produktion. Båda tar med cotação-specifika extra-fält, t.ex.
logger.info("...", extra={"quotation_id": qid}).
"""
import json
import logging
import logging.handlers
import os
from pathlib import Path
from typing import Dict, Optional, Union

# Extra-fält som tas med i utskriften om de finns på recorden
EXTRA_FIELDS = ("quotation_id", "company", "route", "method", "status_code", "stored_file")

LOG_FILENAME = "cotacoes.log"
HUMAN_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def record_extras(record: logging.LogRecord) -> Dict[str, object]:
    return {key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)}


class HumanFormatter(logging.Formatter):
    """Läsbar konsolrad; extra-fält läggs till som nyckel=värde."""

    def __init__(self) -> None:
        super().__init__(HUMAN_FORMAT, datefmt="%H:%M:%S")

    def formatMessage(self, record):
        line = super().formatMessage(record)
        extras = record_extras(record)
        if extras:
            line += " [" + " ".join(f"{k}={v}" for k, v in extras.items()) + "]"
        return line


class JSONFormatter(logging.Formatter):
    """En JSON-rad per loggpost, för maskinell läsning i produktion."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record):
        entry = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
            **record_extras(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def _file_handler(log_dir: Union[str, Path]) -> logging.Handler:
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    # Roterar vid 5 MB, behåller 5 filer
    handler = logging.handlers.RotatingFileHandler(
        path / LOG_FILENAME, maxBytes=5_000_000, backupCount=5, encoding="utf-8",
    )
    handler.setFormatter(JSONFormatter())
    return handler


QUIET_LOGGERS = ("urllib3", "multipart", "python_multipart", "sqlalchemy.engine")


def setup_logging(
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    log_dir: Optional[Union[str, Path]] = None,
) -> None:
    """
    Sätter upp root-loggern.

    Args:
        level: loggnivå (default: LOG_LEVEL eller INFO)
        json_logs: JSON på konsolen i stället för läsbara rader (default: LOG_JSON)
        log_dir: katalog för roterande JSON-loggfil; None = ingen fil
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

    if log_dir:
        try:
            root.addHandler(_file_handler(log_dir))
        except OSError:
            root.warning("Kunde inte öppna loggfil i %s, loggar bara till konsol", log_dir)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Loggning initierad (nivå %s)", level)
