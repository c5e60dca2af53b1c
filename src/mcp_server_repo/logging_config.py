"""JSON log output for the repository server and its CLI."""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

NOISY_LOGGERS = ("asyncio", "aiohttp", "mcp", "uvicorn.access")


class SafeStreamHandler(logging.StreamHandler):
    """Drops records written after uvicorn has closed stderr on shutdown."""

    def emit(self, record):
        try:
            super().emit(record)
        except (ValueError, OSError) as e:
            message = str(e).lower()
            if "closed file" not in message and "bad file descriptor" not in message:
                raise


class StructuredLogFormatter(logging.Formatter):
    """
    One JSON object per line.

    Tool calls pass ``action``, ``error_kind`` and ``duration_ms`` through
    ``extra``; stream sessions pass ``session_id``. Fields that a record
    does not carry are left out.
    """

    CONTEXT_FIELDS = ("session_id", "action", "error_kind", "duration_ms")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (name, getattr(record, name))
            for name in self.CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            entry["exception"] = record.exc_text
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(log_level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Replace the root handlers with a JSON stderr handler at ``log_level``.

    With ``log_file`` every record down to DEBUG is also appended to that
    file, while stderr keeps ``log_level``.
    """
    level = log_level.upper()
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console = SafeStreamHandler(sys.stderr)
    console.setFormatter(StructuredLogFormatter())
    root_logger.addHandler(console)
    root_logger.setLevel(level)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredLogFormatter())
        root_logger.addHandler(file_handler)
        console.setLevel(level)
        root_logger.setLevel(logging.DEBUG)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
