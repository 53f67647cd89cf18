import json
import logging
import os
import sys
from logging import Logger
from typing import Optional

LOGGER_NAMESPACE = "cgdescent"


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter for log records."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%SZ"),
        }
        iteration = getattr(record, "iteration", None)
        if iteration is not None:
            log["iteration"] = iteration
        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log, default=str)


def configure_logging(level: Optional[str] = None, json_output: bool = False, log_file: Optional[str] = None) -> None:
    """
    Configure global logging. Uses stdout by default; can additionally tee to a file.

    The level falls back to the ``LOG_LEVEL`` environment variable, then INFO.
    """
    env_level = os.getenv("LOG_LEVEL")
    effective_level = level or env_level or "INFO"
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    formatter: logging.Formatter
    if json_output:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(
        level=getattr(logging, effective_level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )


def get_logger(name: str) -> Logger:
    """Return a logger nested under the package namespace."""
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
