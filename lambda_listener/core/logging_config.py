"""
Logging Configuration
JSON logging for the Lambda execution environment.

Provides:
- CustomJsonFormatter: one JSON object per line, picked up by CloudWatch Logs
- setup_logging: YAML dictConfig loading with ${LOG_LEVEL} substitution
- flush_log_handlers: flush before the execution environment freezes
"""

import json
import logging
import logging.config
import os
import string
from datetime import datetime, timezone
from importlib import resources
from typing import Optional

import yaml

from .request_context import get_request_id, get_trace_id

DEFAULT_CONFIG = "logging.yml"

_STANDARD_ATTRS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


class CustomJsonFormatter(logging.Formatter):
    """
    CloudWatch friendly JSON Formatter.

    Fields:
      - _time: ISO8601 timestamp (millisecond precision)
      - level: Log level
      - logger: Logger name (e.g. lambda_listener.adapter)
      - message: Log message
      - aws_request_id: Lambda request ID of the current invocation
      - trace_id: X-Ray trace header of the current invocation
    """

    def format(self, record: logging.LogRecord) -> str:
        trace_id = getattr(record, "trace_id", None) or get_trace_id()
        request_id = getattr(record, "aws_request_id", None) or get_request_id()

        log_data = {
            "_time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if trace_id:
            log_data["trace_id"] = trace_id
        if request_id:
            log_data["aws_request_id"] = request_id

        # Include extra fields
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_") and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def _read_config(config_path: Optional[str]) -> Optional[str]:
    if config_path is None:
        return resources.files("lambda_listener").joinpath(DEFAULT_CONFIG).read_text(encoding="utf-8")
    if not os.path.exists(config_path):
        return None
    with open(config_path, "r", encoding="utf-8") as f:
        return f.read()


def setup_logging(config_path: Optional[str] = None, log_level: Optional[str] = None):
    """
    Load the YAML config, substitute environment variables, and initialize logging.

    Without a path (argument or LOG_CONFIG_PATH) the packaged logging.yml is used.
    Falls back to basicConfig when a configured file does not exist.
    """
    config_path = config_path or os.getenv("LOG_CONFIG_PATH") or None
    level = log_level or os.getenv("LOG_LEVEL", "INFO")

    raw = _read_config(config_path)
    if raw is None:
        logging.basicConfig(level=level.upper())
        return

    # Supports ${LOG_LEVEL} format.
    template = string.Template(raw)

    mapping = os.environ.copy()
    mapping["LOG_LEVEL"] = level

    content = template.safe_substitute(mapping)
    logging.config.dictConfig(yaml.safe_load(content))


def flush_log_handlers():
    """Flush every configured handler; buffered records are lost once Lambda freezes."""
    loggers = [logging.getLogger()] + [
        logger
        for logger in logging.Logger.manager.loggerDict.values()
        if isinstance(logger, logging.Logger)
    ]
    for logger in loggers:
        for handler in logger.handlers:
            handler.flush()
