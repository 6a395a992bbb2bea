# src/branchflow/util/log.py: Structured JSON logger.
# This module provides the logging setup used across branchflow. Records are
# emitted as JSON lines on stderr, and a contextvar injects the branch the
# current session is operating on so interleaved merge steps can be told apart.

import json
import logging
import contextvars

branch_context = contextvars.ContextVar('branch_context', default=None)

_PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "branch": branch_context.get(),
        }
        return json.dumps(log_record)


def get_logger(name):
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
    return logger


def configure_logging(level: str = "INFO", json_format: bool = True) -> None:
    """Apply the configured level and format to every branchflow logger."""
    root = logging.getLogger("branchflow")
    root.setLevel(level.upper())
    formatter = JsonFormatter() if json_format else logging.Formatter(_PLAIN_FORMAT)
    loggers = [root] + [
        logger for name, logger in logging.root.manager.loggerDict.items()
        if name.startswith("branchflow.") and isinstance(logger, logging.Logger)
    ]
    for logger in loggers:
        logger.setLevel(level.upper())
        for handler in logger.handlers:
            handler.setFormatter(formatter)
