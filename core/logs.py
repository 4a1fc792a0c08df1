# core/logs.py
import json
import logging

from config import DEBUG, LOG_LEVEL


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "exception": self.formatException(record.exc_info) if record.exc_info else None,
        }
        return json.dumps(log_record, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Named logger writing JSON lines to stdout.
    Handlers are attached once per logger name.
    """
    logger = logging.getLogger(name)
    logger.setLevel("DEBUG" if DEBUG else LOG_LEVEL)
    # Use stdout for container-friendly logging
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    return logger
