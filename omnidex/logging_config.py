"""
Logging setup: plain or structured JSON output.
"""
import json
import logging
from datetime import datetime, timezone

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS:
                log_obj[key] = value
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def configure_logging(level: str = "INFO", json_format: bool = False) -> logging.Logger:
    """Install a single stream handler on the package logger."""
    logger = logging.getLogger("omnidex")
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        if getattr(handler, "_omnidex_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._omnidex_handler = True
    if json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s - %(levelname)-8s - %(name)-28s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
    logger.addHandler(handler)
    return logger
