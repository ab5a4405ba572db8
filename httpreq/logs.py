"""
Logging setup: one stream handler on the root logger, text or JSON lines.

JSON mode carries the structured ``http`` field set that the attempt
observer attaches to every record.
"""
import json
import logging
import datetime as dt

import config

_LOGGER_INITIALIZED = False

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            "ts": dt.datetime.fromtimestamp(record.created, dt.timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        http_fields = getattr(record, "http", None)
        if http_fields:
            payload["http"] = http_fields
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level=None, json_mode=None, stream=None):
    """Attach a handler to the root logger. Safe to call more than once."""
    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return logging.getLogger()

    level = (level or config.LOG_LEVEL).upper()
    if json_mode is None:
        json_mode = config.LOG_JSON

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level, logging.INFO))

    handler = logging.StreamHandler(stream)
    handler.setLevel(logger.level)
    handler.setFormatter(JsonFormatter() if json_mode else logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)

    _LOGGER_INITIALIZED = True
    return logger
