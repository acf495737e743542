"""
Logging setup for the web app.

Call ``setup_logging()`` once from the app factory, then in each module:

    logger = get_tagged_logger(__name__, tag="weather_api")
    logger.info("Fetching current weather for %s", location)

Every record carries a ``tag`` field so lines from the weather, location and
history code are easy to tell apart.
"""
from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(tag)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED = False


class EnsureTagFilter(logging.Filter):
    """Give records logged without an adapter a tag from the logger name."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "tag"):
            record.tag = record.name.split(".")[-1] if record.name else "-"
        return True


class TaggedLoggerAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("tag", self.extra["tag"])
        return msg, kwargs


def build_logging_config(level: str | int = "INFO", log_format: str = DEFAULT_LOG_FORMAT) -> Mapping[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"ensure_tag": {"()": EnsureTagFilter}},
        "formatters": {
            "standard": {"format": log_format, "datefmt": DEFAULT_DATE_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag"],
                "stream": "ext://sys.stderr",
            },
        },
        "root": {"level": level, "handlers": ["console"]},
    }


def setup_logging(level: str | int = "INFO", override_existing: bool = False) -> None:
    """Configure the root logger once per process.

    Later calls only adjust the level unless ``override_existing`` is set.
    """
    global _CONFIGURED
    if _CONFIGURED and not override_existing:
        logging.getLogger().setLevel(level)
        return
    logging.config.dictConfig(build_logging_config(level=level))
    _CONFIGURED = True


def get_tagged_logger(name: str, tag: str | None = None) -> TaggedLoggerAdapter:
    return TaggedLoggerAdapter(logging.getLogger(name), {"tag": tag or name.split(".")[-1]})
