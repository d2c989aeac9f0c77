"""Logger wiring driven by the `logging` config section.

The host owns the root logger, so only our own namespaces get a handler.
"""
from __future__ import annotations

import json
import logging

from augment.config.schemas.observability import LoggingConfig

LOGGER_NAMES = ("augment", "picture_link")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        data = {
            "ts": record.created,
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def _make_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonLineFormatter()
    return logging.Formatter("[%(name)s] %(levelname)s %(message)s")


def configure_logging(cfg: LoggingConfig | None = None) -> None:
    """(Re)attach one stream handler per namespace; safe to call twice."""
    cfg = cfg or LoggingConfig()
    level = _LEVELS[cfg.level]
    for name in LOGGER_NAMES:
        lg = logging.getLogger(name)
        for h in list(lg.handlers):
            if getattr(h, "_augment_owned", False):
                lg.removeHandler(h)
        h = logging.StreamHandler()
        h.setFormatter(_make_formatter(cfg.format))
        h._augment_owned = True  # type: ignore[attr-defined]
        lg.addHandler(h)
        lg.setLevel(level)


__all__ = ["configure_logging", "JsonLineFormatter", "LOGGER_NAMES"]
