"""Process-wide logging: coloured console output plus a plain UTF-8 log file.

Timestamps are rendered in TIMEZONE (pytz). LOG_LEVEL=debug switches every
handler to DEBUG and lets the httpx and aiosqlite chatter through.
"""

import logging
import logging.config
import os
from datetime import datetime
from logging import Logger

from pytz import timezone

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVEL_PREFIX = {
    logging.CRITICAL: "⛔ ",
    logging.ERROR: "⛔ ",
    logging.WARNING: "⚠️ ",
}

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}

_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


class TimezoneFormatter(logging.Formatter):
    """Renders asctime in a pytz timezone and prefixes warnings and errors."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        moment = datetime.fromtimestamp(record.created, self.tz)
        return moment.strftime(datefmt) if datefmt else moment.isoformat()

    def format(self, record):
        # every handler formats its own copy, so the prefix is added once per line
        record = logging.makeLogRecord(record.__dict__)
        record.msg = _LEVEL_PREFIX.get(record.levelno, "") + record.getMessage()
        record.args = ()
        return super().format(record)


class ColoredFormatter(TimezoneFormatter):
    """Console formatter; wraps the line in ANSI codes when the record carries a color."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _COLOR_MAP.get(getattr(record, "color", None) or "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi else line


class ColorLogger:
    """Logger wrapper whose log methods accept an optional ``color=`` keyword.

    Usage::

        logger.info("Vector store ready")
        logger.info("All clients booted", color="green")

    Only the console handler renders the colour; the log file stays plain.
    """

    _LOG_METHODS = frozenset({"debug", "info", "warning", "error", "critical", "exception", "log"})

    def __init__(self, logger: Logger):
        self._logger = logger

    def __getattr__(self, name):
        attr = getattr(self._logger, name)
        if name not in self._LOG_METHODS:
            return attr

        def log_with_color(*args, color: str | None = None, **kwargs):
            if color is not None:
                kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
            return attr(*args, **kwargs)

        return log_with_color


def setup_logging() -> ColorLogger:
    """Configure the root logger and return the application logger."""
    debug_mode = os.getenv("LOG_LEVEL", "info").lower() == "debug"
    level = logging.DEBUG if debug_mode else logging.INFO
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
    os.makedirs(log_dir, exist_ok=True)

    def formatter(factory: type[logging.Formatter]) -> dict:
        return {"()": factory, "fmt": LOG_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": formatter(TimezoneFormatter),
            "colored": formatter(ColoredFormatter),
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "standard",
                "level": level,
                "filename": os.path.join(log_dir, "app.log"),
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    })

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger("policy_rag"))
