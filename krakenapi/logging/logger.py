from __future__ import annotations

import logging
import re
import sys
import time
from typing import IO, Optional

from krakenapi.configuration.config import settings

APP_NAMESPACE = "krakenapi"

# Module paths are long; the console only shows what follows this prefix.
_SHORT_NAME_PREFIX = APP_NAMESPACE + ".integrations."

# Leading tags such as "[KRAKEN][ORDER][ADD]".
_TAG_PATTERN = re.compile(r"^((?:\[[A-Z0-9_]+\])+)\s*")

_RESET = "\033[0m"
_DIM = "\033[2m"
_BOLD = "\033[1m"

_LEVEL_STYLE = {
    "DEBUG": ("🔍", "\033[36m"),
    "INFO": ("ℹ️", "\033[32m"),
    "WARNING": ("⚠️", "\033[33m"),
    "ERROR": ("❌", "\033[31m"),
    "CRITICAL": ("🛑", "\033[35m"),
}

# Nothing is printed until the application calls init_logging().
logging.getLogger(APP_NAMESPACE).addHandler(logging.NullHandler())


def _level_from_str(value: str) -> int:
    level = logging.getLevelName((value or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _canonical_name(name: str) -> str:
    if name == APP_NAMESPACE or name.startswith(APP_NAMESPACE + "."):
        return name
    return f"{APP_NAMESPACE}.{name}"


def _short_name(name: str) -> str:
    if name.startswith(_SHORT_NAME_PREFIX):
        return name[len(_SHORT_NAME_PREFIX):]
    return name


class ColorFormatter(logging.Formatter):
    """
    One line per record: local timestamp, level emoji, short logger name, message.

      2025-10-02 01:36:22.123 ℹ️ INFO     kraken.kraken_client [KRAKEN][ORDER][ADD] pair=XBTUSD side=buy

    With colors on, the leading bracket tags are highlighted so request
    traces stand out from httpx lines.
    """

    def __init__(self, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(record.created))
        timestamp += f".{int(record.msecs):03d}"
        level_name = record.levelname.upper()
        emoji, color = _LEVEL_STYLE.get(level_name, ("", ""))
        name = _short_name(record.name or "")
        message = record.getMessage()

        if self.use_color:
            message = _TAG_PATTERN.sub(lambda m: f"{_BOLD}{m.group(1)}{_RESET} ", message, count=1)
            line = f"{_DIM}{timestamp}{_RESET} {color}{emoji} {level_name:<8}{_RESET} {name} {message}{_RESET}"
        else:
            line = f"{timestamp} {emoji} {level_name:<8} {name} {message}"

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _find_console_handler(root: logging.Logger) -> Optional[logging.Handler]:
    for handler in root.handlers:
        if getattr(handler, "_krakenapi_handler", False):
            return handler
    return None


def init_logging(
        level: Optional[str] = None,
        *,
        use_color: Optional[bool] = None,
        stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """
    Route krakenapi, httpx and httpcore records to one console handler.

    Safe to call more than once: the handler installed by the first call is
    reused. `level` overrides LOG_LEVEL_KRAKENAPI; colors default to on for a
    terminal unless NO_COLOR is set.
    """
    root = logging.getLogger()
    root.setLevel(_level_from_str(settings.LOG_LEVEL))

    handler = _find_console_handler(root)
    if handler is None:
        target = stream or sys.stderr
        if use_color is None:
            use_color = target.isatty() and not settings.NO_COLOR
        handler = logging.StreamHandler(stream=target)
        handler._krakenapi_handler = True
        handler.setFormatter(ColorFormatter(use_color=use_color))
        root.addHandler(handler)
    handler.setLevel(logging.NOTSET)

    logging.getLogger(APP_NAMESPACE).setLevel(_level_from_str(level or settings.LOG_LEVEL_KRAKENAPI))
    logging.getLogger("httpx").setLevel(_level_from_str(settings.LOG_LEVEL_LIB_HTTPX))
    logging.getLogger("httpcore").setLevel(_level_from_str(settings.LOG_LEVEL_LIB_HTTPCORE))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the 'krakenapi.*' namespace."""
    return logging.getLogger(_canonical_name(name or __name__))
