from __future__ import annotations

import io
import logging

import pytest

from krakenapi.configuration.config import _as_bool
from krakenapi.logging.logger import APP_NAMESPACE, ColorFormatter, _level_from_str, get_logger, init_logging


def _record(message: str, level: int = logging.INFO, name: str = "krakenapi.tests") -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, message, None, None)


@pytest.fixture()
def restore_root_handlers():
    root = logging.getLogger()
    before = list(root.handlers)
    level = logging.getLogger(APP_NAMESPACE).level
    root_level = root.level
    yield root
    root.setLevel(root_level)
    for handler in list(root.handlers):
        if handler not in before:
            root.removeHandler(handler)
    logging.getLogger(APP_NAMESPACE).setLevel(level)


def test_get_logger_uses_the_application_namespace() -> None:
    assert get_logger("krakenapi.integrations.kraken.kraken_client").name == "krakenapi.integrations.kraken.kraken_client"
    assert get_logger("tests.sample").name == "krakenapi.tests.sample"


def test_library_is_silent_until_configured() -> None:
    handlers = logging.getLogger(APP_NAMESPACE).handlers
    assert any(isinstance(handler, logging.NullHandler) for handler in handlers)


def test_level_from_str_falls_back_to_info() -> None:
    assert _level_from_str("debug") == logging.DEBUG
    assert _level_from_str("WARNING") == logging.WARNING
    assert _level_from_str("chatty") == logging.INFO
    assert _level_from_str("") == logging.INFO


def test_plain_formatter_shortens_integration_names() -> None:
    record = _record("[KRAKEN][QUERY] GET /0/public/Time", name="krakenapi.integrations.kraken.kraken_client")
    line = ColorFormatter(use_color=False).format(record)
    assert "INFO" in line
    assert line.endswith(" kraken.kraken_client [KRAKEN][QUERY] GET /0/public/Time")
    assert "\033[" not in line


def test_colored_formatter_highlights_leading_tags() -> None:
    line = ColorFormatter(use_color=True).format(_record("[KRAKEN][HTTP] GET fails", logging.ERROR))
    assert "\033[31m" in line
    assert "\033[1m[KRAKEN][HTTP]\033[0m GET fails" in line
    assert line.endswith("\033[0m")


def test_init_logging_installs_a_single_handler(restore_root_handlers) -> None:
    stream = io.StringIO()
    first = init_logging("DEBUG", use_color=False, stream=stream)
    second = init_logging()
    ours = [h for h in restore_root_handlers.handlers if getattr(h, "_krakenapi_handler", False)]

    assert first is second
    assert len(ours) == 1
    assert logging.getLogger("httpx").level == logging.WARNING


def test_init_logging_routes_application_records(restore_root_handlers) -> None:
    stream = io.StringIO()
    init_logging("DEBUG", use_color=False, stream=stream)

    get_logger("integrations.kraken.kraken_signature").debug("[KRAKEN][SIGN] Signed %s", "/0/private/Balance")

    assert "kraken.kraken_signature [KRAKEN][SIGN] Signed /0/private/Balance" in stream.getvalue()


def test_as_bool() -> None:
    assert _as_bool("yes") is True
    assert _as_bool(" On ") is True
    assert _as_bool("0") is False
    assert _as_bool(None, True) is True
