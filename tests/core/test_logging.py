from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from types import ModuleType

import pytest

from flashdeck.core import logging as logging_module


@pytest.fixture()
def fresh_logging_module(monkeypatch: pytest.MonkeyPatch) -> Iterator[ModuleType]:
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    monkeypatch.setattr(logging_module, "_LOGGING_CONFIGURED", False)

    yield logging_module

    root_logger.handlers = original_handlers
    root_logger.setLevel(original_level)
    logging_module._LOGGING_CONFIGURED = False


def _make_record(msg: str, **extra: object) -> logging.LogRecord:
    logger = logging.getLogger("test-json")
    return logger.makeRecord(
        name="test-json",
        level=logging.INFO,
        fn="test_logging.py",
        lno=42,
        msg=msg,
        args=(),
        exc_info=None,
        func="_make_record",
        extra=extra,
    )


def test_configure_logging_installs_json_formatter(fresh_logging_module: ModuleType) -> None:
    fresh_logging_module.configure_logging("debug")

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert any(
        isinstance(handler.formatter, logging_module.JsonLogFormatter)
        for handler in root_logger.handlers
    )


def test_configure_logging_is_idempotent(fresh_logging_module: ModuleType) -> None:
    fresh_logging_module.configure_logging("info")
    root_logger = logging.getLogger()
    first_handlers = list(root_logger.handlers)

    fresh_logging_module.configure_logging("warning")

    assert list(root_logger.handlers) == first_handlers
    assert root_logger.level == logging.INFO


def test_configure_logging_falls_back_to_info_for_unknown_level(
    fresh_logging_module: ModuleType,
) -> None:
    fresh_logging_module.configure_logging("chatty")

    assert logging.getLogger().level == logging.INFO


def test_json_formatter_enriches_request_context() -> None:
    token = logging_module.bind_request_id("req-123")
    try:
        record = _make_record(
            "access",
            http_method="GET",
            http_path="/health",
            status_code=200,
            duration_ms=12.5,
        )
        formatted = logging_module.JsonLogFormatter().format(record)
    finally:
        logging_module.reset_request_id(token)

    payload = json.loads(formatted)
    assert payload["request_id"] == "req-123"
    assert payload["message"] == "access"
    assert payload["http_method"] == "GET"
    assert payload["status_code"] == 200
    assert payload["duration_ms"] == 12.5
    assert logging_module.get_request_id() is None


def test_json_formatter_redacts_credentials() -> None:
    record = _make_record(
        "login attempt",
        email="learner@example.com",
        password="hunter2",
        access_token="eyJhbGciOi",
        Authorization="Bearer abc",
    )

    payload = json.loads(logging_module.JsonLogFormatter().format(record))

    assert payload["email"] == "learner@example.com"
    assert payload["password"] == "***"
    assert payload["access_token"] == "***"
    assert payload["Authorization"] == "***"


def test_json_formatter_stringifies_unserializable_extras() -> None:
    record = _make_record(
        "deck updated",
        fields=["name", "description"],
        deck=object(),
    )

    payload = json.loads(logging_module.JsonLogFormatter().format(record))

    assert payload["fields"] == ["name", "description"]
    assert isinstance(payload["deck"], str)


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("password", True),
        ("new_password", True),
        ("SECRET_KEY", True),
        ("token_type", True),
        ("user_id", False),
        ("deck_id", False),
    ],
)
def test_is_sensitive_key(key: str, expected: bool) -> None:
    assert logging_module.is_sensitive_key(key) is expected
