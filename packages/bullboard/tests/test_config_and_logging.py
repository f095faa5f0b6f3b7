from __future__ import annotations

import json
import logging
import sys

import pytest
from pydantic import ValidationError

from bullboard.config import Environments, Settings
from bullboard.logging import JSONFormatter, TextFormatter, configure_logging
from bullboard.middleware import RequestIDFilter, request_id_var
from bullboard.models import ConnectionParams, EngineVariant


def test_settings_read_bull_board_environment(monkeypatch) -> None:
    monkeypatch.setenv("REDIS_HOST", "cache.internal")
    monkeypatch.setenv("REDIS_PORT", "6390")
    monkeypatch.setenv("REDIS_DB", "3")
    monkeypatch.setenv("REDIS_PASSWORD", "hunter2")
    monkeypatch.setenv("REDIS_USE_TLS", "true")
    monkeypatch.setenv("BULL_PREFIX", "myapp")
    monkeypatch.setenv("BULL_VERSION", "bullmq")

    settings = Settings(_env_file=None)

    assert settings.bull_version is EngineVariant.BULLMQ
    assert settings.bull_prefix == "myapp"
    assert settings.connection_params == ConnectionParams(
        host="cache.internal", port=6390, db=3, password="hunter2", tls=True
    )


def test_settings_reject_unknown_bull_version() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, bull_version="kue")


def test_empty_password_is_treated_as_unset() -> None:
    settings = Settings(_env_file=None, redis_password="")
    assert settings.connection_params.password is None
    assert "password" not in settings.connection_params.as_bundle()


@pytest.mark.parametrize(
    ("home_page", "expected", "prefix"),
    [
        ("/", "/", ""),
        ("", "/", ""),
        ("queues/", "/queues", "/queues"),
        ("/admin/bull", "/admin/bull", "/admin/bull"),
    ],
)
def test_home_page_is_normalized(home_page: str, expected: str, prefix: str) -> None:
    settings = Settings(_env_file=None, home_page=home_page)
    assert settings.home_page == expected
    assert settings.route_prefix == prefix


def test_env_aliases() -> None:
    assert Settings(_env_file=None, env="production").env is Environments.PROD
    assert Settings(_env_file=None, env="Development").is_development
    assert Settings(_env_file=None, env="prod").is_production


def _record(msg: str = "refresh %s", args=("failed",), exc_info=None, **extra):
    return logging.getLogger("bullboard.test").makeRecord(
        "bullboard.test", logging.ERROR, __file__, 1, msg, args, exc_info, extra=extra
    )


def test_json_formatter_emits_refresh_context_and_error() -> None:
    try:
        raise RuntimeError("scan failed")
    except RuntimeError:
        record = _record(
            exc_info=sys.exc_info(),
            generation=3,
            prefix="bull",
            queue_count=2,
            request_id="req-1",
        )

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "refresh failed"
    assert payload["level"] == "ERROR"
    assert payload["generation"] == 3
    assert payload["prefix"] == "bull"
    assert payload["queue_count"] == 2
    assert payload["request_id"] == "req-1"
    assert payload["error"]["type"] == "RuntimeError"
    assert "state" not in payload


def test_text_formatter_appends_context_fields() -> None:
    line = TextFormatter().format(_record(generation=5, queue_count=0, prefix="myapp"))

    assert line.endswith("refresh failed generation=5 prefix=myapp queue_count=0")


def test_text_formatter_leaves_plain_records_alone() -> None:
    line = TextFormatter().format(_record("plain", ()))
    assert line.endswith("[bullboard.test] plain")


def test_request_id_filter_uses_context_unless_given() -> None:
    token = request_id_var.set("abc")
    try:
        plain = logging.LogRecord("x", logging.INFO, __file__, 1, "m", (), None)
        assert RequestIDFilter().filter(plain) is True
        assert plain.request_id == "abc"  # type: ignore[attr-defined]

        explicit = _record(request_id="req-9")
        RequestIDFilter().filter(explicit)
        assert explicit.request_id == "req-9"  # type: ignore[attr-defined]
    finally:
        request_id_var.reset(token)


def test_configure_logging_installs_single_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(log_format="json", debug=True)
        configure_logging(log_format="json", debug=True)
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert root.level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
