"""Tests for structured logging context and formatters."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor

import pytest

from packages.fleet_shared.logging import (
    bind_context,
    clear_context,
    configure_logging,
    fields,
    get_context,
    log_context,
)
from packages.fleet_shared.logging.config import ContextFilter, JsonFormatter, PlainFormatter


@pytest.fixture(autouse=True)
def _reset_context() -> Iterator[None]:
    clear_context()
    yield
    clear_context()


def _record(message: str, *args: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="fleet.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )
    ContextFilter().filter(record)
    return record


def test_log_context_binds_and_restores_values() -> None:
    """Nested context should be visible inside the block and reset after it."""
    bind_context(service="fleet")
    with log_context({fields.COMPONENT: "web-1.0.0", fields.BATCH_ID: None}):
        assert get_context() == {"service": "fleet", "component": "web-1.0.0"}

    assert get_context() == {"service": "fleet"}


def test_clear_context_drops_selected_keys() -> None:
    """Clearing specific keys should leave the rest in place."""
    bind_context(service="fleet", environment="dev")
    clear_context("environment")

    assert get_context() == {"service": "fleet"}


def test_context_does_not_leak_into_worker_threads() -> None:
    """Values bound in one thread should not appear in another."""
    bind_context(component="local-only")
    with ThreadPoolExecutor(max_workers=1) as pool:
        seen = pool.submit(get_context).result(timeout=5)

    assert seen == {}


def test_json_formatter_includes_core_fields_and_context() -> None:
    """JSON output should carry stable fields plus bound context."""
    with log_context({fields.EVENT: fields.PREPARE_COMPONENT_START_EVENT}):
        record = _record("Preparing %s", "web")
    payload = json.loads(JsonFormatter().format(record))

    assert payload[fields.LEVEL] == "INFO"
    assert payload[fields.LOGGER] == "fleet.test"
    assert payload[fields.MESSAGE] == "Preparing web"
    assert payload[fields.EVENT] == "prepare-component-start"
    assert fields.TIMESTAMP in payload


def test_plain_formatter_appends_sorted_context() -> None:
    """Plain output should append context as sorted key=value pairs."""
    with log_context({"b": "2", "a": "1"}):
        record = _record("hello")

    assert PlainFormatter().format(record).endswith("hello a=1 b=2")


def test_configure_logging_replaces_root_handlers() -> None:
    """Repeated configuration should leave exactly one root handler."""
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    try:
        configure_logging(level="DEBUG", json_output=False, service="fleet")
        configure_logging(level="INFO", json_output=True, service="fleet")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.INFO
        assert get_context()[fields.SERVICE] == "fleet"
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
