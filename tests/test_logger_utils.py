# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import io
import json
import logging

import pytest

from hellomcp.utils.logger import ColoredFormatter, HelloMCPHandler, StructuredJSONFormatter, get_logger, setup_logger


def _record(message: str = "done", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("hellomcp.test", logging.INFO, __file__, 0, message, args=(), exc_info=None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def test_setup_logger_writes_plain_text_to_stream(restore_root, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("HELLOMCP_LOG_JSON", raising=False)
    stream = io.StringIO()

    setup_logger(level="DEBUG", stream=stream, fmt="%(levelname)s:%(name)s:%(message)s", force=True)
    get_logger("hellomcp.test").debug("demo")

    assert stream.getvalue().strip().endswith("DEBUG:hellomcp.test:demo")
    assert restore_root.level == logging.DEBUG


def test_setup_logger_json_from_env(restore_root, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HELLOMCP_LOG_JSON", "true")
    stream = io.StringIO()

    setup_logger(level=logging.INFO, stream=stream, force=True)
    get_logger("hellomcp.test").info("greeting", extra={"event": "test.event"})

    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["logger"] == "hellomcp.test"
    assert payload["level"] == "info"
    assert payload["message"] == "greeting"
    assert payload["context"] == {"event": "test.event"}


def test_level_falls_back_to_env(restore_root, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HELLOMCP_LOG_LEVEL", "warning")

    setup_logger(stream=io.StringIO(), force=True)

    assert restore_root.level == logging.WARNING


def test_setup_logger_replaces_only_with_force(restore_root) -> None:
    first, second = io.StringIO(), io.StringIO()

    setup_logger(stream=first, force=True)
    setup_logger(stream=second)

    ours = [handler for handler in restore_root.handlers if isinstance(handler, HelloMCPHandler)]
    assert len(ours) == 1
    assert ours[0].stream is first


def test_json_formatter_merges_context_mapping() -> None:
    formatter = StructuredJSONFormatter(json.dumps)

    payload = json.loads(formatter.format(_record(context={"value": 42}, status=401)))

    assert payload["context"] == {"value": 42, "status": 401}


def test_colored_formatter_restores_record() -> None:
    formatter = ColoredFormatter("%(levelname)s %(name)s %(message)s")
    record = _record()

    rendered = formatter.format(record)

    assert "\033[" in rendered
    assert record.levelname == "INFO"
    assert record.name == "hellomcp.test"
