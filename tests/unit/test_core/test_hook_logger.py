# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import json
import logging
import uuid
from collections import OrderedDict

import pytest

from android_x86_hook.core import logger as logger_mod
from android_x86_hook.core.exceptions import DocumentDecodeError, QemuArgsDecodeError
from android_x86_hook.core.logger import (
    TRACE,
    ContextLoggerAdapter,
    EmojiFormatter,
    JsonFormatter,
    Log,
    LogStyle,
)


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=1)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    logger = logging.getLogger(f"tests.logger.{uuid.uuid4().hex}")
    logger.propagate = False
    logger.setLevel(1)
    handler = _ListHandler()
    logger.addHandler(handler)
    yield logger, handler.records
    logger.removeHandler(handler)


def _record(msg="hello", level=logging.INFO, ctx=None):
    rec = logging.LogRecord("android_x86_hook.test", level, __file__, 10, msg, (), None)
    if ctx is not None:
        rec.ctx = ctx
    return rec


@pytest.mark.unit
class TestLevels:
    @pytest.mark.parametrize(
        "verbose, quiet, level",
        [
            (0, 0, logging.INFO),
            (2, 0, logging.DEBUG),
            (3, 0, TRACE),
            (0, 1, logging.WARNING),
            (0, 2, logging.ERROR),
            (3, 1, logging.WARNING),
        ],
    )
    def test_level_from_flags(self, verbose, quiet, level):
        assert Log._level_from_flags(verbose, quiet) == level

    def test_get_returns_child_logger(self):
        assert Log.get().name == "android_x86_hook"
        assert Log.get("callbacks").name == "android_x86_hook.callbacks"


@pytest.mark.unit
class TestContextAdapter:
    def test_bind_attaches_ctx(self, captured):
        logger, records = captured
        Log.bind(logger, vmi="default/android").info("hello")
        assert records[0].ctx == {"vmi": "default/android"}

    def test_bind_merges(self, captured):
        logger, records = captured
        log = Log.bind(Log.bind(logger, rpc="OnDefineDomain"), vmi="ns/a")
        assert isinstance(log, ContextLoggerAdapter)

        log.info("x", extra={"ctx": {"rule": "vgpu"}})
        assert records[0].ctx == {"rpc": "OnDefineDomain", "vmi": "ns/a", "rule": "vgpu"}

    def test_trace_respects_level(self, captured):
        logger, records = captured
        log = Log.bind(logger, vmi="ns/a")
        log.trace("<domain/>")
        logger.setLevel(logging.DEBUG)
        log.trace("<domain/>")

        assert [r.levelno for r in records] == [TRACE]

    def test_ok_and_fail_prefix(self, captured):
        logger, records = captured
        Log.ok(logger, "done")
        Log.fail(logger, "broken", error="DocumentDecodeError")

        assert records[0].getMessage() == "✅ done"
        assert records[1].levelno == logging.ERROR
        assert records[1].ctx == {"error": "DocumentDecodeError"}

    def test_fail_attaches_hook_error(self, captured):
        logger, records = captured
        err = DocumentDecodeError(msg="bad domain", cause=ValueError("line 1"), context={"bytes": 8})
        Log.fail(Log.bind(logger, vmi="ns/a"), str(err), err=err)

        assert records[0].ctx == {"vmi": "ns/a"}
        assert records[0].hook_error == {
            "type": "DocumentDecodeError",
            "code": 1,
            "fatal": True,
            "message": "bad domain",
            "context": {"bytes": 8},
            "cause": {"type": "ValueError", "message": "line 1"},
        }


@pytest.mark.unit
def test_warn_once(captured):
    logger, records = captured
    key = ("pci-slot", uuid.uuid4().hex)

    assert Log.warn_once(logger, key, "slot busy") is True
    assert Log.warn_once(logger, key, "slot busy") is False
    assert len(records) == 1


@pytest.mark.unit
def test_warn_once_forgets_oldest_key_past_cap(captured, monkeypatch):
    monkeypatch.setattr(logger_mod, "_WARNED_MAX", 2)
    monkeypatch.setattr(logger_mod, "_warned", OrderedDict())
    logger, records = captured

    assert Log.warn_once(logger, "a", "first") is True
    assert Log.warn_once(logger, "b", "second") is True
    assert Log.warn_once(logger, "c", "third") is True
    assert list(logger_mod._warned) == ["b", "c"]

    assert Log.warn_once(logger, "c", "third") is False
    assert Log.warn_once(logger, "a", "first") is True
    assert len(records) == 4


@pytest.mark.unit
class TestFormatters:
    def test_json_formatter_is_one_object_per_line(self):
        line = JsonFormatter().format(_record("hi", ctx={"vmi": "ns/a"}))
        obj = json.loads(line)

        assert "\n" not in line
        assert obj["level"] == "INFO"
        assert obj["msg"] == "hi"
        assert obj["ctx"] == {"vmi": "ns/a"}
        assert "thread" in obj

    def test_json_formatter_includes_hook_error(self):
        rec = _record("broken", level=logging.ERROR)
        rec.hook_error = QemuArgsDecodeError(msg="not a list").to_dict()
        obj = json.loads(JsonFormatter().format(rec))

        assert obj["error"]["type"] == "QemuArgsDecodeError"
        assert obj["error"]["fatal"] is False
        assert "error" not in json.loads(JsonFormatter().format(_record()))

    def test_emoji_formatter_appends_ctx(self):
        fmt = EmojiFormatter(LogStyle(color=False, unicode=False))
        line = fmt.format(_record("configured", ctx={"rule": "vgpu", "vmi": "ns/a"}))

        assert line.endswith("configured rule=vgpu vmi=ns/a")
        assert "INFO" in line

    def test_emoji_formatter_shows_thread(self):
        fmt = EmojiFormatter(LogStyle(color=False, show_thread=True))
        assert "thread=" in fmt.format(_record())
