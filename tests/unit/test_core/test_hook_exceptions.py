# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tests for the hook error taxonomy."""
from __future__ import annotations

import pytest

from android_x86_hook.core.exceptions import (
    DescriptorDecodeError,
    DocumentDecodeError,
    DocumentEncodeError,
    Fatal,
    HookError,
    QemuArgsDecodeError,
    format_exception_for_cli,
)


@pytest.mark.unit
class TestHookErrorHierarchy:
    """Every project error is a HookError; only qemu args errors are recoverable."""

    @pytest.mark.parametrize(
        "cls, fatal",
        [
            (Fatal, True),
            (DescriptorDecodeError, True),
            (DocumentDecodeError, True),
            (DocumentEncodeError, True),
            (QemuArgsDecodeError, False),
        ],
    )
    def test_fatal_flag(self, cls, fatal):
        err = cls(msg="x")
        assert isinstance(err, HookError)
        assert err.fatal is fatal

    def test_defaults(self):
        err = HookError()
        assert err.code == 1
        assert err.msg == "error"
        assert err.cause is None
        assert err.context is None

    def test_exit_code_is_clamped(self):
        assert Fatal(code=-3, msg="x").code == 1
        assert Fatal(code=999, msg="x").code == 255
        assert Fatal(code="7", msg="x").code == 7
        assert Fatal(code="nope", msg="x").code == 1

    def test_message_is_one_line(self):
        err = DocumentDecodeError(msg="line one\n   line two")
        assert err.msg == "line one line two"
        assert str(err) == "line one line two"

    def test_empty_message_falls_back_to_class_name(self):
        assert DocumentEncodeError(msg="").msg == "DocumentEncodeError"


@pytest.mark.unit
class TestHookErrorReporting:
    def test_with_context_chains(self):
        err = DescriptorDecodeError(msg="bad").with_context(annotation="k").with_context(vmi="ns/a")
        assert err.context == {"annotation": "k", "vmi": "ns/a"}

    def test_user_message_parts(self):
        err = DocumentDecodeError(msg="bad xml", cause=ValueError("line 1")).with_context(vmi="ns/a")

        assert err.user_message() == "bad xml"
        assert err.user_message(include_context=True) == "bad xml [vmi='ns/a']"
        assert err.user_message(include_cause=True) == "bad xml (cause: ValueError: line 1)"

    def test_to_dict(self):
        err = QemuArgsDecodeError(msg="not a list", cause=TypeError("int"))
        d = err.to_dict(include_cause=True)

        assert d["type"] == "QemuArgsDecodeError"
        assert d["fatal"] is False
        assert d["context"] == {}
        assert d["cause"] == {"type": "TypeError", "message": "int"}

    def test_format_exception_for_cli(self):
        err = Fatal(code=2, msg="Failed to initialize socket", cause=OSError("busy")).with_context(path="/x.sock")

        assert format_exception_for_cli(err) == "Failed to initialize socket"
        assert "path='/x.sock'" in format_exception_for_cli(err, verbose=1)
        assert "OSError: busy" in format_exception_for_cli(err, verbose=2)
        assert format_exception_for_cli(RuntimeError("boom"), verbose=2) == "RuntimeError: boom"
