# SPDX-License-Identifier: LGPL-3.0-or-later
# android_x86_hook/core/exceptions.py
"""
Error taxonomy.

    HookError
      Fatal                  bootstrap (config, socket bind): process exits with .code
      DescriptorDecodeError  VMI payload unusable            -> call aborted
      DocumentDecodeError    domain XML unusable             -> call aborted
      DocumentEncodeError    mutated domain not serializable -> call aborted
      QemuArgsDecodeError    qemu args annotation malformed  -> rule skipped (fatal=False)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional


def _exit_code(raw: Any) -> int:
    try:
        code = int(raw)
    except (TypeError, ValueError):
        return 1
    if code < 0:
        return 1
    return min(code, 255)


def _single_line(text: str, limit: int = 600) -> str:
    flat = " ".join((text or "").split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


@dataclass(eq=False)
class HookError(Exception):
    """
    Base error. `msg` is what ends up in the log line and in the gRPC status
    details; `context` holds structured extras (annotation key, socket path).
    """
    code: int = 1
    msg: str = "error"
    cause: Optional[BaseException] = None
    context: Optional[Dict[str, Any]] = None

    # False: the caller logs the error and carries on without the failed step.
    fatal: ClassVar[bool] = True

    def __post_init__(self) -> None:
        self.code = _exit_code(self.code)
        self.msg = _single_line(self.msg) or type(self).__name__
        Exception.__init__(self, self.msg)

    def with_context(self, **ctx: Any) -> "HookError":
        self.context = {**(self.context or {}), **ctx}
        return self

    def user_message(self, *, include_context: bool = False, include_cause: bool = False) -> str:
        out = self.msg
        if include_context and self.context:
            pairs = ", ".join(f"{k}={self.context[k]!r}" for k in sorted(self.context))
            out += f" [{_single_line(pairs)}]"
        if include_cause and self.cause is not None:
            out += f" (cause: {type(self.cause).__name__}: {_single_line(str(self.cause))})"
        return out

    def __str__(self) -> str:
        return self.msg

    def to_dict(self, *, include_cause: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "type": type(self).__name__,
            "code": self.code,
            "fatal": self.fatal,
            "message": self.msg,
            "context": dict(self.context or {}),
        }
        if include_cause and self.cause is not None:
            d["cause"] = {"type": type(self.cause).__name__, "message": _single_line(str(self.cause))}
        return d


class Fatal(HookError):
    """Startup failure; main() exits with `code`."""


class DescriptorDecodeError(HookError):
    """The VirtualMachineInstance payload is not the expected JSON shape."""


class DocumentDecodeError(HookError):
    """The libvirt domain XML payload could not be parsed."""


class DocumentEncodeError(HookError):
    """The mutated domain could not be serialized back to XML."""


class QemuArgsDecodeError(HookError):
    """The qemu args annotation is not a JSON array of strings."""
    fatal: ClassVar[bool] = False


def format_exception_for_cli(e: BaseException, *, verbose: int = 0) -> str:
    """
    verbose=0: message
    verbose=1: message + context
    verbose>=2: message + context + cause
    """
    if isinstance(e, HookError):
        return e.user_message(include_context=verbose >= 1, include_cause=verbose >= 2)
    text = _single_line(str(e))
    if verbose >= 2 or not text:
        return f"{type(e).__name__}: {text}" if text else type(e).__name__
    return text
