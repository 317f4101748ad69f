# SPDX-License-Identifier: LGPL-3.0-or-later
# android_x86_hook/core/logger.py
"""
Logging for the sidecar.

One project logger (``android_x86_hook``) with children per component
(``Log.get("callbacks")``). Every OnDefineDomain call binds the VMI identity
onto its logger, so interleaved lines from concurrent gRPC workers can be told
apart:

    12:00:01 ✅ INFO     Configuring the video model to be 'virtio' vmi=default/android

``-vvv`` enables TRACE, which dumps the full inbound and outbound domain XML.
"""
from __future__ import annotations

import datetime as _dt
import json
import logging
import os
import sys
import threading
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from termcolor import colored as _colored

LOGGER_NAME = "android_x86_hook"

TRACE = 5
if logging.getLevelName(TRACE) != "TRACE":
    logging.addLevelName(TRACE, "TRACE")


def _logger_trace(self: logging.Logger, msg: str, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(TRACE):
        self._log(TRACE, msg, args, **kwargs)


if not hasattr(logging.Logger, "trace"):
    logging.Logger.trace = _logger_trace  # type: ignore[attr-defined]

# levelname -> (emoji, colour)
_LEVELS: Dict[str, Tuple[str, str]] = {
    "TRACE": ("🧬", "cyan"),
    "DEBUG": ("🔍", "blue"),
    "INFO": ("✅", "green"),
    "WARNING": ("⚠️", "yellow"),
    "ERROR": ("💥", "red"),
    "CRITICAL": ("🧨", "red"),
}


def c(
    text: str,
    color: Optional[str] = None,
    attrs: Optional[List[str]] = None,
    *,
    enable: bool = True,
) -> str:
    """Colorize text with termcolor when enabled."""
    if not enable or not color:
        return text
    return _colored(text, color=color, attrs=attrs or [])


def _stderr_is_tty() -> bool:
    isatty = getattr(sys.stderr, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        # closed stream during interpreter shutdown
        return False


def _stderr_takes_emoji() -> bool:
    enc = getattr(sys.stderr, "encoding", None) or "utf-8"
    try:
        "✅🧬".encode(enc)
    except (LookupError, UnicodeEncodeError):
        return False
    return True


def _flat(v: Any, limit: int = 240) -> str:
    s = v if isinstance(v, str) else repr(v)
    s = s.replace("\r", "\\r").replace("\n", "\\n")
    return s if len(s) <= limit else s[: limit - 1] + "…"


# ---------------------------------------------------------------------------
# Per-call context
# ---------------------------------------------------------------------------

class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Carries a ``ctx`` dict onto every record (``record.ctx``).

    Nested binds merge: ``Log.bind(Log.bind(log, rpc="OnDefineDomain"),
    vmi="default/android")`` yields both keys. A call site may add one-off
    keys with ``extra={"ctx": {...}}``.
    """

    def __init__(self, logger: logging.Logger, ctx: Optional[Mapping[str, Any]] = None):
        super().__init__(logger, {"ctx": dict(ctx or {})})

    @property
    def ctx(self) -> Dict[str, Any]:
        return self.extra["ctx"]

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["ctx"] = {**self.ctx, **(extra.get("ctx") or {})}
        kwargs["extra"] = extra
        return msg, kwargs

    def trace(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(TRACE, msg, *args, **kwargs)

    def bind(self, **ctx: Any) -> "ContextLoggerAdapter":
        return ContextLoggerAdapter(self.logger, {**self.ctx, **ctx})


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LogStyle:
    color: bool = True
    unicode: bool = True
    utc: bool = False
    show_ms: bool = False
    show_thread: bool = False  # gRPC worker name
    show_logger: bool = False


class EmojiFormatter(logging.Formatter):
    """``HH:MM:SS <emoji> LEVEL [thread logger] message k=v ...``"""

    def __init__(self, style: LogStyle = LogStyle()):
        super().__init__()
        self.style = style

    def _clock(self, created: float) -> str:
        tz = _dt.timezone.utc if self.style.utc else None
        ts = _dt.datetime.fromtimestamp(created, tz=tz)
        return ts.strftime("%H:%M:%S.%f")[:-3] if self.style.show_ms else ts.strftime("%H:%M:%S")

    def _where(self, record: logging.LogRecord) -> str:
        bits = []
        if self.style.show_thread:
            bits.append(f"thread={record.threadName}")
        if self.style.show_logger:
            bits.append(record.name)
        return f" [{' '.join(bits)}]" if bits else ""

    def format(self, record: logging.LogRecord) -> str:
        emoji, colour = _LEVELS.get(record.levelname, ("•", "white"))
        if not self.style.unicode:
            emoji = "·"
        tty = self.style.color and _stderr_is_tty()

        msg = record.getMessage()
        if record.levelno >= logging.WARNING:
            msg = c(msg, colour, ["bold"], enable=tty)

        ctx = getattr(record, "ctx", None) or {}
        kv = "".join(f" {k}={_flat(ctx[k])}" for k in sorted(ctx))

        level = c(f"{record.levelname:<8}", colour, enable=tty)
        line = f"{self._clock(record.created)} {emoji} {level}{self._where(record)} {msg}{kv}"

        if record.exc_info:
            tb = self.formatException(record.exc_info)
            line += "\n" + c("\n".join("  " + ln for ln in tb.splitlines()), "red", enable=tty)
        if record.stack_info:
            line += "\n" + self.formatStack(record.stack_info)
        return line


class JsonFormatter(logging.Formatter):
    """
    NDJSON, one object per record, for clusters that ship sidecar stderr to a
    log store. Keys: ts, level, logger, thread, msg, ctx (when bound), error
    (HookError passed to Log.fail), exc.
    """

    def __init__(self, *, utc: bool = True):
        super().__init__()
        self.utc = utc

    def format(self, record: logging.LogRecord) -> str:
        tz = _dt.timezone.utc if self.utc else None
        obj: Dict[str, Any] = {
            "ts": _dt.datetime.fromtimestamp(record.created, tz=tz).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "msg": record.getMessage(),
        }
        ctx = getattr(record, "ctx", None)
        if ctx:
            obj["ctx"] = dict(ctx)
        hook_error = getattr(record, "hook_error", None)
        if hook_error:
            obj["error"] = hook_error
        if record.exc_info:
            obj["exc"] = self.formatException(record.exc_info)
        return json.dumps(obj, ensure_ascii=False, default=_flat)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

# Insertion-ordered; past _WARNED_MAX the oldest key is evicted and may warn again.
_WARNED_MAX = 1024
_warned: "OrderedDict[str, None]" = OrderedDict()
_warned_lock = threading.Lock()


class Log:
    @staticmethod
    def _level_from_flags(verbose: int, quiet: int) -> int:
        """-q WARNING, -qq ERROR, -vv DEBUG, -vvv TRACE; quiet wins."""
        if quiet:
            return logging.ERROR if quiet >= 2 else logging.WARNING
        if verbose >= 3:
            return TRACE
        if verbose == 2:
            return logging.DEBUG
        return logging.INFO

    @staticmethod
    def get(name: Optional[str] = None) -> logging.Logger:
        """Project logger, or a child of it (`Log.get("callbacks")`)."""
        return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)

    @staticmethod
    def bind(logger: Union[logging.Logger, ContextLoggerAdapter], **ctx: Any) -> ContextLoggerAdapter:
        if isinstance(logger, ContextLoggerAdapter):
            return logger.bind(**ctx)
        return ContextLoggerAdapter(logger, ctx)

    @staticmethod
    def ok(logger: Any, msg: str, **ctx: Any) -> None:
        logger.info("✅ %s", msg, extra={"ctx": ctx} if ctx else None)

    @staticmethod
    def fail(logger: Any, msg: str, *, err: Any = None, **ctx: Any) -> None:
        """`err` (a HookError) is attached as `record.hook_error` for JSON output."""
        extra: Dict[str, Any] = {}
        if ctx:
            extra["ctx"] = ctx
        if err is not None:
            extra["hook_error"] = err.to_dict(include_cause=True)
        logger.error("💥 %s", msg, extra=extra or None)

    @staticmethod
    def warn_once(logger: Any, key: Union[str, Tuple[Any, ...]], msg: str, **ctx: Any) -> bool:
        """
        Warn once per process for `key`; later calls with the same key are
        dropped while it is among the last _WARNED_MAX keys seen. Safe to
        call from concurrent gRPC workers.
        Returns True if the warning was emitted.
        """
        k = key if isinstance(key, str) else "|".join(map(str, key))
        with _warned_lock:
            if k in _warned:
                return False
            _warned[k] = None
            while len(_warned) > _WARNED_MAX:
                _warned.popitem(last=False)
        logger.warning("⚠️  %s", msg, extra={"ctx": ctx} if ctx else None)
        return True

    @staticmethod
    def setup(
        verbose: int = 0,
        log_file: Optional[str] = None,
        *,
        quiet: int = 0,
        color: bool = True,
        utc: bool = False,
        logger_name: str = LOGGER_NAME,
        json_logs: bool = False,
    ) -> logging.Logger:
        """
        (Re)configure the project logger: stderr handler, plus an optional
        file handler that always records ms, thread and logger name.
        Safe to call twice (the CLI does, once config files are loaded).
        """
        logger = logging.getLogger(logger_name)
        logger.propagate = False
        level = Log._level_from_flags(verbose, quiet)
        logger.setLevel(level)

        for old in list(logger.handlers):
            logger.removeHandler(old)
            old.close()

        unicode = _stderr_takes_emoji()
        handlers: List[Tuple[logging.Handler, logging.Formatter]] = []

        console_fmt: logging.Formatter
        if json_logs:
            console_fmt = JsonFormatter(utc=utc)
        else:
            console_fmt = EmojiFormatter(
                LogStyle(color=color, unicode=unicode, utc=utc, show_ms=verbose >= 3, show_thread=verbose >= 2)
            )
        handlers.append((logging.StreamHandler(sys.stderr), console_fmt))

        if log_file:
            path = Path(log_file).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            file_fmt = JsonFormatter(utc=utc) if json_logs else EmojiFormatter(
                LogStyle(color=False, unicode=unicode, utc=utc, show_ms=True, show_thread=True, show_logger=True)
            )
            handlers.append((logging.FileHandler(path, encoding="utf-8"), file_fmt))

        for handler, fmt in handlers:
            handler.setLevel(level)
            handler.setFormatter(fmt)
            logger.addHandler(handler)

        logger.debug("Logging at %s (pid %d)", logging.getLevelName(level), os.getpid())
        return logger
