# android_x86_hook/core/__init__.py
from .exceptions import (
    DescriptorDecodeError,
    DocumentDecodeError,
    DocumentEncodeError,
    Fatal,
    HookError,
    QemuArgsDecodeError,
)
from .logger import Log

__all__ = [
    "DescriptorDecodeError",
    "DocumentDecodeError",
    "DocumentEncodeError",
    "Fatal",
    "HookError",
    "QemuArgsDecodeError",
    "Log",
]
