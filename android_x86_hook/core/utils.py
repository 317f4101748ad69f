# SPDX-License-Identifier: LGPL-3.0-or-later
# android_x86_hook/core/utils.py
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, NoReturn

from .exceptions import Fatal


class U:
    """Small helpers shared by the CLI, config loader and server."""

    @staticmethod
    def die(logger: logging.Logger, msg: str, code: int = 1) -> NoReturn:
        """Log `msg` and abort startup with Fatal(code)."""
        logger.error(msg)
        raise Fatal(code=code, msg=msg)

    @staticmethod
    def ensure_dir(path: Path) -> Path:
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def json_dump(obj: Any) -> str:
        # --dump-config / --dump-args: Paths and other oddities print as str
        return json.dumps(obj, indent=2, sort_keys=True, default=str)

    @staticmethod
    def preview(data: bytes, limit: int = 200) -> str:
        """Printable head of a payload, for decode error messages."""
        head = data[:limit].decode("utf-8", errors="replace")
        return head if len(data) <= limit else head + "..."
