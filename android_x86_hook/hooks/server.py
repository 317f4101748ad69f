# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/hooks/server.py
"""
gRPC server for the hook sidecar.
Listens on a unix socket in the directory virt-launcher scans for hooks.
"""
from __future__ import annotations

import logging
import threading
from concurrent import futures
from pathlib import Path
from typing import Optional

import grpc

from ..core.exceptions import Fatal, HookError
from ..core.utils import U
from .callbacks import CallbacksServicer
from .info import InfoServicer


class HookServer:
    """
    Owns the socket file and the grpc.Server.

    Lifecycle: start() -> wait() -> stop(). request_stop() may be called from
    any thread (signal handler, a servicer's on_fatal) to make wait() return.
    """

    def __init__(
        self,
        socket_path: Path,
        *,
        info: InfoServicer,
        callbacks: CallbacksServicer,
        max_workers: int = 4,
        grace: float = 2.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.socket_path = Path(socket_path)
        self.info = info
        self.callbacks = callbacks
        self.max_workers = max_workers
        self.grace = grace
        self.logger = logger or logging.getLogger(__name__)

        self.server: Optional[grpc.Server] = None
        self.exit_code = 0
        self._stop_requested = threading.Event()

    @property
    def address(self) -> str:
        return f"unix://{self.socket_path}"

    def start(self) -> None:
        if self.socket_path.exists():
            self.logger.warning("Removing stale socket %s", self.socket_path)
            self.socket_path.unlink()
        U.ensure_dir(self.socket_path.parent)

        server = grpc.server(futures.ThreadPoolExecutor(max_workers=self.max_workers))
        server.add_generic_rpc_handlers((self.info.handler(), self.callbacks.handler()))

        try:
            bound = server.add_insecure_port(self.address)
        except RuntimeError as e:
            raise Fatal(
                code=2,
                msg=f"Failed to initialize socket on path: {self.socket_path}",
                cause=e,
            ).with_context(hint="check whether the directory exists and the socket name is not taken")
        if not bound:
            raise Fatal(code=2, msg=f"Failed to initialize socket on path: {self.socket_path}")

        server.start()
        self.server = server
        self.logger.info(
            "Starting hook server exposing 'info' and 'v1alpha1' services on socket %s",
            self.socket_path,
        )

    def request_stop(self, exit_code: int = 0) -> None:
        if not self._stop_requested.is_set():
            self.exit_code = exit_code
        self._stop_requested.set()

    def stop_on_fatal(self, err: HookError) -> None:
        """CallbacksServicer.on_fatal hook for exit-on-decode-error mode."""
        self.logger.error("Shutting down after fatal %s", type(err).__name__)
        self.request_stop(exit_code=err.code or 1)

    def wait(self, poll: float = 1.0) -> int:
        # Event.wait with a timeout keeps the main thread responsive to signals.
        while not self._stop_requested.wait(poll):
            pass
        return self.exit_code

    def stop(self) -> None:
        if self.server is not None:
            self.server.stop(self.grace).wait()
            self.server = None
        if self.socket_path.exists():
            self.socket_path.unlink()
        self.logger.info("Hook server stopped")

    def __enter__(self) -> "HookServer":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
