# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/__main__.py
from __future__ import annotations

import signal
import sys
import traceback
from typing import Any, List, Optional

from .cli.args import parse_args_with_config
from .config.annotations import AnnotationKeys
from .core.exceptions import Fatal, format_exception_for_cli
from .core.logger import Log
from .hooks import api
from .hooks.callbacks import CallbacksServicer, DomainMutator
from .hooks.info import InfoServicer
from .hooks.server import HookServer


def _print_stderr(msg: str) -> None:
    print(msg, file=sys.stderr)


def _safe_log(logger: Any, level: str, msg: str) -> None:
    if logger is None:
        _print_stderr(msg)
        return
    getattr(logger, level)(msg)


def build_server(args: Any, logger: Any) -> HookServer:
    socket_path = args.socket_path or api.socket_path_for(args.hook_name, args.socket_dir)
    keys = AnnotationKeys.for_domain(args.annotation_domain)

    info = InfoServicer(args.hook_name, logger=Log.get("info"))
    callbacks = CallbacksServicer(
        DomainMutator(keys=keys, logger=Log.get("callbacks")),
        logger=Log.get("callbacks"),
    )
    server = HookServer(
        socket_path,
        info=info,
        callbacks=callbacks,
        max_workers=args.max_workers,
        logger=logger,
    )
    if args.exit_on_decode_error:
        callbacks.on_fatal = server.stop_on_fatal
    return server


def _install_signal_handlers(server: HookServer, logger: Any) -> None:
    def _handler(signum: int, _frame: Any) -> None:
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        server.request_stop(exit_code=0)

    signal.signal(signal.SIGTERM, _handler)
    signal.signal(signal.SIGINT, _handler)


def main(argv: Optional[List[str]] = None) -> None:
    logger: Optional[Any] = None

    # Phase 1: parse (Fatal can happen here, e.g. an unreadable config)
    try:
        args, _conf, logger = parse_args_with_config(argv)
    except Fatal as e:
        # Config loader already logged via U.die().
        raise SystemExit(e.code)

    for key, what in AnnotationKeys.for_domain(args.annotation_domain).describe().items():
        logger.debug("Recognized annotation %s: %s", key, what)

    # Phase 2: serve
    server = build_server(args, logger)
    try:
        server.start()
        _install_signal_handlers(server, logger)
        rc = server.wait()
    except Fatal as e:
        _safe_log(logger, "error", format_exception_for_cli(e, verbose=max(1, args.verbose)))
        rc = e.code
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        rc = 130
    except Exception as e:
        _safe_log(logger, "error", f"💥 UNHANDLED {type(e).__name__}: {e}")
        _safe_log(logger, "debug", traceback.format_exc())
        rc = 1
    finally:
        server.stop()

    raise SystemExit(rc)


if __name__ == "__main__":
    main()
