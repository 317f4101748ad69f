# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/cli/args.py
from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, Optional, Sequence, Tuple

from ..config.annotations import DEFAULT_ANNOTATION_DOMAIN
from ..config.config_loader import Config
from ..core.logger import Log, c
from ..core.utils import U
from ..hooks import api
from .help_texts import ANNOTATION_SUMMARY, YAML_EXAMPLE


class HelpFormatter(argparse.RawDescriptionHelpFormatter, argparse.ArgumentDefaultsHelpFormatter):
    """Keeps the epilog layout and shows defaults next to each flag."""


def _build_epilog() -> str:
    return (
        c("YAML example:\n", "cyan", ["bold"])
        + c(YAML_EXAMPLE, "cyan")
        + "\n"
        + c(ANNOTATION_SUMMARY, "cyan")
    )


def _add_global_config_logging(p: argparse.ArgumentParser) -> None:
    from .. import __version__

    p.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file or directory (repeatable; later overrides earlier).",
    )
    p.add_argument("--dump-config", action="store_true", help="Print merged config and exit.")
    p.add_argument("--dump-args", action="store_true", help="Print final parsed args and exit.")
    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -vv DEBUG, -vvv TRACE")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Quieter: -q WARNING, -qq ERROR")
    p.add_argument("--log-file", dest="log_file", default=None, help="Also write logs to this file.")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit NDJSON log lines.")


def _add_hook_server(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("hook server")
    g.add_argument(
        "--socket-dir",
        dest="socket_dir",
        default=api.HOOK_SOCKETS_SHARED_DIRECTORY,
        help="Directory virt-launcher scans for hook sockets.",
    )
    g.add_argument(
        "--socket-path",
        dest="socket_path",
        default=None,
        help="Explicit socket path (overrides --socket-dir/--hook-name).",
    )
    g.add_argument("--hook-name", dest="hook_name", default=api.HOOK_NAME, help="Name reported by Info and used for the socket file.")
    g.add_argument("--max-workers", dest="max_workers", type=int, default=4, help="gRPC worker threads.")
    g.add_argument(
        "--exit-on-decode-error",
        dest="exit_on_decode_error",
        action="store_true",
        help="Stop the sidecar after a malformed VMI or domain payload (the platform restarts it).",
    )


def _add_annotations(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("annotations")
    g.add_argument(
        "--annotation-domain",
        dest="annotation_domain",
        default=DEFAULT_ANNOTATION_DOMAIN,
        help="Domain part of the recognized annotation keys (e.g. video.vm.<domain>/model).",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="android-x86-hook",
        description=c("android-x86-hook: KubeVirt OnDefineDomain sidecar", "green", ["bold"]),
        formatter_class=HelpFormatter,
        epilog=_build_epilog(),
    )
    _add_global_config_logging(p)
    _add_hook_server(p)
    _add_annotations(p)
    return p


def _build_preparser() -> argparse.ArgumentParser:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", action="append", default=[])
    pre.add_argument("-v", "--verbose", action="count", default=0)
    pre.add_argument("-q", "--quiet", action="count", default=0)
    pre.add_argument("--log-file", dest="log_file", default=None)
    pre.add_argument("--json-logs", dest="json_logs", action="store_true")
    pre.add_argument("--dump-config", action="store_true")
    pre.add_argument("--dump-args", action="store_true")
    return pre


_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})
_BOOL_KEYS = ("exit_on_decode_error", "json_logs")


def _as_bool(key: str, v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, int) and v in (0, 1):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
    raise SystemExit(f"{key} must be a boolean, got: {v!r}")


def validate_args(args: argparse.Namespace) -> None:
    for key in _BOOL_KEYS:
        setattr(args, key, _as_bool(key, getattr(args, key, False)))

    try:
        workers = int(args.max_workers)
    except (TypeError, ValueError):
        raise SystemExit(f"max_workers must be an integer, got: {args.max_workers!r}")
    if workers < 1:
        raise SystemExit(f"max_workers must be >= 1, got: {workers}")
    args.max_workers = workers

    for key in ("hook_name", "annotation_domain", "socket_dir"):
        v = getattr(args, key, None)
        if not isinstance(v, str) or not v.strip():
            raise SystemExit(f"{key} must be a non-empty string")


def parse_args_with_config(
    argv: Optional[Sequence[str]] = None,
    logger: Any = None,
) -> Tuple[argparse.Namespace, Dict[str, Any], Any]:
    """
    Phase 0: parse only the flags needed to locate config and set up logging
    Phase 1: load+merge config files
    Phase 2: apply config as parser defaults
    Phase 3: full parse (CLI overrides config)
    Phase 4: validate

    Logging is configured with the CLI flags in phase 0 and reconfigured once
    the config is known, so `verbose`/`log_file` from YAML take effect too.
    """
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    parser = build_parser()
    args0, _rest = _build_preparser().parse_known_args(argv)

    own_logger = logger is None
    if own_logger:
        logger = Log.setup(args0.verbose, args0.log_file, quiet=args0.quiet, json_logs=args0.json_logs)

    conf: Dict[str, Any] = {}
    if args0.config:
        conf = Config.load_many(logger, Config.expand_configs(logger, args0.config))

    if args0.dump_config:
        print(U.json_dump(conf))
        raise SystemExit(0)

    Config.apply_as_defaults(logger, parser, conf)
    args = parser.parse_args(argv)

    if args0.dump_args:
        print(U.json_dump(vars(args)))
        raise SystemExit(0)

    validate_args(args)

    if own_logger and conf:
        logger = Log.setup(args.verbose, args.log_file, quiet=args.quiet, json_logs=args.json_logs)

    return args, conf, logger
