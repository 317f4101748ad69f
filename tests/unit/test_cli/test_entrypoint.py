# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from android_x86_hook.__main__ import build_server
from android_x86_hook.cli.args import build_parser


def _args(*argv):
    return build_parser().parse_args(list(argv))


@pytest.mark.unit
class TestBuildServer:
    def test_socket_path_from_dir_and_name(self):
        server = build_server(_args("--socket-dir", "/run/h", "--hook-name", "droid"), logging.getLogger("t"))
        assert server.socket_path == Path("/run/h/droid.sock")
        assert server.info.name == "droid"
        assert server.callbacks.on_fatal is None

    def test_explicit_socket_path_wins(self):
        server = build_server(_args("--socket-path", "/tmp/x.sock"), logging.getLogger("t"))
        assert server.socket_path == Path("/tmp/x.sock")

    def test_exit_on_decode_error_wires_stop(self):
        server = build_server(_args("--exit-on-decode-error"), logging.getLogger("t"))
        assert server.callbacks.on_fatal == server.stop_on_fatal

    def test_annotation_domain_reaches_rules(self):
        server = build_server(_args("--annotation-domain", "example.com"), logging.getLogger("t"))
        keys = [r.key for r in server.callbacks.mutator.rules]
        assert "video.vm.example.com/model" in keys
