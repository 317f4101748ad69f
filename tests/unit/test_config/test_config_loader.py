# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import argparse

import pytest

from android_x86_hook.config.annotations import DEFAULT_KEYS, AnnotationKeys
from android_x86_hook.config.config_loader import Config
from android_x86_hook.core.exceptions import Fatal

from fakes.fake_logger import FakeLogger


@pytest.mark.unit
class TestExpandConfigs:
    def test_directory_expands_sorted(self, tmp_path):
        (tmp_path / "20-b.yml").write_text("a: 1\n")
        (tmp_path / "10-a.yaml").write_text("a: 1\n")
        (tmp_path / "30-c.json").write_text("{}")
        (tmp_path / "notes.txt").write_text("skip me")

        out = Config.expand_configs(FakeLogger(), [str(tmp_path)])
        assert [p.name for p in out] == ["10-a.yaml", "20-b.yml", "30-c.json"]

    def test_missing_path_is_fatal(self, tmp_path):
        logger = FakeLogger()
        with pytest.raises(Fatal):
            Config.expand_configs(logger, [str(tmp_path / "nope.yaml")])
        assert any("not found" in m for m in logger.messages("error"))


@pytest.mark.unit
class TestLoad:
    def test_yaml_keys_are_normalized(self, tmp_path):
        p = tmp_path / "hook.yaml"
        p.write_text("socket-dir: /run/hooks\nmax_workers: 8\n")
        assert Config.load_one(FakeLogger(), p) == {"socket_dir": "/run/hooks", "max_workers": 8}

    def test_json_file(self, tmp_path):
        p = tmp_path / "hook.json"
        p.write_text('{"hook-name": "custom"}')
        assert Config.load_one(FakeLogger(), p) == {"hook_name": "custom"}

    def test_empty_file_is_empty_mapping(self, tmp_path):
        p = tmp_path / "empty.yaml"
        p.write_text("")
        assert Config.load_one(FakeLogger(), p) == {}

    @pytest.mark.parametrize("text", ["- a\n- b\n", "key: [unclosed\n"])
    def test_bad_content_is_fatal(self, tmp_path, text):
        p = tmp_path / "bad.yaml"
        p.write_text(text)
        with pytest.raises(Fatal):
            Config.load_one(FakeLogger(), p)

    def test_later_files_win(self, tmp_path):
        a = tmp_path / "a.yaml"
        b = tmp_path / "b.yaml"
        a.write_text("hook_name: first\nmax_workers: 2\n")
        b.write_text("hook_name: second\n")

        merged = Config.load_many(FakeLogger(), [a, b])
        assert merged == {"hook_name": "second", "max_workers": 2}


@pytest.mark.unit
def test_apply_as_defaults_warns_on_unknown_keys():
    parser = argparse.ArgumentParser()
    parser.add_argument("--hook-name", dest="hook_name", default="android-x86")
    logger = FakeLogger()

    Config.apply_as_defaults(logger, parser, {"hook_name": "from-config", "colour": "blue"})

    assert parser.parse_args([]).hook_name == "from-config"
    assert parser.parse_args(["--hook-name", "cli"]).hook_name == "cli"
    assert logger.messages("warning") == ["Ignoring unknown config key: colour"]


@pytest.mark.unit
class TestAnnotationKeys:
    def test_default_keys(self):
        assert DEFAULT_KEYS.video_model == "video.vm.kubevirt.io/model"
        assert DEFAULT_KEYS.egl_headless == "graphics.vm.kubevirt.io/eglHeadless"

    def test_describe_covers_every_key(self):
        keys = AnnotationKeys.for_domain("example.org")
        assert set(keys.describe()) == {
            "smbios.vm.example.org/baseBoardManufacturer",
            "video.vm.example.org/model",
            "graphics.vm.example.org/eglHeadless",
            "video.vm.example.org/vgpu",
            "qemu.vm.example.org/args",
        }
