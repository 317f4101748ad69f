# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/config/config_loader.py
"""YAML/JSON config files for the sidecar.

Files merge left to right (later wins). Keys are normalized ("socket-dir" and
"socket_dir" are the same key) and applied to argparse as defaults, so the
command line still overrides them.
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from ..core.utils import U

CONFIG_SUFFIXES = (".yaml", ".yml", ".json")


def _norm_key(k: Any) -> str:
    return str(k).strip().replace("-", "_")


class Config:
    @staticmethod
    def expand_configs(logger: logging.Logger, paths: Sequence[str]) -> List[Path]:
        """Directories expand to their sorted *.yaml|*.yml|*.json files."""
        out: List[Path] = []
        for raw in paths:
            p = Path(raw).expanduser()
            if p.is_dir():
                found = sorted(x for x in p.iterdir() if x.suffix in CONFIG_SUFFIXES and x.is_file())
                logger.debug("Config dir %s -> %d file(s)", p, len(found))
                out.extend(found)
            elif p.is_file():
                out.append(p)
            else:
                U.die(logger, f"Config file not found: {p}")
        return out

    @staticmethod
    def load_one(logger: logging.Logger, path: Path) -> Dict[str, Any]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            U.die(logger, f"Cannot read config {path}: {e}")

        try:
            data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
        except (ValueError, yaml.YAMLError) as e:
            U.die(logger, f"Invalid config {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            U.die(logger, f"Config {path} must contain a mapping at top level, got {type(data).__name__}")
        return {_norm_key(k): v for k, v in data.items()}

    @staticmethod
    def load_many(logger: logging.Logger, paths: Sequence[Path]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in paths:
            conf = Config.load_one(logger, Path(p))
            logger.debug("Loaded config %s (%d key(s))", p, len(conf))
            merged.update(conf)
        return merged

    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        known = {a.dest for a in parser._actions}
        defaults: Dict[str, Any] = {}
        for k, v in conf.items():
            if k in known:
                defaults[k] = v
            else:
                logger.warning("Ignoring unknown config key: %s", k)
        if defaults:
            parser.set_defaults(**defaults)
