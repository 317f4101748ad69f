# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/libvirt/mutators.py
"""Annotation-driven rewrite rules for the domain document.

Each rule is gated on one annotation key and is a no-op when the key is
absent. Rules run in a fixed order, each one seeing the document produced by
the previous rule:

  1. baseboard manufacturer  (SMBIOS sysinfo)
  2. video model             (first <video> only)
  3. egl-headless graphics   (appended, no dedup)
  4. vGPU                    (mdev <hostdev> at a fixed guest PCI slot)
  5. qemu args               (appended to <qemu:commandline>)

Rules 1, 3 and 4 append unconditionally, so calling the hook twice on its own
output adds a second baseBoard/graphics/hostdev.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Sequence, Tuple

from ..config.annotations import DEFAULT_KEYS, AnnotationKeys
from ..core.exceptions import QemuArgsDecodeError
from ..core.logger import Log
from .domain import BaseBoard, DomainDocument, Graphics, HostDevice, PCIAddress, SysInfoEntry

# Without an address allocator only one vGPU per domain is supported.
VGPU_PCI_ADDRESS = PCIAddress(domain=0x0000, bus=0x00, slot=0x05, function=0x0)

RuleFn = Callable[[str, DomainDocument, Any], DomainDocument]


@dataclass(frozen=True)
class MutationRule:
    name: str
    key: str
    apply: RuleFn
    # Shown when the key is absent: "Not configuring <what>".
    what: str


# --------------------------------------------------------------------------------------
# Rules
# --------------------------------------------------------------------------------------

def set_base_board_manufacturer(value: str, doc: DomainDocument, logger: Any) -> DomainDocument:
    logger.info("Configuring the baseboard manufacturer to be '%s'", value)
    board = BaseBoard(entries=(SysInfoEntry(name="manufacturer", value=value),))
    return (
        doc.with_smbios_mode("sysinfo")
        .with_sysinfo_type("smbios")
        .with_base_board(board)
    )


def set_video_model(value: str, doc: DomainDocument, logger: Any) -> DomainDocument:
    logger.info("Configuring the video model to be '%s'", value)
    return doc.with_first_video_model(value)


def add_egl_headless(_value: str, doc: DomainDocument, logger: Any) -> DomainDocument:
    logger.info("Configuring the egl headless graphics")
    return doc.with_graphics(Graphics.egl_headless())


def add_vgpu(value: str, doc: DomainDocument, logger: Any) -> DomainDocument:
    logger.info("Configuring a vGPU with UUID %s", value)
    if VGPU_PCI_ADDRESS in doc.pci_addresses():
        Log.warn_once(
            logger,
            ("vgpu-slot-taken", doc.name or ""),
            f"Guest PCI address {VGPU_PCI_ADDRESS} is already in use; the vGPU is added there anyway",
            domain=doc.name,
        )
    return doc.with_hostdev(HostDevice.mdev(value, address=VGPU_PCI_ADDRESS))


def decode_qemu_args(value: str) -> List[str]:
    """
    Parse the qemu args annotation: a JSON array of strings.
    JSON null is accepted as an empty list.
    """
    try:
        parsed = json.loads(value)
    except (ValueError, RecursionError) as e:
        raise QemuArgsDecodeError(msg=f"qemu arguments are not valid JSON: {e}", cause=e)

    if parsed is None:
        return []
    if not isinstance(parsed, list):
        raise QemuArgsDecodeError(msg=f"qemu arguments must be a JSON array, got {type(parsed).__name__}")
    for i, arg in enumerate(parsed):
        if not isinstance(arg, str):
            raise QemuArgsDecodeError(
                msg=f"qemu argument #{i} must be a string, got {type(arg).__name__}",
            )
    return parsed


def add_qemu_args(value: str, doc: DomainDocument, logger: Any) -> DomainDocument:
    logger.info("Configuring the qemu commands to be '%s'", value)
    try:
        args = decode_qemu_args(value)
    except QemuArgsDecodeError as e:
        logger.error("Failed to unmarshal qemu arguments: '%s'. Ignoring the qemu arguments. (%s)", value, e)
        return doc

    for arg in args:
        logger.info("Adding the qemu argument '%s'", arg)
    return doc.with_qemu_args(args)


# --------------------------------------------------------------------------------------
# Rule set
# --------------------------------------------------------------------------------------

def default_rules(keys: AnnotationKeys = DEFAULT_KEYS) -> Tuple[MutationRule, ...]:
    return (
        MutationRule("baseboard-manufacturer", keys.base_board_manufacturer, set_base_board_manufacturer, "the baseboard manufacturer"),
        MutationRule("video-model", keys.video_model, set_video_model, "the video model"),
        MutationRule("egl-headless", keys.egl_headless, add_egl_headless, "the egl-headless graphics"),
        MutationRule("vgpu", keys.vgpu, add_vgpu, "a vGPU"),
        MutationRule("qemu-args", keys.qemu_args, add_qemu_args, "additional qemu arguments"),
    )


def apply_rules(
    rules: Sequence[MutationRule],
    annotations: Mapping[str, str],
    doc: DomainDocument,
    logger: Any = None,
) -> DomainDocument:
    logger = logger or logging.getLogger(__name__)
    for rule in rules:
        if rule.key not in annotations:
            logger.info("The '%s' attribute was not provided. Not configuring %s", rule.key, rule.what)
            continue
        doc = rule.apply(annotations[rule.key], doc, logger)
    return doc
