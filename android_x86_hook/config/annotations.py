# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/config/annotations.py
"""Annotation keys recognized on the VirtualMachineInstance.

Keys are built from a platform domain (``kubevirt.io`` by default), e.g.
``video.vm.kubevirt.io/model``. The table is handed to the mutation rules at
construction so tests and deployments can swap the domain.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

DEFAULT_ANNOTATION_DOMAIN = "kubevirt.io"


@dataclass(frozen=True)
class AnnotationKeys:
    base_board_manufacturer: str
    video_model: str
    egl_headless: str
    vgpu: str
    qemu_args: str

    @classmethod
    def for_domain(cls, domain: str = DEFAULT_ANNOTATION_DOMAIN) -> "AnnotationKeys":
        domain = (domain or "").strip()
        if not domain:
            raise ValueError("annotation domain must be non-empty")
        return cls(
            base_board_manufacturer=f"smbios.vm.{domain}/baseBoardManufacturer",
            video_model=f"video.vm.{domain}/model",
            egl_headless=f"graphics.vm.{domain}/eglHeadless",
            vgpu=f"video.vm.{domain}/vgpu",
            qemu_args=f"qemu.vm.{domain}/args",
        )

    def describe(self) -> Dict[str, str]:
        return {
            self.base_board_manufacturer: "set SMBIOS baseboard manufacturer",
            self.video_model: "set first video device model",
            self.vgpu: "add mediated-device GPU passthrough (value: mdev UUID)",
            self.egl_headless: "add egl-headless graphics",
            self.qemu_args: "append extra QEMU arguments (value: JSON array of strings)",
        }


DEFAULT_KEYS = AnnotationKeys.for_domain()
