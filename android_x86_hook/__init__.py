# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/__init__.py
"""
android-x86-hook - KubeVirt hook sidecar for Android-x86 guests

Rewrites the libvirt domain XML at the OnDefineDomain hook point based on
VMI annotations: SMBIOS baseboard manufacturer, video model, egl-headless
graphics, an mdev vGPU and extra QEMU arguments.

Usage as a library:

    from android_x86_hook import DomainMutator

    new_xml = DomainMutator().mutate(vmi_json_bytes, domain_xml_bytes)
"""

__version__ = "0.1.0"

from .hooks import CallbacksServicer, DomainMutator, HookServer, InfoServicer

__all__ = [
    "__version__",
    "CallbacksServicer",
    "DomainMutator",
    "HookServer",
    "InfoServicer",
]
