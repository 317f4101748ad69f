# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/hooks/__init__.py
"""KubeVirt hook protocol: Info and v1alpha1 Callbacks over a unix socket."""

from .callbacks import CallbacksServicer, DomainMutator
from .info import InfoServicer, build_info_result
from .server import HookServer

__all__ = [
    "CallbacksServicer",
    "DomainMutator",
    "InfoServicer",
    "build_info_result",
    "HookServer",
]
