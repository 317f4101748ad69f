# android_x86_hook/libvirt/__init__.py
from .domain import (
    BaseBoard,
    DomainDocument,
    Graphics,
    HostDevice,
    PCIAddress,
    SysInfo,
    SysInfoEntry,
    VideoDevice,
)
from .mutators import MutationRule, apply_rules, default_rules

__all__ = [
    "BaseBoard",
    "DomainDocument",
    "Graphics",
    "HostDevice",
    "PCIAddress",
    "SysInfo",
    "SysInfoEntry",
    "VideoDevice",
    "MutationRule",
    "apply_rules",
    "default_rules",
]
