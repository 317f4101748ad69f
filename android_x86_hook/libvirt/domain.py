# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/libvirt/domain.py
"""Immutable view over a libvirt domain XML document.

Only the nodes the hook rules touch get typed records:

  /domain/os/smbios@mode
  /domain/sysinfo (type + baseBoard entries)
  /domain/devices/video, /domain/devices/graphics, /domain/devices/hostdev
  /domain/qemu:commandline/qemu:arg

Everything else in the document is carried through as parsed. Every
``with_*`` method returns a new DomainDocument built on a deep copy, so a
document handed to a rule is never modified behind the caller's back.
"""
from __future__ import annotations

import copy
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from ..core.exceptions import DocumentDecodeError, DocumentEncodeError
from ..core.utils import U

QEMU_NS = "http://libvirt.org/schemas/domain/qemu/1.0"
ET.register_namespace("qemu", QEMU_NS)

_QEMU_COMMANDLINE = f"{{{QEMU_NS}}}commandline"
_QEMU_ARG = f"{{{QEMU_NS}}}arg"

EGL_HEADLESS = "egl-headless"

# Everything outside the XML 1.0 Char production (C0 controls, lone
# surrogates, U+FFFE/U+FFFF). ElementTree escapes markup but writes these
# through as-is, which leaves a document no parser will read back.
_NOT_XML_CHAR = re.compile("[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def xml_text(value: str) -> str:
    """Annotation text made safe for the domain XML: forbidden characters become U+FFFD."""
    return _NOT_XML_CHAR.sub("\ufffd", value)


def _parse_int(v: Optional[str]) -> int:
    # libvirt writes PCI address parts as hex ("0x05") but accepts decimal too.
    if not v:
        return 0
    return int(v, 0)


# --------------------------------------------------------------------------------------
# Typed records
# --------------------------------------------------------------------------------------

@dataclass(frozen=True)
class SysInfoEntry:
    name: str
    value: str

    def to_element(self) -> ET.Element:
        e = ET.Element("entry", {"name": xml_text(self.name)})
        e.text = xml_text(self.value)
        return e

    @classmethod
    def from_element(cls, e: ET.Element) -> "SysInfoEntry":
        return cls(name=e.get("name", ""), value=e.text or "")


@dataclass(frozen=True)
class BaseBoard:
    entries: Tuple[SysInfoEntry, ...] = ()

    def to_element(self) -> ET.Element:
        e = ET.Element("baseBoard")
        e.extend(entry.to_element() for entry in self.entries)
        return e

    @classmethod
    def from_element(cls, e: ET.Element) -> "BaseBoard":
        return cls(entries=tuple(SysInfoEntry.from_element(x) for x in e.findall("entry")))


@dataclass(frozen=True)
class SysInfo:
    type: Optional[str]
    base_boards: Tuple[BaseBoard, ...] = ()

    @classmethod
    def from_element(cls, e: ET.Element) -> "SysInfo":
        return cls(
            type=e.get("type"),
            base_boards=tuple(BaseBoard.from_element(b) for b in e.findall("baseBoard")),
        )


@dataclass(frozen=True)
class VideoDevice:
    model_type: Optional[str] = None

    @classmethod
    def from_element(cls, e: ET.Element) -> "VideoDevice":
        model = e.find("model")
        return cls(model_type=model.get("type") if model is not None else None)


@dataclass(frozen=True)
class Graphics:
    """A <graphics> device; only the transport type is modelled."""
    type: Optional[str]

    @property
    def headless(self) -> bool:
        return self.type == EGL_HEADLESS

    @classmethod
    def egl_headless(cls) -> "Graphics":
        return cls(type=EGL_HEADLESS)

    def to_element(self) -> ET.Element:
        return ET.Element("graphics", {"type": xml_text(self.type)} if self.type else {})

    @classmethod
    def from_element(cls, e: ET.Element) -> "Graphics":
        return cls(type=e.get("type"))


@dataclass(frozen=True)
class PCIAddress:
    domain: int = 0
    bus: int = 0
    slot: int = 0
    function: int = 0

    def __str__(self) -> str:
        return f"{self.domain:04x}:{self.bus:02x}:{self.slot:02x}.{self.function:x}"

    def to_element(self) -> ET.Element:
        return ET.Element(
            "address",
            {
                "type": "pci",
                "domain": f"0x{self.domain:04x}",
                "bus": f"0x{self.bus:02x}",
                "slot": f"0x{self.slot:02x}",
                "function": f"0x{self.function:x}",
            },
        )

    @classmethod
    def from_element(cls, e: ET.Element) -> Optional["PCIAddress"]:
        if e.get("type") != "pci":
            return None
        try:
            return cls(
                domain=_parse_int(e.get("domain")),
                bus=_parse_int(e.get("bus")),
                slot=_parse_int(e.get("slot")),
                function=_parse_int(e.get("function")),
            )
        except ValueError:
            return None


@dataclass(frozen=True)
class HostDevice:
    """
    A <hostdev mode="subsystem"> device. Mediated devices (type="mdev") carry
    the model/display/uuid triple; other subsystem types keep only the type,
    managed flag and guest address.
    """
    type: Optional[str]
    managed: bool = False
    model: Optional[str] = None
    display: Optional[str] = None
    uuid: Optional[str] = None
    address: Optional[PCIAddress] = None

    @classmethod
    def mdev(
        cls,
        uuid: str,
        *,
        model: str = "vfio-pci",
        display: Optional[str] = "on",
        managed: bool = False,
        address: Optional[PCIAddress] = None,
    ) -> "HostDevice":
        return cls(type="mdev", managed=managed, model=model, display=display, uuid=uuid, address=address)

    def to_element(self) -> ET.Element:
        attrs = {"mode": "subsystem"}
        if self.type:
            attrs["type"] = xml_text(self.type)
        attrs["managed"] = "yes" if self.managed else "no"
        if self.model:
            attrs["model"] = xml_text(self.model)
        if self.display:
            attrs["display"] = xml_text(self.display)

        e = ET.Element("hostdev", attrs)
        if self.uuid is not None:
            source = ET.SubElement(e, "source")
            ET.SubElement(source, "address", {"uuid": xml_text(self.uuid)})
        if self.address is not None:
            e.append(self.address.to_element())
        return e

    @classmethod
    def from_element(cls, e: ET.Element) -> "HostDevice":
        src_addr = e.find("source/address")
        guest_addr = e.find("address")
        return cls(
            type=e.get("type"),
            managed=e.get("managed") == "yes",
            model=e.get("model"),
            display=e.get("display"),
            uuid=src_addr.get("uuid") if src_addr is not None else None,
            address=PCIAddress.from_element(guest_addr) if guest_addr is not None else None,
        )


# --------------------------------------------------------------------------------------
# Tree helpers
# --------------------------------------------------------------------------------------

def _ensure_child(parent: ET.Element, tag: str) -> ET.Element:
    child = parent.find(tag)
    if child is None:
        child = ET.SubElement(parent, tag)
    return child


def _insert_after_siblings(parent: ET.Element, elem: ET.Element) -> None:
    """Insert after the last child sharing elem's tag, else append."""
    last = -1
    for i, child in enumerate(parent):
        if child.tag == elem.tag:
            last = i
    if last < 0:
        parent.append(elem)
    else:
        parent.insert(last + 1, elem)


def _smbios_sysinfo(root: ET.Element) -> Optional[ET.Element]:
    # <sysinfo type="fwcfg"> can sit next to the smbios one; leave it alone.
    untyped = None
    for e in root.findall("sysinfo"):
        t = e.get("type")
        if t == "smbios":
            return e
        if t is None and untyped is None:
            untyped = e
    return untyped


# --------------------------------------------------------------------------------------
# Document
# --------------------------------------------------------------------------------------

class DomainDocument:
    __slots__ = ("_root",)

    def __init__(self, root: ET.Element):
        if root.tag != "domain":
            raise DocumentDecodeError(msg=f"Expected <domain> root element, got <{root.tag}>")
        self._root = root

    @classmethod
    def from_xml(cls, payload: bytes) -> "DomainDocument":
        try:
            root = ET.fromstring(payload)
        except ET.ParseError as e:
            raise DocumentDecodeError(
                msg=f"Failed to unmarshal given domain spec: {U.preview(payload)}",
                cause=e,
            )
        return cls(root)

    def to_xml(self) -> bytes:
        try:
            return ET.tostring(self._root, encoding="unicode").encode("utf-8")
        except (TypeError, ValueError) as e:
            raise DocumentEncodeError(msg=f"Failed to marshal updated domain spec: {e}", cause=e)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DomainDocument):
            return NotImplemented
        return self.to_xml() == other.to_xml()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"DomainDocument(name={self.name!r})"

    def _evolve(self) -> Tuple["DomainDocument", ET.Element]:
        root = copy.deepcopy(self._root)
        return DomainDocument(root), root

    # ---- views ----

    @property
    def name(self) -> Optional[str]:
        return self._root.findtext("name")

    @property
    def smbios_mode(self) -> Optional[str]:
        smbios = self._root.find("os/smbios")
        return smbios.get("mode") if smbios is not None else None

    @property
    def sysinfo(self) -> Optional[SysInfo]:
        e = _smbios_sysinfo(self._root)
        return SysInfo.from_element(e) if e is not None else None

    @property
    def videos(self) -> Tuple[VideoDevice, ...]:
        return tuple(VideoDevice.from_element(e) for e in self._root.findall("devices/video"))

    @property
    def graphics(self) -> Tuple[Graphics, ...]:
        return tuple(Graphics.from_element(e) for e in self._root.findall("devices/graphics"))

    @property
    def hostdevs(self) -> Tuple[HostDevice, ...]:
        return tuple(HostDevice.from_element(e) for e in self._root.findall("devices/hostdev"))

    @property
    def qemu_args(self) -> Optional[Tuple[str, ...]]:
        """None when there is no <qemu:commandline> block at all."""
        block = self._root.find(_QEMU_COMMANDLINE)
        if block is None:
            return None
        return tuple(a.get("value", "") for a in block.findall(_QEMU_ARG))

    def pci_addresses(self) -> Tuple[PCIAddress, ...]:
        """Guest PCI addresses already claimed by devices (source addresses excluded)."""
        out = []
        devices = self._root.find("devices")
        if devices is None:
            return ()
        for dev in devices:
            addr = dev.find("address")
            if addr is None:
                continue
            pci = PCIAddress.from_element(addr)
            if pci is not None:
                out.append(pci)
        return tuple(out)

    # ---- edits ----

    def with_smbios_mode(self, mode: str) -> "DomainDocument":
        doc, root = self._evolve()
        os_el = _ensure_child(root, "os")
        smbios = _ensure_child(os_el, "smbios")
        smbios.attrib.clear()
        smbios.set("mode", xml_text(mode))
        return doc

    def with_sysinfo_type(self, sysinfo_type: str) -> "DomainDocument":
        doc, root = self._evolve()
        sysinfo = _smbios_sysinfo(root)
        if sysinfo is None:
            sysinfo = ET.Element("sysinfo")
            os_el = root.find("os")
            if os_el is None:
                root.append(sysinfo)
            else:
                root.insert(list(root).index(os_el), sysinfo)
        sysinfo.set("type", xml_text(sysinfo_type))
        return doc

    def with_base_board(self, board: BaseBoard) -> "DomainDocument":
        doc, root = self._evolve()
        sysinfo = _smbios_sysinfo(root)
        if sysinfo is None:
            sysinfo = ET.SubElement(root, "sysinfo")
        _insert_after_siblings(sysinfo, board.to_element())
        return doc

    def with_first_video_model(self, model_type: str) -> "DomainDocument":
        doc, root = self._evolve()
        devices = _ensure_child(root, "devices")
        video = devices.find("video")
        if video is None:
            video = ET.Element("video")
            _insert_after_siblings(devices, video)
        _ensure_child(video, "model").set("type", xml_text(model_type))
        return doc

    def with_graphics(self, graphics: Graphics) -> "DomainDocument":
        doc, root = self._evolve()
        _insert_after_siblings(_ensure_child(root, "devices"), graphics.to_element())
        return doc

    def with_hostdev(self, hostdev: HostDevice) -> "DomainDocument":
        doc, root = self._evolve()
        _insert_after_siblings(_ensure_child(root, "devices"), hostdev.to_element())
        return doc

    def with_qemu_args(self, args: Iterable[str]) -> "DomainDocument":
        doc, root = self._evolve()
        block = _ensure_child(root, _QEMU_COMMANDLINE)
        for value in args:
            ET.SubElement(block, _QEMU_ARG, {"value": xml_text(value)})
        return doc
