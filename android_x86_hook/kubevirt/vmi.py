# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/kubevirt/vmi.py
"""Read what the hook needs out of a VirtualMachineInstance JSON payload."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict

from ..core.exceptions import DescriptorDecodeError
from ..core.utils import U


def _load_vmi(payload: bytes) -> Dict[str, Any]:
    try:
        vmi = json.loads(payload)
    except (ValueError, RecursionError) as e:
        raise DescriptorDecodeError(
            msg=f"Failed to unmarshal given VMI spec: {U.preview(payload)}",
            cause=e,
        )
    if not isinstance(vmi, dict):
        raise DescriptorDecodeError(msg=f"VMI spec must be a JSON object, got {type(vmi).__name__}")
    return vmi


def _metadata(vmi: Dict[str, Any]) -> Dict[str, Any]:
    meta = vmi.get("metadata")
    if meta is None:
        return {}
    if not isinstance(meta, dict):
        raise DescriptorDecodeError(msg="VMI metadata must be a JSON object")
    return meta


@dataclass(frozen=True)
class VmiAnnotations:
    name: str
    namespace: str
    annotations: Dict[str, str] = field(default_factory=dict)

    @property
    def identity(self) -> str:
        return f"{self.namespace or '-'}/{self.name or '-'}"


def read_vmi(payload: bytes) -> VmiAnnotations:
    """
    Decode the VMI and keep metadata.name/namespace (for log context) and
    metadata.annotations as a flat str -> str mapping.

    A missing or null annotations field yields {}. Empty string values are
    kept: presence of a key is what the rules look at.
    """
    meta = _metadata(_load_vmi(payload))
    annotations = meta.get("annotations")
    if annotations is None:
        annotations = {}
    if not isinstance(annotations, dict):
        raise DescriptorDecodeError(msg="VMI annotations must be a JSON object")

    out: Dict[str, str] = {}
    for k, v in annotations.items():
        if not isinstance(v, str):
            raise DescriptorDecodeError(
                msg=f"VMI annotation {k!r} must be a string, got {type(v).__name__}",
            ).with_context(annotation=k)
        out[k] = v

    return VmiAnnotations(
        name=str(meta.get("name") or ""),
        namespace=str(meta.get("namespace") or ""),
        annotations=out,
    )


def annotations_from_vmi(payload: bytes) -> Dict[str, str]:
    return read_vmi(payload).annotations
