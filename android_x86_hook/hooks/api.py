# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/hooks/api.py
"""KubeVirt hook wire types.

virt-launcher talks to sidecars over two gRPC services:

  kubevirt.hooks.info.Info/Info                         InfoParams -> InfoResult
  kubevirt.hooks.v1alpha1.Callbacks/OnDefineDomain      OnDefineDomainParams -> OnDefineDomainResult

The message classes are built from descriptor protos at import time into a
private pool, so the package ships no protoc output.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

HOOK_NAME = "android-x86"
HOOK_SOCKETS_SHARED_DIRECTORY = "/var/run/kubevirt-hooks"

V1ALPHA1_VERSION = "v1alpha1"
ON_DEFINE_DOMAIN_HOOK_POINT = "OnDefineDomain"

INFO_PACKAGE = "kubevirt.hooks.info"
V1ALPHA1_PACKAGE = "kubevirt.hooks.v1alpha1"
INFO_SERVICE = f"{INFO_PACKAGE}.Info"
CALLBACKS_SERVICE = f"{V1ALPHA1_PACKAGE}.Callbacks"

_FD = descriptor_pb2.FieldDescriptorProto

# (field name, number, type, repeated, message type name)
_FieldSpec = Tuple[str, int, int, bool, Optional[str]]


def _file_proto(filename: str, package: str, messages: Dict[str, List[_FieldSpec]]) -> descriptor_pb2.FileDescriptorProto:
    fp = descriptor_pb2.FileDescriptorProto(name=filename, package=package, syntax="proto3")
    for msg_name, fields in messages.items():
        msg = fp.message_type.add(name=msg_name)
        for name, number, ftype, repeated, type_name in fields:
            f = msg.field.add(
                name=name,
                json_name=name,
                number=number,
                type=ftype,
                label=_FD.LABEL_REPEATED if repeated else _FD.LABEL_OPTIONAL,
            )
            if type_name:
                f.type_name = type_name
    return fp


_INFO_PROTO = _file_proto(
    "kubevirt/hooks/info/api_info.proto",
    INFO_PACKAGE,
    {
        "InfoParams": [
            ("supportedVersions", 1, _FD.TYPE_STRING, True, None),
        ],
        "HookPoint": [
            ("name", 1, _FD.TYPE_STRING, False, None),
            ("priority", 2, _FD.TYPE_INT32, False, None),
        ],
        "InfoResult": [
            ("name", 1, _FD.TYPE_STRING, False, None),
            ("versions", 2, _FD.TYPE_STRING, True, None),
            ("hookPoints", 3, _FD.TYPE_MESSAGE, True, f".{INFO_PACKAGE}.HookPoint"),
        ],
    },
)

_V1ALPHA1_PROTO = _file_proto(
    "kubevirt/hooks/v1alpha1/api_v1alpha1.proto",
    V1ALPHA1_PACKAGE,
    {
        "OnDefineDomainParams": [
            ("domainXML", 1, _FD.TYPE_BYTES, False, None),
            ("vmi", 2, _FD.TYPE_BYTES, False, None),
        ],
        "OnDefineDomainResult": [
            ("domainXML", 1, _FD.TYPE_BYTES, False, None),
        ],
    },
)

_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_INFO_PROTO.SerializeToString())
_POOL.AddSerializedFile(_V1ALPHA1_PROTO.SerializeToString())


def _message(full_name: str):
    return message_factory.GetMessageClass(_POOL.FindMessageTypeByName(full_name))


InfoParams = _message(f"{INFO_PACKAGE}.InfoParams")
HookPoint = _message(f"{INFO_PACKAGE}.HookPoint")
InfoResult = _message(f"{INFO_PACKAGE}.InfoResult")
OnDefineDomainParams = _message(f"{V1ALPHA1_PACKAGE}.OnDefineDomainParams")
OnDefineDomainResult = _message(f"{V1ALPHA1_PACKAGE}.OnDefineDomainResult")


def method_path(service: str, method: str) -> str:
    return f"/{service}/{method}"


def socket_path_for(hook_name: str = HOOK_NAME, socket_dir: str = HOOK_SOCKETS_SHARED_DIRECTORY) -> Path:
    """virt-launcher dials <shared dir>/<hook name>.sock."""
    return Path(socket_dir) / f"{hook_name}.sock"
