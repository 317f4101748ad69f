# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/hooks/info.py
from __future__ import annotations

import logging
from typing import Any, Optional

import grpc

from . import api


def build_info_result(name: str = api.HOOK_NAME) -> Any:
    return api.InfoResult(
        name=name,
        versions=[api.V1ALPHA1_VERSION],
        hookPoints=[api.HookPoint(name=api.ON_DEFINE_DOMAIN_HOOK_POINT, priority=0)],
    )


class InfoServicer:
    """Answers virt-launcher's capability query. Stateless."""

    def __init__(self, name: str = api.HOOK_NAME, logger: Optional[logging.Logger] = None):
        self.name = name
        self.logger = logger or logging.getLogger(__name__)

    def Info(self, request: Any, context: Any) -> Any:
        self.logger.info("Hook's Info method has been called")
        if request.supportedVersions:
            self.logger.debug("virt-launcher supports hook versions: %s", ", ".join(request.supportedVersions))
        return build_info_result(self.name)

    def handler(self) -> grpc.GenericRpcHandler:
        return grpc.method_handlers_generic_handler(
            api.INFO_SERVICE,
            {
                "Info": grpc.unary_unary_rpc_method_handler(
                    self.Info,
                    request_deserializer=api.InfoParams.FromString,
                    response_serializer=api.InfoResult.SerializeToString,
                ),
            },
        )
