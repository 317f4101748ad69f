# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/hooks/callbacks.py
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Sequence

import grpc

from ..config.annotations import DEFAULT_KEYS, AnnotationKeys
from ..core.exceptions import (
    DescriptorDecodeError,
    DocumentDecodeError,
    HookError,
)
from ..core.logger import TRACE, Log
from ..kubevirt.vmi import read_vmi
from ..libvirt.domain import DomainDocument
from ..libvirt.mutators import MutationRule, apply_rules, default_rules
from . import api


class DomainMutator:
    """
    One OnDefineDomain call: VMI annotations + domain XML in, domain XML out.

    Holds only the (immutable) rule table, so a single instance serves all
    gRPC worker threads.
    """

    def __init__(
        self,
        rules: Optional[Sequence[MutationRule]] = None,
        *,
        keys: AnnotationKeys = DEFAULT_KEYS,
        logger: Any = None,
    ):
        self.rules = tuple(rules) if rules is not None else default_rules(keys)
        self.logger = logger or logging.getLogger(__name__)

    def mutate(self, vmi: bytes, domain_xml: bytes) -> bytes:
        vmi_info = read_vmi(vmi)
        log = Log.bind(self.logger, vmi=vmi_info.identity)

        doc = DomainDocument.from_xml(domain_xml)
        tracing = log.isEnabledFor(TRACE)
        if tracing:
            log.trace("Original domain spec: %s", domain_xml.decode("utf-8", errors="replace"))

        doc = apply_rules(self.rules, vmi_info.annotations, doc, log)

        out = doc.to_xml()
        if tracing:
            log.trace("Updated domain spec: %s", out.decode("utf-8"))
        Log.ok(log, "Successfully updated original domain spec with requested attributes")
        return out


def status_for(err: HookError) -> grpc.StatusCode:
    if isinstance(err, (DescriptorDecodeError, DocumentDecodeError)):
        return grpc.StatusCode.INVALID_ARGUMENT
    return grpc.StatusCode.INTERNAL


class CallbacksServicer:
    """
    v1alpha1 Callbacks service.

    A fatal HookError aborts the call (no partial result is returned). When
    `on_fatal` is set it is invoked first; the server uses it to shut the
    sidecar down if configured to exit on bad input.
    """

    def __init__(
        self,
        mutator: Optional[DomainMutator] = None,
        *,
        logger: Optional[logging.Logger] = None,
        on_fatal: Optional[Callable[[HookError], None]] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.mutator = mutator or DomainMutator(logger=self.logger)
        self.on_fatal = on_fatal

    def OnDefineDomain(self, request: Any, context: Any) -> Any:
        log = Log.bind(self.logger, rpc="OnDefineDomain")
        log.info("Hook's OnDefineDomain callback method has been called")

        try:
            domain_xml = self.mutator.mutate(request.vmi, request.domainXML)
        except HookError as e:
            Log.fail(log, e.user_message(include_cause=True), err=e, error=type(e).__name__)
            if self.on_fatal is not None:
                self.on_fatal(e)
            context.abort(status_for(e), str(e))
        except Exception as e:
            log.exception("Unexpected error while updating the domain spec")
            context.abort(grpc.StatusCode.INTERNAL, f"{type(e).__name__}: {e}")

        return api.OnDefineDomainResult(domainXML=domain_xml)

    def handler(self) -> grpc.GenericRpcHandler:
        return grpc.method_handlers_generic_handler(
            api.CALLBACKS_SERVICE,
            {
                "OnDefineDomain": grpc.unary_unary_rpc_method_handler(
                    self.OnDefineDomain,
                    request_deserializer=api.OnDefineDomainParams.FromString,
                    response_serializer=api.OnDefineDomainResult.SerializeToString,
                ),
            },
        )
