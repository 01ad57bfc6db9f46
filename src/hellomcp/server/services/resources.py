# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Resource capability service."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any

from ..adapters import normalize_resource_payload
from ... import types
from ...errors import ParamsValidationError
from ...resource import ResourceSpec, extract_resource_spec
from ...utils import maybe_await_with_args


class ResourcesService:
    def __init__(self, *, logger: logging.Logger) -> None:
        self._logger = logger
        self._resource_specs: dict[str, ResourceSpec] = {}

    @property
    def uris(self) -> list[str]:
        return list(self._resource_specs)

    def register(self, target: ResourceSpec | Callable[[], Any]) -> ResourceSpec:
        spec = target if isinstance(target, ResourceSpec) else extract_resource_spec(target)
        if spec is None:
            raise TypeError("register() expects a ResourceSpec or a function decorated with @resource")
        self._resource_specs[spec.uri] = spec
        return spec

    async def list_resources(self) -> types.ListResourcesResult:
        resources = [
            types.Resource(
                uri=spec.uri,
                name=spec.name or spec.uri,
                description=spec.description,
                mimeType=spec.mime_type,
            )
            for spec in self._resource_specs.values()
        ]
        return types.ListResourcesResult(resources=resources)

    async def read(self, uri: str) -> types.ReadResourceResult:
        """Read a registered resource.

        Raises:
            ParamsValidationError: *uri* is unknown or only listed for reference.
        """
        spec = self._resource_specs.get(uri)
        if spec is None or not spec.readable:
            raise ParamsValidationError(f"Resource not found: {uri}", data={"uri": uri})
        payload = await maybe_await_with_args(spec.fn)
        return normalize_resource_payload(uri, spec.mime_type, payload)


__all__ = ["ResourcesService"]
