# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool capability service."""

from __future__ import annotations

from collections.abc import Callable
import inspect
import json
import logging
from typing import Any, get_type_hints

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from ..adapters import normalize_tool_result
from ... import types
from ...errors import ParamsValidationError, UnknownToolError
from ...tool import ToolSpec, extract_tool_spec
from ...utils import maybe_await_with_args


class ToolsService:
    """Tool registry: schema generation, argument validation and invocation."""

    def __init__(self, *, logger: logging.Logger) -> None:
        self._logger = logger
        self._tool_specs: dict[str, ToolSpec] = {}
        self._tool_defs: dict[str, types.Tool] = {}
        self._arg_models: dict[str, type[BaseModel]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def tool_names(self) -> list[str]:
        return sorted(self._tool_defs)

    @property
    def definitions(self) -> dict[str, types.Tool]:
        return self._tool_defs

    def register(self, target: ToolSpec | Callable[..., Any]) -> ToolSpec:
        spec = target if isinstance(target, ToolSpec) else extract_tool_spec(target)
        if spec is None:
            fn = target
            spec = ToolSpec(name=getattr(fn, "__name__", "anonymous"), fn=fn)  # type: ignore[arg-type]

        model = self._build_arguments_model(spec)
        annotations = None
        if spec.annotations or spec.title:
            payload = dict(spec.annotations or {})
            if spec.title is not None:
                payload.setdefault("title", spec.title)
            annotations = types.ToolAnnotations.model_validate(payload)

        self._tool_specs[spec.name] = spec
        self._arg_models[spec.name] = model
        self._tool_defs[spec.name] = types.Tool(
            name=spec.name,
            title=spec.title,
            description=spec.description or None,
            inputSchema=_input_schema(model),
            annotations=annotations,
        )
        return spec

    async def list_tools(self) -> types.ListToolsResult:
        return types.ListToolsResult(tools=list(self._tool_defs.values()))

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        """Validate *arguments* against the tool's schema and invoke it.

        Raises:
            UnknownToolError: No tool is registered under *name*.
            ParamsValidationError: Arguments do not match the input schema.
        """
        spec = self._tool_specs.get(name)
        if spec is None:
            raise UnknownToolError(name)

        model = self._arg_models[name]
        try:
            parsed = model.model_validate(arguments or {})
        except ValidationError as exc:
            raise ParamsValidationError(
                f"Invalid arguments for tool {name}",
                data=json.loads(exc.json(include_url=False, include_input=False)),
            ) from exc

        kwargs = {field_name: getattr(parsed, field_name) for field_name in type(parsed).model_fields}
        self._logger.debug("invoking tool %s", name, extra={"event": "tool.call", "tool": name})
        result = await maybe_await_with_args(spec.fn, **kwargs)

        if isinstance(result, types.ServerResult):
            raise RuntimeError("Tool returned types.ServerResult; return the nested CallToolResult instead.")

        return normalize_tool_result(result)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_arguments_model(self, spec: ToolSpec) -> type[BaseModel]:
        fn = spec.fn
        signature = inspect.signature(fn)
        try:
            hints = get_type_hints(fn, include_extras=True)
        except (NameError, TypeError):
            hints = {}

        fields: dict[str, Any] = {}
        for param_name, param in signature.parameters.items():
            if param.kind not in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY):
                raise TypeError(f"Tool {spec.name!r} must declare named parameters only (got *{param_name})")
            annotation = hints.get(param_name, Any)
            default = ... if param.default is inspect.Parameter.empty else param.default
            fields[param_name] = (annotation, default)

        model_name = "".join(part.title() for part in spec.name.split("_")) + "Arguments"
        return create_model(model_name, __config__=ConfigDict(extra="forbid"), **fields)


def _input_schema(model: type[BaseModel]) -> dict[str, Any]:
    schema = model.model_json_schema()
    schema.setdefault("type", "object")
    schema.setdefault("properties", {})
    _prune_titles(schema)
    return schema


def _prune_titles(schema: Any) -> None:
    if isinstance(schema, dict):
        schema.pop("title", None)
        for key, value in schema.items():
            if key == "properties" and isinstance(value, dict):
                for prop in value.values():
                    _prune_titles(prop)
            else:
                _prune_titles(value)
    elif isinstance(schema, list):
        for item in schema:
            _prune_titles(item)


__all__ = ["ToolsService"]
