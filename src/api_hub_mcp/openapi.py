"""OpenAPI document parser that turns operations into gateway tools."""

from __future__ import annotations

import copy
import logging
import re
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple

from .models import ApiTool, FieldSchema, InputSchema, ParamType


logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "delete", "patch")
BODY_FIELD = "_body"
COMBINATOR_KEYWORDS = ("anyOf", "allOf", "oneOf", "not")

# Keywords OpenAPI adds on top of JSON Schema.
_OPENAPI_ONLY_KEYWORDS = {
    "nullable",
    "discriminator",
    "readOnly",
    "writeOnly",
    "xml",
    "externalDocs",
    "example",
    "deprecated",
}
_NESTED_SCHEMA_LISTS = ("allOf", "anyOf", "oneOf")
_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def resolve_references(schema: Any, document: Dict[str, Any]) -> Any:
    """Return a copy of ``schema`` with local ``$ref`` pointers inlined.

    Unknown pointers become a placeholder object schema. A reference that
    points back into its own expansion chain is cut off with a placeholder
    as well, so self-referencing models terminate.
    """
    return _resolve(copy.deepcopy(schema), document, ())


def _resolve(node: Any, document: Dict[str, Any], chain: Tuple[str, ...]) -> Any:
    if isinstance(node, list):
        return [_resolve(item, document, chain) for item in node]
    if not isinstance(node, dict):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str):
        if ref in chain:
            logger.debug("Circular reference cut off: %s", ref)
            return {"type": "object", "description": f"Circular reference: {ref}"}
        target = _lookup_pointer(document, ref)
        if target is None:
            return {"type": "object", "description": f"Reference not found: {ref}"}
        return _resolve(target, document, chain + (ref,))

    return {
        key: _resolve(value, document, chain)
        for key, value in node.items()
        if key != "$schema"
    }


def _lookup_pointer(document: Dict[str, Any], ref: str) -> Optional[Any]:
    segments = ref.split("/")[1:]
    current: Any = document
    for segment in segments:
        segment = segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit() and int(segment) < len(current):
            current = current[int(segment)]
        else:
            return None
    return current


def openapi_schema_to_json_schema(schema: Any) -> Any:
    """Convert an OpenAPI schema object to plain JSON Schema."""
    if isinstance(schema, list):
        return [openapi_schema_to_json_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    converted: Dict[str, Any] = {}
    for key, value in schema.items():
        if key in _OPENAPI_ONLY_KEYWORDS or key == "$schema":
            continue
        if key == "properties" and isinstance(value, dict):
            converted[key] = {
                name: openapi_schema_to_json_schema(prop) for name, prop in value.items()
            }
        elif key in _NESTED_SCHEMA_LISTS and isinstance(value, list):
            converted[key] = [openapi_schema_to_json_schema(item) for item in value]
        elif key in {"items", "not", "additionalProperties"} and isinstance(value, dict):
            converted[key] = openapi_schema_to_json_schema(value)
        else:
            converted[key] = copy.deepcopy(value)

    if schema.get("nullable") is True:
        schema_type = converted.get("type")
        if isinstance(schema_type, str):
            converted["type"] = [schema_type, "null"]
        elif isinstance(schema_type, list) and "null" not in schema_type:
            converted["type"] = [*schema_type, "null"]
        enum = converted.get("enum")
        if isinstance(enum, list) and None not in enum:
            converted["enum"] = [*enum, None]

    return converted


class OpenAPIToolExtractor:
    def __init__(self, gateway_url: str) -> None:
        self.gateway_url = gateway_url.rstrip("/")

    def extract(self, api_id: str, document: Dict[str, Any]) -> Tuple[ApiTool, ...]:
        tools: List[ApiTool] = []
        paths = document.get("paths") or {}
        if not isinstance(paths, dict):
            logger.warning("OpenAPI document for %s has no usable paths", api_id)
            return ()

        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue
            for method, operation in path_item.items():
                if method not in HTTP_METHODS or not isinstance(operation, dict):
                    continue
                tools.append(self._build_tool(api_id, path, method, operation, document))

        logger.info("Extracted %s tools for api=%s", len(tools), api_id)
        return tuple(tools)

    def _build_tool(
        self,
        api_id: str,
        path: str,
        method: str,
        operation: Dict[str, Any],
        document: Dict[str, Any],
    ) -> ApiTool:
        name = operation.get("operationId") or self._fallback_operation_id(method, path)
        description = (
            operation.get("description")
            or operation.get("summary")
            or f"{method.upper()} {path}"
        )
        if operation.get("parameters") or operation.get("requestBody"):
            input_schema = self.build_input_schema(operation, document)
        else:
            input_schema = InputSchema()

        return ApiTool(
            name=name,
            description=description,
            endpoint=self._endpoint(api_id, path),
            method=method.upper(),
            input_schema=input_schema,
        )

    def build_input_schema(
        self, operation: Dict[str, Any], document: Dict[str, Any]
    ) -> InputSchema:
        """Merge parameters and the request body into one flat schema.

        Body properties are spliced in next to the parameters and tagged
        with the ``body`` location. A body that is not an object with
        properties is kept whole under the ``_body`` field.
        """
        fields: Dict[str, FieldSchema] = {}
        required: List[str] = []
        combinators: Dict[str, Any] = {}

        parameters = operation.get("parameters") or []
        if isinstance(parameters, list):
            for parameter in parameters:
                parameter = resolve_references(parameter, document)
                if not isinstance(parameter, dict):
                    continue
                name = parameter.get("name")
                if not name:
                    continue
                schema = parameter.get("schema")
                if not isinstance(schema, dict):
                    schema = {}
                if parameter.get("required"):
                    required.append(name)
                if parameter.get("description"):
                    schema["description"] = parameter["description"]
                fields[name] = FieldSchema(
                    name=name,
                    location=ParamType.parse(parameter.get("in")),
                    constraints=MappingProxyType(schema),
                )

        request_body = resolve_references(operation.get("requestBody") or {}, document)
        body_schema = self._extract_body_schema(request_body)
        if body_schema is not None:
            body_schema = openapi_schema_to_json_schema(body_schema)
            properties = body_schema.get("properties")
            if body_schema.get("type") == "object" and isinstance(properties, dict):
                for prop_name, prop_schema in properties.items():
                    constraints = prop_schema if isinstance(prop_schema, dict) else {}
                    fields[prop_name] = FieldSchema(
                        name=prop_name,
                        location=ParamType.BODY,
                        constraints=MappingProxyType(constraints),
                    )
                body_required = body_schema.get("required")
                if not isinstance(body_required, list):
                    body_required = []
                for prop_name in body_required:
                    if isinstance(prop_name, str) and prop_name not in required:
                        required.append(prop_name)
                for keyword in COMBINATOR_KEYWORDS:
                    if keyword in body_schema:
                        combinators[keyword] = body_schema[keyword]
            else:
                fields[BODY_FIELD] = FieldSchema(
                    name=BODY_FIELD,
                    location=ParamType.BODY,
                    constraints=MappingProxyType(body_schema),
                )
                if request_body.get("required"):
                    required.append(BODY_FIELD)

        return InputSchema(
            fields=tuple(fields.values()),
            required=tuple(required),
            combinators=MappingProxyType(combinators),
        )

    def _extract_body_schema(self, request_body: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(request_body, dict):
            return None
        content = request_body.get("content") or {}
        if not isinstance(content, dict) or not content:
            return None
        content_type, media = next(iter(content.items()))
        if len(content) > 1:
            logger.debug("Using %s, ignoring other request body content types", content_type)
        schema = (media or {}).get("schema") if isinstance(media, dict) else None
        if not isinstance(schema, dict):
            return None
        return schema

    def _endpoint(self, api_id: str, path: str) -> str:
        encoded = path.replace("{", "%7B").replace("}", "%7D")
        return f"{self.gateway_url}/use/{api_id}/{encoded}"

    def _fallback_operation_id(self, method: str, path: str) -> str:
        return f"{method}_{_NON_ALPHANUMERIC.sub('_', path)}"
