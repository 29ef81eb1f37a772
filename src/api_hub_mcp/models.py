"""Internal models for gateway tool definitions."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


class ParamType(str, Enum):
    """Where a tool argument is placed in the outgoing request."""

    QUERY = "query"
    PATH = "path"
    BODY = "body"
    HEADER = "header"
    COOKIE = "cookie"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ParamType":
        try:
            return cls(value)
        except ValueError:
            return cls.QUERY


@dataclass(frozen=True)
class FieldSchema:
    name: str
    location: ParamType
    constraints: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self, include_location: bool = True) -> Dict[str, Any]:
        schema = copy.deepcopy(dict(self.constraints))
        if include_location:
            schema["paramType"] = self.location.value
        return schema


@dataclass(frozen=True)
class InputSchema:
    fields: Tuple[FieldSchema, ...] = ()
    required: Tuple[str, ...] = ()
    combinators: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def get(self, name: str) -> Optional[FieldSchema]:
        for item in self.fields:
            if item.name == name:
                return item
        return None

    def is_required(self, name: str) -> bool:
        return name in self.required

    def to_dict(self, include_locations: bool = True) -> Dict[str, Any]:
        """Render the flattened schema.

        With ``include_locations`` every property carries the synthetic
        ``paramType`` attribute; without it the result is plain JSON Schema.
        """
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": {
                item.name: item.to_dict(include_locations) for item in self.fields
            },
        }
        if self.required:
            schema["required"] = list(self.required)
        for key, value in self.combinators.items():
            schema[key] = copy.deepcopy(value)
        return schema


@dataclass(frozen=True)
class ApiTool:
    name: str
    description: str
    endpoint: str
    method: str
    input_schema: InputSchema = field(default_factory=InputSchema)


@dataclass(frozen=True)
class ToolCallResult:
    text: str
    is_error: bool = False
