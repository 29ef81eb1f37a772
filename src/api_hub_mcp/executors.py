"""Request dispatch for gateway tool calls."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Tuple
from urllib.parse import quote, urlsplit, urlunsplit

import httpx

from .gateway_client import GatewayClient
from .models import ApiTool, ParamType

logger = logging.getLogger(__name__)

BODYLESS_METHODS = {"GET", "DELETE"}
# Set by the dispatcher on every call; header arguments never override them.
RESERVED_HEADERS = {"authorization", "content-type"}


class MissingArgumentError(Exception):
    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required argument: {field}")
        self.field = field


def stringify(value: Any) -> str:
    """Render an argument the way it appears in a URL."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


class RequestDispatcher:
    def __init__(self, gateway_client: GatewayClient, bearer_token: str) -> None:
        self.gateway_client = gateway_client
        self.bearer_token = bearer_token

    async def dispatch(self, tool: ApiTool, arguments: Mapping[str, Any]) -> httpx.Response:
        request = self.build_request(tool, arguments)
        logger.debug("Dispatching %s %s", request.method, request.url)
        return await self.gateway_client.send(request)

    def build_request(self, tool: ApiTool, arguments: Mapping[str, Any]) -> httpx.Request:
        headers: Dict[str, str] = {
            "Authorization": f"Bearer {self.bearer_token}",
            "Content-Type": "application/json",
        }
        query: List[Tuple[str, str]] = []
        body: Dict[str, Any] = {}
        path_values: Dict[str, str] = {}

        schema = tool.input_schema
        for field in schema.fields:
            if field.name not in arguments:
                if schema.is_required(field.name):
                    raise MissingArgumentError(field.name)
                continue

            value = arguments[field.name]
            if field.location is ParamType.PATH:
                path_values[field.name] = stringify(value)
            elif field.location is ParamType.QUERY:
                query.append((field.name, stringify(value)))
            elif field.location is ParamType.BODY:
                body[field.name] = value
            elif field.location is ParamType.HEADER:
                if field.name.lower() in RESERVED_HEADERS:
                    logger.debug("Ignoring reserved header argument %s", field.name)
                else:
                    headers[field.name] = stringify(value)
            else:
                logger.debug("Dropping %s argument %s", field.location.value, field.name)

        method = tool.method.upper()
        content = None
        if method not in BODYLESS_METHODS:
            content = json.dumps(body)

        return httpx.Request(
            method,
            self._build_url(tool.endpoint, path_values),
            params=query or None,
            headers=headers,
            content=content,
        )

    def _build_url(self, endpoint: str, path_values: Mapping[str, str]) -> str:
        parts = urlsplit(endpoint)
        path = parts.path
        for name, value in path_values.items():
            path = path.replace(f"%7B{name}%7D", quote(value, safe=""))
        return urlunsplit(parts._replace(path=path))
