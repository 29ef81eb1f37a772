"""MCP server setup for the API Hub gateway."""

import logging
from typing import Any, Dict, Optional, Sequence

from fastmcp import FastMCP
from fastmcp.server.providers import Provider
from fastmcp.tools import Tool, ToolResult

from .config import Settings
from .executors import RequestDispatcher
from .gateway_client import GatewayClient
from .models import ApiTool
from .openapi import OpenAPIToolExtractor
from .service import ApiHubService
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


class GatewayTool(Tool):
    """MCP view of an :class:`ApiTool`; calls go through the service."""

    def __init__(self, service: ApiHubService, api_tool: ApiTool, parameters: Dict[str, Any]):
        super().__init__(
            name=api_tool.name,
            description=api_tool.description,
            parameters=parameters,
            tags={api_tool.method.lower()},
        )
        self._service = service
        self._api_tool = api_tool

    def __repr__(self) -> str:
        return f"GatewayTool(name={self.name!r}, method={self._api_tool.method})"

    async def run(self, arguments: Dict[str, Any]) -> ToolResult:
        result = await self._service.call_tool(self.name, arguments)
        return ToolResult(content=result.text, is_error=result.is_error)


class GatewayToolProvider(Provider):
    """Lists the tools of one API lazily, straight from the tool registry."""

    def __init__(self, service: ApiHubService, expose_input_schema: bool = True) -> None:
        super().__init__()
        self.service = service
        self.expose_input_schema = expose_input_schema

    async def _list_tools(self) -> Sequence[Tool]:
        # Later operations replace earlier ones with the same name.
        by_name: Dict[str, ApiTool] = {}
        for api_tool in await self.service.list_tools():
            by_name[api_tool.name] = api_tool
        return [
            GatewayTool(self.service, api_tool, self._parameters(api_tool))
            for api_tool in by_name.values()
        ]

    def _parameters(self, api_tool: ApiTool) -> Dict[str, Any]:
        if not self.expose_input_schema:
            return {"type": "object", "properties": {}}
        return api_tool.input_schema.to_dict(include_locations=False)


def build_service(settings: Settings, api_id: str) -> ApiHubService:
    gateway_client = GatewayClient(
        base_url=settings.api_gateway_url,
        token=settings.api_hub_token,
        timeout_seconds=settings.api_hub_timeout_seconds,
        verify_ssl=settings.api_hub_verify_ssl,
        authenticate_docs=settings.api_hub_authenticate_docs,
    )
    extractor = OpenAPIToolExtractor(settings.api_gateway_url)
    registry = ToolRegistry(gateway_client, extractor)
    dispatcher = RequestDispatcher(gateway_client, settings.api_hub_token)
    return ApiHubService(settings, registry, dispatcher, api_id)


def build_server(
    settings: Settings, api_id: str, service: Optional[ApiHubService] = None
) -> tuple[FastMCP, object | None]:
    service = service or build_service(settings, api_id)
    provider = GatewayToolProvider(service, settings.api_hub_expose_input_schema)

    mcp = FastMCP(settings.service_name, instructions=_instructions(api_id), providers=[provider])
    app = _get_http_app(mcp, settings)
    _attach_healthcheck(app)
    logger.info("Serving tools for api=%s via %s", api_id, settings.api_gateway_url)
    return mcp, app


def _attach_healthcheck(app) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return

    async def healthcheck(_request):  # type: ignore[no-untyped-def]
        from starlette.responses import JSONResponse

        return JSONResponse({"status": "ok"})

    app.add_route("/health", healthcheck, methods=["GET"])


def _instructions(api_id: str) -> str:
    return (
        f"API Hub tools for '{api_id}'. "
        "Each tool proxies one operation of the API's OpenAPI document through the gateway."
    )


def _get_http_app(mcp: FastMCP, settings: Settings):  # type: ignore[no-untyped-def]
    transport = settings.api_hub_transport.lower()
    if transport in {"http"}:
        app = mcp.http_app(transport="http", stateless_http=True, json_response=True)
        _attach_cors(app)
        return app
    if transport in {"streamable-http", "streamablehttp"}:
        app = mcp.http_app(
            transport="streamable-http", stateless_http=True, json_response=True
        )
        _attach_cors(app)
        return app
    if transport in {"sse"}:
        app = mcp.http_app(transport="sse")
        _attach_cors(app)
        return app
    return None


def _attach_cors(app) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return
    from starlette.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
