"""Tests for tool listing and tool call outcomes."""

import json

import httpx
import pytest

from api_hub_mcp.executors import RequestDispatcher
from api_hub_mcp.models import ToolCallResult
from api_hub_mcp.service import ApiHubService
from api_hub_mcp.tool_registry import ToolRegistry

from .conftest import API_ID, PETSTORE


class GatewayStub:
    """Serves the petstore document and records proxied calls."""

    def __init__(self, status_code=200, text='{"id": 1}', docs_status=200):
        self.status_code = status_code
        self.text = text
        self.docs_status = docs_status
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/swagger"):
            if self.docs_status != 200:
                return httpx.Response(self.docs_status)
            return httpx.Response(200, json=PETSTORE)
        self.calls.append(request)
        return httpx.Response(self.status_code, text=self.text)


def _service(settings, make_gateway, extractor, stub) -> ApiHubService:
    gateway = make_gateway(stub)
    return ApiHubService(
        settings,
        ToolRegistry(gateway, extractor),
        RequestDispatcher(gateway, settings.api_hub_token),
        API_ID,
    )


@pytest.mark.asyncio
async def test_list_tools(settings, make_gateway, extractor):
    service = _service(settings, make_gateway, extractor, GatewayStub())

    tools = await service.list_tools()

    assert [tool.name for tool in tools][:2] == ["listPets", "post__pets"]


@pytest.mark.asyncio
async def test_successful_call_returns_body_text(settings, make_gateway, extractor):
    stub = GatewayStub()
    service = _service(settings, make_gateway, extractor, stub)

    result = await service.call_tool("post__pets", {"name": "Rex", "tag": None})

    assert result == ToolCallResult(text='{"id": 1}')
    (request,) = stub.calls
    assert request.method == "POST"
    assert request.url.path == f"/api/use/{API_ID}//pets"
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert json.loads(request.content) == {"name": "Rex", "tag": None}


@pytest.mark.asyncio
async def test_missing_arguments_mapping(settings, make_gateway, extractor):
    stub = GatewayStub()
    service = _service(settings, make_gateway, extractor, stub)

    result = await service.call_tool("listPets", None)

    assert result == ToolCallResult(text="Error: Arguments are required", is_error=True)
    assert stub.calls == []


@pytest.mark.asyncio
async def test_unknown_tool(settings, make_gateway, extractor):
    service = _service(settings, make_gateway, extractor, GatewayStub())

    result = await service.call_tool("adoptPet", {})

    assert result.is_error
    assert result.text == "Error: Unknown tool: adoptPet"


@pytest.mark.asyncio
async def test_missing_required_field(settings, make_gateway, extractor):
    stub = GatewayStub()
    service = _service(settings, make_gateway, extractor, stub)

    result = await service.call_tool("showPetById", {})

    assert result.is_error
    assert result.text == "Error: Missing required argument: petId"
    assert stub.calls == []


@pytest.mark.asyncio
async def test_upstream_error_status(settings, make_gateway, extractor):
    stub = GatewayStub(status_code=404, text="no such pet")
    service = _service(settings, make_gateway, extractor, stub)

    result = await service.call_tool("showPetById", {"petId": "9"})

    assert result.is_error
    assert result.text == "Error: 404 Not Found\nno such pet"
    assert stub.calls[0].url.path == f"/api/use/{API_ID}//pets/9"


@pytest.mark.asyncio
async def test_transport_error(settings, make_gateway, extractor):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/swagger"):
            return httpx.Response(200, json=PETSTORE)
        raise httpx.ConnectError("connection refused", request=request)

    service = _service(settings, make_gateway, extractor, handler)

    result = await service.call_tool("listPets", {})

    assert result == ToolCallResult(text="Error: connection refused", is_error=True)


@pytest.mark.asyncio
async def test_tool_list_failure_is_reported(settings, make_gateway, extractor):
    service = _service(settings, make_gateway, extractor, GatewayStub(docs_status=500))

    result = await service.call_tool("listPets", {})

    assert result.is_error
    assert result.text.startswith("Error: Failed to fetch OpenAPI document for petstore: 500")
