"""Shared fixtures for the API Hub tests."""

import copy
from typing import Any, Callable, Dict

import httpx
import pytest

from api_hub_mcp.config import Settings
from api_hub_mcp.gateway_client import GatewayClient
from api_hub_mcp.openapi import OpenAPIToolExtractor

GATEWAY_URL = "https://gateway.test/api"
API_ID = "petstore"

PETSTORE: Dict[str, Any] = {
    "openapi": "3.0.0",
    "info": {"title": "Petstore", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "summary": "List all pets",
                "parameters": [
                    {
                        "name": "limit",
                        "in": "query",
                        "description": "How many items to return",
                        "schema": {"type": "integer", "format": "int32"},
                    },
                    {"name": "tag", "schema": {"type": "string"}},
                ],
            },
            "post": {
                "summary": "Create a pet",
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/NewPet"}
                        }
                    },
                },
            },
        },
        "/pets/{petId}": {
            "get": {
                "operationId": "showPetById",
                "description": "Info for a specific pet",
                "parameters": [
                    {
                        "name": "petId",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "string"},
                    }
                ],
            },
            "delete": {
                "operationId": "deletePet",
                "parameters": [
                    {
                        "name": "petId",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "string"},
                    }
                ],
            },
            "parameters": [{"name": "ignored", "in": "query"}],
        },
        "/pets/{petId}/photos": {
            "put": {
                "operationId": "uploadPhotos",
                "parameters": [
                    {
                        "name": "petId",
                        "in": "path",
                        "required": True,
                        "schema": {"type": "integer"},
                    }
                ],
                "requestBody": {
                    "required": True,
                    "content": {
                        "application/json": {
                            "schema": {"type": "array", "items": {"type": "string"}}
                        }
                    },
                },
            }
        },
    },
    "components": {
        "schemas": {
            "NewPet": {
                "type": "object",
                "required": ["name"],
                "properties": {
                    "name": {"type": "string"},
                    "tag": {"type": "string", "nullable": True},
                    "owner": {"$ref": "#/components/schemas/Owner"},
                },
            },
            "Owner": {
                "type": "object",
                "properties": {"email": {"type": "string", "format": "email"}},
            },
        }
    },
}


@pytest.fixture
def petstore() -> Dict[str, Any]:
    return copy.deepcopy(PETSTORE)


@pytest.fixture
def extractor() -> OpenAPIToolExtractor:
    return OpenAPIToolExtractor(GATEWAY_URL)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        api_gateway_url=GATEWAY_URL,
        api_hub_token="secret-token",
        api_hub_api_id=API_ID,
    )


@pytest.fixture
def make_gateway() -> Callable[..., GatewayClient]:
    def factory(handler: Callable[[httpx.Request], Any], **kwargs: Any) -> GatewayClient:
        return GatewayClient(
            base_url=GATEWAY_URL,
            token="secret-token",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )

    return factory
