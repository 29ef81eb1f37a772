"""Core tool service: listing and calling gateway tools."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from .config import Settings
from .executors import MissingArgumentError, RequestDispatcher
from .gateway_client import GatewayError
from .logging import redact_payload
from .models import ApiTool, ToolCallResult
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


class ApiHubService:
    """
    Tool service for a single API identifier.

    Business failures (unknown tool, missing arguments, upstream non-2xx,
    transport errors) are returned as error results. Anything else
    propagates to the caller.
    """

    def __init__(
        self,
        settings: Settings,
        registry: ToolRegistry,
        dispatcher: RequestDispatcher,
        api_id: str,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.dispatcher = dispatcher
        self.api_id = api_id
        self.semaphore = asyncio.Semaphore(settings.api_hub_max_concurrency)

    async def list_tools(self) -> Tuple[ApiTool, ...]:
        return await self.registry.get(self.api_id)

    async def call_tool(
        self, name: str, arguments: Optional[Dict[str, Any]]
    ) -> ToolCallResult:
        if arguments is None:
            return self._format_error("Arguments are required")

        async with self.semaphore:
            logger.info("Calling tool=%s arguments=%s", name, redact_payload(arguments))

            try:
                tool = await self.registry.find(self.api_id, name)
            except (GatewayError, httpx.HTTPError) as exc:
                logger.error("Loading tools failed: %s", exc)
                return self._format_error(str(exc))
            if tool is None:
                return self._format_error(f"Unknown tool: {name}")

            try:
                response = await self.dispatcher.dispatch(tool, arguments)
            except MissingArgumentError as exc:
                return self._format_error(str(exc))
            except httpx.HTTPError as exc:
                logger.error("Tool call failed: tool=%s error=%s", name, exc)
                return self._format_error(str(exc) or type(exc).__name__)

            body = response.text
            if not response.is_success:
                logger.warning(
                    "Tool call returned %s: tool=%s", response.status_code, name
                )
                return self._format_error(
                    f"{response.status_code} {response.reason_phrase}\n{body}"
                )
            return self._format_result(body)

    def _format_result(self, text: str) -> ToolCallResult:
        return ToolCallResult(text=text)

    def _format_error(self, message: str) -> ToolCallResult:
        return ToolCallResult(text=f"Error: {message}", is_error=True)
