"""Process-wide tool cache keyed by API identifier."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Tuple

from .gateway_client import GatewayClient
from .models import ApiTool
from .openapi import OpenAPIToolExtractor


logger = logging.getLogger(__name__)


class ToolRegistry:
    """Loads the tools of an API once and keeps them for the process lifetime.

    Concurrent first lookups for the same API share a single fetch. A failed
    load is not remembered, so the next lookup tries again.
    """

    def __init__(self, gateway_client: GatewayClient, extractor: OpenAPIToolExtractor) -> None:
        self.gateway_client = gateway_client
        self.extractor = extractor
        self._tools: Dict[str, Tuple[ApiTool, ...]] = {}
        self._pending: Dict[str, "asyncio.Task[Tuple[ApiTool, ...]]"] = {}

    async def get(self, api_id: str) -> Tuple[ApiTool, ...]:
        cached = self._tools.get(api_id)
        if cached is not None:
            return cached

        task = self._pending.get(api_id)
        if task is None:
            task = asyncio.ensure_future(self._load(api_id))
            self._pending[api_id] = task
            task.add_done_callback(lambda _task: self._pending.pop(api_id, None))
        return await asyncio.shield(task)

    async def find(self, api_id: str, name: str) -> Optional[ApiTool]:
        for tool in reversed(await self.get(api_id)):
            if tool.name == name:
                return tool
        return None

    async def _load(self, api_id: str) -> Tuple[ApiTool, ...]:
        logger.info("Loading tools for api=%s", api_id)
        document = await self.gateway_client.fetch_spec(api_id)
        tools = self.extractor.extract(api_id, document)

        seen = set()
        for tool in tools:
            if tool.name in seen:
                logger.warning(
                    "Duplicate tool name %s for api=%s, the last one is used", tool.name, api_id
                )
            seen.add(tool.name)

        self._tools[api_id] = tools
        return tools
