"""API gateway client for OpenAPI documents and proxied calls."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GatewayClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        timeout_seconds: Optional[float] = 30,
        verify_ssl: bool = True,
        authenticate_docs: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_seconds = timeout_seconds
        self.verify_ssl = verify_ssl
        self.authenticate_docs = authenticate_docs
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout_seconds,
            verify=self.verify_ssl,
            transport=self.transport,
        )

    def docs_url(self, api_id: str) -> str:
        return f"{self.base_url}/docs/{api_id}/swagger"

    async def fetch_spec(self, api_id: str) -> Dict[str, Any]:
        url = self.docs_url(api_id)
        headers = self._headers() if self.authenticate_docs else {}

        async with self._client() as client:
            response = await client.get(url, headers=headers)

        if not response.is_success:
            raise GatewayError(
                f"Failed to fetch OpenAPI document for {api_id}: "
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise GatewayError(f"OpenAPI document for {api_id} is not valid JSON") from exc

        if not isinstance(payload, dict):
            logger.warning("Unexpected OpenAPI document shape: %s", type(payload))
            raise GatewayError(f"OpenAPI document for {api_id} is not a JSON object")
        return payload

    async def send(self, request: httpx.Request) -> httpx.Response:
        # Requests built outside a client carry no timeout of their own.
        request.extensions.setdefault(
            "timeout", httpx.Timeout(self.timeout_seconds).as_dict()
        )
        async with self._client() as client:
            return await client.send(request)
