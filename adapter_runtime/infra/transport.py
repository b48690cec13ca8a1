"""
HTTP Transport
==============

One network round-trip per call against the adapter service:

  POST {base_url}/run-adapter     -> AdapterResponse
  GET  {base_url}/adapters        -> AdapterDiscoveryResponse
  GET  {base_url}/adapters/{id}   -> AdapterMetadata

Failures of ``run_adapter`` are raised as ``AdapterTransportError`` carrying the
HTTP status (if any) so the retry controller can classify them. No retries
happen here.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from adapter_runtime.core.exceptions import AdapterDiscoveryError, AdapterTransportError
from adapter_runtime.core.types import InvocationResult
from adapter_runtime.infra.telemetry import StructuredLogger, get_logger
from adapter_runtime.models.adapter import (
    AdapterDiscoveryResponse,
    AdapterMetadata,
    AdapterRequest,
    AdapterResponse,
)

class AdapterTransport:
    """
    Thin async HTTP layer over ``httpx.AsyncClient``.

    The HTTP client is created here unless one is injected (tests pass an
    ``httpx.AsyncClient`` backed by ``httpx.MockTransport``). Only an owned
    client is closed by ``aclose``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_s: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        logger: StructuredLogger | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._timeout_s = timeout_s
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_s))
        self._logger = logger or get_logger(__name__)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def run_adapter(
        self,
        adapter_id: str,
        input: str | None,
        context: Mapping[str, Any],
        *,
        timeout_s: float | None = None,
    ) -> InvocationResult:
        request = AdapterRequest(adapter_id=adapter_id, input=input, context=dict(context))
        self._logger.debug("adapter_request", adapter_id=adapter_id, has_input=input is not None)

        try:
            response = await self._client.post(
                f"{self._base_url}/run-adapter",
                json=request.to_payload(),
                headers=self._headers,
                timeout=timeout_s if timeout_s is not None else self._timeout_s,
            )
        except httpx.TimeoutException as exc:
            raise AdapterTransportError(
                adapter_id, f"Adapter {adapter_id} timed out: {type(exc).__name__}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AdapterTransportError(
                adapter_id, f"Adapter {adapter_id} request failed: {exc}"
            ) from exc

        if not response.is_success:
            raise AdapterTransportError(
                adapter_id,
                f"Adapter {adapter_id} failed: {response.reason_phrase or response.status_code}",
                status_code=response.status_code,
            )

        try:
            parsed = AdapterResponse.model_validate(response.json())
        except ValueError as exc:  # JSONDecodeError and pydantic ValidationError
            raise AdapterTransportError(
                adapter_id, f"Adapter {adapter_id} returned an invalid response"
            ) from exc

        result = parsed.to_result()
        self._logger.debug("adapter_response", adapter_id=adapter_id, status=result.status.value)
        return result

    async def list_adapters(self) -> AdapterDiscoveryResponse:
        failure = "Failed to fetch adapters"
        response = await self._get("/adapters", failure)
        try:
            return AdapterDiscoveryResponse.model_validate(response.json())
        except ValueError as exc:
            raise AdapterDiscoveryError(f"{failure}: invalid response body") from exc

    async def get_adapter(self, adapter_id: str) -> AdapterMetadata | None:
        failure = "Failed to fetch adapter info"
        response = await self._get(f"/adapters/{adapter_id}", failure, allow_missing=True)
        if response is None:
            return None
        try:
            return AdapterMetadata.model_validate(response.json())
        except ValueError as exc:
            raise AdapterDiscoveryError(f"{failure}: invalid response body") from exc

    async def _get(
        self, path: str, failure: str, *, allow_missing: bool = False
    ) -> httpx.Response | None:
        try:
            response = await self._client.get(
                f"{self._base_url}{path}", headers=self._headers, timeout=self._timeout_s
            )
        except httpx.HTTPError as exc:
            raise AdapterDiscoveryError(f"{failure}: {exc}") from exc
        if allow_missing and response.status_code == 404:
            return None
        if not response.is_success:
            raise AdapterDiscoveryError(
                f"{failure}: {response.reason_phrase or response.status_code}",
                status_code=response.status_code,
            )
        return response
