"""
HttpExecutionBackend - Executes payments through a remote execution service.

The service receives the payment as JSON and answers with
``{"success": true|false, "tx_hash": "..."}``. Timeouts, connection errors,
429 and 5xx responses are retried with exponential backoff before the
attempt is given up.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx

from chainroute.core.exceptions import ExecutionError
from chainroute.core.logging import get_logger
from chainroute.core.types import PaymentRequest
from chainroute.execution.base import ExecutionBackend
from chainroute.resilience.retry import execute_with_retry

EXECUTE_PATH = "/payments"


class HttpExecutionBackend(ExecutionBackend):
    """Execution backend that POSTs payments to an HTTP execution service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_attempts: int = 3,
        backoff_multiplier: float = 1.0,
        endpoint_resolver: Callable[[str], str | None] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            base_url: Execution service used when no provider endpoint is known
            timeout: Per-request timeout in seconds
            max_attempts: Attempts per payment when errors are transient
            backoff_multiplier: Exponential backoff multiplier (0 disables waiting)
            endpoint_resolver: Maps a provider id to that provider's endpoint
            http_client: Pre-built client (tests inject a mock transport here)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._backoff_multiplier = backoff_multiplier
        self._endpoint_resolver = endpoint_resolver
        self._http_client = http_client
        self._owns_client = http_client is None
        self._logger = get_logger("execution.http")

    @property
    def name(self) -> str:
        return "http"

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or lazily create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    def _url_for(self, payment: PaymentRequest) -> str:
        endpoint = None
        if self._endpoint_resolver is not None:
            endpoint = self._endpoint_resolver(payment.provider_id)
        base = endpoint.rstrip("/") if endpoint else self._base_url
        return f"{base}{EXECUTE_PATH}"

    async def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        client = await self._get_client()
        response = await client.post(url, json=payload)
        response.raise_for_status()
        return response

    async def execute(self, payment: PaymentRequest) -> bool:
        url = self._url_for(payment)
        try:
            response = await execute_with_retry(
                self._post,
                url,
                payment.to_dict(),
                max_attempts=self._max_attempts,
                backoff_multiplier=self._backoff_multiplier,
            )
        except httpx.HTTPStatusError as e:
            raise ExecutionError(
                f"Execution service rejected payment {payment.id}",
                status_code=e.response.status_code,
                url=url,
            ) from e
        except httpx.HTTPError as e:
            raise ExecutionError(
                f"Execution service unreachable for payment {payment.id}: {e}", url=url
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            raise ExecutionError(
                "Execution service returned a non-JSON response",
                status_code=response.status_code,
                url=url,
            ) from e

        success = body.get("success") if isinstance(body, dict) else None
        if not isinstance(success, bool):
            raise ExecutionError(
                "Execution service response has no boolean 'success' field",
                status_code=response.status_code,
                url=url,
                details={"body": body},
            )

        context = {"payment_id": payment.id, "provider_id": payment.provider_id}
        if success:
            self._logger.info(
                f"Payment {payment.id} executed (tx: {body.get('tx_hash')})", extra=context
            )
        else:
            self._logger.warning(
                f"Payment {payment.id} execution failed: {body.get('error')}", extra=context
            )
        return success

    async def close(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None
