"""Accounting source backed by the local Tally bridge HTTP server."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from ledgerbot.errors import NotConnectedError
from ledgerbot.sources.base import AccountingSource, SourceResult

logger = logging.getLogger(__name__)


class BridgeConfig(BaseModel):
    """Configuration for the bridge client."""

    base_url: str = "http://localhost:8765"
    token: str | None = None
    timeout: float = 30.0


class BridgeAccountingSource(AccountingSource):
    """Runs ODBC-style read queries through the bridge's REST API."""

    def __init__(self, config: BridgeConfig | None = None, **kwargs: Any) -> None:
        """Initialize the bridge client.

        Args:
            config: Bridge configuration
            **kwargs: Additional configuration options
        """
        self.config = config or BridgeConfig(**kwargs)
        self.client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            headers={"Content-Type": "application/json"},
        )

    def _auth_headers(self) -> dict[str, str]:
        if not self.config.token:
            return {}
        return {"Authorization": f"Bearer {self.config.token}"}

    async def is_connected(self) -> bool:
        """Ask the bridge whether it holds a live Tally connection.

        Returns:
            True if the bridge reports a connection, False otherwise
        """
        try:
            response = await self.client.get("/tally/status", headers=self._auth_headers())
            if response.status_code != 200:
                return False
            return bool(response.json().get("is_connected", False))
        except Exception as e:
            logger.warning(f"Bridge status check failed: {e}")
            return False

    async def execute_query(self, query: str) -> SourceResult:
        """Execute a query through the bridge.

        Args:
            query: SQL text in Tally ODBC dialect

        Returns:
            SourceResult with the bridge's rows

        Raises:
            NotConnectedError: If the bridge cannot be reached
        """
        try:
            response = await self.client.post(
                "/tally/query",
                json={"sql": query, "token": self.config.token},
                headers=self._auth_headers(),
            )
            response.raise_for_status()
            data = response.json()

            return SourceResult(
                success=bool(data.get("success")),
                rows=data.get("data") or [],
                error=data.get("error"),
                execution_time_ms=data.get("execution_time_ms"),
            )

        except httpx.ConnectError as e:
            logger.error(f"Bridge unreachable at {self.config.base_url}: {e}")
            raise NotConnectedError(f"Accounting bridge unreachable: {e}")
        except httpx.TimeoutException as e:
            logger.warning(f"Bridge query timed out after {self.config.timeout}s: {e}")
            return SourceResult(success=False, error=f"Query timed out: {e}")
        except httpx.HTTPStatusError as e:
            logger.error(f"Bridge query HTTP error: {e}")
            detail = e.response.text
            return SourceResult(success=False, error=f"Bridge error {e.response.status_code}: {detail}")
        except httpx.RequestError as e:
            logger.error(f"Bridge query request failed: {e}")
            return SourceResult(success=False, error=str(e))

    async def health_check(self) -> bool:
        """Check that the bridge process itself is up.

        Returns:
            True if healthy, False otherwise
        """
        try:
            response = await self.client.get("/health")
            return response.status_code == 200
        except Exception as e:
            logger.warning(f"Bridge health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
