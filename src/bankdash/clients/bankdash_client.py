"""
BankDash Backend Client
HTTP client for the BankDash services/transactions API.

Environment (see bankdash.config):
  BANKDASH_API_URL          (default: http://localhost:8080/api)
  BANKDASH_API_TOKEN        bearer token, optional
  BANKDASH_REQUEST_TIMEOUT  seconds (default: 10)
"""

from typing import Any, Dict, Optional

import httpx

from bankdash.config import get_settings
from bankdash.logging_config import get_logger

logger = get_logger("bankdash.client")


class BackendError(Exception):
    """
    Upstream call failed. ``status`` is the HTTP status code, or 0 for
    network, timeout and decoding failures.
    """

    def __init__(self, message: str, status: int = 0, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    def __repr__(self) -> str:
        return f"BackendError(status={self.status}, message={self.message!r})"


class BankDashClient:
    """
    Async client for the BankDash backend.
    Exposes:
      - get_transactions(service_id, limit, offset)
      - get_services() / get_service(service_id)
      - aclose()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.token = token if token is not None else settings.api_token
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)
        logger.info("BankDashClient initialized for %s", self.base_url)

    async def __aenter__(self) -> "BankDashClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        try:
            await self._client.aclose()
        except Exception:
            logger.exception("Error closing httpx client")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(self, method: str, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = await self._client.request(method, url, params=params, headers=self._headers())
        except httpx.RequestError as e:
            logger.error("HTTP %s %s failed: %s", method, url, e)
            raise BackendError(str(e) or "Network error occurred", status=0) from e

        logger.info("HTTP %s %s params=%s -> %s", method, url, params, resp.status_code)

        if resp.is_error:
            try:
                details = resp.json()
            except ValueError:
                details = {}
            message = None
            if isinstance(details, dict):
                message = details.get("message")
            message = message or f"HTTP {resp.status_code}: {resp.reason_phrase}"
            logger.error("HTTP %s %s error response: %s", method, url, details)
            raise BackendError(message, status=resp.status_code, details=details)

        try:
            return resp.json()
        except ValueError as e:
            logger.error("HTTP %s %s returned non-JSON body", method, url)
            raise BackendError("Invalid JSON in response", status=resp.status_code) from e

    async def get_transactions(self, service_id: Any, limit: int = 5, offset: int = 40) -> Any:
        """
        GET /transactions/service/{service_id}?limit=&offset=

        Returns the raw body; its shape varies (see audit.normalizer).
        """
        return await self._request(
            "GET",
            f"/transactions/service/{service_id}",
            params={"limit": limit, "offset": offset},
        )

    async def get_services(self) -> Any:
        return await self._request("GET", "/services/services")

    async def get_service(self, service_id: Any) -> Any:
        return await self._request("GET", f"/services/services/{service_id}")
