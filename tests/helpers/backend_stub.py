"""An in-memory BankDash backend served through ``httpx.MockTransport``.

Tests register per-service transaction payloads (any JSON shape) or an HTTP
status to fail with. Every request is recorded on ``calls`` so tests can make
assertions about paths and query parameters.
"""

from __future__ import annotations

from typing import Any

import httpx

from bankdash.clients.bankdash_client import BankDashClient

BASE_URL = "http://bankdash.test/api"


class BackendStub:
    def __init__(self) -> None:
        self.transactions: dict[str, Any] = {}
        self.services: Any = []
        self.service_details: dict[str, Any] = {}
        self.failures: dict[str, int] = {}
        self.calls: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.removeprefix("/api")

        if path in self.failures:
            return httpx.Response(self.failures[path], json={"message": f"boom at {path}"})

        if path.startswith("/transactions/service/"):
            service_id = path.rsplit("/", 1)[-1]
            if service_id not in self.transactions:
                return httpx.Response(404, json={"message": "Service not found"})
            return httpx.Response(200, json=self.transactions[service_id])

        if path == "/services/services":
            return httpx.Response(200, json=self.services)

        if path.startswith("/services/services/"):
            service_id = path.rsplit("/", 1)[-1]
            if service_id not in self.service_details:
                return httpx.Response(404, json={})
            return httpx.Response(200, json=self.service_details[service_id])

        return httpx.Response(404, json={"message": "no route"})

    def client(self, **kwargs: Any) -> BankDashClient:
        kwargs.setdefault("base_url", BASE_URL)
        return BankDashClient(transport=httpx.MockTransport(self.handler), **kwargs)
