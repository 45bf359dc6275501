"""
bankdash/app.py

FastAPI application entrypoint for the BankDash audit service.

This module wires together:
- Logging configuration (file-based under BANKDASH_LOG_DIR)
- CORS and request logging middleware
- The upstream BankDash backend client and the transaction count tracker
- Domain routers under bankdash/api/
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request

from bankdash import __version__
from bankdash.api import services_router
from bankdash.audit.aggregation import TransactionCountTracker
from bankdash.clients.bankdash_client import BankDashClient
from bankdash.config import get_settings
from bankdash.logging_config import get_logger, setup_logging

logger = get_logger("bankdash.app")


def create_app(client: Optional[BankDashClient] = None) -> FastAPI:
    """
    Build the app. Pass ``client`` to point at a specific backend (tests use
    an httpx.MockTransport-backed client).
    """
    setup_logging()
    settings = get_settings()

    app = FastAPI(title="BankDash Audit API", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    app.state.client = client or BankDashClient()
    app.state.tracker = TransactionCountTracker(app.state.client.get_transactions)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Lightweight request logger to help trace dashboard traffic.
        """
        logger.info(
            "HTTP %s %s from %s query=%s",
            request.method,
            request.url.path,
            request.client.host if request.client else "?",
            request.url.query[:200],
        )
        response = await call_next(request)
        return response

    @app.get("/api/health")
    async def health():
        """
        Simple health check endpoint.
        """
        return {"status": "healthy"}

    app.include_router(services_router, prefix="/api")

    @app.on_event("startup")
    async def on_startup():
        logger.info("BankDash audit service starting up (backend=%s)", settings.api_url)

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.client.aclose()
        logger.info("BankDash audit service shutting down")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("bankdash.app:app", host="0.0.0.0", port=8000)
