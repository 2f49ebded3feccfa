"""
Notes API — Middleware Tests
=============================

What:  Rate limiting and access-log level selection on a minimal app.
"""

import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from notesapi.middleware.logging import status_log_level
from notesapi.middleware.rate_limit import RateLimitMiddleware
from notesapi.middleware.request_id import RequestIDMiddleware


def make_app(max_requests: int) -> FastAPI:
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)
    return app


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_blocks_after_limit(self):
        transport = ASGITransport(app=make_app(max_requests=2))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            assert (await client.get("/ping")).status_code == 200
            assert (await client.get("/ping")).status_code == 200
            blocked = await client.get("/ping")

        assert blocked.status_code == 429
        body = blocked.json()
        assert body["error"] is True
        assert body["code"] == "rate_limit_exceeded"
        assert 0 < body["details"]["retry_after"] <= 61
        assert blocked.headers["retry-after"] == str(body["details"]["retry_after"])

    @pytest.mark.asyncio
    async def test_health_is_not_limited(self):
        transport = ASGITransport(app=make_app(max_requests=1))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get("/health")).status_code for _ in range(3)]

        assert statuses == [200, 200, 200]


@pytest.mark.parametrize(
    "status, level",
    [(200, logging.INFO), (302, logging.INFO), (404, logging.WARNING), (503, logging.ERROR)],
)
def test_status_log_level(status, level):
    assert status_log_level(status) == level
