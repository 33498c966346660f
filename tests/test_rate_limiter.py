import asyncio
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from app import rate_limiter


def make_request(ip="203.0.113.7", forwarded=None):
    headers = []
    if forwarded:
        headers.append((b"x-forwarded-for", forwarded.encode()))
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/consultations/public/BMDC123456/book",
        "headers": headers,
        "client": (ip, 50000),
    }
    return Request(scope)


def redis_with_count(count):
    client = MagicMock()
    client.pipeline.return_value.execute.return_value = [count, True]
    return client


def test_client_ip_prefers_forwarded_header():
    request = make_request(forwarded="198.51.100.1, 10.0.0.2")

    assert rate_limiter.get_client_ip(request) == "198.51.100.1"
    assert rate_limiter.get_client_ip(make_request()) == "203.0.113.7"


def test_check_rate_limit_counts_window():
    allowed, count, ttl = rate_limiter.check_rate_limit(redis_with_count(3), "booking:ip", 10, 60)

    assert allowed is True
    assert count == 3
    assert 0 < ttl <= 60


def test_requests_over_limit_are_rejected(monkeypatch):
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: redis_with_count(11))

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(rate_limiter.rate_limit_dependency(make_request(), 10, 60, "booking"))

    assert exc_info.value.status_code == 429
    assert "Retry-After" in exc_info.value.headers


def test_redis_outage_lets_requests_through(monkeypatch):
    def unavailable():
        raise ConnectionError("redis down")

    monkeypatch.setattr(rate_limiter, "get_redis_client", unavailable)

    assert asyncio.run(rate_limiter.rate_limit_dependency(make_request(), 10, 60, "booking")) is None
