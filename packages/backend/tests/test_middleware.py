"""Tests for middleware and app-level error handling."""

from structlog.testing import capture_logs


async def test_security_headers_on_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert r.headers["Cache-Control"] == "no-store"


async def test_security_headers_on_rejected_request(client):
    """The bare 401 from the auth guard still passes through the middleware."""
    r = await client.get("/todos")
    assert r.status_code == 401
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in r.headers


async def test_request_id_generated(client):
    r1 = await client.get("/health")
    r2 = await client.get("/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


async def test_request_id_propagated(client):
    custom_id = "test-trace-12345"
    r = await client.get("/health", headers={"X-Request-ID": custom_id})
    assert r.headers["X-Request-ID"] == custom_id


async def test_no_hsts_on_http(client):
    r = await client.get("/health")
    assert "Strict-Transport-Security" not in r.headers


async def test_cors_exposes_auth_header(client):
    r = await client.get("/health", headers={"Origin": "http://localhost:3000"})
    assert r.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert "x-auth" in r.headers["access-control-expose-headers"].lower()


async def test_hsts_behind_https_proxy(client):
    r = await client.get("/health", headers={"X-Forwarded-Proto": "https"})
    assert r.headers["Strict-Transport-Security"] == "max-age=31536000; includeSubDomains"


async def test_request_completed_logged(client):
    with capture_logs() as logs:
        r = await client.get("/todos")
    assert r.status_code == 401

    completed = [e for e in logs if e["event"] == "request.completed"]
    assert len(completed) == 1
    assert completed[0]["path"] == "/todos"
    assert completed[0]["status"] == 401
    assert completed[0]["method"] == "GET"
