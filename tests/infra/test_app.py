"""Application-level behaviour: health check and request middleware."""

from httpx import AsyncClient


async def test_health_check(public_client: AsyncClient):
    response = await public_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["checks"] == {"database": True}
    assert data["version"] == "0.1.0"


async def test_request_id_is_echoed(public_client: AsyncClient):
    response = await public_client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


async def test_request_id_is_generated(public_client: AsyncClient):
    response = await public_client.get("/health")
    assert response.headers["X-Request-ID"]
