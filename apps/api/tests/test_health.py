import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from signalbroker.main import app


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http:
        yield http


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "HEAD"])
async def test_health_answers_get_and_head(client, method) -> None:
    response = await client.request(method, "/api/health")

    assert response.status_code == 200
    if method == "GET":
        assert response.json() == {"status": "ok"}
    else:
        assert response.content == b""


@pytest.mark.asyncio
async def test_robots_disallows_crawlers(client) -> None:
    response = await client.get("/robots.txt")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "Disallow" in response.text
