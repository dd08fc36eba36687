import httpx
import pytest

from weather_mcp.config import Settings
from weather_mcp.server.errors import NWSRequestError
from weather_mcp.server.nws import NWSClient


@pytest.mark.asyncio
async def test_fetch_json_sends_identifying_headers(nws, nws_client):
    nws.add("/alerts/active?area=CA", {"features": []})

    data = await nws_client.fetch_json(nws_client.url("alerts/active?area=CA"))

    assert data == {"features": []}
    request = nws.requests[0]
    assert request.headers["User-Agent"] == "weather-app/1.0"
    assert request.headers["Accept"] == "application/geo+json"


@pytest.mark.asyncio
async def test_fetch_json_raises_on_http_status(nws, nws_client):
    nws.add("/points/1.0000,2.0000", {"title": "nope"}, status=404)

    with pytest.raises(NWSRequestError) as excinfo:
        await nws_client.fetch_json(nws_client.url("points/1.0000,2.0000"))

    assert excinfo.value.status_code == 404
    assert str(excinfo.value) == "Weather API error: 404"


@pytest.mark.asyncio
async def test_fetch_json_wraps_network_errors(nws, nws_client):
    nws.fail_with = httpx.ConnectError("connection refused")

    with pytest.raises(NWSRequestError) as excinfo:
        await nws_client.fetch_json(nws_client.url("alerts/active?area=CA"))

    assert excinfo.value.status_code is None
    assert "connection refused" in str(excinfo.value)


@pytest.mark.asyncio
async def test_fetch_json_rejects_non_json_body(nws, nws_client):
    nws.add("/alerts/active?area=CA", b"<html>maintenance</html>")

    with pytest.raises(NWSRequestError):
        await nws_client.fetch_json(nws_client.url("alerts/active?area=CA"))


def test_from_settings_uses_configured_upstream():
    settings = Settings(nws_api_base="http://localhost:9999", user_agent="test-agent/2.0", nws_timeout=5.0)

    client = NWSClient.from_settings(settings)

    assert client.url("/points/1,2") == "http://localhost:9999/points/1,2"
    assert client.headers["User-Agent"] == "test-agent/2.0"
    assert client.timeout == 5.0
