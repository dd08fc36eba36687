import json

import pytest
from starlette.testclient import TestClient

from conftest import add_forecast
from weather_mcp.config import Settings
from weather_mcp.server.http_stateless import create_app

HEADERS = {"Accept": "application/json, text/event-stream"}


@pytest.fixture
def client(nws_client):
    with TestClient(create_app(Settings(json_response=True), client=nws_client)) as test_client:
        yield test_client


def rpc(client, method, params=None, request_id=1):
    response = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": request_id, "method": method, "params": params or {}},
        headers=HEADERS,
    )
    assert response.status_code == 200
    assert "mcp-session-id" not in response.headers
    return response.json()


@pytest.mark.parametrize("method", ["GET", "DELETE"])
def test_get_and_delete_not_allowed(client, method):
    response = client.request(method, "/mcp", headers=HEADERS)

    assert response.status_code == 405
    assert response.json() == {
        "jsonrpc": "2.0",
        "error": {"code": -32000, "message": "Method not allowed."},
        "id": None,
    }


def test_tools_list_without_handshake(client):
    body = rpc(client, "tools/list")

    assert {tool["name"] for tool in body["result"]["tools"]} == {"get-alerts", "get-forecast"}


def test_every_request_gets_its_own_server(client):
    first = rpc(client, "tools/list", request_id=1)
    second = rpc(client, "tools/list", request_id=1)

    assert first["id"] == second["id"] == 1
    assert first["result"] == second["result"]


def test_alerts_for_state(nws, client):
    nws.add("/alerts/active?area=NY", {"features": []})

    body = rpc(client, "tools/call", {"name": "get-alerts", "arguments": {"state": "ny"}})

    assert body["result"]["isError"] is False
    assert body["result"]["content"][0]["text"] == "No active weather alerts for NY"


def test_forecast_renders_every_period(nws, client):
    add_forecast(nws, 40.0, -74.0, periods=8)

    body = rpc(client, "tools/call", {"name": "get-forecast", "arguments": {"latitude": 40.0, "longitude": -74.0}})

    assert body["result"]["content"][0]["text"].count("---") == 8


@pytest.mark.parametrize("state", ["ny", "CA", "zz", "x1"])
def test_two_character_states_never_error(nws, client, state):
    nws.add(f"/alerts/active?area={state.upper()}", {"title": "Bad Request"}, status=400)

    body = rpc(client, "tools/call", {"name": "get-alerts", "arguments": {"state": state}})

    assert body["result"]["isError"] is False
    assert "Weather API error: 400" in body["result"]["content"][0]["text"]


def test_tool_call_over_event_stream(nws, nws_client):
    nws.add("/alerts/active?area=NY", {"features": []})

    with TestClient(create_app(Settings(), client=nws_client)) as test_client:
        response = test_client.post(
            "/mcp",
            json={
                "jsonrpc": "2.0",
                "id": 4,
                "method": "tools/call",
                "params": {"name": "get-alerts", "arguments": {"state": "ny"}},
            },
            headers=HEADERS,
        )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert "event: message" in response.text
    (data,) = [line[len("data:"):] for line in response.text.splitlines() if line.startswith("data:")]
    message = json.loads(data)
    assert message["id"] == 4
    assert message["result"]["content"][0]["text"] == "No active weather alerts for NY"
