"""Shared fixtures: an in-process stand-in for api.weather.gov."""

from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from weather_mcp.server.nws import NWSClient

NWS_BASE = "https://api.weather.gov"
FORECAST_URL = f"{NWS_BASE}/gridpoints/OKX/33,35/forecast"


class FakeNWS:
    """Routes requests by path + query to canned responses and records them."""

    def __init__(self) -> None:
        self.routes: Dict[str, Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.fail_with: Optional[Exception] = None

    def add(self, path: str, payload: Any = None, status: int = 200) -> None:
        self.routes[path] = (status, payload)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        key = request.url.raw_path.decode()
        if key not in self.routes:
            return httpx.Response(404, json={"title": "Not Found"})
        status, payload = self.routes[key]
        if isinstance(payload, (bytes, str)):
            return httpx.Response(status, content=payload)
        return httpx.Response(status, json=payload)

    @property
    def paths(self) -> List[str]:
        return [r.url.raw_path.decode() for r in self.requests]

    def client(self) -> NWSClient:
        return NWSClient(base_url=NWS_BASE, transport=httpx.MockTransport(self.handler))


def make_period(n: int) -> Dict[str, Any]:
    return {
        "number": n,
        "name": f"Period {n}",
        "temperature": 60 + n,
        "temperatureUnit": "F",
        "windSpeed": "10 mph",
        "windDirection": "NW",
        "shortForecast": "Sunny",
        "detailedForecast": f"Sunny, with a high near {60 + n}.",
    }


def add_forecast(nws: FakeNWS, latitude: float, longitude: float, periods: int) -> None:
    nws.add(f"/points/{latitude:.4f},{longitude:.4f}", {"properties": {"forecast": FORECAST_URL}})
    nws.add(
        "/gridpoints/OKX/33,35/forecast",
        {"properties": {"periods": [make_period(i) for i in range(1, periods + 1)]}},
    )


@pytest.fixture
def nws() -> FakeNWS:
    return FakeNWS()


@pytest.fixture
def nws_client(nws) -> NWSClient:
    return nws.client()
