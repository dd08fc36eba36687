"""
nws.py – HTTP client for the National Weather Service API
---------------------------------------------------------
* NWSClient.fetch_json(url) – GET + decode, raises NWSRequestError on any failure.

Dependencies
    pip install httpx
"""

import logging
from typing import Any, Optional

import httpx

from ..config import DEFAULT_NWS_API_BASE, DEFAULT_USER_AGENT
from .errors import NWSRequestError

logger = logging.getLogger(__name__)


class NWSClient:
    """Thin async wrapper around ``api.weather.gov``.

    A new ``httpx.AsyncClient`` is opened per request. No retries are made, and with
    ``timeout=None`` a stalled upstream stalls the caller.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_NWS_API_BASE,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "NWSClient":
        return cls(
            base_url=settings.nws_api_base,
            user_agent=settings.user_agent,
            timeout=settings.nws_timeout,
            transport=transport,
        )

    @property
    def headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent, "Accept": "application/geo+json"}

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def fetch_json(self, url: str) -> dict[str, Any]:
        """GET ``url`` and return the decoded JSON object."""
        async with httpx.AsyncClient(
            headers=self.headers,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        ) as client:
            logger.debug(f"GET {url}")
            try:
                r = await client.get(url)
            except httpx.HTTPError as exc:
                logger.error(f"Error making NWS request to {url}: {exc!r}")
                raise NWSRequestError(str(exc) or type(exc).__name__, url=url) from exc

        if not r.is_success:
            logger.error(f"NWS request to {url} failed with status {r.status_code}")
            raise NWSRequestError(f"HTTP error! status: {r.status_code}", status_code=r.status_code, url=url)

        try:
            data = r.json()
        except ValueError as exc:
            raise NWSRequestError("invalid JSON in response", url=url) from exc
        if not isinstance(data, dict):
            raise NWSRequestError("unexpected response shape", url=url)
        return data

