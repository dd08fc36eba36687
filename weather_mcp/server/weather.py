"""
weather.py – FastMCP server with two NWS tools
----------------------------------------------
* get-alerts(state)                 – active U.S. National Weather Service alerts
                                      for a two-letter state code.
* get-forecast(latitude, longitude) – gridpoint forecast, resolved through the
                                      NWS points lookup.

The handlers below are shared by every transport. ``create_server`` wraps them in a
FastMCP instance whose error policy and period cap depend on the ``ToolProfile``.

Dependencies
    pip install httpx mcp pydantic
"""

# --------------------------------------------------------------------------- #
#  Imports
# --------------------------------------------------------------------------- #

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.server.lowlevel import Server
from pydantic import Field, ValidationError

from .. import __version__
from .errors import InvalidArgumentError, NWSRequestError
from .models import AlertProperties, AlertsResponse, ForecastPeriod, ForecastResponse, PointsResponse
from .nws import NWSClient

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
#  Constants
# --------------------------------------------------------------------------- #

SERVER_NAME = "weather"
ALERTS_TOOL = "get-alerts"
FORECAST_TOOL = "get-forecast"

SDK_MAX_PERIODS = 5

# --------------------------------------------------------------------------- #
#  Results and profiles
# --------------------------------------------------------------------------- #


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "invalid_argument"
    UPSTREAM = "upstream"


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool call: the text to show, and what went wrong if anything."""

    text: str
    error: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, kind: ErrorKind, text: str) -> "ToolResult":
        return cls(text=text, error=kind)


class ToolProfile(str, Enum):
    """How the tools behave behind a given transport.

    MINIMAL backs the stateless HTTP server: nothing is ever raised and every
    forecast period is rendered. SDK backs the session HTTP and stdio servers:
    invalid arguments raise and forecasts stop after five periods.
    """

    MINIMAL = "minimal"
    SDK = "sdk"

    @property
    def raise_on_invalid(self) -> bool:
        return self is ToolProfile.SDK

    @property
    def max_periods(self) -> Optional[int]:
        return SDK_MAX_PERIODS if self is ToolProfile.SDK else None


# --------------------------------------------------------------------------- #
#  Validation
# --------------------------------------------------------------------------- #


def validate_state(state: str) -> str:
    """Return ``state`` upper-cased, or raise if it is not exactly two characters."""
    if not isinstance(state, str) or len(state) != 2:
        raise InvalidArgumentError(
            f"Invalid state code: {state!r}. Expected a two-letter US state code (e.g. CA, NY)."
        )
    return state.upper()


def validate_coordinates(latitude: float, longitude: float) -> None:
    # NaN fails both comparisons
    if not -90 <= latitude <= 90:
        raise InvalidArgumentError(f"Invalid latitude: {latitude}. Must be between -90 and 90.")
    if not -180 <= longitude <= 180:
        raise InvalidArgumentError(f"Invalid longitude: {longitude}. Must be between -180 and 180.")


# --------------------------------------------------------------------------- #
#  Formatting
# --------------------------------------------------------------------------- #


def format_alert(index: int, props: AlertProperties) -> str:
    """Pretty-print one NWS alert as a numbered entry."""
    return (
        f"{index}. Event: {props.event or 'Unknown'}\n"
        f"   Severity: {props.severity or 'Unknown'}\n"
        f"   Status: {props.status or 'Unknown'}\n"
        f"   Headline: {props.headline or 'No headline'}\n"
        f"   Area: {props.area_desc or 'Unknown'}\n"
        f"   Description: {props.description or 'No description available'}"
    )


def format_period(period: ForecastPeriod) -> str:
    temperature = "Unknown" if period.temperature is None else period.temperature
    wind = f"{period.wind_speed or 'Unknown'} {period.wind_direction or ''}".rstrip()
    lines = [
        f"{period.name or 'Unknown'}:",
        f"Temperature: {temperature}°{period.temperature_unit or 'F'}",
        f"Wind: {wind}",
        period.short_forecast or "No forecast available",
    ]
    if period.detailed_forecast:
        lines.append(period.detailed_forecast)
    lines.append("---")
    return "\n".join(lines)


# --------------------------------------------------------------------------- #
#  Handlers
# --------------------------------------------------------------------------- #


async def get_alerts(client: NWSClient, state: str) -> ToolResult:
    """Active alerts for a US state."""
    try:
        state_code = validate_state(state)
    except InvalidArgumentError as exc:
        return ToolResult.failure(ErrorKind.INVALID_ARGUMENT, str(exc))

    logger.info(f"Fetching active alerts for {state_code}")
    try:
        data = await client.fetch_json(client.url(f"alerts/active?area={state_code}"))
        alerts = AlertsResponse.model_validate(data)
    except NWSRequestError as exc:
        return ToolResult.failure(ErrorKind.UPSTREAM, f"Failed to retrieve alerts data ({exc})")
    except ValidationError as exc:
        logger.error(f"Unexpected alerts payload for {state_code}: {exc}")
        return ToolResult.failure(ErrorKind.UPSTREAM, "Failed to retrieve alerts data (unexpected response)")

    if not alerts.features:
        return ToolResult(f"No active weather alerts for {state_code}")

    entries = [format_alert(i, feature.properties) for i, feature in enumerate(alerts.features, start=1)]
    logger.info(f"Found {len(entries)} active alerts for {state_code}")
    return ToolResult(f"Active weather alerts for {state_code}:\n\n" + "\n\n".join(entries))


async def get_forecast(
    client: NWSClient,
    latitude: float,
    longitude: float,
    max_periods: Optional[int] = None,
) -> ToolResult:
    """Forecast for a coordinate: points lookup first, then the forecast URL it names."""
    try:
        validate_coordinates(latitude, longitude)
    except InvalidArgumentError as exc:
        return ToolResult.failure(ErrorKind.INVALID_ARGUMENT, str(exc))

    # 1 – Resolve the grid point
    points_url = client.url(f"points/{latitude:.4f},{longitude:.4f}")
    try:
        points = PointsResponse.model_validate(await client.fetch_json(points_url))
    except (NWSRequestError, ValidationError) as exc:
        return ToolResult.failure(
            ErrorKind.UPSTREAM,
            f"Failed to retrieve grid point data for coordinates: {latitude}, {longitude} ({exc}). "
            "This location may not be supported by the NWS API (only US locations are supported).",
        )

    forecast_url = points.properties.forecast
    if not forecast_url:
        return ToolResult.failure(ErrorKind.UPSTREAM, "Failed to get forecast URL from grid point data")

    # 2 – Fetch the forecast itself
    try:
        forecast = ForecastResponse.model_validate(await client.fetch_json(forecast_url))
    except (NWSRequestError, ValidationError) as exc:
        return ToolResult.failure(ErrorKind.UPSTREAM, f"Failed to retrieve forecast data ({exc})")

    periods = forecast.properties.periods
    if not periods:
        return ToolResult("No forecast periods available")
    if max_periods is not None:
        periods = periods[:max_periods]

    blocks = "\n".join(format_period(p) for p in periods)
    return ToolResult(f"Forecast for {latitude}, {longitude}:\n\n{blocks}")


# --------------------------------------------------------------------------- #
#  FastMCP server factory
# --------------------------------------------------------------------------- #


def render_result(result: ToolResult, profile: ToolProfile) -> str:
    if result.error is ErrorKind.INVALID_ARGUMENT and profile.raise_on_invalid:
        raise ToolError(result.text)
    return result.text


def protocol_server(mcp: FastMCP) -> Server:
    """The low-level protocol server behind *mcp*, as the transports drive it."""
    return mcp._mcp_server  # noqa: SLF001


def create_server(profile: ToolProfile = ToolProfile.SDK, client: Optional[NWSClient] = None) -> FastMCP:
    """Build a FastMCP server with ``get-alerts`` and ``get-forecast`` registered."""
    nws = client or NWSClient()
    mcp = FastMCP(SERVER_NAME)
    protocol_server(mcp).version = __version__

    @mcp.tool(name=ALERTS_TOOL, description="Get weather alerts for a state")
    async def alerts_tool(
        state: Annotated[
            str, Field(description="Two-letter state code (e.g. CA, NY)", min_length=2, max_length=2)
        ],
    ) -> str:
        result = await get_alerts(nws, state)
        return render_result(result, profile)

    @mcp.tool(name=FORECAST_TOOL, description="Get weather forecast for a location")
    async def forecast_tool(
        latitude: Annotated[float, Field(description="Latitude of the location", ge=-90, le=90)],
        longitude: Annotated[float, Field(description="Longitude of the location", ge=-180, le=180)],
    ) -> str:
        result = await get_forecast(nws, latitude, longitude, max_periods=profile.max_periods)
        return render_result(result, profile)

    logger.debug(f"Created {profile.value} weather server")
    return mcp
