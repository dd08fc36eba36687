"""
Pydantic models for the NWS API payloads the weather tools read.

Only the fields the tools render are declared; everything is optional because the
upstream omits properties freely, and unknown fields are ignored.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _NWSModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AlertProperties(_NWSModel):
    """One active alert, as found under ``features[].properties``."""

    event: Optional[str] = None
    headline: Optional[str] = None
    description: Optional[str] = None
    severity: Optional[str] = None
    status: Optional[str] = None
    area_desc: Optional[str] = Field(default=None, alias="areaDesc")


class AlertFeature(_NWSModel):
    properties: AlertProperties = Field(default_factory=AlertProperties)


class AlertsResponse(_NWSModel):
    """Body of ``/alerts/active``."""

    features: List[AlertFeature] = Field(default_factory=list)


class PointProperties(_NWSModel):
    forecast: Optional[str] = None


class PointsResponse(_NWSModel):
    """Body of ``/points/{lat},{lon}``; ``properties.forecast`` is the next URL."""

    properties: PointProperties = Field(default_factory=PointProperties)


class ForecastPeriod(_NWSModel):
    """One entry of ``properties.periods`` in a gridpoint forecast."""

    name: Optional[str] = None
    temperature: Optional[Union[int, float]] = None
    temperature_unit: Optional[str] = Field(default=None, alias="temperatureUnit")
    wind_speed: Optional[str] = Field(default=None, alias="windSpeed")
    wind_direction: Optional[str] = Field(default=None, alias="windDirection")
    short_forecast: Optional[str] = Field(default=None, alias="shortForecast")
    detailed_forecast: Optional[str] = Field(default=None, alias="detailedForecast")


class ForecastProperties(_NWSModel):
    periods: List[ForecastPeriod] = Field(default_factory=list)


class ForecastResponse(_NWSModel):
    """Body of the forecast URL returned by the points lookup."""

    properties: ForecastProperties = Field(default_factory=ForecastProperties)
