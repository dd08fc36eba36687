"""Exceptions raised by the weather tools and the NWS client."""

from typing import Optional


class WeatherToolError(Exception):
    """Base class for failures a weather tool reports to its caller."""


class InvalidArgumentError(WeatherToolError):
    """A tool argument failed validation (bad state code, coordinate out of range)."""


class NWSRequestError(WeatherToolError):
    """The NWS API answered with a non-success status, or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"Weather API error: {self.status_code}"
        return f"Weather API error: {self.args[0]}"
