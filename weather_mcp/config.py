"""
config.py – environment settings and logging setup
--------------------------------------------------
* Settings.from_env() – read listen address, upstream and transport options
                        from the process environment (and a local .env file).
* configure_logging()  – one-time logging setup shared by every entrypoint.
"""

# --------------------------------------------------------------------------- #
#  Imports
# --------------------------------------------------------------------------- #

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

# --------------------------------------------------------------------------- #
#  Defaults
# --------------------------------------------------------------------------- #

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_NWS_API_BASE = "https://api.weather.gov"
DEFAULT_USER_AGENT = "weather-app/1.0"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUTHY = {"1", "true", "yes", "on"}


def _int_env(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _float_env(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None


# --------------------------------------------------------------------------- #
#  Settings
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the weather MCP server."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    nws_api_base: str = DEFAULT_NWS_API_BASE
    user_agent: str = DEFAULT_USER_AGENT
    nws_timeout: Optional[float] = None  # None: wait for the upstream indefinitely
    json_response: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``env`` (defaults to ``os.environ`` after loading .env).

        The Azure Functions custom handler port wins over ``PORT`` so the HTTP
        variants can run unchanged as a custom handler.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        port = _int_env(env, "FUNCTIONS_CUSTOMHANDLER_PORT")
        if port is None:
            port = _int_env(env, "PORT")

        return cls(
            host=env.get("HOST") or DEFAULT_HOST,
            port=DEFAULT_PORT if port is None else port,
            nws_api_base=(env.get("NWS_API_BASE") or DEFAULT_NWS_API_BASE).rstrip("/"),
            user_agent=env.get("NWS_USER_AGENT") or DEFAULT_USER_AGENT,
            nws_timeout=_float_env(env, "NWS_TIMEOUT"),
            json_response=(env.get("MCP_JSON_RESPONSE") or "").strip().lower() in _TRUTHY,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            log_file=env.get("LOG_FILE") or None,
        )


# --------------------------------------------------------------------------- #
#  Logger setup
# --------------------------------------------------------------------------- #


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure root logging.

    Everything goes to stderr: in the stdio variant stdout carries the protocol.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
