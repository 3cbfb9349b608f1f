# app/config.py
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Loads variables from a local .env file into environment variables (dev only).
load_dotenv()


class ConfigurationError(RuntimeError):
    """Missing or invalid setting. Raised before anything connects."""


@dataclass(frozen=True)
class Settings:
    # App config
    open_meteo_url: str
    app_env: str = "local"
    log_level: str = "INFO"
    provider: str = "OPEN_METEO"
    port: int = 3333
    cors_origins: list[str] = field(default_factory=list)
    api_token: str = "stub-token"
    rate_limit: str = "100/minute"

    # Stream client
    reconnect_delay_seconds: float = 5.0

    # Local simulator (scripts/weather_simulator.py)
    simulator_port: int = 8765
    simulator_interval_seconds: float = 5.0
    open_meteo_forecast_url: str = "https://api.open-meteo.com/v1/forecast"


def _positive_number(name: str, raw: Optional[str], default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name}={raw!r} is not a number") from None
    if value <= 0:
        raise ConfigurationError(f"{name} must be > 0, got {raw!r}")
    return value


def get_settings() -> Settings:
    """
    Reads env vars and returns a Settings object.
    Call once at startup and pass the result down.
    """
    url = os.getenv("OPEN_METEO_URL", "").strip()
    if not url:
        raise ConfigurationError("OPEN_METEO_URL is missing. Add it to .env")
    if not url.startswith(("ws://", "wss://")):
        raise ConfigurationError(f"OPEN_METEO_URL must be a ws:// or wss:// URL, got {url!r}")

    cors_origins = [s.strip() for s in os.getenv("CORS_ORIGIN", "").split(",") if s.strip()]

    return Settings(
        open_meteo_url=url,
        app_env=os.getenv("APP_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        provider=os.getenv("PROVIDER", "OPEN_METEO"),
        port=int(_positive_number("PORT", os.getenv("PORT"), 3333)),
        cors_origins=cors_origins,
        api_token=os.getenv("API_TOKEN", "stub-token"),
        rate_limit=os.getenv("RATE_LIMIT", "100/minute").strip(),
        reconnect_delay_seconds=_positive_number(
            "RECONNECT_DELAY_SECONDS", os.getenv("RECONNECT_DELAY_SECONDS"), 5.0
        ),
        simulator_port=int(_positive_number("SIMULATOR_PORT", os.getenv("SIMULATOR_PORT"), 8765)),
        simulator_interval_seconds=_positive_number(
            "SIMULATOR_INTERVAL_SECONDS", os.getenv("SIMULATOR_INTERVAL_SECONDS"), 5.0
        ),
        open_meteo_forecast_url=os.getenv(
            "OPEN_METEO_FORECAST_URL", "https://api.open-meteo.com/v1/forecast"
        ),
    )
