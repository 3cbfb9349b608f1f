from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt, ValidationError

# YYYY-MM-DDTHH:MM, optional seconds (with fraction), optional trailing Z
TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?Z?$"

Number = Union[StrictInt, StrictFloat]


class ClimateEvent(BaseModel):
    """
    ClimateEvent = one weather reading pushed by the stream.

    city: city name as sent by the source (e.g., CapeTown)
    timestamp: ISO-8601 text, seconds and trailing Z optional
    temperature: degrees Celsius
    windspeed / winddirection: carried through, not aggregated
    """

    city: str
    timestamp: str = Field(pattern=TIMESTAMP_PATTERN)
    temperature: Number
    windspeed: Number
    winddirection: Number


@dataclass
class Candle:
    """
    Hourly temperature candle for one city.

    timestamp: start of the UTC hour bucket, "YYYY-MM-DDTHH:00:00Z"
    open/high/low/close: first/max/min/last processed temperature in the bucket
    """
    open: float
    high: float
    low: float
    close: float
    timestamp: str

    def update(self, temperature: float) -> None:
        """Fold one more reading into this candle."""
        self.high = max(self.high, temperature)
        self.low = min(self.low, temperature)
        self.close = temperature

    def to_dict(self) -> dict:
        return {
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "timestamp": self.timestamp,
        }


class CandleOut(BaseModel):
    """Response shape for the candlestick query route."""

    open: float
    high: float
    low: float
    close: float
    timestamp: str


@dataclass(frozen=True)
class ValidEvent:
    event: ClimateEvent


@dataclass(frozen=True)
class InvalidEvent:
    payload: Any
    errors: List[dict]


EventValidation = Union[ValidEvent, InvalidEvent]


def validate_climate_event(payload: Any) -> EventValidation:
    """
    Check an untrusted decoded payload against the ClimateEvent shape.

    Returns ValidEvent with the typed event, or InvalidEvent with the payload
    and pydantic's per-field diagnostics. Never raises for bad input.
    """
    try:
        event = ClimateEvent.model_validate(payload)
    except ValidationError as e:
        return InvalidEvent(payload=payload, errors=e.errors(include_url=False))
    return ValidEvent(event=event)
