from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Union

from app.candles.store import CandleStore
from app.models.climate import Candle, ClimateEvent

log = logging.getLogger("candle_builder")

MIN_TEMPERATURE = -50.0
MAX_TEMPERATURE = 60.0

_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(ts_raw: Any) -> datetime:
    """
    Converts an ISO-8601 string to an aware UTC datetime.
    Handles:
      - "YYYY-MM-DDTHH:MM"
      - "YYYY-MM-DDTHH:MM:SS(.fff)"
      - either of the above with a trailing "Z" or an explicit offset
    Fractions of any length are cut or padded to microseconds.
    Naive timestamps are taken as UTC. Raises ValueError/TypeError otherwise,
    or OverflowError when the UTC conversion leaves the datetime range.
    """
    if not isinstance(ts_raw, str):
        raise TypeError(f"timestamp must be a string, got {type(ts_raw).__name__}")

    s = ts_raw.strip().replace(" ", "T")
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    s = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), s, count=1)

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def floor_to_hour(ts: datetime) -> datetime:
    """Round timestamp down to start of its hour (UTC)."""
    ts = ts.astimezone(timezone.utc)
    return ts.replace(minute=0, second=0, microsecond=0)


@dataclass(frozen=True)
class Reading:
    city: str
    bucket: datetime
    temperature: float


@dataclass(frozen=True)
class Rejection:
    field: str
    reason: str


def check_event(event: ClimateEvent) -> Union[Reading, Rejection]:
    """
    Validate an event for aggregation, in order: city, temperature, timestamp.
    The event may have been built without schema validation, so nothing
    about its field types is assumed.
    """
    city = getattr(event, "city", None)
    if not isinstance(city, str) or not city:
        return Rejection("city", "Invalid or missing city")

    temperature = getattr(event, "temperature", None)
    if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
        return Rejection("temperature", "Invalid temperature")
    if not math.isfinite(temperature) or not MIN_TEMPERATURE <= temperature <= MAX_TEMPERATURE:
        return Rejection("temperature", "Invalid temperature")

    try:
        ts = parse_timestamp(getattr(event, "timestamp", None))
    except (TypeError, ValueError, OverflowError):
        return Rejection("timestamp", "Invalid timestamp")

    return Reading(city=city, bucket=floor_to_hour(ts), temperature=float(temperature))


class CandleBuilder:
    """
    Builds hourly temperature candles from climate events.

    - one candle per (city, UTC hour)
    - first processed reading sets open; every later one moves high/low/close
    - close follows processing order, not timestamp order
    """

    def __init__(self, store: CandleStore):
        self.store = store

    def process_event(self, event: ClimateEvent) -> None:
        """
        Fold one event into its candle.
        Invalid events are logged and dropped; nothing is raised to the caller.
        """
        checked = check_event(event)

        if isinstance(checked, Rejection):
            log.error(
                "Failed to process event field=%s error=%s event=%r",
                checked.field,
                checked.reason,
                event,
            )
            return

        candle, created = self.store.upsert(checked.city, checked.bucket, checked.temperature)

        if created:
            log.info("Created new candle city=%s bucket=%s candle=%s", checked.city, candle.timestamp, candle)
        else:
            log.debug("Updated candle city=%s bucket=%s candle=%s", checked.city, candle.timestamp, candle)

    def get_candlesticks_by_city(self, city: str) -> List[Candle]:
        """Candles for a city, oldest first. Empty list for a blank or unseen city."""
        if not city or not isinstance(city, str):
            log.warning("Invalid city parameter city=%r", city)
            return []

        if not self.store.has_city(city):
            log.warning("No candlesticks found city=%s", city)
            return []

        candles = self.store.snapshot(city)
        log.info("Fetching candlesticks city=%s count=%d", city, len(candles))
        return candles
