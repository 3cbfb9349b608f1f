from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List

from app.models.climate import Candle


@dataclass
class CandleStore:
    """
    In-memory hourly candle storage.

    candles[city][bucket_start] -> candle for that UTC hour

    Writes come from the stream task, reads from API worker threads, so every
    access goes through the lock. Reads hand out copies, never live candles.
    Nothing is evicted.
    """
    candles: Dict[str, Dict[datetime, Candle]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def upsert(self, city: str, bucket: datetime, temperature: float) -> tuple[Candle, bool]:
        """
        Create the candle for (city, bucket) or fold the reading into it.
        Returns (copy of the candle after the write, created?).
        """
        with self._lock:
            city_candles = self.candles.setdefault(city, {})
            candle = city_candles.get(bucket)

            if candle is None:
                candle = Candle(
                    open=temperature,
                    high=temperature,
                    low=temperature,
                    close=temperature,
                    timestamp=format_bucket(bucket),
                )
                city_candles[bucket] = candle
                return replace(candle), True

            candle.update(temperature)
            return replace(candle), False

    def has_city(self, city: str) -> bool:
        with self._lock:
            return city in self.candles

    def snapshot(self, city: str) -> List[Candle]:
        """All candles for a city, oldest bucket first, as independent copies."""
        with self._lock:
            city_candles = self.candles.get(city)
            if not city_candles:
                return []
            return [replace(city_candles[b]) for b in sorted(city_candles)]

    def cities(self) -> List[str]:
        with self._lock:
            return sorted(self.candles)


def format_bucket(bucket: datetime) -> str:
    """Render a UTC hour bucket as YYYY-MM-DDTHH:00:00Z."""
    return bucket.strftime("%Y-%m-%dT%H:00:00Z")
