from __future__ import annotations

import logging
from typing import List

from app.candles.builder import CandleBuilder
from app.models.climate import Candle, ClimateEvent

log = logging.getLogger("climate_service")


class ClimateMetricService:
    """
    Thin layer between the stream / API and the candle builder.
    Adds logging only; arguments and results pass through untouched.
    """

    def __init__(self, builder: CandleBuilder):
        self.builder = builder

    def process_event(self, event: ClimateEvent) -> None:
        log.info(
            "Processing climate event city=%s timestamp=%s",
            getattr(event, "city", None),
            getattr(event, "timestamp", None),
        )
        self.builder.process_event(event)

    def get_candlesticks(self, city: str) -> List[Candle]:
        return self.builder.get_candlesticks_by_city(city)
