from __future__ import annotations

from dataclasses import dataclass

from app.candles.builder import CandleBuilder
from app.candles.store import CandleStore
from app.config import Settings
from app.providers.base import ClimateStreamProvider
from app.providers.loader import get_stream_client
from app.services.climate import ClimateMetricService


@dataclass
class AppState:
    """Everything one running API process holds in memory."""
    settings: Settings
    store: CandleStore
    builder: CandleBuilder
    service: ClimateMetricService
    stream: ClimateStreamProvider


def build_state(settings: Settings) -> AppState:
    store = CandleStore()
    # Builder that writes into the store
    builder = CandleBuilder(store)
    service = ClimateMetricService(builder)
    stream = get_stream_client(settings, service)
    return AppState(settings=settings, store=store, builder=builder, service=service, stream=stream)
