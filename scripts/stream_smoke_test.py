import os
import sys

# Add repo root to Python import path so `import app...` works
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import asyncio

from app.candles.builder import CandleBuilder
from app.candles.store import CandleStore
from app.config import get_settings
from app.providers.open_meteo import OpenMeteoStreamClient
from app.services.climate import ClimateMetricService


async def main(seconds: float = 30.0) -> None:
    """
    Connects to OPEN_METEO_URL for `seconds` seconds through the real stream
    client, then prints the candles built from whatever arrived.
    """
    settings = get_settings()
    store = CandleStore()
    service = ClimateMetricService(CandleBuilder(store))
    client = OpenMeteoStreamClient(
        url=settings.open_meteo_url,
        sink=service,
        reconnect_delay_seconds=settings.reconnect_delay_seconds,
    )

    print("Listening on:", settings.open_meteo_url)
    client.connect()
    await asyncio.sleep(seconds)
    await client.disconnect()

    cities = store.cities()
    if not cities:
        print("No events received (is the simulator running?)")
        return

    for city in cities:
        for c in service.get_candlesticks(city):
            print(f"{city} {c.timestamp} O={c.open} H={c.high} L={c.low} C={c.close}")


if __name__ == "__main__":
    asyncio.run(main())
