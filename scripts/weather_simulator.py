import os
import sys

# Add repo root to Python import path so `import app...` works
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import argparse
import asyncio
import json
import logging
import random
from datetime import datetime, timezone

import httpx
import websockets

from app.config import get_settings

log = logging.getLogger("weather_simulator")

CITIES = {
    "Berlin": (52.52, 13.41),
    "NewYork": (40.71, -74.01),
    "Tokyo": (35.68, 139.69),
    "SaoPaulo": (-23.55, -46.63),
    "CapeTown": (-33.92, 18.42),
}


async def fetch_reading(client: httpx.AsyncClient, forecast_url: str, city: str) -> dict | None:
    """
    Current weather for one city from the Open-Meteo forecast API,
    reshaped into the stream wire format.
    """
    lat, lon = CITIES[city]
    resp = await client.get(
        forecast_url,
        params={"latitude": lat, "longitude": lon, "current_weather": "true"},
    )
    resp.raise_for_status()

    weather = resp.json().get("current_weather")
    if not weather:
        return None

    return {
        "city": city,
        "timestamp": weather["time"],
        "temperature": weather["temperature"],
        "windspeed": weather["windspeed"],
        "winddirection": weather["winddirection"],
    }


class OfflineWeather:
    """
    Random-walk readings for when there is no network.
    Temperatures move a little each call and stay inside the accepted range.
    """

    def __init__(self) -> None:
        self.temps = {city: random.uniform(5, 25) for city in CITIES}

    def reading(self, city: str) -> dict:
        temp = self.temps[city] + random.uniform(-0.5, 0.5)
        temp = max(-50.0, min(60.0, temp))
        self.temps[city] = temp
        return {
            "city": city,
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "temperature": round(temp, 1),
            "windspeed": round(random.uniform(0, 40), 1),
            "winddirection": random.randint(0, 359),
        }


async def main(offline: bool) -> None:
    settings = get_settings()
    interval = settings.simulator_interval_seconds
    offline_weather = OfflineWeather()

    async with httpx.AsyncClient(timeout=10) as client:

        async def handler(ws):
            log.info("Client connected remote=%s", ws.remote_address)
            try:
                while True:
                    city = random.choice(list(CITIES))
                    try:
                        if offline:
                            event = offline_weather.reading(city)
                        else:
                            event = await fetch_reading(client, settings.open_meteo_forecast_url, city)
                    except httpx.HTTPError as e:
                        log.error("Error fetching weather data city=%s error=%s", city, e)
                        event = None

                    if event is not None:
                        await ws.send(json.dumps(event))
                    await asyncio.sleep(interval)
            except websockets.exceptions.ConnectionClosed:
                log.info("Client disconnected remote=%s", ws.remote_address)

        async with websockets.serve(handler, "0.0.0.0", settings.simulator_port):
            log.info(
                "Weather simulator running at ws://localhost:%s interval=%ss offline=%s",
                settings.simulator_port,
                interval,
                offline,
            )
            await asyncio.Future()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--offline", action="store_true", help="Generate random readings instead of calling Open-Meteo")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    try:
        asyncio.run(main(args.offline))
    except KeyboardInterrupt:
        log.info("Weather simulator stopped")
